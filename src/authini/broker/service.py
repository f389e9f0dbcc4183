"""
Session Broker

Orchestrates the three session operations:

1. `start_session`: loads the person, the client and the link profile, composes the
   payload and asks the configured issuer for a code (PENDING session).
2. `redeem_code`: swaps a PENDING session's code for a freshly generated token with a
   single conditional update (REDEEMED, terminal). Exactly one of any number of
   concurrent redemptions of the same code succeeds.
3. `fetch_profile`: read-only lookup of the payload bound to a token.

Sessions have no expiry; the `expires_in_min` returned on start is advisory only.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authini.metrics import MetricsClient, NoOpMetricsClient
from authini.broker.credentials import (
    DEFAULT_CODE_LENGTH,
    DEFAULT_SECRET_LENGTH,
    DEFAULT_TOKEN_LENGTH,
    generate_token,
)
from authini.broker.errors import NotFound, ValidationError
from authini.broker.links import LinkStore, parse_profile
from authini.broker.persons import PersonStore
from authini.broker.registry import ClientRegistry
from authini.broker.sessions import SessionRequest, SessionStore
from authini.broker.storage import transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BrokerConfig:
    code_length: int = DEFAULT_CODE_LENGTH
    secret_length: int = DEFAULT_SECRET_LENGTH
    token_length: int = DEFAULT_TOKEN_LENGTH
    expires_in_min: int = 60


@dataclass(frozen=True)
class SessionGrant:
    code: str
    expires_in_min: int


class SessionIssuer(Protocol):
    async def issue(self, request: SessionRequest) -> str: ...


class SessionBroker:
    def __init__(
        self,
        database_session_maker: async_sessionmaker[AsyncSession],
        issuer: SessionIssuer,
        config: Optional[BrokerConfig] = None,
        metrics_client: Optional[MetricsClient] = None,
    ) -> None:
        self.database_session_maker = database_session_maker
        self.issuer = issuer
        self.config = config or BrokerConfig()
        self.metrics_client = metrics_client or NoOpMetricsClient()

    async def start_session(self, person_id: int, client_pk: int) -> SessionGrant:
        async with transaction(self.database_session_maker, "load session subject") as database_session:
            person = await PersonStore(database_session).get(person_id)
            if person is None:
                raise NotFound.person(person_id)

            client = await ClientRegistry(database_session).find(client_pk)
            if client is None:
                raise NotFound.client(client_pk)

            link = await LinkStore(database_session).get_by_person_and_client(
                person_id, client_pk
            )
            profile = parse_profile(link, person_id, client_pk)

            request = SessionRequest(
                client_id=client.client_id,
                person_id=person.id,
                expires_in_min=self.config.expires_in_min,
                profile=profile,
            )

        code = await self.issuer.issue(request)
        self.metrics_client.increment(
            "session.start", 1, tag_dict={"client_id": request.client_id}
        )
        return SessionGrant(code=code, expires_in_min=self.config.expires_in_min)

    async def redeem_code(self, code: str) -> str:
        if not code:
            raise ValidationError.missing_field("code")

        async with transaction(self.database_session_maker, "redeem code") as database_session:
            session_store = SessionStore(database_session)

            pending = await session_store.find_pending(code)
            if pending is None:
                self.metrics_client.increment("session.redeem.miss", 1)
                raise NotFound.code()

            token = generate_token(self.config.token_length)
            if not await session_store.redeem(pending.id, code, token):
                # Lost the race against a concurrent redemption of the same code.
                self.metrics_client.increment("session.redeem.miss", 1)
                raise NotFound.code()

        logger.info("Redeemed session %d", pending.id)
        self.metrics_client.increment("session.redeem", 1)
        return token

    async def fetch_profile(self, token: str) -> Optional[Any]:
        """Return the payload bound to `token`, or None when no session holds it."""
        if not token:
            return None

        async with transaction(self.database_session_maker, "fetch profile") as database_session:
            session = await SessionStore(database_session).find_by_token(token)
            if session is None:
                return None
            return session.payload
