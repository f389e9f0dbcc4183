"""
Session Store and local session issuer.

Sessions are keyed by a single-use code while PENDING and by a bearer token once
REDEEMED. The code to token transition is a single conditional UPDATE: the row only
changes if it still holds the code and no token. Under concurrent redemption of the
same code the store serializes the competing updates on the row, and every update
after the first matches zero rows.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from authini.broker.credentials import DEFAULT_CODE_LENGTH, generate_code
from authini.broker.storage import transaction
from authini.model.session import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionRequest:
    """Everything an issuer needs to open a session for a (person, client) pair."""

    client_id: str
    person_id: int
    expires_in_min: int
    profile: Dict[str, Any] = field(default_factory=dict)

    def payload(self) -> Dict[str, Any]:
        return {
            "client_id": self.client_id,
            "person_id": self.person_id,
            "profile": self.profile,
        }


class SessionStore:
    def __init__(self, database_session: AsyncSession) -> None:
        self.database_session = database_session

    async def create(self, code: str, payload: Any) -> int:
        stmt = insert(Session).values(code=code, payload=payload).returning(Session.id)
        return (await self.database_session.execute(stmt)).scalar_one()

    async def find_pending(self, code: str) -> Optional[Session]:
        stmt = select(Session).where(Session.code == code, Session.token.is_(None))
        return (await self.database_session.scalars(stmt)).first()

    async def find_by_token(self, token: str) -> Optional[Session]:
        stmt = select(Session).where(Session.token == token)
        return (await self.database_session.scalars(stmt)).first()

    async def redeem(self, session_id: int, code: str, token: str) -> bool:
        """Swap the code for the token. Returns False if another redemption won."""
        stmt = (
            update(Session)
            .where(
                Session.id == session_id,
                Session.code == code,
                Session.token.is_(None),
            )
            .values(code=None, token=token)
            .returning(Session.id)
            .execution_options(synchronize_session=False)
        )
        redeemed_id = (await self.database_session.execute(stmt)).scalar_one_or_none()
        return redeemed_id is not None


class LocalSessionIssuer:
    """Issues codes backed by the local Session Store."""

    def __init__(
        self,
        database_session_maker: async_sessionmaker[AsyncSession],
        code_length: int = DEFAULT_CODE_LENGTH,
    ) -> None:
        self.database_session_maker = database_session_maker
        self.code_length = code_length

    async def issue(self, request: SessionRequest) -> str:
        code = generate_code(self.code_length)
        async with transaction(self.database_session_maker, "create session") as database_session:
            session_id = await SessionStore(database_session).create(
                code, request.payload()
            )
        logger.info(
            "Created session %d for person %d and client %s",
            session_id,
            request.person_id,
            request.client_id,
        )
        return code
