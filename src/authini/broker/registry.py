"""
Client Registry

Owns relying-party application records. A client secret is generated every time an
update declares a non-empty callback URL, overwriting whatever secret was stored before;
updates without a callback URL leave the stored secret untouched.
"""
import logging
from typing import List, Optional

from pydantic import BaseModel
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authini.broker.credentials import DEFAULT_SECRET_LENGTH, generate_secret
from authini.broker.errors import Conflict, NotFound, StorageError, ValidationError
from authini.model.client import Client

logger = logging.getLogger(__name__)

CLIENT_ID_MAX_LENGTH = 32
URL_MAX_LENGTH = 255


class ClientCreate(BaseModel):
    client_id: str = ""
    client_url: str = ""


class ClientUpdate(BaseModel):
    """Full replacement of a client record.

    A `secret` sent by the caller is ignored: secrets are only ever generated here.
    """
    id: int
    client_id: str = ""
    client_url: str = ""
    callback_url: Optional[str] = None
    secret: Optional[str] = None


def validate_client_fields(
    client_id: str, client_url: str, callback_url: Optional[str] = None
) -> None:
    if not client_id:
        raise ValidationError.missing_field("client_id")
    if len(client_id) > CLIENT_ID_MAX_LENGTH:
        raise ValidationError.too_long("client_id", CLIENT_ID_MAX_LENGTH)
    if not client_url:
        raise ValidationError.missing_field("client_url")
    if len(client_url) > URL_MAX_LENGTH:
        raise ValidationError.too_long("client_url", URL_MAX_LENGTH)
    if callback_url and len(callback_url) > URL_MAX_LENGTH:
        raise ValidationError.too_long("callback_url", URL_MAX_LENGTH)


class ClientRegistry:
    def __init__(
        self,
        database_session: AsyncSession,
        secret_length: int = DEFAULT_SECRET_LENGTH,
    ) -> None:
        self.database_session = database_session
        self.secret_length = secret_length

    async def list_all(self) -> List[Client]:
        stmt = select(Client).order_by(Client.id)
        return list((await self.database_session.scalars(stmt)).all())

    async def find(self, client_pk: int) -> Optional[Client]:
        stmt = select(Client).where(Client.id == client_pk)
        return (await self.database_session.scalars(stmt)).first()

    async def get(self, client_pk: int) -> Client:
        client = await self.find(client_pk)
        if client is None:
            raise NotFound.client(client_pk)
        return client

    async def get_by_client_id(self, client_id: str) -> Client:
        stmt = select(Client).where(Client.client_id == client_id)
        client = (await self.database_session.scalars(stmt)).first()
        if client is None:
            raise NotFound.client(client_id)
        return client

    async def create(self, client_id: str, client_url: str) -> Client:
        validate_client_fields(client_id, client_url)

        stmt = (
            insert(Client)
            .values(client_id=client_id, client_url=client_url)
            .returning(Client)
        )
        try:
            # Savepoint so a unique violation leaves the outer transaction usable.
            async with self.database_session.begin_nested():
                client = (await self.database_session.scalars(stmt)).one()
        except IntegrityError as e:
            raise Conflict.client_id_taken(client_id) from e

        logger.info("Registered client %s as %d", client.client_id, client.id)
        return client

    async def update(self, client_pk: int, record: ClientUpdate) -> Client:
        if record.id != client_pk:
            raise ValidationError.id_mismatch()
        validate_client_fields(
            record.client_id, record.client_url, record.callback_url
        )

        values = {
            "client_id": record.client_id,
            "client_url": record.client_url,
            "callback_url": record.callback_url or None,
        }
        if record.callback_url:
            values["secret"] = generate_secret(self.secret_length)

        stmt = (
            update(Client)
            .where(Client.id == client_pk)
            .values(**values)
            .returning(Client)
            # A client already loaded in this session must reflect the new row.
            .execution_options(synchronize_session=False, populate_existing=True)
        )
        try:
            async with self.database_session.begin_nested():
                client = (await self.database_session.scalars(stmt)).first()
        except IntegrityError as e:
            raise Conflict.client_id_taken(record.client_id) from e

        if client is None:
            raise NotFound.client(client_pk)

        if "secret" in values:
            logger.info("Rotated secret for client %d", client_pk)
        return client

    async def delete(self, client_pk: int) -> None:
        """Remove the client row.

        Links still referencing the client make the store reject the delete; that is
        reported as a storage failure, not cascaded.
        """
        stmt = delete(Client).where(Client.id == client_pk)
        try:
            async with self.database_session.begin_nested():
                result = await self.database_session.execute(stmt)
        except IntegrityError as e:
            raise StorageError.query("delete client", e) from e

        if result.rowcount == 0:
            raise NotFound.client(client_pk)
