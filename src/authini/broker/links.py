"""
Person-Application Link Store

Many-to-many association between persons and clients. Each row carries a free-form
profile document and is addressed by its (person, client) pair rather than its own id.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authini.broker.errors import Conflict, NotFound, StorageError
from authini.model.link import PersonAppLink

logger = logging.getLogger(__name__)


class LinkUpdate(BaseModel):
    person_id: int
    client_id: int
    profile: Optional[Any] = None


def parse_profile(
    link: Optional[PersonAppLink], person_id: int, client_id: int
) -> Dict[str, Any]:
    """Return the link's profile as a dict.

    A missing link or an empty profile is `{}`. Anything that is not a JSON object,
    including text that does not parse, raises `StorageError`.
    """
    if link is None or link.profile is None:
        return {}

    profile = link.profile
    if isinstance(profile, (str, bytes)):
        if len(profile) == 0:
            return {}
        try:
            profile = json.loads(profile)
        except ValueError as e:
            raise StorageError.corrupt_profile(person_id, client_id, str(e)) from e

    if not isinstance(profile, dict):
        raise StorageError.corrupt_profile(
            person_id, client_id, f"found {type(profile).__name__}"
        )
    return profile


class LinkStore:
    def __init__(self, database_session: AsyncSession) -> None:
        self.database_session = database_session

    async def get_by_person_and_client(
        self, person_id: int, client_id: int
    ) -> Optional[PersonAppLink]:
        stmt = select(PersonAppLink).where(
            PersonAppLink.person_id == person_id,
            PersonAppLink.client_id == client_id,
        )
        return (await self.database_session.scalars(stmt)).first()

    async def list_by_client(self, client_id: int) -> List[PersonAppLink]:
        stmt = (
            select(PersonAppLink)
            .where(PersonAppLink.client_id == client_id)
            .order_by(PersonAppLink.id)
        )
        return list((await self.database_session.scalars(stmt)).all())

    async def list_by_person(self, person_id: int) -> List[PersonAppLink]:
        stmt = (
            select(PersonAppLink)
            .where(PersonAppLink.person_id == person_id)
            .order_by(PersonAppLink.id)
        )
        return list((await self.database_session.scalars(stmt)).all())

    async def create(
        self, person_id: int, client_id: int, profile: Optional[Any] = None
    ) -> PersonAppLink:
        stmt = (
            insert(PersonAppLink)
            .values(person_id=person_id, client_id=client_id, profile=profile)
            .returning(PersonAppLink)
        )
        try:
            async with self.database_session.begin_nested():
                link = (await self.database_session.scalars(stmt)).one()
        except IntegrityError as e:
            raise Conflict.link_exists(person_id, client_id) from e
        return link

    async def update(self, link: LinkUpdate) -> None:
        """Overwrite only the profile of the link addressed by its pair."""
        stmt = (
            update(PersonAppLink)
            .where(
                PersonAppLink.person_id == link.person_id,
                PersonAppLink.client_id == link.client_id,
            )
            .values(profile=link.profile)
            .execution_options(synchronize_session=False)
        )
        result = await self.database_session.execute(stmt)
        if result.rowcount == 0:
            raise NotFound.link(link.person_id, link.client_id)
        logger.debug(
            "Updated profile for person %d and client %d",
            link.person_id,
            link.client_id,
        )
