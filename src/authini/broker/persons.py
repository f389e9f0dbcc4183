"""Read access to person records.

Listing and editing persons is not the broker's concern; these helpers exist to load
the subject of a session and to enrich detail views.
"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from authini.model.link import PersonAppLink
from authini.model.person import Person


class PersonStore:
    def __init__(self, database_session: AsyncSession) -> None:
        self.database_session = database_session

    async def get(self, person_id: int) -> Optional[Person]:
        stmt = select(Person).where(Person.id == person_id)
        return (await self.database_session.scalars(stmt)).first()

    async def list_all(self) -> List[Person]:
        stmt = select(Person).order_by(Person.id)
        return list((await self.database_session.scalars(stmt)).all())

    async def list_by_client(self, client_id: int) -> List[Person]:
        """Persons linked to the client, in link insertion order."""
        stmt = (
            select(Person)
            .join(PersonAppLink, PersonAppLink.person_id == Person.id)
            .where(PersonAppLink.client_id == client_id)
            .order_by(PersonAppLink.id)
        )
        return list((await self.database_session.scalars(stmt)).all())

    async def create(
        self,
        national_id: str,
        given_name: str,
        family_name: str,
        email: str,
        phone: Optional[str] = None,
    ) -> Person:
        person = Person(
            national_id=national_id,
            given_name=given_name,
            family_name=family_name,
            email=email,
            phone=phone,
        )
        self.database_session.add(person)
        await self.database_session.flush()
        await self.database_session.refresh(person)
        return person
