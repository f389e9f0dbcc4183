"""Person-application association with an opaque profile document."""
from datetime import datetime
from typing import Any, Optional
from sqlalchemy import DateTime, ForeignKey, Index, Integer, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSON

from authini.model.base import Base


class PersonAppLink(Base):
    """Association row keyed by the unique (person, client) pair.

    The profile is expected to hold a JSON object; it is validated when a
    session payload is composed.
    """
    __tablename__ = "person_app_link"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    person_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("persons.id"), nullable=False
    )
    client_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clients.id"), nullable=False
    )
    profile: Mapped[Optional[Any]] = mapped_column(
        JSON(none_as_null=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_person_app_link_pair", "person_id", "client_id", unique=True),
        Index("idx_person_app_link_client", "client_id"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "person_id": self.person_id,
            "client_id": self.client_id,
            "profile": self.profile,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
