"""Person identity records.

Persons are created explicitly and never deleted by the broker. They are the subject
of every session the broker issues.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from authini.model.base import Base, str32, str255


class Person(Base):
    """Identity record with legal identifier and contact fields."""
    __tablename__ = "persons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    national_id: Mapped[str32]
    given_name: Mapped[str255]
    family_name: Mapped[str255]
    email: Mapped[str255]
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("position('@' IN email) > 0", name="persons_email_check"),
        CheckConstraint("phone ~ '^[0-9]+$'", name="persons_phone_check"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "national_id": self.national_id,
            "given_name": self.given_name,
            "family_name": self.family_name,
            "email": self.email,
            "phone": self.phone,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
