"""Relying-party application records.

A client is addressed internally by its integer id and externally by its unique
`client_id`. A secret only exists once a callback URL has been declared.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from authini.model.base import Base, str32, str255


class Client(Base):
    """Registered third-party application that requests sessions for persons.

    Secrets are stored as plain text.
    """
    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[str32]
    client_url: Mapped[str255]
    callback_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    secret: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (Index("idx_clients_client_id", "client_id", unique=True),)

    def to_dict(self):
        return {
            "id": self.id,
            "client_id": self.client_id,
            "client_url": self.client_url,
            "callback_url": self.callback_url,
            "secret": self.secret,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
