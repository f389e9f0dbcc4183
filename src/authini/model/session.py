"""Ephemeral broker sessions.

A session is created PENDING (code set, token unset) and moves to REDEEMED (code
unset, token set) exactly once. REDEEMED is terminal.
"""
import enum
from datetime import datetime
from typing import Any, Optional
from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSON

from authini.model.base import Base


class SessionState(enum.Enum):
    PENDING = "pending"
    REDEEMED = "redeemed"


class Session(Base):
    """Broker record linking a code or a token to a composed payload."""
    __tablename__ = "sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    token: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    payload: Mapped[Any] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        Index("idx_sessions_code", "code", unique=True),
        Index("idx_sessions_token", "token", unique=True),
    )

    @property
    def state(self) -> SessionState:
        if self.token is not None:
            return SessionState.REDEEMED
        return SessionState.PENDING
