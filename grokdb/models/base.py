"""Declarative base and shared column mixins."""

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from grokdb.config import utcnow


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    """``created_at``/``updated_at`` columns.

    ``updated_at`` is only moved when a user-facing field changes; see
    ``grokdb.models.hooks``.
    """

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
