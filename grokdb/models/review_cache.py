"""Single-slot caches of the card currently offered per container."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from grokdb.config import utcnow
from grokdb.models.base import Base


class CachedDeckReview(Base):
    __tablename__ = "CachedDeckReview"

    deck_id: Mapped[int] = mapped_column("deck", ForeignKey("Decks.deck_id", ondelete="CASCADE"), primary_key=True)
    card_id: Mapped[int] = mapped_column("card", ForeignKey("Cards.card_id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class CachedStashReview(Base):
    __tablename__ = "CachedStashReview"

    stash_id: Mapped[int] = mapped_column("stash", ForeignKey("Stashes.stash_id", ondelete="CASCADE"), primary_key=True)
    card_id: Mapped[int] = mapped_column("card", ForeignKey("Cards.card_id", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
