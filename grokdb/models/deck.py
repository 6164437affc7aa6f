"""Decks and the closure table that nests them."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grokdb.config import utcnow
from grokdb.models.base import Base, TimestampMixin


class Deck(Base, TimestampMixin):
    __tablename__ = "Decks"
    __table_args__ = (CheckConstraint("name <> ''", name="deck_name_not_empty"),)

    id: Mapped[int] = mapped_column("deck_id", Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    reviewed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    cards: Mapped[list["Card"]] = relationship(  # type: ignore[name-defined] # noqa: F821
        back_populates="deck", cascade="all, delete-orphan", passive_deletes=True
    )


class DeckClosure(Base):
    """One ancestor -> descendant pair of the deck tree.

    Every deck is its own ancestor at depth 0.
    """

    __tablename__ = "DecksClosure"
    __table_args__ = (Index("DECKSCLOSURE_DEPTH_INDEX", "depth"),)

    ancestor_id: Mapped[int] = mapped_column(
        "ancestor", ForeignKey("Decks.deck_id", ondelete="CASCADE"), primary_key=True
    )
    descendant_id: Mapped[int] = mapped_column(
        "descendant", ForeignKey("Decks.deck_id", ondelete="CASCADE"), primary_key=True
    )
    depth: Mapped[int] = mapped_column(Integer, nullable=False)
