"""Cards and their search mirror."""

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grokdb.models.base import Base, TimestampMixin


class Card(Base, TimestampMixin):
    """A study card owned by exactly one deck."""

    __tablename__ = "Cards"
    __table_args__ = (CheckConstraint("title <> ''", name="card_title_not_empty"),)

    id: Mapped[int] = mapped_column("card_id", Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    front: Mapped[str] = mapped_column(Text, nullable=False, default="")
    back: Mapped[str] = mapped_column(Text, nullable=False, default="")
    deck_id: Mapped[int] = mapped_column(
        "deck", ForeignKey("Decks.deck_id", ondelete="CASCADE"), nullable=False, index=True
    )

    deck: Mapped["Deck"] = relationship(back_populates="cards")  # type: ignore[name-defined] # noqa: F821
    score: Mapped["CardScore"] = relationship(  # type: ignore[name-defined] # noqa: F821
        back_populates="card", cascade="all, delete-orphan", passive_deletes=True, uselist=False
    )


class CardSearchEntry(Base):
    """Text of a card, mirrored for search. Never written by callers."""

    __tablename__ = "CardsSearch"

    card_id: Mapped[int] = mapped_column("card", ForeignKey("Cards.card_id", ondelete="CASCADE"), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    front: Mapped[str] = mapped_column(Text, nullable=False, default="")
    back: Mapped[str] = mapped_column(Text, nullable=False, default="")
