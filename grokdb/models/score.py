"""Per-card review score and its append-only history."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from grokdb.config import utcnow
from grokdb.models.base import Base


class CardScore(Base):
    """Review counters for one card.

    ``times_seen`` counts how often the card was put up for review,
    ``times_reviewed`` how often it was actually graded.

    Write scores through the ORM only. History rows are appended by a flush
    hook, so a Core ``update(CardScore)`` statement would bypass them.
    """

    __tablename__ = "CardsScore"

    card_id: Mapped[int] = mapped_column("card", ForeignKey("Cards.card_id", ondelete="CASCADE"), primary_key=True)
    changelog: Mapped[str] = mapped_column(Text, nullable=False, default="")
    success: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fail: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    times_reviewed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    times_seen: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    seen_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    reviewed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    card: Mapped["Card"] = relationship(back_populates="score")  # type: ignore[name-defined] # noqa: F821


class CardScoreHistory(Base):
    __tablename__ = "CardsScoreHistory"
    __table_args__ = (
        Index("CARDS_SCORE_HISTORY_CARD_INDEX", "card"),
        Index("CARDS_SCORE_HISTORY_OCCURRED_AT_INDEX", "occurred_at"),
    )

    # History rows have no natural key.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    occurred_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    is_review_event: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    success: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # delta, floored at 0
    fail: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # delta, floored at 0
    total_success: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_fail: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    changelog: Mapped[str] = mapped_column(Text, nullable=False, default="")
    card_id: Mapped[int] = mapped_column("card", ForeignKey("Cards.card_id", ondelete="CASCADE"), nullable=False)
