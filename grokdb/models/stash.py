from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from grokdb.config import utcnow
from grokdb.models.base import Base, TimestampMixin


class Stash(Base, TimestampMixin):
    __tablename__ = "Stashes"
    __table_args__ = (CheckConstraint("name <> ''", name="stash_name_not_empty"),)

    id: Mapped[int] = mapped_column("stash_id", Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    reviewed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class StashCard(Base):
    __tablename__ = "StashCards"

    stash_id: Mapped[int] = mapped_column("stash", ForeignKey("Stashes.stash_id", ondelete="CASCADE"), primary_key=True)
    card_id: Mapped[int] = mapped_column("card", ForeignKey("Cards.card_id", ondelete="CASCADE"), primary_key=True)
    added_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
