"""Containers a card can be reviewed in: decks and stashes.

Each container knows its candidate pool and which cache table holds its
current offer. The selection algorithm itself lives in
``grokdb.review.selection`` and is shared by both.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import ClassVar

from sqlalchemy import Select, exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from grokdb.hierarchy import descendant_cards
from grokdb.models.base import Base
from grokdb.models.deck import Deck
from grokdb.models.review_cache import CachedDeckReview, CachedStashReview
from grokdb.models.stash import Stash, StashCard


class ReviewableSelection(ABC):
    """A deck or stash that can be asked for its next review card."""

    kind: ClassVar[str]
    cache_model: ClassVar[type[Base]]
    container_model: ClassVar[type[Base]]

    def __init__(self, container_id: int) -> None:
        self.container_id = container_id

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.container_id})"

    @abstractmethod
    def candidate_pool(self) -> Select:
        """Select of the eligible card ids, labelled ``card_id``."""
        ...

    @abstractmethod
    def cache_entry(self, card_id: int, created_at: datetime) -> Base:
        """A fresh cache row offering ``card_id`` for this container."""
        ...

    async def in_pool(self, session: AsyncSession, card_id: int) -> bool:
        pool = self.candidate_pool().subquery()
        return bool(await session.scalar(select(exists().where(pool.c.card_id == card_id))))


class ReviewableDeck(ReviewableSelection):
    """Cards of a deck and of every deck nested below it."""

    kind = "deck"
    cache_model = CachedDeckReview
    container_model = Deck

    def candidate_pool(self) -> Select:
        return descendant_cards(self.container_id)

    def cache_entry(self, card_id: int, created_at: datetime) -> CachedDeckReview:
        return CachedDeckReview(deck_id=self.container_id, card_id=card_id, created_at=created_at)


class ReviewableStash(ReviewableSelection):
    """Cards currently in a stash."""

    kind = "stash"
    cache_model = CachedStashReview
    container_model = Stash

    def candidate_pool(self) -> Select:
        return select(StashCard.card_id.label("card_id")).where(StashCard.stash_id == self.container_id)

    def cache_entry(self, card_id: int, created_at: datetime) -> CachedStashReview:
        return CachedStashReview(stash_id=self.container_id, card_id=card_id, created_at=created_at)
