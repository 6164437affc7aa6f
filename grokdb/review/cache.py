"""Review cache: the one card currently offered per deck or stash."""

import logging
from datetime import datetime

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from grokdb.database import Store
from grokdb.models.review_cache import CachedDeckReview, CachedStashReview
from grokdb.review.containers import ReviewableSelection

logger = logging.getLogger(__name__)

CACHE_MODELS = (CachedDeckReview, CachedStashReview)


async def get_cached(session: AsyncSession, selection: ReviewableSelection):  # type: ignore[no-untyped-def]
    return await session.get(selection.cache_model, selection.container_id)


async def set_cached(
    session: AsyncSession, selection: ReviewableSelection, card_id: int, now: datetime
) -> None:
    """Offer ``card_id`` for the container, replacing any earlier offer."""
    entry = await get_cached(session, selection)
    if entry is None:
        session.add(selection.cache_entry(card_id, now))
    else:
        entry.card_id = card_id
        entry.created_at = now


async def purge_card(session: AsyncSession, card_id: int) -> int:
    """Drop ``card_id`` from every deck and stash cache. Returns rows removed."""
    removed = 0
    for model in CACHE_MODELS:
        result = await session.execute(
            delete(model).where(model.card_id == card_id).execution_options(synchronize_session=False)
        )
        removed += result.rowcount or 0
    return removed


class ReviewCache:
    def __init__(self, store: Store) -> None:
        self.store = store

    async def get(self, selection: ReviewableSelection) -> int | None:
        async with self.store.transaction() as session:
            entry = await get_cached(session, selection)
            return entry.card_id if entry is not None else None

    async def set(self, selection: ReviewableSelection, card_id: int) -> None:
        async with self.store.transaction() as session:
            await set_cached(session, selection, card_id, self.store.clock())

    async def clear(self, selection: ReviewableSelection) -> None:
        async with self.store.transaction() as session:
            entry = await get_cached(session, selection)
            if entry is not None:
                await session.delete(entry)

    async def remove_cached_card(self, card_id: int) -> None:
        """Stop offering ``card_id`` anywhere, whichever container cached it."""
        async with self.store.transaction() as session:
            removed = await purge_card(session, card_id)
        logger.debug("Purged card %d from %d review cache(s)", card_id, removed)
