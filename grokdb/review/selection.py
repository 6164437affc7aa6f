"""Next-card selection for decks and stashes.

A container keeps offering the same card until that card is graded: the
cached pick is returned as long as it is still part of the container's pool.
On a miss the pool is ranked, the winner is cached for the container and its
``times_seen`` counter is bumped, all in one store transaction.
"""

import logging

from sqlalchemy import select

from grokdb.config import settings
from grokdb.database import Store
from grokdb.models.score import CardScore
from grokdb.review.cache import get_cached, set_cached
from grokdb.review.containers import ReviewableSelection
from grokdb.review.ranking import RankingStrategy, get_ranking

logger = logging.getLogger(__name__)


class ReviewSelector:
    """Picks and caches the next card to review in a container."""

    def __init__(self, store: Store, ranking: RankingStrategy | None = None) -> None:
        self.store = store
        self.ranking = ranking or get_ranking(settings.ranking)

    async def get_review_card(self, selection: ReviewableSelection) -> int | None:
        """Return the card to review next, or None if the container is empty.

        Args:
            selection: The deck or stash being reviewed.

        Returns:
            The card id currently offered for the container.
        """
        async with self.store.transaction() as session:
            cached = await get_cached(session, selection)
            if cached is not None and await selection.in_pool(session, cached.card_id):
                logger.debug("Cache hit for %r: card %d", selection, cached.card_id)
                return cached.card_id

            stmt = (
                select(CardScore)
                .where(CardScore.card_id.in_(selection.candidate_pool()))
                .order_by(*self.ranking.order_by())
                .limit(1)
            )
            winner = (await session.scalars(stmt)).first()

            if winner is None:
                if cached is not None:
                    # Cached card left the pool and nothing replaced it.
                    await session.delete(cached)
                return None

            now = self.store.clock()
            await set_cached(session, selection, winner.card_id, now)
            winner.times_seen += 1
            winner.seen_at = now

        logger.info("Offering card %d for %r", winner.card_id, selection)
        return winner.card_id
