"""Score tracking for reviewed cards.

Recording an outcome bumps the card's counters; the history row that goes
with it is written by the ``CardScore`` flush hook, never from here.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import select

from grokdb.config import settings
from grokdb.database import Store
from grokdb.errors import NotFoundError
from grokdb.models.score import CardScore, CardScoreHistory
from grokdb.review.cache import ReviewCache
from grokdb.review.containers import ReviewableDeck, ReviewableSelection, ReviewableStash

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    SUCCESS = "success"
    FAIL = "fail"


@dataclass
class ScoreUpdate:
    """A review outcome for one card.

    ``deck`` and ``stash`` name the container the review happened in, if any.
    A skipped card is not graded, even if an outcome came along with the
    skip; it only moves to the back of the least-recently-reviewed order.
    """

    outcome: Outcome | None = None
    skip: bool = False
    changelog: str | None = None
    deck: int | None = None
    stash: int | None = None

    def should_update(self) -> bool:
        return self.outcome is not None or self.skip or bool(self.changelog)

    def contexts(self) -> list[ReviewableSelection]:
        found: list[ReviewableSelection] = []
        if self.deck is not None:
            found.append(ReviewableDeck(self.deck))
        if self.stash is not None:
            found.append(ReviewableStash(self.stash))
        return found


class ScoreTracker:
    """Applies review outcomes to card scores."""

    def __init__(self, store: Store, cache: ReviewCache | None = None) -> None:
        self.store = store
        self.cache = cache or ReviewCache(store)

    async def update_reviewed_card(self, card_id: int, update: ScoreUpdate) -> None:
        """Apply ``update`` to the score of ``card_id``.

        Raises:
            ValueError: The update carries nothing to apply.
            NotFoundError: The card (or a context deck/stash) doesn't exist.
        """
        if not update.should_update():
            raise ValueError("Invalid card score update request.")

        async with self.store.transaction() as session:
            score = await session.get(CardScore, card_id)
            if score is None:
                raise NotFoundError(f"Card {card_id} does not exist")

            now = self.store.clock()
            if update.skip:
                score.reviewed_at = now
            elif update.outcome is not None:
                if update.outcome is Outcome.SUCCESS:
                    score.success += 1
                else:
                    score.fail += 1
                score.times_reviewed += 1
                score.reviewed_at = now

            if update.changelog:
                trail = [score.changelog, update.changelog] if score.changelog else [update.changelog]
                score.changelog = settings.changelog_separator.join(trail)

            for context in update.contexts():
                container = await session.get(context.container_model, context.container_id)
                if container is None:
                    raise NotFoundError(f"{context.kind.capitalize()} {context.container_id} does not exist")
                container.reviewed_at = now

        logger.info(
            "Recorded review of card %d: outcome=%s skip=%s",
            card_id,
            update.outcome.value if update.outcome else None,
            update.skip,
        )

    async def review_card(self, card_id: int, update: ScoreUpdate) -> CardScore:
        """Record a review, then stop offering the card in every container.

        The purge runs only after the score update has committed.
        """
        await self.update_reviewed_card(card_id, update)
        await self.cache.remove_cached_card(card_id)
        return await self.get_score(card_id)

    async def get_score(self, card_id: int) -> CardScore:
        async with self.store.transaction() as session:
            score = await session.get(CardScore, card_id)
        if score is None:
            raise NotFoundError(f"Card {card_id} does not exist")
        return score

    async def get_history(self, card_id: int) -> list[CardScoreHistory]:
        """History rows for a card, newest first."""
        stmt = (
            select(CardScoreHistory)
            .where(CardScoreHistory.card_id == card_id)
            .order_by(CardScoreHistory.occurred_at.desc(), CardScoreHistory.id.desc())
        )
        async with self.store.transaction() as session:
            return list((await session.scalars(stmt)).all())
