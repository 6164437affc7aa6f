"""Tests for score tracking, history snapshots and delete cascades."""

import pytest
from sqlalchemy import func, select

from grokdb.catalog import CardRepository, DeckRepository, StashRepository
from grokdb.database import Store
from grokdb.errors import NotFoundError
from grokdb.models import CachedDeckReview, Card, CardScore, CardScoreHistory, CardSearchEntry, StashCard
from grokdb.review import Outcome, ReviewableDeck, ReviewSelector, ScoreTracker, ScoreUpdate


async def _count(store: Store, model: type, card_id: int) -> int:
    async with store.transaction() as session:
        return await session.scalar(select(func.count()).select_from(model).where(model.card_id == card_id))


async def _new_card(decks: DeckRepository, cards: CardRepository, title: str = "card") -> Card:
    deck = await decks.create("Deck")
    return await cards.create(deck.id, title)


# --- ScoreUpdate ---


class TestScoreUpdate:
    def test_outcome_is_an_update(self) -> None:
        assert ScoreUpdate(outcome=Outcome.SUCCESS).should_update()

    def test_skip_is_an_update(self) -> None:
        assert ScoreUpdate(skip=True).should_update()

    def test_changelog_alone_is_an_update(self) -> None:
        assert ScoreUpdate(changelog="typo in back").should_update()

    def test_empty_update(self) -> None:
        assert not ScoreUpdate().should_update()
        assert not ScoreUpdate(changelog="").should_update()

    def test_skip_with_outcome_is_an_update(self) -> None:
        assert ScoreUpdate(outcome=Outcome.FAIL, skip=True).should_update()


# --- Score tracker ---


class TestScoreTracker:
    @pytest.mark.asyncio
    async def test_new_card_has_zeroed_score(
        self, store: Store, decks: DeckRepository, cards: CardRepository
    ) -> None:
        card = await _new_card(decks, cards)
        score = await ScoreTracker(store).get_score(card.id)

        assert (score.success, score.fail, score.times_seen, score.times_reviewed) == (0, 0, 0, 0)
        assert score.changelog == ""
        assert await _count(store, CardScoreHistory, card.id) == 0

    @pytest.mark.asyncio
    async def test_success_and_fail_counts(
        self, store: Store, decks: DeckRepository, cards: CardRepository
    ) -> None:
        card = await _new_card(decks, cards)
        tracker = ScoreTracker(store)
        before = await tracker.get_score(card.id)

        await tracker.update_reviewed_card(card.id, ScoreUpdate(outcome=Outcome.SUCCESS))
        await tracker.update_reviewed_card(card.id, ScoreUpdate(outcome=Outcome.FAIL))
        await tracker.update_reviewed_card(card.id, ScoreUpdate(outcome=Outcome.SUCCESS))

        score = await tracker.get_score(card.id)
        assert score.success == 2
        assert score.fail == 1
        assert score.times_reviewed == 3
        assert score.reviewed_at > before.reviewed_at

    @pytest.mark.asyncio
    async def test_empty_update_rejected(
        self, store: Store, decks: DeckRepository, cards: CardRepository
    ) -> None:
        card = await _new_card(decks, cards)
        with pytest.raises(ValueError):
            await ScoreTracker(store).update_reviewed_card(card.id, ScoreUpdate())

    @pytest.mark.asyncio
    async def test_unknown_card(self, store: Store) -> None:
        with pytest.raises(NotFoundError):
            await ScoreTracker(store).update_reviewed_card(404, ScoreUpdate(outcome=Outcome.SUCCESS))

    @pytest.mark.asyncio
    async def test_unknown_context_rolls_back(
        self, store: Store, decks: DeckRepository, cards: CardRepository
    ) -> None:
        card = await _new_card(decks, cards)
        tracker = ScoreTracker(store)

        with pytest.raises(NotFoundError):
            await tracker.update_reviewed_card(card.id, ScoreUpdate(outcome=Outcome.SUCCESS, stash=77))

        score = await tracker.get_score(card.id)
        assert score.success == 0
        assert await _count(store, CardScoreHistory, card.id) == 0

    @pytest.mark.asyncio
    async def test_context_deck_marked_reviewed(
        self, store: Store, decks: DeckRepository, cards: CardRepository
    ) -> None:
        deck = await decks.create("Deck")
        card = await cards.create(deck.id, "card")
        before = await decks.get(deck.id)

        await ScoreTracker(store).update_reviewed_card(card.id, ScoreUpdate(outcome=Outcome.SUCCESS, deck=deck.id))

        after = await decks.get(deck.id)
        assert after.reviewed_at > before.reviewed_at
        assert after.updated_at == before.updated_at

    @pytest.mark.asyncio
    async def test_changelog_is_appended(
        self, store: Store, decks: DeckRepository, cards: CardRepository
    ) -> None:
        card = await _new_card(decks, cards)
        tracker = ScoreTracker(store)

        await tracker.update_reviewed_card(card.id, ScoreUpdate(outcome=Outcome.SUCCESS, changelog="first"))
        await tracker.update_reviewed_card(card.id, ScoreUpdate(changelog="second"))

        score = await tracker.get_score(card.id)
        assert score.changelog == "first\nsecond"
        assert score.times_reviewed == 1


# --- Skip ---


class TestSkip:
    @pytest.mark.asyncio
    async def test_skip_does_not_grade(
        self, store: Store, decks: DeckRepository, cards: CardRepository
    ) -> None:
        card = await _new_card(decks, cards)
        tracker = ScoreTracker(store)
        before = await tracker.get_score(card.id)

        await tracker.update_reviewed_card(card.id, ScoreUpdate(skip=True))

        score = await tracker.get_score(card.id)
        assert (score.success, score.fail, score.times_reviewed) == (0, 0, 0)
        assert score.reviewed_at > before.reviewed_at
        assert await _count(store, CardScoreHistory, card.id) == 0

    @pytest.mark.asyncio
    async def test_skip_ignores_outcome(
        self, store: Store, decks: DeckRepository, cards: CardRepository
    ) -> None:
        card = await _new_card(decks, cards)
        tracker = ScoreTracker(store)
        before = await tracker.get_score(card.id)

        await tracker.update_reviewed_card(card.id, ScoreUpdate(outcome=Outcome.SUCCESS, skip=True))

        score = await tracker.get_score(card.id)
        assert (score.success, score.fail, score.times_reviewed) == (0, 0, 0)
        assert score.reviewed_at > before.reviewed_at
        assert await _count(store, CardScoreHistory, card.id) == 0

    @pytest.mark.asyncio
    async def test_skipped_card_goes_to_the_back(
        self, store: Store, decks: DeckRepository, cards: CardRepository
    ) -> None:
        deck = await decks.create("Deck")
        first = await cards.create(deck.id, "first")
        second = await cards.create(deck.id, "second")
        selector = ReviewSelector(store)

        assert await selector.get_review_card(ReviewableDeck(deck.id)) == first.id
        await ScoreTracker(store).review_card(first.id, ScoreUpdate(skip=True, deck=deck.id))

        assert await selector.get_review_card(ReviewableDeck(deck.id)) == second.id


# --- History ---


class TestHistory:
    @pytest.mark.asyncio
    async def test_deltas_and_totals(
        self, store: Store, decks: DeckRepository, cards: CardRepository
    ) -> None:
        card = await _new_card(decks, cards)

        # Bring the score to success=3, fail=1 without going through reviews.
        async with store.transaction() as session:
            score = await session.get(CardScore, card.id)
            score.success = 3
            score.fail = 1

        async with store.transaction() as session:
            score = await session.get(CardScore, card.id)
            score.success = 5

        history = await ScoreTracker(store).get_history(card.id)
        latest = history[0]
        assert latest.success == 2
        assert latest.fail == 0
        assert latest.total_success == 5
        assert latest.total_fail == 1
        assert not latest.is_review_event

    @pytest.mark.asyncio
    async def test_decrease_is_floored_at_zero(
        self, store: Store, decks: DeckRepository, cards: CardRepository
    ) -> None:
        card = await _new_card(decks, cards)
        async with store.transaction() as session:
            score = await session.get(CardScore, card.id)
            score.fail = 4
        async with store.transaction() as session:
            score = await session.get(CardScore, card.id)
            score.fail = 1

        latest = (await ScoreTracker(store).get_history(card.id))[0]
        assert latest.fail == 0
        assert latest.total_fail == 1

    @pytest.mark.asyncio
    async def test_review_appends_review_event(
        self, store: Store, decks: DeckRepository, cards: CardRepository
    ) -> None:
        card = await _new_card(decks, cards)
        tracker = ScoreTracker(store)

        await tracker.update_reviewed_card(card.id, ScoreUpdate(outcome=Outcome.SUCCESS, changelog="easy"))
        await tracker.update_reviewed_card(card.id, ScoreUpdate(outcome=Outcome.FAIL))

        history = await tracker.get_history(card.id)
        assert len(history) == 2
        newest, oldest = history
        assert (oldest.success, oldest.fail, oldest.total_success, oldest.total_fail) == (1, 0, 1, 0)
        assert oldest.changelog == "easy"
        assert (newest.success, newest.fail, newest.total_success, newest.total_fail) == (0, 1, 1, 1)
        assert oldest.is_review_event and newest.is_review_event

    @pytest.mark.asyncio
    async def test_offering_does_not_write_history(
        self, store: Store, decks: DeckRepository, cards: CardRepository
    ) -> None:
        deck = await decks.create("Deck")
        card = await cards.create(deck.id, "card")

        await ReviewSelector(store).get_review_card(ReviewableDeck(deck.id))

        assert await _count(store, CardScoreHistory, card.id) == 0


# --- Cascades ---


class TestCascades:
    @pytest.mark.asyncio
    async def test_deleting_deck_removes_everything_of_its_cards(
        self,
        store: Store,
        decks: DeckRepository,
        cards: CardRepository,
        stashes: StashRepository,
    ) -> None:
        a = await decks.create("A")
        b = await decks.create("B", parent=a.id)
        c1 = await cards.create(a.id, "c1")
        c2 = await cards.create(b.id, "c2")
        stash = await stashes.create("S")
        await stashes.add_card(stash.id, c1.id)
        await ReviewSelector(store).get_review_card(ReviewableDeck(a.id))
        await ScoreTracker(store).update_reviewed_card(c1.id, ScoreUpdate(outcome=Outcome.SUCCESS))

        await decks.delete(a.id)

        assert not await decks.exists(a.id)
        assert not await decks.exists(b.id)
        for card in (c1, c2):
            assert not await cards.exists(card.id)
            for model in (CardScore, CardScoreHistory, CardSearchEntry, StashCard, CachedDeckReview):
                assert await _count(store, model, card.id) == 0
        assert await stashes.exists(stash.id)

    @pytest.mark.asyncio
    async def test_deleting_card_clears_stash_membership(
        self,
        store: Store,
        decks: DeckRepository,
        cards: CardRepository,
        stashes: StashRepository,
    ) -> None:
        card = await _new_card(decks, cards)
        stash = await stashes.create("S")
        await stashes.add_card(stash.id, card.id)
        assert await stashes.count_by_card(card.id) == 1

        await cards.delete(card.id)

        assert await stashes.card_ids(stash.id) == []
