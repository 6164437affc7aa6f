"""Tests for store failures surfacing as QueryError and rolling back."""

import pytest
from sqlalchemy import func, select

from grokdb.catalog import DeckRepository
from grokdb.database import Store
from grokdb.errors import QueryError
from grokdb.models import CachedDeckReview, Deck
from grokdb.review import ReviewableDeck, ReviewCache


async def _cached_rows(store: Store) -> int:
    async with store.transaction() as session:
        return await session.scalar(select(func.count()).select_from(CachedDeckReview))


@pytest.mark.asyncio
async def test_foreign_key_violation_raises_query_error(store: Store, decks: DeckRepository) -> None:
    deck = await decks.create("Deck")

    with pytest.raises(QueryError) as excinfo:
        await ReviewCache(store).set(ReviewableDeck(deck.id), 9999)

    error = excinfo.value
    assert error.statement
    assert "CachedDeckReview" in error.statement
    assert error.orig is not None
    assert "FOREIGN KEY" in str(error.orig)
    assert "[statement:" in str(error)


@pytest.mark.asyncio
async def test_failed_transaction_leaves_no_cache_row(store: Store, decks: DeckRepository) -> None:
    deck = await decks.create("Deck")

    with pytest.raises(QueryError):
        await ReviewCache(store).set(ReviewableDeck(deck.id), 9999)

    assert await _cached_rows(store) == 0
    assert await ReviewCache(store).get(ReviewableDeck(deck.id)) is None


@pytest.mark.asyncio
async def test_non_database_errors_roll_back(store: Store, decks: DeckRepository) -> None:
    deck = await decks.create("Deck")

    with pytest.raises(RuntimeError):
        async with store.transaction() as session:
            found = await session.get(Deck, deck.id)
            found.name = "Renamed"
            await session.flush()
            raise RuntimeError("boom")

    assert (await decks.get(deck.id)).name == "Deck"
