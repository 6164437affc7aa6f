"""Shared fixtures: a fresh in-memory store per test with a ticking clock."""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta

import pytest_asyncio

from grokdb.catalog import CardRepository, DeckRepository, StashRepository
from grokdb.database import Store, make_engine


class TickingClock:
    """Deterministic clock that moves one second forward on every call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0)) -> None:
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest_asyncio.fixture
async def store() -> AsyncGenerator[Store, None]:
    store = Store(make_engine("sqlite+aiosqlite://", echo=False), clock=TickingClock())
    await store.create_all()
    yield store
    await store.dispose()


@pytest_asyncio.fixture
async def decks(store: Store) -> DeckRepository:
    return DeckRepository(store)


@pytest_asyncio.fixture
async def cards(store: Store) -> CardRepository:
    return CardRepository(store)


@pytest_asyncio.fixture
async def stashes(store: Store) -> StashRepository:
    return StashRepository(store)
