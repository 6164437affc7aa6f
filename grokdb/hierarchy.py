"""Deck hierarchy backed by a closure table.

``DecksClosure`` holds one row for every ancestor/descendant pair of the deck
tree, including each deck paired with itself at depth 0, so subtree and
ancestor-chain queries never recurse.

The module-level coroutines work on an open session and can be composed
inside a larger transaction; ``DeckHierarchy`` wraps each one in its own
locked store transaction.
"""

import logging

from sqlalchemy import and_, delete, exists, insert, literal, select, true
from sqlalchemy.ext.asyncio import AsyncSession

from grokdb.database import Store
from grokdb.errors import DeckCycleError, NotFoundError
from grokdb.models.card import Card
from grokdb.models.deck import Deck, DeckClosure

logger = logging.getLogger(__name__)


async def _ensure_deck(session: AsyncSession, deck_id: int) -> None:
    found = await session.scalar(select(exists().where(Deck.id == deck_id)))
    if not found:
        raise NotFoundError(f"Deck {deck_id} does not exist")


def _subtree(deck_id: int):  # type: ignore[no-untyped-def]
    """Ids of ``deck_id`` and all of its descendants."""
    return select(DeckClosure.descendant_id).where(DeckClosure.ancestor_id == deck_id)


async def ancestors(session: AsyncSession, deck_id: int) -> list[int]:
    """Return ancestor ids of a deck, nearest first."""
    await _ensure_deck(session, deck_id)
    stmt = (
        select(DeckClosure.ancestor_id)
        .where(and_(DeckClosure.descendant_id == deck_id, DeckClosure.depth > 0))
        .order_by(DeckClosure.depth.asc())
    )
    return list((await session.scalars(stmt)).all())


async def ancestors_by_name(session: AsyncSession, deck_id: int) -> list[str]:
    await _ensure_deck(session, deck_id)
    stmt = (
        select(Deck.name)
        .join(DeckClosure, DeckClosure.ancestor_id == Deck.id)
        .where(and_(DeckClosure.descendant_id == deck_id, DeckClosure.depth > 0))
        .order_by(DeckClosure.depth.asc())
    )
    return list((await session.scalars(stmt)).all())


async def descendants(session: AsyncSession, deck_id: int) -> list[int]:
    """Return descendant ids of a deck, nearest first."""
    stmt = (
        select(DeckClosure.descendant_id)
        .where(and_(DeckClosure.ancestor_id == deck_id, DeckClosure.depth > 0))
        .order_by(DeckClosure.depth.asc(), DeckClosure.descendant_id.asc())
    )
    return list((await session.scalars(stmt)).all())


async def get_parent(session: AsyncSession, deck_id: int) -> int | None:
    stmt = select(DeckClosure.ancestor_id).where(
        and_(DeckClosure.descendant_id == deck_id, DeckClosure.depth == 1)
    )
    return await session.scalar(stmt)


def descendant_cards(deck_id: int):  # type: ignore[no-untyped-def]
    """Selectable of card ids in ``deck_id`` or any deck below it."""
    return (
        select(Card.id.label("card_id"))
        .join(DeckClosure, DeckClosure.descendant_id == Card.deck_id)
        .where(DeckClosure.ancestor_id == deck_id)
    )


async def descendant_card_ids(session: AsyncSession, deck_id: int) -> set[int]:
    return set((await session.scalars(descendant_cards(deck_id))).all())


async def _detach(session: AsyncSession, deck_id: int) -> None:
    """Cut every edge linking the subtree of ``deck_id`` to decks above it."""
    subtree = _subtree(deck_id)
    await session.execute(
        delete(DeckClosure)
        .where(
            and_(
                DeckClosure.descendant_id.in_(subtree),
                DeckClosure.ancestor_id.not_in(subtree),
            )
        )
        .execution_options(synchronize_session=False)
    )


async def connect(session: AsyncSession, deck_id: int, parent_id: int) -> None:
    """Make ``parent_id`` the sole parent of ``deck_id``.

    The whole subtree under ``deck_id`` moves with it. Raises
    ``NotFoundError`` if either deck is missing and ``DeckCycleError`` if
    ``parent_id`` is the deck itself or one of its descendants.
    """
    await _ensure_deck(session, deck_id)
    await _ensure_deck(session, parent_id)
    if deck_id == parent_id:
        raise DeckCycleError(f"Deck {deck_id} cannot be its own parent")
    in_subtree = await session.scalar(
        select(
            exists().where(
                and_(DeckClosure.ancestor_id == deck_id, DeckClosure.descendant_id == parent_id)
            )
        )
    )
    if in_subtree:
        raise DeckCycleError(f"Deck {parent_id} is a descendant of deck {deck_id}")

    await _detach(session, deck_id)

    above = (
        select(DeckClosure.ancestor_id.label("ancestor"), DeckClosure.depth.label("depth"))
        .where(DeckClosure.descendant_id == parent_id)
        .subquery("above")
    )
    below = (
        select(DeckClosure.descendant_id.label("descendant"), DeckClosure.depth.label("depth"))
        .where(DeckClosure.ancestor_id == deck_id)
        .subquery("below")
    )
    await session.execute(
        insert(DeckClosure.__table__).from_select(
            ["ancestor", "descendant", "depth"],
            select(
                above.c.ancestor,
                below.c.descendant,
                above.c.depth + below.c.depth + literal(1),
            ).select_from(above.join(below, true())),
        )
    )
    logger.info("Connected deck %d under parent %d", deck_id, parent_id)


async def remove_parent(session: AsyncSession, deck_id: int) -> None:
    """Make ``deck_id`` a root, keeping its own subtree intact."""
    await _ensure_deck(session, deck_id)
    await _detach(session, deck_id)
    logger.info("Deck %d is now a root deck", deck_id)


class DeckHierarchy:
    """Ancestor/descendant queries and reparenting for decks."""

    def __init__(self, store: Store) -> None:
        self.store = store

    async def ancestors(self, deck_id: int) -> list[int]:
        async with self.store.transaction() as session:
            return await ancestors(session, deck_id)

    async def ancestors_by_name(self, deck_id: int) -> list[str]:
        async with self.store.transaction() as session:
            return await ancestors_by_name(session, deck_id)

    async def descendants(self, deck_id: int) -> list[int]:
        async with self.store.transaction() as session:
            return await descendants(session, deck_id)

    async def has_parent(self, deck_id: int) -> bool:
        async with self.store.transaction() as session:
            return await get_parent(session, deck_id) is not None

    async def get_parent(self, deck_id: int) -> int:
        async with self.store.transaction() as session:
            parent = await get_parent(session, deck_id)
        if parent is None:
            raise NotFoundError(f"Deck {deck_id} has no parent")
        return parent

    async def connect(self, deck_id: int, parent_id: int) -> None:
        async with self.store.transaction() as session:
            await connect(session, deck_id, parent_id)

    async def remove_parent(self, deck_id: int) -> None:
        async with self.store.transaction() as session:
            await remove_parent(session, deck_id)

    async def descendant_card_ids(self, deck_id: int) -> set[int]:
        async with self.store.transaction() as session:
            return await descendant_card_ids(session, deck_id)
