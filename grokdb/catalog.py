"""CRUD and card listings for decks, cards and stashes.

These are the collaborators the review engine leans on for existence checks
and test fixtures. Dependent rows (scores, history, cache entries, stash
memberships, search mirror) are removed by foreign-key cascades, not here.
"""

import logging
from enum import Enum

from sqlalchemy import Select, delete, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from grokdb.database import Store
from grokdb.errors import NotFoundError
from grokdb.hierarchy import connect, descendant_cards
from grokdb.models.base import Base
from grokdb.models.card import Card, CardSearchEntry
from grokdb.models.deck import Deck, DeckClosure
from grokdb.models.score import CardScore
from grokdb.models.stash import Stash, StashCard

logger = logging.getLogger(__name__)


def _require_text(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{field} must be a non-empty string")
    return value


async def _get_or_raise(session: AsyncSession, model: type[Base], row_id: int):  # type: ignore[no-untyped-def]
    row = await session.get(model, row_id)
    if row is None:
        raise NotFoundError(f"{model.__name__} {row_id} does not exist")
    return row


async def _exists(session: AsyncSession, model: type[Base], row_id: int) -> bool:
    return bool(await session.scalar(select(exists().where(model.id == row_id))))


class CardSortBy(str, Enum):
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    TITLE = "title"
    REVIEWED_AT = "reviewed_at"
    TIMES_REVIEWED = "times_reviewed"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


_SORT_COLUMNS = {
    CardSortBy.CREATED_AT: Card.created_at,
    CardSortBy.UPDATED_AT: Card.updated_at,
    CardSortBy.TITLE: Card.title,
    CardSortBy.REVIEWED_AT: CardScore.reviewed_at,
    CardSortBy.TIMES_REVIEWED: CardScore.times_reviewed,
}


def _card_listing(
    pool: Select,
    sort_by: CardSortBy | str,
    order: SortOrder | str,
    limit: int,
    offset: int,
) -> Select:
    """Cards whose id is in ``pool``, sorted and windowed.

    Ties on the sort column are broken by card id so pages never overlap.
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")
    if offset < 0:
        raise ValueError("offset must not be negative")
    column = _SORT_COLUMNS[CardSortBy(sort_by)]
    direction = column.asc() if SortOrder(order) is SortOrder.ASC else column.desc()
    return (
        select(Card)
        .join(CardScore, CardScore.card_id == Card.id)
        .where(Card.id.in_(pool.correlate(None)))
        .order_by(direction, Card.id.asc())
        .limit(limit)
        .offset(offset)
    )


def _stash_pool(stash_id: int) -> Select:
    return select(StashCard.card_id).where(StashCard.stash_id == stash_id)


async def _count(session: AsyncSession, pool: Select) -> int:
    return (await session.scalar(select(func.count()).select_from(pool.subquery()))) or 0


class DeckRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    async def create(self, name: str, description: str = "", parent: int | None = None) -> Deck:
        """Create a deck, optionally nested under ``parent``."""
        _require_text(name, "Deck name")
        async with self.store.transaction() as session:
            if parent is not None and not await _exists(session, Deck, parent):
                raise NotFoundError(f"Deck {parent} does not exist")
            deck = Deck(name=name, description=description)
            session.add(deck)
            await session.flush()
            if parent is not None:
                await connect(session, deck.id, parent)
        logger.info("Created deck %d (%s)", deck.id, name)
        return deck

    async def get(self, deck_id: int) -> Deck:
        async with self.store.transaction() as session:
            return await _get_or_raise(session, Deck, deck_id)

    async def exists(self, deck_id: int) -> bool:
        async with self.store.transaction() as session:
            return await _exists(session, Deck, deck_id)

    async def update(self, deck_id: int, name: str | None = None, description: str | None = None) -> Deck:
        async with self.store.transaction() as session:
            deck = await _get_or_raise(session, Deck, deck_id)
            if name is not None:
                deck.name = _require_text(name, "Deck name")
            if description is not None:
                deck.description = description
        return deck

    async def delete(self, deck_id: int) -> None:
        """Delete a deck and every deck nested below it.

        Cards of those decks, and everything hanging off the cards, go too.
        """
        subtree = select(DeckClosure.descendant_id).where(DeckClosure.ancestor_id == deck_id)
        async with self.store.transaction() as session:
            await session.execute(
                delete(Deck).where(Deck.id.in_(subtree)).execution_options(synchronize_session=False)
            )
        logger.info("Deleted deck %d", deck_id)


class CardRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    async def create(
        self,
        deck_id: int,
        title: str,
        description: str = "",
        front: str = "",
        back: str = "",
    ) -> Card:
        _require_text(title, "Card title")
        async with self.store.transaction() as session:
            if not await _exists(session, Deck, deck_id):
                raise NotFoundError(f"Deck {deck_id} does not exist")
            card = Card(deck_id=deck_id, title=title, description=description, front=front, back=back)
            session.add(card)
        logger.info("Created card %d in deck %d", card.id, deck_id)
        return card

    async def get(self, card_id: int) -> Card:
        async with self.store.transaction() as session:
            return await _get_or_raise(session, Card, card_id)

    async def exists(self, card_id: int) -> bool:
        async with self.store.transaction() as session:
            return await _exists(session, Card, card_id)

    async def update(self, card_id: int, **fields: str | int) -> Card:
        """Update card fields; ``deck_id`` moves the card to another deck."""
        allowed = {"title", "description", "front", "back", "deck_id"}
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Unknown card fields: {', '.join(sorted(unknown))}")
        if "title" in fields:
            _require_text(str(fields["title"]), "Card title")

        async with self.store.transaction() as session:
            card = await _get_or_raise(session, Card, card_id)
            if "deck_id" in fields and not await _exists(session, Deck, int(fields["deck_id"])):
                raise NotFoundError(f"Deck {fields['deck_id']} does not exist")
            for field, value in fields.items():
                setattr(card, field, value)
        return card

    async def delete(self, card_id: int) -> None:
        async with self.store.transaction() as session:
            await session.execute(
                delete(Card).where(Card.id == card_id).execution_options(synchronize_session=False)
            )
        logger.info("Deleted card %d", card_id)

    async def search(self, query: str, limit: int = 20) -> list[int]:
        """Ids of cards whose mirrored text contains ``query``."""
        pattern = f"%{query}%"
        stmt = (
            select(CardSearchEntry.card_id)
            .where(
                or_(
                    CardSearchEntry.title.ilike(pattern),
                    CardSearchEntry.description.ilike(pattern),
                    CardSearchEntry.front.ilike(pattern),
                    CardSearchEntry.back.ilike(pattern),
                )
            )
            .order_by(CardSearchEntry.card_id.asc())
            .limit(limit)
        )
        async with self.store.transaction() as session:
            return list((await session.scalars(stmt)).all())

    async def list_by_deck(
        self,
        deck_id: int,
        sort_by: CardSortBy | str = CardSortBy.UPDATED_AT,
        order: SortOrder | str = SortOrder.DESC,
        limit: int = 25,
        offset: int = 0,
    ) -> list[Card]:
        """Cards of a deck and of every deck nested below it."""
        stmt = _card_listing(descendant_cards(deck_id), sort_by, order, limit, offset)
        async with self.store.transaction() as session:
            if not await _exists(session, Deck, deck_id):
                raise NotFoundError(f"Deck {deck_id} does not exist")
            return list((await session.scalars(stmt)).all())

    async def count_by_deck(self, deck_id: int) -> int:
        async with self.store.transaction() as session:
            if not await _exists(session, Deck, deck_id):
                raise NotFoundError(f"Deck {deck_id} does not exist")
            return await _count(session, descendant_cards(deck_id))

    async def list_by_stash(
        self,
        stash_id: int,
        sort_by: CardSortBy | str = CardSortBy.UPDATED_AT,
        order: SortOrder | str = SortOrder.DESC,
        limit: int = 25,
        offset: int = 0,
    ) -> list[Card]:
        stmt = _card_listing(_stash_pool(stash_id), sort_by, order, limit, offset)
        async with self.store.transaction() as session:
            if not await _exists(session, Stash, stash_id):
                raise NotFoundError(f"Stash {stash_id} does not exist")
            return list((await session.scalars(stmt)).all())

    async def count_by_stash(self, stash_id: int) -> int:
        async with self.store.transaction() as session:
            if not await _exists(session, Stash, stash_id):
                raise NotFoundError(f"Stash {stash_id} does not exist")
            return await _count(session, _stash_pool(stash_id))


class StashRepository:
    def __init__(self, store: Store) -> None:
        self.store = store

    async def create(self, name: str, description: str = "") -> Stash:
        _require_text(name, "Stash name")
        async with self.store.transaction() as session:
            stash = Stash(name=name, description=description)
            session.add(stash)
        logger.info("Created stash %d (%s)", stash.id, name)
        return stash

    async def get(self, stash_id: int) -> Stash:
        async with self.store.transaction() as session:
            return await _get_or_raise(session, Stash, stash_id)

    async def update(self, stash_id: int, name: str | None = None, description: str | None = None) -> Stash:
        async with self.store.transaction() as session:
            stash = await _get_or_raise(session, Stash, stash_id)
            if name is not None:
                stash.name = _require_text(name, "Stash name")
            if description is not None:
                stash.description = description
        return stash

    async def exists(self, stash_id: int) -> bool:
        async with self.store.transaction() as session:
            return await _exists(session, Stash, stash_id)

    async def delete(self, stash_id: int) -> None:
        async with self.store.transaction() as session:
            await session.execute(
                delete(Stash).where(Stash.id == stash_id).execution_options(synchronize_session=False)
            )

    async def add_card(self, stash_id: int, card_id: int) -> None:
        """Put a card in a stash; adding it twice is a no-op."""
        async with self.store.transaction() as session:
            if await session.get(StashCard, (stash_id, card_id)) is None:
                session.add(StashCard(stash_id=stash_id, card_id=card_id))

    async def remove_card(self, stash_id: int, card_id: int) -> None:
        async with self.store.transaction() as session:
            await session.execute(
                delete(StashCard)
                .where(StashCard.stash_id == stash_id, StashCard.card_id == card_id)
                .execution_options(synchronize_session=False)
            )

    async def remove_card_from_all(self, card_id: int) -> None:
        async with self.store.transaction() as session:
            await session.execute(
                delete(StashCard).where(StashCard.card_id == card_id).execution_options(synchronize_session=False)
            )

    async def clear(self, stash_id: int) -> None:
        """Remove every card from a stash."""
        async with self.store.transaction() as session:
            await session.execute(
                delete(StashCard).where(StashCard.stash_id == stash_id).execution_options(synchronize_session=False)
            )

    async def card_ids(self, stash_id: int) -> list[int]:
        stmt = select(StashCard.card_id).where(StashCard.stash_id == stash_id).order_by(StashCard.card_id)
        async with self.store.transaction() as session:
            return list((await session.scalars(stmt)).all())

    async def count_by_card(self, card_id: int) -> int:
        """Number of stashes a card belongs to."""
        stmt = select(func.count()).select_from(StashCard).where(StashCard.card_id == card_id)
        async with self.store.transaction() as session:
            return (await session.scalar(stmt)) or 0

    async def has_card(self, stash_id: int, card_id: int) -> bool:
        async with self.store.transaction() as session:
            return await session.get(StashCard, (stash_id, card_id)) is not None

    async def stashes_for_card(self, card_id: int) -> list[int]:
        """Ids of the stashes a card belongs to."""
        stmt = select(StashCard.stash_id).where(StashCard.card_id == card_id).order_by(StashCard.stash_id)
        async with self.store.transaction() as session:
            if not await _exists(session, Card, card_id):
                raise NotFoundError(f"Card {card_id} does not exist")
            return list((await session.scalars(stmt)).all())
