"""Consequence rules that fire on ORM flushes.

These run inside the flush of the mutating transaction, so they commit or
roll back together with the change that caused them. None of them is meant
to be called directly.

- every new deck gets its closure self edge;
- every new card gets a zeroed score row and a search mirror row;
- card text edits are mirrored into the search table;
- every change to a score's success, fail or changelog appends history;
- new rows are stamped from the store clock;
- ``updated_at`` moves only when user-facing fields change.
"""

import logging
from datetime import datetime

from sqlalchemy import event, inspect
from sqlalchemy.orm import Mapper, Session, attributes, object_session

from grokdb.config import utcnow
from grokdb.models.base import TimestampMixin
from grokdb.models.card import Card, CardSearchEntry
from grokdb.models.deck import Deck, DeckClosure
from grokdb.models.score import CardScore, CardScoreHistory
from grokdb.models.stash import Stash

logger = logging.getLogger(__name__)

_SEARCHABLE = ("title", "description", "front", "back")

# Fields whose edits count as "modifying" the row.
_TOUCHING_FIELDS = {
    Deck: ("name", "description"),
    Card: (*_SEARCHABLE, "deck_id"),
    Stash: ("name", "description"),
}


def _clock_now(session: Session | None) -> datetime:
    """Current time from the clock the owning store configured, if any."""
    clock = session.info.get("clock") if session is not None else None
    return clock() if clock is not None else utcnow()


def _previous(history: attributes.History, current):  # type: ignore[no-untyped-def]
    """Value an attribute held before the pending flush."""
    if history.deleted:
        return history.deleted[0]
    return current


def _changed(history: attributes.History, current) -> bool:  # type: ignore[no-untyped-def]
    return history.has_changes() and _previous(history, current) != current


@event.listens_for(Deck, "after_insert")
def _insert_closure_self_edge(mapper: Mapper, connection, target: Deck) -> None:  # type: ignore[no-untyped-def]
    connection.execute(
        DeckClosure.__table__.insert().values(ancestor=target.id, descendant=target.id, depth=0)
    )


@event.listens_for(Card, "after_insert")
def _create_score_and_mirror(mapper: Mapper, connection, target: Card) -> None:  # type: ignore[no-untyped-def]
    now = _clock_now(object_session(target))
    connection.execute(CardScore.__table__.insert().values(card=target.id, seen_at=now, reviewed_at=now))
    connection.execute(
        CardSearchEntry.__table__.insert().values(
            card=target.id, **{field: getattr(target, field) or "" for field in _SEARCHABLE}
        )
    )


@event.listens_for(Card, "after_update")
def _mirror_card_text(mapper: Mapper, connection, target: Card) -> None:  # type: ignore[no-untyped-def]
    state = inspect(target)
    if not any(_changed(state.attrs[field].history, getattr(target, field)) for field in _SEARCHABLE):
        return
    table = CardSearchEntry.__table__
    connection.execute(
        table.update()
        .where(table.c.card == target.id)
        .values(**{field: getattr(target, field) for field in _SEARCHABLE})
    )


@event.listens_for(CardScore, "after_update")
def _snapshot_score(mapper: Mapper, connection, target: CardScore) -> None:  # type: ignore[no-untyped-def]
    state = inspect(target)
    success = state.attrs.success.history
    fail = state.attrs.fail.history
    changelog = state.attrs.changelog.history

    if not (
        _changed(success, target.success)
        or _changed(fail, target.fail)
        or _changed(changelog, target.changelog)
    ):
        return

    old_success = _previous(success, target.success)
    old_fail = _previous(fail, target.fail)
    reviewed_at = state.attrs.reviewed_at.history

    connection.execute(
        CardScoreHistory.__table__.insert().values(
            occurred_at=_clock_now(object_session(target)),
            is_review_event=_changed(reviewed_at, target.reviewed_at),
            success=max(target.success - old_success, 0),
            fail=max(target.fail - old_fail, 0),
            total_success=target.success,
            total_fail=target.fail,
            changelog=target.changelog,
            card=target.card_id,
        )
    )
    logger.debug("Recorded score history for card %d", target.card_id)


@event.listens_for(Session, "before_flush")
def _stamp_times(session: Session, flush_context, instances) -> None:  # type: ignore[no-untyped-def]
    for obj in session.new:
        if not isinstance(obj, TimestampMixin):
            continue
        now = _clock_now(session)
        for field in ("created_at", "updated_at", "reviewed_at"):
            if hasattr(obj, field) and getattr(obj, field) is None:
                setattr(obj, field, now)

    for obj in session.dirty:
        fields = _TOUCHING_FIELDS.get(type(obj))
        if fields is None:
            continue
        state = inspect(obj)
        if any(_changed(state.attrs[field].history, getattr(obj, field)) for field in fields):
            obj.updated_at = _clock_now(session)
