"""Ranking strategies for picking the next card out of a candidate pool.

A strategy only contributes ORDER BY terms over ``CardsScore``; the selector
takes the first row.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import ColumnElement

from grokdb.models.score import CardScore


class RankingStrategy(Protocol):
    name: str

    def order_by(self) -> Sequence[ColumnElement]: ...


@dataclass(frozen=True)
class LeastReviewedFirst:
    """Breadth before recency.

    Fewest reviews first, then least recently reviewed. Cards that tie on
    both fall back to least recently offered, then to card id.
    """

    name: str = "least_reviewed"

    def order_by(self) -> Sequence[ColumnElement]:
        return (
            CardScore.times_reviewed.asc(),
            CardScore.reviewed_at.asc(),
            CardScore.seen_at.asc(),
            CardScore.card_id.asc(),
        )


RANKINGS: dict[str, RankingStrategy] = {
    LeastReviewedFirst.name: LeastReviewedFirst(),
}


def get_ranking(name: str) -> RankingStrategy:
    try:
        return RANKINGS[name]
    except KeyError:
        raise ValueError(f"Unknown ranking strategy: {name!r}") from None
