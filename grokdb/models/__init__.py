"""SQLAlchemy ORM models for the grokdb store."""

from grokdb.models.base import Base
from grokdb.models.card import Card, CardSearchEntry
from grokdb.models.deck import Deck, DeckClosure
from grokdb.models.review_cache import CachedDeckReview, CachedStashReview
from grokdb.models.score import CardScore, CardScoreHistory
from grokdb.models.stash import Stash, StashCard
from grokdb.models import hooks  # noqa: F401  (registers mapper events)

__all__ = [
    "Base",
    "CachedDeckReview",
    "CachedStashReview",
    "Card",
    "CardScore",
    "CardScoreHistory",
    "CardSearchEntry",
    "Deck",
    "DeckClosure",
    "Stash",
    "StashCard",
]
