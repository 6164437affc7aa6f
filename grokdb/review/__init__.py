"""Review candidate selection, caching and scoring."""

from grokdb.review.cache import ReviewCache
from grokdb.review.containers import ReviewableDeck, ReviewableSelection, ReviewableStash
from grokdb.review.ranking import LeastReviewedFirst, RankingStrategy
from grokdb.review.scoring import Outcome, ScoreTracker, ScoreUpdate
from grokdb.review.selection import ReviewSelector

__all__ = [
    "LeastReviewedFirst",
    "Outcome",
    "RankingStrategy",
    "ReviewCache",
    "ReviewSelector",
    "ReviewableDeck",
    "ReviewableSelection",
    "ReviewableStash",
    "ScoreTracker",
    "ScoreUpdate",
]
