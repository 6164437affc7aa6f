"""Pydantic schemas for API request/response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from grokdb.review.scoring import Outcome, ScoreUpdate

# --- Review ---


class CardResponse(BaseModel):
    """A card offered for review."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    front: str
    back: str
    deck_id: int
    created_at: datetime
    updated_at: datetime


class ReviewRequest(BaseModel):
    """Outcome of reviewing a card, optionally within a deck or stash."""

    outcome: Outcome | None = None
    skip: bool = False
    changelog: str | None = None
    deck: int | None = None
    stash: int | None = None

    def to_update(self) -> ScoreUpdate:
        return ScoreUpdate(
            outcome=self.outcome,
            skip=self.skip,
            changelog=self.changelog,
            deck=self.deck,
            stash=self.stash,
        )


# --- Decks ---


class AncestorIdsResponse(BaseModel):
    deck_id: int
    ancestors: list[int]


class AncestorNamesResponse(BaseModel):
    deck_id: int
    ancestors: list[str]


# --- Card listings ---


class CardCountResponse(BaseModel):
    total: int
