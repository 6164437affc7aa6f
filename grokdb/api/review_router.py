"""API routes for reviewing cards in decks and stashes."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from grokdb.api.deps import get_store
from grokdb.api.schemas import CardResponse, ReviewRequest
from grokdb.catalog import CardRepository, DeckRepository, StashRepository
from grokdb.database import Store
from grokdb.errors import NotFoundError
from grokdb.review import ReviewableDeck, ReviewableSelection, ReviewableStash, ReviewSelector, ScoreTracker

logger = logging.getLogger(__name__)

router = APIRouter(tags=["review"])


async def _next_card(store: Store, selection: ReviewableSelection) -> CardResponse:
    card_id = await ReviewSelector(store).get_review_card(selection)
    if card_id is None:
        raise HTTPException(status_code=404, detail="No card to review")
    card = await CardRepository(store).get(card_id)
    return CardResponse.model_validate(card)


@router.get("/decks/{deck_id}/review", response_model=CardResponse)
async def review_deck(deck_id: int, store: Store = Depends(get_store)) -> CardResponse:
    """Get the card to review next in a deck (including its sub-decks)."""
    if not await DeckRepository(store).exists(deck_id):
        raise HTTPException(status_code=404, detail=f"Deck {deck_id} not found")
    return await _next_card(store, ReviewableDeck(deck_id))


@router.get("/stashes/{stash_id}/review", response_model=CardResponse)
async def review_stash(stash_id: int, store: Store = Depends(get_store)) -> CardResponse:
    """Get the card to review next in a stash."""
    if not await StashRepository(store).exists(stash_id):
        raise HTTPException(status_code=404, detail=f"Stash {stash_id} not found")
    return await _next_card(store, ReviewableStash(stash_id))


@router.patch("/cards/{card_id}/review", response_model=CardResponse)
async def review_card(
    card_id: int,
    request: ReviewRequest,
    store: Store = Depends(get_store),
) -> CardResponse:
    """Record a review outcome and stop offering the card anywhere.

    Responds with the reviewed card.
    """
    update = request.to_update()
    if not update.should_update():
        raise HTTPException(status_code=400, detail="Invalid card score update request.")
    if not await CardRepository(store).exists(card_id):
        raise HTTPException(status_code=404, detail=f"Card {card_id} not found")

    try:
        await ScoreTracker(store).review_card(card_id, update)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    card = await CardRepository(store).get(card_id)
    return CardResponse.model_validate(card)
