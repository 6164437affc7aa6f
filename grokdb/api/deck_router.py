"""API routes for navigating the deck hierarchy and listing deck cards."""

from fastapi import APIRouter, Depends, HTTPException, Query

from grokdb.api.deps import get_store
from grokdb.api.schemas import AncestorIdsResponse, AncestorNamesResponse, CardCountResponse, CardResponse
from grokdb.catalog import CardRepository, CardSortBy, SortOrder
from grokdb.database import Store
from grokdb.errors import NotFoundError
from grokdb.hierarchy import DeckHierarchy

router = APIRouter(prefix="/decks", tags=["decks"])


@router.get("/{deck_id}/ancestors/id", response_model=AncestorIdsResponse)
async def deck_ancestor_ids(deck_id: int, store: Store = Depends(get_store)) -> AncestorIdsResponse:
    """Ancestor deck ids, nearest first."""
    try:
        ancestors = await DeckHierarchy(store).ancestors(deck_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return AncestorIdsResponse(deck_id=deck_id, ancestors=ancestors)


@router.get("/{deck_id}/ancestors/name", response_model=AncestorNamesResponse)
async def deck_ancestor_names(deck_id: int, store: Store = Depends(get_store)) -> AncestorNamesResponse:
    """Ancestor deck names, nearest first."""
    try:
        ancestors = await DeckHierarchy(store).ancestors_by_name(deck_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return AncestorNamesResponse(deck_id=deck_id, ancestors=ancestors)


@router.get("/{deck_id}/cards", response_model=list[CardResponse])
async def deck_cards(
    deck_id: int,
    sort_by: CardSortBy = CardSortBy.UPDATED_AT,
    order: SortOrder = SortOrder.DESC,
    limit: int = Query(25, ge=1),
    offset: int = Query(0, ge=0),
    store: Store = Depends(get_store),
) -> list[CardResponse]:
    """Cards of a deck and all of its sub-decks."""
    try:
        cards = await CardRepository(store).list_by_deck(deck_id, sort_by, order, limit, offset)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return [CardResponse.model_validate(card) for card in cards]


@router.get("/{deck_id}/cards/count", response_model=CardCountResponse)
async def deck_card_count(deck_id: int, store: Store = Depends(get_store)) -> CardCountResponse:
    try:
        total = await CardRepository(store).count_by_deck(deck_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return CardCountResponse(total=total)
