"""API routes for listing stash cards."""

from fastapi import APIRouter, Depends, HTTPException, Query

from grokdb.api.deps import get_store
from grokdb.api.schemas import CardCountResponse, CardResponse
from grokdb.catalog import CardRepository, CardSortBy, SortOrder
from grokdb.database import Store
from grokdb.errors import NotFoundError

router = APIRouter(prefix="/stashes", tags=["stashes"])


@router.get("/{stash_id}/cards", response_model=list[CardResponse])
async def stash_cards(
    stash_id: int,
    sort_by: CardSortBy = CardSortBy.UPDATED_AT,
    order: SortOrder = SortOrder.DESC,
    limit: int = Query(25, ge=1),
    offset: int = Query(0, ge=0),
    store: Store = Depends(get_store),
) -> list[CardResponse]:
    try:
        cards = await CardRepository(store).list_by_stash(stash_id, sort_by, order, limit, offset)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return [CardResponse.model_validate(card) for card in cards]


@router.get("/{stash_id}/cards/count", response_model=CardCountResponse)
async def stash_card_count(stash_id: int, store: Store = Depends(get_store)) -> CardCountResponse:
    try:
        total = await CardRepository(store).count_by_stash(stash_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return CardCountResponse(total=total)
