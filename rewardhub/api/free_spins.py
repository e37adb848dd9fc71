"""
Free-spins offer endpoints.

``expiresAt`` accepts any ISO-8601 timestamp (or epoch seconds) and is
stored normalized to UTC. A claim consumes one of the offer's remaining
claims.
"""
import logging

from fastapi import Depends

from rewardhub.api.crud import build_crud_router, store_errors
from rewardhub.api.deps import get_free_spins_repository
from rewardhub.repositories import FreeSpinsOfferRepository
from rewardhub.schemas import (
    ErrorResponse,
    FreeSpinsOffer,
    FreeSpinsOfferCreate,
    FreeSpinsOfferUpdate,
)

logger = logging.getLogger(__name__)

router = build_crud_router(
    prefix="/api/free-spins",
    tag="free-spins",
    label="free spins offer",
    plural="free spins offers",
    repository=get_free_spins_repository,
    create_model=FreeSpinsOfferCreate,
    update_model=FreeSpinsOfferUpdate,
    response_model=FreeSpinsOffer,
)


@router.post(
    "/{offer_id}/claim",
    response_model=FreeSpinsOffer,
    responses={
        404: {"model": ErrorResponse, "description": "Offer not found"},
        409: {"model": ErrorResponse, "description": "Offer inactive, expired or fully claimed"},
    },
    summary="Claim a free spins offer",
)
def claim_free_spins(
    offer_id: str,
    repo: FreeSpinsOfferRepository = Depends(get_free_spins_repository),
):
    with store_errors("Failed to claim free spins offer", "Free spins offer"):
        return repo.claim(offer_id)
