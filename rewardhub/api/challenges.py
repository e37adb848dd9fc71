"""
Challenge endpoints.

Besides the admin CRUD surface, players claim a completed challenge with
their casino and Discord usernames; staff fulfil the claim over Discord.
"""
import logging

from fastapi import Depends

from rewardhub.api.crud import build_crud_router, store_errors
from rewardhub.api.deps import get_challenge_repository
from rewardhub.repositories import ChallengeRepository
from rewardhub.schemas import (
    Challenge,
    ChallengeClaimRequest,
    ChallengeCreate,
    ChallengeUpdate,
    ErrorResponse,
)

logger = logging.getLogger(__name__)

router = build_crud_router(
    prefix="/api/challenges",
    tag="challenges",
    label="challenge",
    plural="challenges",
    repository=get_challenge_repository,
    create_model=ChallengeCreate,
    update_model=ChallengeUpdate,
    response_model=Challenge,
)


@router.post(
    "/{challenge_id}/claim",
    response_model=Challenge,
    responses={
        404: {"model": ErrorResponse, "description": "Challenge not found"},
        409: {"model": ErrorResponse, "description": "Challenge already claimed"},
    },
    summary="Claim a challenge",
    description="""
    Record a player's claim on a challenge.

    Both `username` and `discordUsername` are required. The status flips to
    `claimed` atomically; a second claim on the same challenge is rejected
    with 409.
    """,
)
def claim_challenge(
    challenge_id: str,
    claim: ChallengeClaimRequest,
    repo: ChallengeRepository = Depends(get_challenge_repository),
):
    logger.info(f"Claim request: challenge={challenge_id}, username={claim.username}")
    with store_errors("Failed to claim challenge", "Challenge"):
        return repo.claim(challenge_id, claim.username, claim.discord_username)
