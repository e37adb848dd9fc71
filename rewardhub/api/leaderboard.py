"""
Leaderboard API endpoints.

Entries are a plain CRUD resource ranked by ascending ``rank``. Settings
(prize pool and end date) are a singleton read with GET and written with an
upsert POST.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends

from rewardhub.api.crud import build_crud_router, store_errors
from rewardhub.api.deps import (
    get_leaderboard_entry_repository,
    get_leaderboard_settings_repository,
    require_admin,
)
from rewardhub.repositories import LeaderboardSettingsRepository
from rewardhub.schemas import (
    LeaderboardEntry,
    LeaderboardEntryCreate,
    LeaderboardEntryUpdate,
    LeaderboardSettings,
    LeaderboardSettingsInput,
)

logger = logging.getLogger(__name__)

router = build_crud_router(
    prefix="/api/leaderboard/entries",
    tag="leaderboard",
    label="leaderboard entry",
    plural="leaderboard entries",
    repository=get_leaderboard_entry_repository,
    create_model=LeaderboardEntryCreate,
    update_model=LeaderboardEntryUpdate,
    response_model=LeaderboardEntry,
)

settings_router = APIRouter(prefix="/api/leaderboard/settings", tags=["leaderboard"])


@settings_router.get(
    "",
    response_model=Optional[LeaderboardSettings],
    summary="Get leaderboard settings",
    description="Returns the current prize pool and end date, or `null` when none are configured.",
)
def get_leaderboard_settings(
    repo: LeaderboardSettingsRepository = Depends(get_leaderboard_settings_repository),
):
    with store_errors("Failed to fetch leaderboard settings", "Leaderboard settings"):
        return repo.get()


@settings_router.post(
    "",
    response_model=LeaderboardSettings,
    dependencies=[Depends(require_admin)],
    summary="Create or update leaderboard settings",
    description="""
    Upsert the leaderboard settings singleton.

    The first call creates the record; later calls merge into it and touch
    `updatedAt`. There is never more than one settings record.
    """,
)
def upsert_leaderboard_settings(
    payload: LeaderboardSettingsInput,
    repo: LeaderboardSettingsRepository = Depends(get_leaderboard_settings_repository),
):
    with store_errors("Failed to save leaderboard settings", "Leaderboard settings"):
        return repo.upsert(payload.to_record())
