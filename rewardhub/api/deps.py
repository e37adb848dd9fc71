"""FastAPI dependencies: repositories and the admin gate."""
import hmac
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from rewardhub.config import Settings, get_settings
from rewardhub.repositories import (
    ChallengeRepository,
    FreeSpinsOfferRepository,
    LeaderboardEntryRepository,
    LeaderboardSettingsRepository,
    LevelMilestoneRepository,
)
from rewardhub.store import StoreAdapter, get_store

logger = logging.getLogger(__name__)


def get_leaderboard_entry_repository(store: StoreAdapter = Depends(get_store)) -> LeaderboardEntryRepository:
    return LeaderboardEntryRepository(store)


def get_leaderboard_settings_repository(store: StoreAdapter = Depends(get_store)) -> LeaderboardSettingsRepository:
    return LeaderboardSettingsRepository(store)


def get_milestone_repository(store: StoreAdapter = Depends(get_store)) -> LevelMilestoneRepository:
    return LevelMilestoneRepository(store)


def get_challenge_repository(store: StoreAdapter = Depends(get_store)) -> ChallengeRepository:
    return ChallengeRepository(store)


def get_free_spins_repository(store: StoreAdapter = Depends(get_store)) -> FreeSpinsOfferRepository:
    return FreeSpinsOfferRepository(store)


def token_matches(candidate: Optional[str], settings: Settings) -> bool:
    """Constant-time comparison against the configured admin token."""
    if not settings.admin_token or not candidate:
        return False
    return hmac.compare_digest(candidate.encode(), settings.admin_token.encode())


def admin_enabled(settings: Settings) -> bool:
    """Admin writes are possible with a token, or tokenless outside production."""
    return bool(settings.admin_token) or not settings.is_production


def require_admin(
    x_admin_token: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Guard for content-management routes.

    - With ``admin_token`` configured, ``X-Admin-Token`` must match it.
    - Without a token, production refuses every admin write and any other
      environment lets them through.

    Raises:
        HTTPException: 401 on a missing or wrong token, 403 when disabled
    """
    if settings.admin_token:
        if not token_matches(x_admin_token, settings):
            logger.warning("Admin request rejected: missing or invalid admin token")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin token")
        return

    if settings.is_production:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin endpoints are disabled")
