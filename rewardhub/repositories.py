"""
Entity repositories over the store adapter.

Every resource is an instance of one generic CRUD repository, specialized by
collection name, sort key and the server-assigned fields it injects on
create. Repositories hold no state between requests and never catch store
errors; the API layer translates them.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from rewardhub.clock import now_iso, parse_iso, utc_now
from rewardhub.monitoring import monitor_transaction, record_custom_event, record_custom_metric
from rewardhub.store import RecordNotFound, StoreAdapter

logger = logging.getLogger(__name__)

Record = dict[str, Any]
SortKey = Callable[[Record], Any]

LEADERBOARD_ENTRIES = "leaderboardEntries"
LEADERBOARD_SETTINGS = "leaderboardSettings"
LEVEL_MILESTONES = "levelMilestones"
CHALLENGES = "challenges"
FREE_SPINS_OFFERS = "freeSpinsOffers"

SETTINGS_ID = "current"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ClaimRejected(Exception):
    """A claim that the current record state does not allow."""


def _created_at(record: Record) -> datetime:
    value = record.get("createdAt")
    if not value or not isinstance(value, str):
        return _EPOCH
    try:
        return parse_iso(value)
    except (TypeError, ValueError):
        return _EPOCH


def by_field_asc(field: str) -> SortKey:
    """Sort key on a numeric field, missing values first."""
    return lambda record: record.get(field) or 0


def newest_first(record: Record) -> Any:
    # push ids are time-ordered, so id breaks ties within one millisecond
    return (_created_at(record), record["id"])


class CrudRepository:
    """Generic list/get/create/update/delete over one store collection."""

    def __init__(
        self,
        store: StoreAdapter,
        collection: str,
        sort_key: SortKey,
        descending: bool = False,
    ):
        self.store = store
        self.collection = collection
        self.sort_key = sort_key
        self.descending = descending

    def _with_id(self, record_id: str, record: Record) -> Record:
        return {"id": record_id, **record}

    def defaults(self) -> Record:
        """Server-assigned fields injected on create."""
        return {"createdAt": now_iso()}

    def list(self) -> list[Record]:
        records = [
            self._with_id(record_id, record)
            for record_id, record in self.store.get_all(self.collection).items()
        ]
        # sorted() is stable, so equal keys keep store (creation) order
        return sorted(records, key=self.sort_key, reverse=self.descending)

    def get_by_id(self, record_id: str) -> Optional[Record]:
        record = self.store.get(self.collection, record_id)
        if record is None:
            return None
        return self._with_id(record_id, record)

    @monitor_transaction()
    def create(self, data: Record) -> Record:
        record = {**data, **self.defaults()}
        record_id = self.store.create(self.collection, record)
        logger.info(f"Created {self.collection}/{record_id}")
        return self._with_id(record_id, record)

    @monitor_transaction()
    def update(self, record_id: str, partial: Record) -> Record:
        """
        Merge ``partial`` into an existing record.

        Raises:
            RecordNotFound: if no record exists at ``record_id``
        """
        partial = {key: value for key, value in partial.items() if key not in ("id", "createdAt")}
        merged = self.store.update(self.collection, record_id, partial)
        logger.info(f"Updated {self.collection}/{record_id}: fields={sorted(partial)}")
        return self._with_id(record_id, merged)

    @monitor_transaction()
    def delete(self, record_id: str) -> None:
        self.store.remove(self.collection, record_id)
        logger.info(f"Deleted {self.collection}/{record_id}")


class LeaderboardEntryRepository(CrudRepository):
    def __init__(self, store: StoreAdapter):
        super().__init__(store, LEADERBOARD_ENTRIES, by_field_asc("rank"))


class LevelMilestoneRepository(CrudRepository):
    def __init__(self, store: StoreAdapter):
        super().__init__(store, LEVEL_MILESTONES, by_field_asc("tier"))


class ChallengeRepository(CrudRepository):
    """Challenges, newest first, with the public claim flow."""

    def __init__(self, store: StoreAdapter):
        super().__init__(store, CHALLENGES, newest_first, descending=True)

    def defaults(self) -> Record:
        return {
            **super().defaults(),
            "claimStatus": "unclaimed",
            "claimedBy": None,
            "discordUsername": None,
        }

    @monitor_transaction()
    def claim(self, record_id: str, username: str, discord_username: str) -> Record:
        """
        Mark a challenge as claimed by ``username``.

        The status check and the write happen in one store transaction.

        Raises:
            RecordNotFound: if the challenge does not exist
            ClaimRejected: if the challenge is already claimed
        """
        def not_yet_claimed(current: Record) -> None:
            if current.get("claimStatus") == "claimed":
                raise ClaimRejected("Challenge has already been claimed")

        merged = self.store.update(
            self.collection,
            record_id,
            {
                "claimedBy": username,
                "claimStatus": "claimed",
                "discordUsername": discord_username,
            },
            precondition=not_yet_claimed,
        )
        logger.info(f"Challenge {record_id} claimed by '{username}' (discord: '{discord_username}')")
        record_custom_event("ChallengeClaim", {"challengeId": record_id, "prize": merged.get("prize")})
        record_custom_metric("Custom/Challenges/Claimed", 1)
        return self._with_id(record_id, merged)


class FreeSpinsOfferRepository(CrudRepository):
    """Free-spins offers, newest first, with claim counting."""

    def __init__(self, store: StoreAdapter):
        super().__init__(store, FREE_SPINS_OFFERS, newest_first, descending=True)

    @monitor_transaction()
    def claim(self, record_id: str) -> Record:
        """
        Consume one claim of an offer.

        Raises:
            RecordNotFound: if the offer does not exist
            ClaimRejected: if the offer is inactive, expired or used up
        """
        def take_one(current: Record) -> Record:
            if not current.get("isActive", True):
                raise ClaimRejected("Offer is not active")
            expires_at = current.get("expiresAt")
            if expires_at and parse_iso(expires_at) <= utc_now():
                raise ClaimRejected("Offer has expired")
            count = int(current.get("claimsRemaining") or 0)
            if count <= 0:
                raise ClaimRejected("No claims remaining for this offer")
            return {"claimsRemaining": count - 1}

        merged = self.store.update(self.collection, record_id, {}, precondition=take_one)
        logger.info(f"Free spins offer {record_id} claimed, {merged.get('claimsRemaining')} remaining")
        record_custom_event("FreeSpinsClaim", {"offerId": record_id, "code": merged.get("code")})
        return self._with_id(record_id, merged)


class LeaderboardSettingsRepository:
    """
    The leaderboard settings singleton.

    Settings live at the fixed path ``leaderboardSettings/current`` so an
    upsert is one atomic create-or-merge and duplicates cannot appear.
    """

    def __init__(self, store: StoreAdapter):
        self.store = store

    def get(self) -> Optional[Record]:
        record = self.store.get(LEADERBOARD_SETTINGS, SETTINGS_ID)
        if record is None:
            return None
        return {"id": SETTINGS_ID, **record}

    @monitor_transaction()
    def upsert(self, data: Record) -> Record:
        now = now_iso()
        merged = self.store.upsert(
            LEADERBOARD_SETTINGS,
            SETTINGS_ID,
            {**data, "updatedAt": now},
            defaults={"createdAt": now},
        )
        logger.info(f"Leaderboard settings saved: totalPrizePool={merged.get('totalPrizePool')}, endDate={merged.get('endDate')}")
        return {"id": SETTINGS_ID, **merged}
