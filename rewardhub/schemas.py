"""
Request and response schemas for the rewards hub API.

Field names are snake_case in Python and camelCase on the wire and in the
store. Monetary and multiplier values are decimal strings; timestamps are
ISO-8601 strings.
"""
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, ClassVar, Literal, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    StringConstraints,
    field_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from rewardhub.clock import isoformat_z


def _coerce_decimal_string(value: Any) -> Any:
    if isinstance(value, bool):
        raise PydanticCustomError("decimal_string", "Value must be a decimal number")
    if isinstance(value, (int, float, Decimal)):
        value = str(value)
    if not isinstance(value, str):
        raise PydanticCustomError("decimal_string", "Value must be a decimal number")
    value = value.strip()
    try:
        number = Decimal(value)
    except InvalidOperation:
        raise PydanticCustomError("decimal_string", "Value must be a decimal number")
    if not number.is_finite():
        raise PydanticCustomError("decimal_string", "Value must be a finite decimal number")
    return value


def _stored_text(value: Any) -> Any:
    # records written by older clients may hold epoch numbers
    if value is None or isinstance(value, str):
        return value
    return str(value)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


DecimalString = Annotated[str, BeforeValidator(_coerce_decimal_string)]
Timestamp = Annotated[datetime, AfterValidator(_as_utc), PlainSerializer(isoformat_z, return_type=str)]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
StoredText = Annotated[Optional[str], BeforeValidator(_stored_text)]


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateModel(CamelModel):
    """Base for create payloads."""

    def to_record(self) -> dict[str, Any]:
        """Field set to persist, keyed by wire names."""
        return self.model_dump(by_alias=True)


class UpdateModel(CamelModel):
    """
    Base for partial-update payloads.

    Only fields present in the request are written. An explicit null is
    dropped unless the field is listed in ``NULLABLE_FIELDS``.
    """

    NULLABLE_FIELDS: ClassVar[frozenset[str]] = frozenset()

    def to_partial(self) -> dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_unset=True)
        return {
            key: value for key, value in data.items()
            if value is not None or key in self.NULLABLE_FIELDS
        }


# ============================================================================
# Leaderboard
# ============================================================================

class LeaderboardEntryCreate(CreateModel):
    """
    Schema for a new leaderboard row.

    Example:
        {
            "rank": 1,
            "username": "player1",
            "wagered": "125000.00",
            "prize": "1000.00"
        }
    """
    rank: int = Field(..., ge=1, description="Display position, 1 = top")
    username: NonEmptyStr = Field(..., description="Player's casino username")
    wagered: DecimalString = Field(..., description="Total wagered this period")
    prize: DecimalString = Field(..., description="Prize for this position")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"rank": 1, "username": "player1", "wagered": "125000.00", "prize": "1000.00"}
        }
    )


class LeaderboardEntryUpdate(UpdateModel):
    rank: Optional[int] = Field(None, ge=1)
    username: Optional[NonEmptyStr] = None
    wagered: Optional[DecimalString] = None
    prize: Optional[DecimalString] = None


class LeaderboardEntry(CamelModel):
    id: str
    rank: int
    username: str
    wagered: str
    prize: str
    created_at: StoredText = None


class LeaderboardSettingsInput(CreateModel):
    """
    Schema for the leaderboard settings upsert.

    Example:
        {
            "totalPrizePool": "5000.00",
            "endDate": "2026-11-01T00:00:00.000Z"
        }
    """
    total_prize_pool: DecimalString = Field(..., description="Prize pool shown above the leaderboard")
    end_date: Timestamp = Field(..., description="When the current leaderboard period ends")


class LeaderboardSettings(CamelModel):
    id: str
    total_prize_pool: str
    end_date: str
    created_at: StoredText = None
    updated_at: StoredText = None


# ============================================================================
# Milestones
# ============================================================================

class LevelMilestoneCreate(CreateModel):
    """A VIP level milestone, e.g. "Bronze 1" at tier 1."""
    name: NonEmptyStr
    tier: int = Field(..., description="Ordering key, lowest tier first")
    image_url: NonEmptyStr
    rewards: list[str] = Field(default_factory=list, description="Reward descriptions, in display order")


class LevelMilestoneUpdate(UpdateModel):
    name: Optional[NonEmptyStr] = None
    tier: Optional[int] = None
    image_url: Optional[NonEmptyStr] = None
    rewards: Optional[list[str]] = None


class LevelMilestone(CamelModel):
    id: str
    name: str
    tier: int
    image_url: str
    rewards: list[str] = Field(default_factory=list)
    created_at: StoredText = None


# ============================================================================
# Challenges
# ============================================================================

ClaimStatus = Literal["unclaimed", "claimed"]


class ChallengeCreate(CreateModel):
    """
    Schema for a new multiplier challenge.

    Claim fields are server-assigned and cannot be supplied here.

    Example:
        {
            "gameName": "Gates of Olympus",
            "gameImage": "https://cdn.example.com/gates.png",
            "minMultiplier": "50",
            "minBet": "1.00",
            "prize": "100",
            "isActive": true
        }
    """
    game_name: NonEmptyStr
    game_image: NonEmptyStr
    min_multiplier: DecimalString
    min_bet: DecimalString
    prize: DecimalString
    is_active: bool = True

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "gameName": "Gates of Olympus",
                "gameImage": "https://cdn.example.com/gates.png",
                "minMultiplier": "50",
                "minBet": "1.00",
                "prize": "100",
                "isActive": True,
            }
        }
    )


class ChallengeUpdate(UpdateModel):
    """Admin edit; claim fields may be reset by sending nulls."""

    NULLABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"claimedBy", "discordUsername"})

    game_name: Optional[NonEmptyStr] = None
    game_image: Optional[NonEmptyStr] = None
    min_multiplier: Optional[DecimalString] = None
    min_bet: Optional[DecimalString] = None
    prize: Optional[DecimalString] = None
    is_active: Optional[bool] = None
    claim_status: Optional[ClaimStatus] = None
    claimed_by: Optional[str] = None
    discord_username: Optional[str] = None


class ChallengeClaimRequest(CamelModel):
    """Public claim of a completed challenge, fulfilled by staff over Discord."""

    username: Optional[str] = Field("", validate_default=True)
    discord_username: Optional[str] = Field("", validate_default=True)

    @field_validator("username")
    @classmethod
    def username_required(cls, v: Optional[str]) -> str:
        if not v or not v.strip():
            raise PydanticCustomError("required", "Username is required")
        return v.strip()

    @field_validator("discord_username")
    @classmethod
    def discord_username_required(cls, v: Optional[str]) -> str:
        if not v or not v.strip():
            raise PydanticCustomError("required", "Discord username is required")
        return v.strip()


class Challenge(CamelModel):
    id: str
    game_name: str
    game_image: str
    min_multiplier: str
    min_bet: str
    prize: str
    is_active: bool = True
    claimed_by: Optional[str] = None
    claim_status: ClaimStatus = "unclaimed"
    discord_username: Optional[str] = None
    created_at: StoredText = None


# ============================================================================
# Free spins
# ============================================================================

class FreeSpinsOfferCreate(CreateModel):
    """
    Schema for a new free-spins code offer.

    ``claimsRemaining`` is expected to stay at or below ``totalClaims`` but
    the two are not cross-checked.
    """
    code: NonEmptyStr
    game_name: NonEmptyStr
    game_provider: NonEmptyStr
    game_image: NonEmptyStr
    spins_count: int = Field(..., ge=0)
    spin_value: DecimalString
    total_claims: int = Field(..., ge=0)
    claims_remaining: int = Field(..., ge=0)
    expires_at: Timestamp
    requirements: list[str] = Field(default_factory=list)
    is_active: bool = True


class FreeSpinsOfferUpdate(UpdateModel):
    code: Optional[NonEmptyStr] = None
    game_name: Optional[NonEmptyStr] = None
    game_provider: Optional[NonEmptyStr] = None
    game_image: Optional[NonEmptyStr] = None
    spins_count: Optional[int] = Field(None, ge=0)
    spin_value: Optional[DecimalString] = None
    total_claims: Optional[int] = Field(None, ge=0)
    claims_remaining: Optional[int] = Field(None, ge=0)
    expires_at: Optional[Timestamp] = None
    requirements: Optional[list[str]] = None
    is_active: Optional[bool] = None


class FreeSpinsOffer(CamelModel):
    id: str
    code: str
    game_name: str
    game_provider: str
    game_image: str
    spins_count: int
    spin_value: str
    total_claims: int
    claims_remaining: int
    expires_at: str
    requirements: list[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: StoredText = None


# ============================================================================
# Misc
# ============================================================================

class SuccessResponse(BaseModel):
    success: bool = True


class TimeResponse(BaseModel):
    """Server clock, used by clients to correct countdown drift."""
    timestamp: str = Field(..., examples=["2026-10-19T12:00:00.000Z"])


class HealthResponse(BaseModel):
    status: str
    store: str
    backend: str
    timestamp: str


class AdminStatusResponse(CamelModel):
    enabled: bool
    token_required: bool
    environment: str


class AdminVerifyRequest(BaseModel):
    token: str = ""


class ErrorResponse(BaseModel):
    """
    Schema for error responses.

    Example:
        {
            "error": "Username is required",
            "field": "username"
        }
    """
    error: str = Field(..., description="Human-readable error message")
    field: Optional[str] = Field(None, description="Offending field for validation errors")
    status_code: Optional[int] = Field(None, description="HTTP status code")
    detail: Optional[Any] = Field(None, description="Raw validation errors")
