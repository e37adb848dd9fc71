"""
Integration tests for the RewardHub API.
"""
from datetime import timedelta

import pytest

from rewardhub.clock import isoformat_z, parse_iso, utc_now
from rewardhub.main import app
from rewardhub.repositories import CHALLENGES
from rewardhub.store import StoreAdapter, StoreError, get_store

CHALLENGE = {
    "gameName": "Gates of Olympus",
    "gameImage": "https://cdn.example.com/gates.png",
    "minMultiplier": "50",
    "minBet": "1.00",
    "prize": "100",
    "isActive": True,
}


def make_offer(**overrides):
    offer = {
        "code": "SPIN-ABCD-12",
        "gameName": "Sweet Bonanza",
        "gameProvider": "Pragmatic Play",
        "gameImage": "https://cdn.example.com/bonanza.png",
        "spinsCount": 50,
        "spinValue": "0.20",
        "totalClaims": 10,
        "claimsRemaining": 2,
        "expiresAt": isoformat_z(utc_now() + timedelta(days=7)),
        "requirements": ["Wager $100 this week"],
        "isActive": True,
    }
    offer.update(overrides)
    return offer


@pytest.fixture
def challenge(client):
    response = client.post("/api/challenges", json=CHALLENGE)
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def sample_entries(client):
    """Leaderboard rows posted out of rank order."""
    rows = [
        {"rank": 3, "username": "player3", "wagered": "1000", "prize": "50"},
        {"rank": 1, "username": "player1", "wagered": "5000", "prize": "500"},
        {"rank": 2, "username": "player2", "wagered": "3000", "prize": "200"},
    ]
    return [client.post("/api/leaderboard/entries", json=row).json() for row in rows]


# ============================================================================
# Root / System Tests
# ============================================================================

def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "RewardHub" in response.json()["message"]


def test_health_check(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["store"] == "ok"
    assert data["backend"] == "SQLite"


def test_server_time_is_iso_utc(client):
    before = utc_now()
    response = client.get("/api/time")
    assert response.status_code == 200
    timestamp = response.json()["timestamp"]
    assert timestamp.endswith("Z")
    # millisecond precision, so allow the truncation
    assert parse_iso(timestamp) >= before - timedelta(milliseconds=1)


# ============================================================================
# Challenge Tests
# ============================================================================

def test_create_challenge_assigns_server_fields(challenge):
    assert len(challenge["id"]) == 20
    assert challenge["claimStatus"] == "unclaimed"
    assert challenge["claimedBy"] is None
    assert challenge["discordUsername"] is None
    assert challenge["createdAt"].endswith("Z")
    assert challenge["gameName"] == "Gates of Olympus"


def test_create_challenge_ignores_client_claim_fields(client):
    payload = {**CHALLENGE, "claimStatus": "claimed", "claimedBy": "sneaky"}
    response = client.post("/api/challenges", json=payload)
    assert response.status_code == 200
    assert response.json()["claimStatus"] == "unclaimed"
    assert response.json()["claimedBy"] is None


def test_create_challenge_missing_field(client):
    payload = {key: value for key, value in CHALLENGE.items() if key != "prize"}
    response = client.post("/api/challenges", json=payload)
    assert response.status_code == 400
    assert response.json()["field"] == "prize"


def test_create_challenge_rejects_non_decimal(client):
    response = client.post("/api/challenges", json={**CHALLENGE, "minBet": "lots"})
    assert response.status_code == 400
    assert response.json()["field"] == "minBet"


def test_claim_challenge(client, challenge):
    response = client.post(
        f"/api/challenges/{challenge['id']}/claim",
        json={"username": "alice", "discordUsername": "alice#1"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["claimStatus"] == "claimed"
    assert data["claimedBy"] == "alice"
    assert data["discordUsername"] == "alice#1"

    stored = client.get(f"/api/challenges/{challenge['id']}").json()
    assert stored["claimStatus"] == "claimed"
    assert stored["claimedBy"] == "alice"
    assert stored["prize"] == "100"


def test_claim_challenge_twice_is_rejected(client, challenge):
    url = f"/api/challenges/{challenge['id']}/claim"
    assert client.post(url, json={"username": "alice", "discordUsername": "a#1"}).status_code == 200

    response = client.post(url, json={"username": "bob", "discordUsername": "b#2"})
    assert response.status_code == 409
    assert "already been claimed" in response.json()["error"]

    assert client.get(f"/api/challenges/{challenge['id']}").json()["claimedBy"] == "alice"


@pytest.mark.parametrize(
    "body,message,field",
    [
        ({"discordUsername": "alice#1"}, "Username is required", "username"),
        ({"username": "   ", "discordUsername": "alice#1"}, "Username is required", "username"),
        ({"username": None, "discordUsername": "alice#1"}, "Username is required", "username"),
        ({"username": "alice"}, "Discord username is required", "discordUsername"),
        ({"username": "alice", "discordUsername": ""}, "Discord username is required", "discordUsername"),
        ({"username": "alice", "discordUsername": None}, "Discord username is required", "discordUsername"),
    ],
)
def test_claim_challenge_requires_both_usernames(client, challenge, body, message, field):
    response = client.post(f"/api/challenges/{challenge['id']}/claim", json=body)
    assert response.status_code == 400
    assert response.json()["error"] == message
    assert response.json()["field"] == field

    stored = client.get(f"/api/challenges/{challenge['id']}").json()
    assert stored["claimStatus"] == "unclaimed"


def test_claim_missing_challenge(client):
    response = client.post(
        "/api/challenges/does-not-exist/claim",
        json={"username": "alice", "discordUsername": "alice#1"},
    )
    assert response.status_code == 404
    assert response.json()["error"] == "Challenge not found"


def test_admin_can_reset_claim(client, challenge):
    client.post(
        f"/api/challenges/{challenge['id']}/claim",
        json={"username": "alice", "discordUsername": "alice#1"},
    )
    response = client.patch(
        f"/api/challenges/{challenge['id']}",
        json={"claimStatus": "unclaimed", "claimedBy": None, "discordUsername": None},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["claimStatus"] == "unclaimed"
    assert data["claimedBy"] is None
    assert data["discordUsername"] is None


def test_challenges_listed_newest_first(client):
    ids = [
        client.post("/api/challenges", json={**CHALLENGE, "gameName": f"Game {i}"}).json()["id"]
        for i in range(3)
    ]
    listed = [row["id"] for row in client.get("/api/challenges").json()]
    assert listed == list(reversed(ids))


# ============================================================================
# Generic CRUD Tests
# ============================================================================

def test_list_empty_collection(client):
    response = client.get("/api/milestones")
    assert response.status_code == 200
    assert response.json() == []


def test_get_missing_record(client):
    response = client.get("/api/milestones/nope")
    assert response.status_code == 404
    assert response.json()["error"] == "Milestone not found"


def test_update_missing_record_returns_404(client):
    response = client.patch("/api/challenges/nope", json={"prize": "5"})
    assert response.status_code == 404
    assert client.get("/api/challenges").json() == []


def test_update_cannot_change_id_or_created_at(client, challenge):
    response = client.patch(
        f"/api/challenges/{challenge['id']}",
        json={"id": "other", "createdAt": "2000-01-01T00:00:00.000Z", "prize": "250"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == challenge["id"]
    assert data["createdAt"] == challenge["createdAt"]
    assert data["prize"] == "250"


def test_delete_is_idempotent(client, challenge):
    url = f"/api/challenges/{challenge['id']}"
    assert client.delete(url).json() == {"success": True}
    assert client.get(url).status_code == 404

    response = client.delete(url)
    assert response.status_code == 200
    assert response.json() == {"success": True}


# ============================================================================
# Leaderboard Tests
# ============================================================================

def test_leaderboard_sorted_by_rank(client, sample_entries):
    response = client.get("/api/leaderboard/entries")
    assert response.status_code == 200
    assert [row["rank"] for row in response.json()] == [1, 2, 3]
    assert [row["username"] for row in response.json()] == ["player1", "player2", "player3"]


def test_partial_update_keeps_other_fields(client, sample_entries):
    entry = sample_entries[1]
    response = client.patch(f"/api/leaderboard/entries/{entry['id']}", json={"prize": "500"})
    assert response.status_code == 200

    stored = client.get(f"/api/leaderboard/entries/{entry['id']}").json()
    assert stored["prize"] == "500"
    assert stored["rank"] == entry["rank"]
    assert stored["username"] == entry["username"]
    assert stored["wagered"] == entry["wagered"]
    assert stored["createdAt"] == entry["createdAt"]


def test_numeric_money_is_stored_as_decimal_string(client):
    response = client.post(
        "/api/leaderboard/entries",
        json={"rank": 1, "username": "p", "wagered": 1250.5, "prize": 100},
    )
    assert response.status_code == 200
    assert response.json()["wagered"] == "1250.5"
    assert response.json()["prize"] == "100"


def test_leaderboard_settings_absent(client):
    response = client.get("/api/leaderboard/settings")
    assert response.status_code == 200
    assert response.json() is None


def test_leaderboard_settings_upsert(client):
    first = client.post(
        "/api/leaderboard/settings",
        json={"totalPrizePool": "5000", "endDate": "2026-11-01T00:00:00+02:00"},
    )
    assert first.status_code == 200
    assert first.json()["id"] == "current"
    assert first.json()["endDate"] == "2026-10-31T22:00:00.000Z"

    second = client.post(
        "/api/leaderboard/settings",
        json={"totalPrizePool": "7500", "endDate": "2026-12-01T00:00:00Z"},
    )
    assert second.status_code == 200

    stored = client.get("/api/leaderboard/settings").json()
    assert stored["totalPrizePool"] == "7500"
    assert stored["endDate"] == "2026-12-01T00:00:00.000Z"
    assert stored["createdAt"] == first.json()["createdAt"]
    assert stored["updatedAt"] >= first.json()["updatedAt"]


def test_leaderboard_settings_require_end_date(client):
    response = client.post("/api/leaderboard/settings", json={"totalPrizePool": "5000"})
    assert response.status_code == 400
    assert response.json()["field"] == "endDate"


# ============================================================================
# Milestone Tests
# ============================================================================

def test_milestones_sorted_by_tier(client):
    for tier in (21, 1, 11):
        client.post(
            "/api/milestones",
            json={"name": f"Tier {tier}", "tier": tier, "imageUrl": "https://cdn.example.com/b.png",
                  "rewards": ["$5 bonus"]},
        )
    tiers = [row["tier"] for row in client.get("/api/milestones").json()]
    assert tiers == [1, 11, 21]


def test_milestone_rewards_keep_order(client):
    rewards = ["$5 bonus", "10 free spins", "Weekly rakeback boost"]
    created = client.post(
        "/api/milestones",
        json={"name": "Gold 1", "tier": 21, "imageUrl": "https://cdn.example.com/g.png", "rewards": rewards},
    ).json()
    assert client.get(f"/api/milestones/{created['id']}").json()["rewards"] == rewards


# ============================================================================
# Free Spins Tests
# ============================================================================

def test_free_spins_expiry_normalized_to_utc(client):
    response = client.post("/api/free-spins", json=make_offer(expiresAt="2030-01-01T05:30:00+05:30"))
    assert response.status_code == 200
    assert response.json()["expiresAt"] == "2030-01-01T00:00:00.000Z"


def test_free_spins_claim_decrements_until_exhausted(client):
    offer = client.post("/api/free-spins", json=make_offer(claimsRemaining=2)).json()
    url = f"/api/free-spins/{offer['id']}/claim"

    assert client.post(url).json()["claimsRemaining"] == 1
    assert client.post(url).json()["claimsRemaining"] == 0

    response = client.post(url)
    assert response.status_code == 409
    assert response.json()["error"] == "No claims remaining for this offer"


def test_free_spins_claim_expired_offer(client):
    expired = isoformat_z(utc_now() - timedelta(days=1))
    offer = client.post("/api/free-spins", json=make_offer(expiresAt=expired)).json()
    response = client.post(f"/api/free-spins/{offer['id']}/claim")
    assert response.status_code == 409
    assert response.json()["error"] == "Offer has expired"


def test_free_spins_claim_inactive_offer(client):
    offer = client.post("/api/free-spins", json=make_offer(isActive=False)).json()
    response = client.post(f"/api/free-spins/{offer['id']}/claim")
    assert response.status_code == 409
    assert client.get(f"/api/free-spins/{offer['id']}").json()["claimsRemaining"] == 2


def test_free_spins_rejects_negative_counts(client):
    response = client.post("/api/free-spins", json=make_offer(claimsRemaining=-1))
    assert response.status_code == 400
    assert response.json()["field"] == "claimsRemaining"


def test_legacy_numeric_created_at_sorts_last(client, sql_store):
    sql_store.set(CHALLENGES, "-legacy", {**CHALLENGE, "gameName": "Legacy", "createdAt": 123})
    client.post("/api/challenges", json=CHALLENGE)

    response = client.get("/api/challenges")
    assert response.status_code == 200
    assert [row["gameName"] for row in response.json()] == ["Gates of Olympus", "Legacy"]


# ============================================================================
# Store Failure Tests
# ============================================================================

class UnavailableStore(StoreAdapter):
    """Store whose backend is down: every call fails."""

    product = "Unavailable"

    def _fail(self, *args, **kwargs):
        raise StoreError("connection refused")

    get_all = get = create = set = update = upsert = remove = _fail

    def ping(self):
        return False


@pytest.fixture
def unavailable_client(client):
    app.dependency_overrides[get_store] = lambda: UnavailableStore()
    return client


@pytest.mark.parametrize(
    "method,path,body,message",
    [
        ("GET", "/api/challenges", None, "Failed to fetch challenges"),
        ("GET", "/api/challenges/abc", None, "Failed to fetch challenge"),
        ("POST", "/api/challenges", CHALLENGE, "Failed to create challenge"),
        ("PATCH", "/api/challenges/abc", {"prize": "5"}, "Failed to update challenge"),
        ("DELETE", "/api/challenges/abc", None, "Failed to delete challenge"),
        ("POST", "/api/challenges/abc/claim", {"username": "alice", "discordUsername": "a#1"},
         "Failed to claim challenge"),
        ("POST", "/api/free-spins/abc/claim", None, "Failed to claim free spins offer"),
        ("GET", "/api/leaderboard/entries", None, "Failed to fetch leaderboard entries"),
        ("GET", "/api/leaderboard/settings", None, "Failed to fetch leaderboard settings"),
        ("POST", "/api/leaderboard/settings", {"totalPrizePool": "1", "endDate": "2030-01-01T00:00:00Z"},
         "Failed to save leaderboard settings"),
    ],
)
def test_store_failure_returns_500(unavailable_client, method, path, body, message):
    response = unavailable_client.request(method, path, json=body)
    assert response.status_code == 500
    assert response.json()["error"] == message


def test_health_degraded_when_store_down(unavailable_client):
    response = unavailable_client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["store"] == "error"
