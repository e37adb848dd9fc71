"""
Script to populate the configured store with demo rewards hub content.

Creates level milestones, a ranked leaderboard with settings, challenges and
free spins offers. Uses the same repositories as the API, so defaults and
timestamps match what the admin panel would produce.

Usage:
    python scripts/seed_data.py [leaderboard_size] [levels_per_group]
"""
import random
import sys
import time
from datetime import timedelta
from decimal import Decimal

from faker import Faker

from rewardhub.clock import isoformat_z, utc_now
from rewardhub.config import get_settings
from rewardhub.repositories import (
    ChallengeRepository,
    FreeSpinsOfferRepository,
    LeaderboardEntryRepository,
    LeaderboardSettingsRepository,
    LevelMilestoneRepository,
)
from rewardhub.store import build_store

fake = Faker()
settings = get_settings()

# Ten tiers per group; tier = group_index * 10 + level
MILESTONE_GROUPS = ["Bronze", "Silver", "Gold", "Emerald", "Diamond", "Sapphire", "Amethyst"]

SLOT_GAMES = [
    ("Gates of Olympus", "Pragmatic Play"),
    ("Sweet Bonanza", "Pragmatic Play"),
    ("Wanted Dead or a Wild", "Hacksaw Gaming"),
    ("Book of Dead", "Play'n GO"),
    ("Money Train 3", "Relax Gaming"),
    ("Big Bass Bonanza", "Pragmatic Play"),
    ("Mental", "Nolimit City"),
]


def _money(value: float) -> str:
    return str(Decimal(str(value)).quantize(Decimal("0.01")))


def _image_for(name: str) -> str:
    slug = name.lower().replace(" ", "-").replace("'", "")
    return f"https://cdn.rewardhub.example/games/{slug}.png"


def seed_milestones(store, levels_per_group: int = 3):
    """Create milestone tiers for every group."""
    print(f"\nSeeding milestones ({levels_per_group} per group)...")
    repo = LevelMilestoneRepository(store)
    count = 0
    for group_index, group in enumerate(MILESTONE_GROUPS):
        for level in range(1, levels_per_group + 1):
            tier = group_index * 10 + level
            bonus = 5 * (group_index + 1) * level
            repo.create({
                "name": f"{group} {level}",
                "tier": tier,
                "imageUrl": f"https://cdn.rewardhub.example/badges/{group.lower()}-{level}.png",
                "rewards": [
                    f"${bonus} bonus",
                    f"{10 * (group_index + 1)} free spins",
                ] + (["Weekly rakeback boost"] if level == levels_per_group else []),
            })
            count += 1
    print(f"✓ Created {count} milestones")


def seed_leaderboard(store, size: int = 10):
    """Create a ranked leaderboard and its settings."""
    print(f"\nSeeding leaderboard with {size} entries...")
    repo = LeaderboardEntryRepository(store)

    wagers = sorted((random.uniform(5_000, 500_000) for _ in range(size)), reverse=True)
    prizes = [max(1000 // rank, 25) for rank in range(1, size + 1)]

    # insert in shuffled order; listing sorts by rank
    rows = list(enumerate(zip(wagers, prizes), start=1))
    random.shuffle(rows)
    for rank, (wagered, prize) in rows:
        repo.create({
            "rank": rank,
            "username": fake.user_name(),
            "wagered": _money(wagered),
            "prize": _money(prize),
        })

    total_pool = sum(prizes)
    LeaderboardSettingsRepository(store).upsert({
        "totalPrizePool": _money(total_pool),
        "endDate": isoformat_z(utc_now() + timedelta(days=14)),
    })
    print(f"✓ Created {size} entries, prize pool ${total_pool:,}")


def seed_challenges(store, count: int = 5):
    print(f"\nSeeding {count} challenges...")
    repo = ChallengeRepository(store)
    for game, _provider in random.sample(SLOT_GAMES, k=min(count, len(SLOT_GAMES))):
        repo.create({
            "gameName": game,
            "gameImage": _image_for(game),
            "minMultiplier": str(random.choice([100, 250, 500, 1000])),
            "minBet": _money(random.choice([0.2, 0.4, 1.0])),
            "prize": _money(random.choice([25, 50, 100, 250])),
            "isActive": True,
        })
    print(f"✓ Created {min(count, len(SLOT_GAMES))} challenges")


def seed_free_spins(store, count: int = 3):
    print(f"\nSeeding {count} free spins offers...")
    repo = FreeSpinsOfferRepository(store)
    for game, provider in random.sample(SLOT_GAMES, k=min(count, len(SLOT_GAMES))):
        total_claims = random.choice([10, 25, 50])
        repo.create({
            "code": fake.bothify(text="SPIN-????-##").upper(),
            "gameName": game,
            "gameProvider": provider,
            "gameImage": _image_for(game),
            "spinsCount": random.choice([20, 50, 100]),
            "spinValue": _money(random.choice([0.1, 0.2, 0.5])),
            "totalClaims": total_claims,
            "claimsRemaining": total_claims,
            "expiresAt": isoformat_z(utc_now() + timedelta(days=30)),
            "requirements": ["Wager $100 in the last 7 days", "Use code on signup"],
            "isActive": True,
        })
    print(f"✓ Created {min(count, len(SLOT_GAMES))} offers")


def main():
    """Main execution function."""
    leaderboard_size = int(sys.argv[1]) if len(sys.argv) > 1 else 10
    levels_per_group = int(sys.argv[2]) if len(sys.argv) > 2 else 3

    print("=" * 60)
    print("REWARDHUB DEMO DATA SCRIPT")
    print("=" * 60)
    print(f"Store backend: {settings.store_backend}")
    print("=" * 60)

    start = time.time()
    store = build_store(settings)
    try:
        seed_milestones(store, levels_per_group)
        seed_leaderboard(store, leaderboard_size)
        seed_challenges(store)
        seed_free_spins(store)
    except Exception as e:
        print(f"\n✗ Error during seeding: {e}")
        raise
    finally:
        store.close()

    print(f"\n✓ Seeding completed in {time.time() - start:.2f} seconds")


if __name__ == "__main__":
    main()
