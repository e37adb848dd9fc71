"""RewardHub: leaderboard, milestones, challenges and free spins API."""

__version__ = "1.0.0"
