"""
Load simulation script to test API performance.
Simulates concurrent visitors browsing the rewards hub and claiming rewards.

Usage:
    python scripts/load_simulator.py [base_url] [concurrent_users] [duration_seconds]
"""
import asyncio
import random
import statistics
import sys
import time
from collections import defaultdict
from datetime import datetime

import aiohttp

# (name, path, weight); weights sum to 1
READ_ENDPOINTS = [
    ("list_leaderboard", "/api/leaderboard/entries", 0.30),
    ("get_settings", "/api/leaderboard/settings", 0.15),
    ("list_milestones", "/api/milestones", 0.15),
    ("list_challenges", "/api/challenges", 0.15),
    ("list_free_spins", "/api/free-spins", 0.10),
    ("server_time", "/api/time", 0.10),
]
CLAIM_WEIGHT = 0.05


class LoadSimulator:
    """Load simulator for API testing."""

    def __init__(self, base_url: str, concurrent_users: int, duration_seconds: int):
        self.base_url = base_url
        self.concurrent_users = concurrent_users
        self.duration_seconds = duration_seconds
        self.results = defaultdict(list)
        self.errors = defaultdict(int)
        self.total_requests = 0
        self.start_time = None
        self.offer_ids = []

    async def timed_request(self, session: aiohttp.ClientSession, name: str, method: str, path: str,
                            ok_statuses=(200,), **kwargs):
        """Issue one request and record its latency under ``name``."""
        start = time.time()
        try:
            async with session.request(method, f"{self.base_url}{path}", **kwargs) as response:
                await response.read()
                latency = (time.time() - start) * 1000
                self.results[name].append(latency)
                self.total_requests += 1

                if response.status not in ok_statuses:
                    self.errors[name] += 1
                return response.status

        except Exception as e:
            self.errors[name] += 1
            print(f"Error on {name}: {e}")
            return None

    async def load_offer_ids(self, session: aiohttp.ClientSession):
        """Fetch current free spins offers so claims target real ids."""
        try:
            async with session.get(f"{self.base_url}/api/free-spins") as response:
                if response.status == 200:
                    self.offer_ids = [offer["id"] for offer in await response.json()]
        except Exception as e:
            print(f"Could not load free spins offers: {e}")

    async def claim_free_spins(self, session: aiohttp.ClientSession):
        if not self.offer_ids:
            return
        offer_id = random.choice(self.offer_ids)
        # 409 once an offer runs out is expected
        await self.timed_request(
            session, "claim_free_spins", "POST", f"/api/free-spins/{offer_id}/claim",
            ok_statuses=(200, 409),
        )

    async def user_session(self, session: aiohttp.ClientSession):
        """Simulate a single visitor's behavior."""
        end_time = self.start_time + self.duration_seconds

        while time.time() < end_time:
            rand = random.random()

            if rand < CLAIM_WEIGHT:
                await self.claim_free_spins(session)
            else:
                threshold = CLAIM_WEIGHT
                for name, path, weight in READ_ENDPOINTS:
                    threshold += weight
                    if rand < threshold:
                        await self.timed_request(session, name, "GET", path)
                        break

            # Random delay between requests (100-500ms)
            await asyncio.sleep(random.uniform(0.1, 0.5))

    async def run(self):
        """Run the load simulation."""
        print("=" * 60)
        print("REWARDHUB LOAD SIMULATOR")
        print("=" * 60)
        print(f"Base URL: {self.base_url}")
        print(f"Concurrent Users: {self.concurrent_users}")
        print(f"Duration: {self.duration_seconds} seconds")
        print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        print("=" * 60)

        connector = aiohttp.TCPConnector(limit=100)
        timeout = aiohttp.ClientTimeout(total=30)

        async with aiohttp.ClientSession(connector=connector, timeout=timeout) as session:
            await self.load_offer_ids(session)
            self.start_time = time.time()
            tasks = [self.user_session(session) for _ in range(self.concurrent_users)]
            await asyncio.gather(*tasks)

        self.print_results()

    def calculate_percentile(self, data, percentile):
        """Calculate percentile from data."""
        if not data:
            return 0
        sorted_data = sorted(data)
        index = int(len(sorted_data) * percentile / 100)
        return sorted_data[min(index, len(sorted_data) - 1)]

    def print_results(self):
        """Print simulation results."""
        total_duration = time.time() - self.start_time

        print("\n" + "=" * 60)
        print("SIMULATION RESULTS")
        print("=" * 60)
        print(f"Total Duration: {total_duration:.2f} seconds")
        print(f"Total Requests: {self.total_requests:,}")
        print(f"Requests/Second: {self.total_requests / total_duration:.2f}")
        print(f"Total Errors: {sum(self.errors.values())}")
        print("=" * 60)

        for endpoint, latencies in self.results.items():
            if not latencies:
                continue

            print(f"\n{endpoint.upper().replace('_', ' ')}")
            print("-" * 40)
            print(f"  Total Requests: {len(latencies):,}")
            print(f"  Errors: {self.errors.get(endpoint, 0)}")
            print(f"  Min Latency: {min(latencies):.2f} ms")
            print(f"  Max Latency: {max(latencies):.2f} ms")
            print(f"  Avg Latency: {statistics.mean(latencies):.2f} ms")
            print(f"  Median (p50): {self.calculate_percentile(latencies, 50):.2f} ms")
            print(f"  p95 Latency: {self.calculate_percentile(latencies, 95):.2f} ms")
            print(f"  p99 Latency: {self.calculate_percentile(latencies, 99):.2f} ms")

        print("\n" + "=" * 60)
        print("\nPERFORMANCE ASSESSMENT")
        print("-" * 40)

        all_latencies = [latency for latencies in self.results.values() for latency in latencies]
        overall_p95 = self.calculate_percentile(all_latencies, 95)
        p95_status = "✓ PASS" if overall_p95 <= 100 else "✗ FAIL"
        print(f"  Overall p95: {overall_p95:.2f}ms (target: <100ms) {p95_status}")

        throughput = self.total_requests / total_duration
        throughput_status = "✓ PASS" if throughput >= 100 else "✗ FAIL"
        print(f"  Throughput: {throughput:.2f} req/s (target: >100 req/s) {throughput_status}")

        error_rate = (sum(self.errors.values()) / self.total_requests * 100) if self.total_requests > 0 else 0
        error_status = "✓ PASS" if error_rate < 1 else "✗ FAIL"
        print(f"  Error Rate: {error_rate:.2f}% (target: <1%) {error_status}")

        print("=" * 60)


async def main():
    """Main function."""
    base_url = "http://localhost:8000"
    concurrent_users = 50
    duration_seconds = 60

    if len(sys.argv) > 1:
        base_url = sys.argv[1]
    if len(sys.argv) > 2:
        concurrent_users = int(sys.argv[2])
    if len(sys.argv) > 3:
        duration_seconds = int(sys.argv[3])

    simulator = LoadSimulator(base_url, concurrent_users, duration_seconds)
    await simulator.run()


if __name__ == "__main__":
    asyncio.run(main())
