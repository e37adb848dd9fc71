"""Time-ordered push id generation.

Ids are 20 characters: 8 encode the creation time in milliseconds, 12 are
random. The alphabet is in ASCII order, so ids sort lexicographically in
creation order. Ids generated within the same millisecond reuse the previous
random part incremented by one, keeping them strictly increasing.
"""

import secrets
import threading
import time

PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"
TIMESTAMP_LENGTH = 8
RANDOM_LENGTH = 12


class PushIdGenerator:
    """Generates globally unique, roughly time-ordered keys."""

    def __init__(self, clock=None):
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._lock = threading.Lock()
        self._last_time = 0
        self._last_random = [0] * RANDOM_LENGTH

    def __call__(self) -> str:
        with self._lock:
            now = self._clock()
            if now == self._last_time:
                self._increment_random()
            else:
                self._last_random = [secrets.randbelow(64) for _ in range(RANDOM_LENGTH)]
            self._last_time = now

            time_chars = []
            for _ in range(TIMESTAMP_LENGTH):
                time_chars.append(PUSH_CHARS[now % 64])
                now //= 64
            if now:
                raise ValueError("Timestamp does not fit in a push id")

            return "".join(reversed(time_chars)) + "".join(
                PUSH_CHARS[i] for i in self._last_random
            )

    def _increment_random(self):
        i = RANDOM_LENGTH - 1
        while i >= 0 and self._last_random[i] == 63:
            self._last_random[i] = 0
            i -= 1
        # all 63s wraps to zeros; 64**12 ids in one millisecond is not reachable
        if i >= 0:
            self._last_random[i] += 1


def decode_timestamp(push_id: str) -> int:
    """Return the millisecond timestamp encoded in a push id."""
    value = 0
    for char in push_id[:TIMESTAMP_LENGTH]:
        value = value * 64 + PUSH_CHARS.index(char)
    return value


generate_push_id = PushIdGenerator()
