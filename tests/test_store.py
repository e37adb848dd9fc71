"""
Store adapter and push id tests.
"""
import fakeredis
import pytest
import redis

from rewardhub.store import RecordNotFound, StoreError
from rewardhub.store.push_ids import PUSH_CHARS, PushIdGenerator, decode_timestamp
from rewardhub.store.redis_store import RedisStore


class FixedClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now=1_700_000_000_000):
        self.now = now

    def __call__(self):
        return self.now


# ============================================================================
# Push Id Tests
# ============================================================================

def test_push_id_shape():
    push_id = PushIdGenerator(FixedClock())()
    assert len(push_id) == 20
    assert all(char in PUSH_CHARS for char in push_id)


def test_push_id_encodes_timestamp():
    clock = FixedClock(1_760_875_200_123)
    assert decode_timestamp(PushIdGenerator(clock)()) == 1_760_875_200_123


def test_push_ids_increase_within_one_millisecond():
    generate = PushIdGenerator(FixedClock())
    ids = [generate() for _ in range(200)]
    assert ids == sorted(ids)
    assert len(set(ids)) == len(ids)
    assert {push_id[:8] for push_id in ids} == {ids[0][:8]}


def test_push_ids_sort_by_creation_time():
    clock = FixedClock()
    generate = PushIdGenerator(clock)
    ids = []
    for _ in range(50):
        ids.append(generate())
        clock.now += 1
    assert ids == sorted(ids)


def test_push_id_alphabet_is_ascii_ordered():
    assert list(PUSH_CHARS) == sorted(PUSH_CHARS)
    assert len(PUSH_CHARS) == 64


# ============================================================================
# Adapter Semantics (both backends)
# ============================================================================

def test_get_all_is_key_ordered(store):
    for record_id in ("b", "c", "a"):
        store.set("things", record_id, {"name": record_id})
    assert list(store.get_all("things")) == ["a", "b", "c"]


def test_collections_are_isolated(store):
    store.set("one", "x", {"v": 1})
    assert store.get("two", "x") is None
    assert store.get_all("two") == {}


def test_create_returns_push_id(store):
    record_id = store.create("things", {"name": "first"})
    assert len(record_id) == 20
    assert store.get("things", record_id) == {"name": "first"}


def test_update_is_shallow_merge(store):
    store.set("things", "a", {"name": "a", "tags": ["x"], "nested": {"k": 1}})
    merged = store.update("things", "a", {"nested": {"j": 2}})
    assert merged == {"name": "a", "tags": ["x"], "nested": {"j": 2}}
    assert store.get("things", "a") == merged


def test_update_missing_raises_and_writes_nothing(store):
    with pytest.raises(RecordNotFound) as exc_info:
        store.update("things", "ghost", {"name": "ghost"})
    assert exc_info.value.record_id == "ghost"
    assert store.get("things", "ghost") is None


def test_update_precondition_can_abort(store):
    store.set("things", "a", {"locked": True})

    def refuse(current):
        if current["locked"]:
            raise ValueError("locked")

    with pytest.raises(ValueError):
        store.update("things", "a", {"locked": False}, precondition=refuse)
    assert store.get("things", "a") == {"locked": True}


def test_update_precondition_extra_fields_win(store):
    store.set("things", "a", {"count": 3})
    merged = store.update(
        "things", "a", {"count": 100, "note": "n"},
        precondition=lambda current: {"count": current["count"] - 1},
    )
    assert merged == {"count": 2, "note": "n"}


def test_upsert_creates_then_merges(store):
    created = store.upsert("settings", "current", {"pool": "1"}, defaults={"createdAt": "t0"})
    assert created == {"pool": "1", "createdAt": "t0"}

    merged = store.upsert("settings", "current", {"pool": "2"}, defaults={"createdAt": "t1"})
    assert merged == {"pool": "2", "createdAt": "t0"}


def test_remove_absent_is_noop(store):
    store.remove("things", "nothing-here")
    store.set("things", "a", {})
    store.remove("things", "a")
    assert store.get_all("things") == {}


def test_ping(store):
    assert store.ping() is True


# ============================================================================
# Redis Backend Tests
# ============================================================================

def test_redis_layout():
    client = fakeredis.FakeRedis(decode_responses=True)
    store = RedisStore(client, namespace="hub")
    store.set("challenges", "abc", {"prize": "10"})
    assert client.hget("hub:challenges", "abc") == '{"prize": "10"}'


def test_redis_errors_become_store_errors():
    client = fakeredis.FakeRedis(decode_responses=True)
    client.set("hub:challenges", "not a hash")
    store = RedisStore(client, namespace="hub")
    with pytest.raises(StoreError):
        store.get_all("challenges")


def test_redis_ping_unreachable():
    client = redis.Redis(host="127.0.0.1", port=1, socket_connect_timeout=0.2)
    assert RedisStore(client).ping() is False
