from src.infrastructure.cache.memory_session_store import InMemorySessionStore

from conftest import FakeClock


def test_values_are_copied_not_shared():
    store = InMemorySessionStore(clock=FakeClock())
    value = {"a": [1, 2]}
    store.set("k", value)
    value["a"].append(3)

    loaded = store.get("k")
    loaded["a"].append(4)

    assert store.get("k") == {"a": [1, 2]}


def test_ttl_expiry_against_clock():
    clock = FakeClock()
    store = InMemorySessionStore(clock=clock)
    store.set("k", {"v": 1}, ttl_seconds=10)
    store.set("forever", {"v": 2})

    clock.advance(9)
    assert store.get("k") == {"v": 1}
    clock.advance(1)
    assert store.get("k") is None
    assert store.get("forever") == {"v": 2}
    assert store.ttl("forever") is None


def test_set_without_ttl_clears_previous_expiry():
    clock = FakeClock()
    store = InMemorySessionStore(clock=clock)
    store.set("k", {"v": 1}, ttl_seconds=10)
    store.set("k", {"v": 2})

    clock.advance(100)
    assert store.get("k") == {"v": 2}


def test_sets_and_counters():
    clock = FakeClock()
    store = InMemorySessionStore(clock=clock)

    store.set_add("s", "a", ttl_seconds=5)
    store.set_add("s", "b")
    store.set_remove("s", "a")
    store.set_remove("missing", "a")
    assert store.set_members("s") == {"b"}

    assert store.incr("c") == 1
    assert store.incr("c", ttl_seconds=5) == 2
    assert store.get_counter("c") == 2
    assert store.get_counter("other") == 0

    clock.advance(5)
    assert store.set_members("s") == set()
    assert store.get_counter("c") == 0


def test_delete_and_clear():
    store = InMemorySessionStore(clock=FakeClock())
    store.set("a", {})
    store.set("b", {})
    store.delete("a", "missing")
    assert store.get("a") is None
    assert store.get("b") == {}

    store.clear()
    assert store.get("b") is None
