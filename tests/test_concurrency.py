from src.application.playback import keys

from conftest import VIDEO_ID


def test_fourth_session_evicts_least_recently_active(manager, clock, security, store):
    ids = []
    for _ in range(3):
        ids.append(manager.create_session(VIDEO_ID, "user-1").session.session_id)
        clock.advance(5)

    # 첫 세션이 최근에 활동했으므로 두 번째 세션이 가장 오래 쉬고 있다
    manager.track_event(ids[0], "play", 0)
    clock.advance(5)

    fourth = manager.create_session(VIDEO_ID, "user-1").session.session_id

    assert manager.get_session(ids[1]) is None
    assert manager.get_session(ids[0]) is not None
    assert manager.get_session(ids[2]) is not None
    assert manager.get_session(fourth) is not None
    assert store.get(keys.watch_history_key(ids[1])) is not None

    abuse = [e for e in security.events if e["kind"] == "resource_abuse"]
    assert len(abuse) == 1
    assert abuse[0]["context"]["terminatedSessionIds"] == [ids[1]]
    assert abuse[0]["context"]["maxSessions"] == 3
    assert abuse[0]["user_id"] == "user-1"


def test_limit_is_per_user(manager, security):
    for user in ("a", "b", "c", "d"):
        manager.create_session(VIDEO_ID, user)
    for _ in range(2):
        manager.create_session(VIDEO_ID, "a")

    assert security.events == []
    assert len(manager.limiter.open_sessions("a")) == 3


def test_vanished_sessions_are_pruned_from_index(manager, store):
    created = manager.create_session(VIDEO_ID, "user-1").session
    store.delete(keys.session_key(created.session_id))

    assert manager.limiter.open_sessions("user-1") == []
    assert store.set_members(keys.user_sessions_key("user-1")) == set()


def test_ended_session_frees_its_slot(manager, security):
    first = manager.create_session(VIDEO_ID, "user-1").session.session_id
    manager.create_session(VIDEO_ID, "user-1")
    manager.create_session(VIDEO_ID, "user-1")

    manager.end_session(first)
    manager.create_session(VIDEO_ID, "user-1")

    assert security.events == []
    assert len(manager.limiter.open_sessions("user-1")) == 3
