import threading

from src.application.playback.dispatch import BackgroundDispatcher, InlineDispatcher


def test_inline_dispatcher_runs_and_swallows_errors():
    calls = []

    def boom():
        raise RuntimeError("analytics down")

    dispatcher = InlineDispatcher()
    dispatcher.submit(calls.append, 1)
    dispatcher.submit(boom)
    dispatcher.submit(calls.append, 2)

    assert calls == [1, 2]


def test_background_dispatcher_runs_tasks_off_thread():
    seen = []
    dispatcher = BackgroundDispatcher(maxsize=10)
    try:
        dispatcher.submit(lambda: seen.append(threading.current_thread().name))
        dispatcher.join()
    finally:
        dispatcher.close(timeout=1)

    assert seen == ["playback-dispatch"]


def test_background_dispatcher_drops_when_full():
    gate = threading.Event()
    ran = []
    dispatcher = BackgroundDispatcher(maxsize=1)
    try:
        dispatcher.submit(gate.wait, 5)
        # worker 가 첫 작업을 꺼내 블로킹될 때까지 대기
        while dispatcher._queue.qsize():
            pass
        dispatcher.submit(ran.append, "queued")
        dispatcher.submit(ran.append, "dropped")
        gate.set()
        dispatcher.join()
    finally:
        dispatcher.close(timeout=1)

    assert ran == ["queued"]


def test_closed_dispatcher_ignores_submissions():
    ran = []
    dispatcher = BackgroundDispatcher(maxsize=1)
    dispatcher.close(timeout=1)
    dispatcher.submit(ran.append, 1)
    assert ran == []
