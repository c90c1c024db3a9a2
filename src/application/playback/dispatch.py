"""
Fire-and-forget 디스패처

분석 / 보안 신호 같은 best-effort 부수효과를 재생 경로에서 분리한다.
- BackgroundDispatcher: bounded queue + daemon worker thread. 큐가 가득 차면 drop.
- InlineDispatcher: 즉시 실행 (테스트 / 관리 커맨드용)
어느 쪽이든 작업 예외는 로그만 남기고 삼킨다.
"""
from __future__ import annotations

import logging
import queue
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

_STOP = object()


class Dispatcher(ABC):
    @abstractmethod
    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        pass

    def close(self, timeout: Optional[float] = None) -> None:
        pass


def _run_safely(fn: Callable[..., Any], args: tuple, kwargs: dict) -> None:
    try:
        fn(*args, **kwargs)
    except Exception as e:
        logger.warning("Background task %s failed: %s", getattr(fn, "__qualname__", fn), e)


class InlineDispatcher(Dispatcher):
    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        _run_safely(fn, args, kwargs)


class BackgroundDispatcher(Dispatcher):
    def __init__(self, maxsize: int = 1000, name: str = "playback-dispatch") -> None:
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._thread = threading.Thread(target=self._worker, name=name, daemon=True)
        self._closed = False
        self._thread.start()

    def _worker(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                fn, args, kwargs = item
                _run_safely(fn, args, kwargs)
            finally:
                self._queue.task_done()

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        if self._closed:
            logger.debug("Dispatcher closed, dropping %s", getattr(fn, "__qualname__", fn))
            return
        try:
            self._queue.put_nowait((fn, args, kwargs))
        except queue.Full:
            logger.warning("Dispatch queue full, dropping %s", getattr(fn, "__qualname__", fn))

    def join(self) -> None:
        """큐에 쌓인 작업이 모두 끝날 때까지 대기"""
        self._queue.join()

    def close(self, timeout: Optional[float] = None) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put(_STOP)
        self._thread.join(timeout)
