import threading
from concurrent.futures import Future

import pytest

from ez_task import ENVIRONMENT_VARIABLES, Awaiter, task
from ez_task.awaiters import from_future

repeat = pytest.mark.parametrize("i", range(10))


class Parent:
    """A continuation that records every time it is resumed, and on which thread."""

    def __init__(self):
        self.resumed_on = []
        self.event = threading.Event()
        self._lock = threading.Lock()

    def resume(self):
        with self._lock:
            self.resumed_on.append(threading.current_thread())
        self.event.set()

    @property
    def resume_count(self) -> int:
        return len(self.resumed_on)


class RecordingLock:
    """Stands in for a frame's lock and counts how often it is taken."""

    def __init__(self):
        self._lock = threading.Lock()
        self.acquired = 0

    def __enter__(self):
        self._lock.acquire()
        self.acquired += 1
        return self

    def __exit__(self, *exc_info):
        self._lock.release()


class Gate(Awaiter[str]):
    """A hand-rolled sub-operation that is opened explicitly, from any thread."""

    def __init__(self):
        self._continuation = None
        self._value = None

    def await_ready(self) -> bool:
        return self._value is not None

    def await_suspend(self, continuation) -> bool:
        self._continuation = continuation
        return True

    def await_resume(self) -> str:
        return self._value

    def open(self, value: str) -> None:
        self._value = value
        self._continuation.resume()


@pytest.fixture
def track_frames(monkeypatch):
    monkeypatch.setattr(ENVIRONMENT_VARIABLES, "TRACK_FRAMES", True)


@task
async def answer() -> int:
    return 42


@task
async def add_one(fut: "Future[int]") -> int:
    return await from_future(fut) + 1


@task
async def nothing() -> None:
    pass
