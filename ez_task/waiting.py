"""
This module provides waiters for code that is not itself a task's body: blocking the
current thread until a task finishes, or awaiting a task from an asyncio coroutine.

Both register themselves as the task's single waiter, so they cannot be combined with
``await``-ing the same task from another task's body.
"""

import asyncio
import logging
import threading

from ez_task._typing import *
from ez_task.exceptions import WaitTimeout
from ez_task.task import Task

logger = logging.getLogger(__name__)


class _ThreadWaiter:
    """Wakes a thread blocked in :func:`wait`."""

    __slots__ = ("_event", "__weakref__")

    def __init__(self) -> None:
        self._event = threading.Event()

    def resume(self) -> None:
        self._event.set()

    def wait(self, timeout: Optional[float]) -> bool:
        return self._event.wait(timeout)


def wait(task: Task[T], timeout: Optional[float] = None) -> T:
    """
    Block the calling thread until `task` finishes, then return its result.

    Do not call this from the thread that is expected to resume the task, such as the
    thread running the event loop a task's body awaits futures from: it would never wake up.

    Args:
        task: The task to wait on.
        timeout: How many seconds to wait before giving up. None waits forever.

    Raises:
        WaitTimeout: If the task did not finish in time. The task may be waited on again.
        UnboundHandleAwaited: If `task` is empty.
        Exception: Whatever exception the task's body raised.

    Example:
        >>> wait(fetch_price("ETH"), timeout=10)
        1234.5
    """
    if not task.await_ready():
        waiter = _ThreadWaiter()
        if task.await_suspend(waiter) and not waiter.wait(timeout):
            raise WaitTimeout(task, timeout)
    return task.await_resume()


_pending_waiters: Set["_LoopWaiter"] = set()


class _LoopWaiter:
    """Settles an :class:`asyncio.Future` with a task's result, on the future's loop."""

    __slots__ = ("_task", "_fut", "_loop", "__weakref__")

    def __init__(self, task: Task[T], fut: "asyncio.Future[T]") -> None:
        self._task = task
        self._fut = fut
        self._loop = fut.get_loop()

    def resume(self) -> None:
        try:
            self._loop.call_soon_threadsafe(self.settle)
        except RuntimeError:
            # the loop is closed, no one can receive the result anymore
            _pending_waiters.discard(self)
            logger.warning("%s finished after the event loop of %s was closed", self._task, self._fut)

    def settle(self) -> None:
        _pending_waiters.discard(self)
        fut = self._fut
        if fut.cancelled():
            return
        try:
            result = self._task.await_resume()
        except BaseException as e:
            fut.set_exception(e)
        else:
            fut.set_result(result)


def wrap_future(
    task: Task[T], *, loop: Optional[asyncio.AbstractEventLoop] = None
) -> "asyncio.Future[T]":
    """
    Return an :class:`asyncio.Future` that is settled with `task`'s result.

    The task can then be awaited from any asyncio coroutine, whichever thread ends up
    finishing it. Cancelling the returned future does not affect the task.

    Args:
        task: The task to wait on.
        loop: The event loop the future belongs to. Defaults to the running loop.

    Raises:
        UnboundHandleAwaited: If `task` is empty.

    Example:
        >>> async def main():
        ...     return await wrap_future(fetch_price("ETH"))
    """
    if loop is None:
        loop = asyncio.get_running_loop()
    fut = loop.create_future()
    is_ready = task.await_ready()
    waiter = _LoopWaiter(task, fut)
    # the task only keeps a weak reference to its waiter
    _pending_waiters.add(waiter)
    if is_ready or not task.await_suspend(waiter):
        waiter.settle()
    return fut
