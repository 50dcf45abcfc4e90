"""
This module defines the awaitable protocol a frame suspends on, and adapters for the
futures that I/O code usually hands out.

Every object a task's body awaits must expose three operations:

- ``await_ready()``: True if the result is already available and no suspension is needed.
- ``await_suspend(continuation)``: called when not ready. Arrange for
  ``continuation.resume()`` to be called once the result is available and return True,
  or return False to continue without suspending.
- ``await_resume()``: return the result, or raise the failure.

Examples:
    Awaiting a :class:`concurrent.futures.Future` completed by a worker thread:

    >>> from concurrent.futures import ThreadPoolExecutor
    >>> from ez_task import task, wait
    >>> from ez_task.awaiters import from_future
    >>> pool = ThreadPoolExecutor(1)
    >>> @task
    ... async def fetch() -> int:
    ...     return await from_future(pool.submit(lambda: 42))
    >>> wait(fetch())
    42
"""

import abc
import asyncio
import concurrent.futures

from ez_task._typing import *
from ez_task.exceptions import NotAwaitable


class Awaiter(Generic[T], metaclass=abc.ABCMeta):
    """
    Base class for objects a task's body can suspend on.

    Awaiting an :class:`Awaiter` hands the awaiter itself to the frame driving the body,
    which runs the protocol and only resumes the body once the awaiter is ready.

    See Also:
        :meth:`ez_task._frame.FrameBase.await_transform`
    """

    __slots__ = ()

    @abc.abstractmethod
    def await_ready(self) -> bool:
        """Return True if :meth:`await_resume` can be called right away."""

    @abc.abstractmethod
    def await_suspend(self, continuation: Continuation) -> bool:
        """
        Register `continuation` to be resumed once a result is available.

        Args:
            continuation: The suspended party, usually a frame.

        Returns:
            True if the caller is now suspended, False if it should continue immediately.
        """

    @abc.abstractmethod
    def await_resume(self) -> T:
        """Return the result, or raise the failure."""

    def __await__(self) -> Generator["Awaiter[T]", None, T]:
        yield self
        return self.await_resume()


@final
class Ready(Awaiter[T]):
    """An awaiter whose value is available from the start."""

    __slots__ = ("_value",)

    def __init__(self, value: T) -> None:
        self._value = value

    def __repr__(self) -> str:
        return f"<Ready {self._value!r}>"

    def await_ready(self) -> bool:
        return True

    def await_suspend(self, continuation: Continuation) -> bool:
        return False

    def await_resume(self) -> T:
        return self._value


def ready(value: T = None) -> Ready[T]:
    """
    Wrap `value` in an awaiter that never suspends.

    Example:
        >>> @task
        ... async def answer() -> int:
        ...     return await ready(42)
        >>> answer().done()
        True
    """
    return Ready(value)


FutureLike = Union["concurrent.futures.Future[Any]", "asyncio.Future[Any]"]


@final
class FutureAwaiter(Awaiter[T]):
    """
    Adapts a :class:`concurrent.futures.Future` or an :class:`asyncio.Future` to the
    awaitable protocol.

    The suspended frame is resumed from the future's done callback, which means:

    - for a :class:`concurrent.futures.Future`, on the thread that completed it
      (or right away if it completed while the callback was being added);
    - for an :class:`asyncio.Future`, on the thread running its event loop.
    """

    __slots__ = ("_fut",)

    def __init__(self, fut: FutureLike) -> None:
        self._fut = fut

    def __repr__(self) -> str:
        return f"<FutureAwaiter for {self._fut!r}>"

    def await_ready(self) -> bool:
        return self._fut.done()

    def await_suspend(self, continuation: Continuation) -> bool:
        fut = self._fut
        callback = lambda _: continuation.resume()
        if asyncio.isfuture(fut):
            loop = fut.get_loop()
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is not loop:
                # asyncio futures may only be touched from their loop's thread
                loop.call_soon_threadsafe(fut.add_done_callback, callback)
                return True
        fut.add_done_callback(callback)
        return True

    def await_resume(self) -> T:
        return self._fut.result()


def from_future(fut: FutureLike) -> FutureAwaiter[Any]:
    """
    Wrap `fut` so a task's body can await it.

    :class:`asyncio.Future` objects may also be awaited directly; this is required for
    :class:`concurrent.futures.Future`, which is not awaitable on its own.
    """
    return FutureAwaiter(fut)


def as_awaiter(obj: Any) -> Awaiter:
    """
    Return the :class:`Awaiter` for an object yielded by a task's body.

    Raises:
        NotAwaitable: If a frame cannot suspend on `obj`.
    """
    if isinstance(obj, Awaiter):
        return obj
    if asyncio.isfuture(obj):
        # the frame drives the future now, not an asyncio.Task
        obj._asyncio_future_blocking = False
        return FutureAwaiter(obj)
    if isinstance(obj, concurrent.futures.Future):
        return FutureAwaiter(obj)

    raise NotAwaitable(obj)
