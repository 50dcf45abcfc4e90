"""
This module provides :class:`Task`, the handle that owns a running task's frame, and the
two ways to start one: the :func:`task` decorator and :func:`spawn`.

A task starts running the moment it is created, on the caller's thread, until its body
first awaits something that is not ready. From there it is resumed by whatever it is
suspended on, possibly on another thread. At most one party may wait on a task, either
another task's body (``await other_task``) or one of the helpers in :mod:`ez_task.waiting`.

Examples:
    >>> from ez_task import task
    >>> @task
    ... async def answer() -> int:
    ...     return 42
    >>> t = answer()
    >>> t.done()
    True
    >>> t.await_resume()
    42

See Also:
    :mod:`ez_task._frame` for the frame a task owns.
"""

import functools
import inspect
import os
import weakref

from ez_task import ENVIRONMENT_VARIABLES as ENVS
from ez_task._frame import FrameBase, ValueFrame, VoidFrame
from ez_task._typing import *
from ez_task.awaiters import Awaiter
from ez_task.exceptions import (
    FunctionNotAsync,
    IncompleteFrameDestroyed,
    InvalidOperation,
    UnboundHandleAwaited,
)


@final
class Task(Awaiter[T]):
    """
    The exclusive owner of one task frame.

    A task can be moved into another handle with :meth:`move` or :meth:`assign` but never
    copied. When a handle is destroyed, explicitly with :meth:`destroy`, by leaving a
    ``with`` block, or by garbage collection, its frame must already be finished.

    It implements the awaitable protocol so another task's body can ``await`` it:

    - :meth:`await_ready` reports whether the task has finished, without locking for as
      long as the body has never been suspended.
    - :meth:`await_suspend` registers the waiter, unless the task finished in the meantime.
    - :meth:`await_resume` returns the value or re-raises the body's exception.

    Note:
        Only one party may wait on a task. Awaiting the same task twice is not detected
        and the first waiter may never be resumed.

        A finished task resumes its waiter with a nested call, and a body that runs to
        its first suspension runs inside the call that created it. Each level of tasks
        awaiting tasks therefore adds Python stack frames, and chains nested more than a
        couple of hundred levels deep can hit :class:`RecursionError`.
    """

    __slots__ = ("_frame",)

    def __init__(self) -> None:
        """Create an empty handle, not bound to any frame."""
        self._frame: Optional[FrameBase] = None

    @classmethod
    def _bind(cls, frame: FrameBase) -> "Task[T]":
        handle = cls()
        handle._frame = frame
        return handle

    def __repr__(self) -> str:
        frame = self._frame
        if frame is None:
            return f"<Task at {hex(id(self))} [empty]>"
        status = "done" if frame.done else "pending"
        return f"<Task {frame._name or 'object'} at {hex(id(self))} [{status}]>"

    def __bool__(self) -> bool:
        return self._frame is not None

    def __copy__(self) -> NoReturn:
        raise TypeError(f"{self} cannot be copied, use `move()` to transfer ownership")

    def __deepcopy__(self, memo: Any) -> NoReturn:
        raise TypeError(f"{self} cannot be copied, use `move()` to transfer ownership")

    def __reduce__(self) -> NoReturn:
        raise TypeError(f"{self} cannot be pickled")

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.destroy()

    def __del__(self) -> None:
        frame = getattr(self, "_frame", None)
        if frame is None:
            return
        try:
            self.destroy()
        except IncompleteFrameDestroyed:
            frame.logger.critical("%s was garbage collected before its frame finished", self)
            if ENVS.ABORT_ON_INCOMPLETE_DESTROY:
                os.abort()
            raise

    def move(self) -> "Task[T]":
        """
        Transfer the frame to a new handle. This handle becomes empty.

        Example:
            >>> t2 = t1.move()
            >>> bool(t1), bool(t2)
            (False, True)
        """
        moved = Task()
        moved._frame, self._frame = self._frame, None
        return moved

    def assign(self, other: "Task[T]") -> Self:
        """
        Take `other`'s frame, leaving `other` empty.

        If this handle already owns a frame, that frame is destroyed first.

        Raises:
            IncompleteFrameDestroyed: If this handle's current frame has not finished.
                Neither handle is changed in that case.
        """
        if other is self:
            return self
        self.destroy()
        self._frame, other._frame = other._frame, None
        return self

    def destroy(self) -> None:
        """
        Release the frame this handle owns, if any. The handle becomes empty.

        Raises:
            IncompleteFrameDestroyed: If the frame has not finished. The handle keeps
                ownership of it.
        """
        frame = self._frame
        if frame is None:
            return
        frame.destroy()
        self._frame = None

    def done(self) -> bool:
        """
        Return True if the task's body has finished.

        Unlike :meth:`await_ready` this never raises, and returns False for an empty handle.
        """
        frame = self._frame
        return frame is not None and frame.done

    def await_ready(self) -> bool:
        """
        Return True if the task has finished and its result can be retrieved.

        Raises:
            UnboundHandleAwaited: If the handle is empty.
        """
        frame = self._frame
        if frame is None:
            raise UnboundHandleAwaited(self, "await_ready")
        if frame.is_sync:
            # the body never suspended, it ran to completion on the creating stack
            return True
        with frame.lock:
            return frame.done

    def await_suspend(self, continuation: Continuation) -> bool:
        """
        Register `continuation` to be resumed when the task finishes.

        Only called after :meth:`await_ready` returned False.

        Args:
            continuation: The waiting party. Only a weak reference to it is kept, the
                caller is responsible for keeping it alive while it waits.

        Returns:
            False if the task finished in the meantime and the caller should continue
            right away, True if `continuation` will be resumed exactly once, after the
            task finishes.

        Raises:
            UnboundHandleAwaited: If the handle is empty.
        """
        frame = self._frame
        if frame is None:
            raise UnboundHandleAwaited(self, "await_suspend")
        with frame.lock:
            if frame.done:
                return False
            frame.parent = weakref.ref(continuation)
        return True

    def await_resume(self) -> T:
        """
        Retrieve the task's result.

        The value is moved out of the frame: it can only be retrieved once.

        Returns:
            The value the body returned, or None for a void task.

        Raises:
            Exception: Whatever exception the body raised, re-raised as is.
            UnboundHandleAwaited: If the handle is empty.
            InvalidOperation: If the task has not finished.
            ResultConsumed: If the result was already retrieved.
        """
        frame = self._frame
        if frame is None:
            raise UnboundHandleAwaited(self, "await_resume")
        if not frame.done:
            raise InvalidOperation(f"{self} has not finished, its result is not available yet")
        exc = frame.exception
        if exc is not None:
            frame.exception = None
            frame._result_taken = True
            raise exc
        return frame.take_result()


def spawn(coro: Coroutine[Any, Any, T], *, void: bool = False) -> Task[T]:
    """
    Create a task that runs `coro` and start it immediately.

    The body runs on the calling thread until it first awaits something that is not
    ready, or until it finishes.

    Args:
        coro: The coroutine object to drive.
        void: If True the body must not return a value, and the task yields None.

    Raises:
        TypeError: If `coro` is not a coroutine object.

    Example:
        >>> async def body():
        ...     return "hi"
        >>> spawn(body()).await_resume()
        'hi'
    """
    if not inspect.iscoroutine(coro):
        raise TypeError(f"`coro` must be a coroutine object. You passed {coro!r}.")
    frame = (VoidFrame if void else ValueFrame)(coro)
    handle = frame.get_return_object()
    if not frame.initial_suspend():
        frame.resume()
    return handle


@overload
def task(coro_fn: CoroFn[P, T]) -> Callable[P, Task[T]]: ...


@overload
def task(
    coro_fn: None = None, *, void: Optional[bool] = None
) -> Callable[[CoroFn[P, T]], Callable[P, Task[T]]]: ...


def task(coro_fn=None, *, void=None):
    """
    Decorate an ``async def`` function so that calling it starts and returns a :class:`Task`.

    Args:
        coro_fn: The coroutine function to decorate.
        void: Whether the task produces no value. By default this is inferred from the
            return annotation: ``-> None`` makes a void task.

    Raises:
        FunctionNotAsync: If `coro_fn` was not defined with ``async def``.

    Examples:
        >>> @task
        ... async def double(x: int) -> int:
        ...     return x * 2
        >>> double(21).await_resume()
        42

        >>> @task(void=True)
        ... async def log(msg):
        ...     print(msg)
    """
    if coro_fn is None:
        return functools.partial(task, void=void)
    if not inspect.iscoroutinefunction(coro_fn):
        raise FunctionNotAsync(coro_fn)
    if void is None:
        void = _returns_none(coro_fn)

    @functools.wraps(coro_fn)
    def task_wrap(*args: P.args, **kwargs: P.kwargs) -> Task[T]:
        return spawn(coro_fn(*args, **kwargs), void=void)

    return task_wrap


def _returns_none(coro_fn: Callable[..., Any]) -> bool:
    annotation = getattr(coro_fn, "__annotations__", {}).get("return", inspect.Signature.empty)
    return annotation is None or annotation is type(None) or annotation == "None"
