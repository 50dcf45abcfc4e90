"""
This module defines custom exceptions for the ez_task library.

Exceptions raised inside a task's body are not wrapped: they are captured by the
frame and re-raised, unchanged, when the task's result is retrieved.
"""

from ez_task._typing import *

if TYPE_CHECKING:
    from ez_task._frame import FrameBase
    from ez_task.task import Task


class EzTaskError(Exception):
    """
    Base exception class for errors raised by the ez_task library itself.
    """


class InvalidOperation(EzTaskError):
    """
    Raised when a task is used in a way its awaitable protocol does not allow.
    """


class UnboundHandleAwaited(InvalidOperation):
    """
    Raised when the awaitable protocol is invoked on an empty :class:`~ez_task.Task`.

    A handle is empty when it was default-constructed or when its frame was moved
    into another handle.
    """

    def __init__(self, task: "Task", operation: str):
        """
        Initializes the UnboundHandleAwaited exception.

        Args:
            task: The empty handle.
            operation: The name of the protocol operation that was attempted.
        """
        err = f"cannot {operation} on an empty task: {task}"
        err += "\nThe handle was never bound to a frame or its frame was moved out with `move()` or `assign()`."
        super().__init__(err)
        self.task = task


class ResultConsumed(InvalidOperation):
    """
    Raised when the result of a task is retrieved a second time.

    Retrieval moves the value (or the captured exception) out of the frame.
    """

    def __init__(self, frame: "FrameBase"):
        """
        Initializes the ResultConsumed exception.

        Args:
            frame: The frame whose result was already retrieved.
        """
        super().__init__(f"the result of {frame} has already been retrieved")
        self.frame = frame


class IncompleteFrameDestroyed(EzTaskError, AssertionError):
    """
    Raised when a :class:`~ez_task.Task` is destroyed while its frame is still running.

    This is a programming error, not a recoverable condition: whatever the body is
    suspended on would later resume a frame that no longer has an owner.

    See Also:
        :data:`~ez_task.ENVIRONMENT_VARIABLES.ABORT_ON_INCOMPLETE_DESTROY`
    """

    def __init__(self, frame: "FrameBase"):
        """
        Initializes the IncompleteFrameDestroyed exception.

        Args:
            frame: The frame that has not finished yet.
        """
        err = f"{frame} must be finished before its task is destroyed."
        err += "\nKeep the task alive until `done()` is True, or wait for it with `ez_task.waiting.wait`."
        super().__init__(err)
        self.frame = frame


class FunctionNotAsync(EzTaskError, TypeError):
    """
    Raised when a function expected to be async is not.
    """

    def __init__(self, fn):
        """
        Initializes the FunctionNotAsync exception.

        Args:
            fn: The function that is not async.
        """
        super().__init__(
            f"`coro_fn` must be a coroutine function defined with `async def`. You passed {fn}."
        )


class NotAwaitable(EzTaskError, TypeError):
    """
    Raised inside a task's body when it awaits something a frame cannot suspend on.

    Frames can only suspend on :class:`~ez_task.awaiters.Awaiter` objects (tasks
    included) and on :class:`asyncio.Future` objects.
    """

    def __init__(self, yielded: Any):
        """
        Initializes the NotAwaitable exception.

        Args:
            yielded: The object the body's await yielded to the frame.
        """
        err = f"a task body cannot suspend on {yielded!r}."
        err += "\nAwait an `ez_task.awaiters.Awaiter`, a `Task`, an `asyncio.Future`, "
        err += "or wrap a `concurrent.futures.Future` with `ez_task.awaiters.from_future`."
        super().__init__(err)
        self.yielded = yielded


class WaitTimeout(EzTaskError, TimeoutError):
    """
    Raised by :func:`~ez_task.waiting.wait` when the task does not finish in time.
    """

    def __init__(self, task: "Task", timeout: float):
        """
        Initializes the WaitTimeout exception.

        Args:
            task: The task that was waited on.
            timeout: The number of seconds waited.
        """
        super().__init__(f"{task} did not finish within {timeout} seconds")
        self.task = task
        self.timeout = timeout
