"""
This module implements the frame of a task: the state shared between a task's body
and whoever waits on it, the driver that steps the body's coroutine, and the final
resolution that hands control to the waiter once the body finishes.

A frame is never exposed directly. :func:`ez_task.spawn` creates one, takes the
:class:`~ez_task.Task` handle that owns it from :meth:`FrameBase.get_return_object`,
and runs the body right away.
"""

import abc
import logging
import threading
import weakref

from ez_task import ENVIRONMENT_VARIABLES as ENVS
from ez_task._loggable import _LoggerMixin
from ez_task._typing import *
from ez_task.awaiters import Awaiter, as_awaiter
from ez_task.exceptions import IncompleteFrameDestroyed, InvalidOperation, ResultConsumed

if TYPE_CHECKING:
    from ez_task.task import Task


if ENVS.DEBUG_MODE:
    logging.getLogger("ez_task").setLevel(logging.DEBUG)


class _NotSet:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<not set>"


_NOT_SET = _NotSet()


__live_frames = 0
__live_frames_lock = threading.Lock()


def _count_frame(delta: int) -> None:
    global __live_frames
    with __live_frames_lock:
        __live_frames += delta


def live_frames() -> int:
    """
    Return the number of frames created and not yet destroyed.

    Only frames created while :data:`~ez_task.ENVIRONMENT_VARIABLES.TRACK_FRAMES` is
    enabled are counted.
    """
    return __live_frames


@final
class _Noop:
    """The resumption target used when no one is waiting on a finished frame."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<noop continuation>"

    def resume(self) -> None:
        return None


NOOP = _Noop()


class FinalAwaiter:
    """
    The last suspension of every frame.

    It always suspends, since a finished body must never run again, and picks which
    continuation gets control next: the registered parent, or :data:`NOOP`.
    """

    __slots__ = ()

    def await_ready(self) -> bool:
        return False

    def await_suspend(self, frame: "FrameBase") -> Continuation:
        """
        Mark `frame` completed and return the continuation to resume.

        The completion flag and the parent are read under the same lock
        :meth:`ez_task.Task.await_suspend` registers the parent under, so a waiter
        either sees the frame completed or is returned here, never both.
        """
        with frame.lock:
            frame._done = True
            parent_ref = frame.parent
        if parent_ref is None:
            return NOOP
        parent = parent_ref()
        if parent is None:
            frame.logger.debug("%s finished after its waiter was garbage collected", frame)
            return NOOP
        return parent

    def await_resume(self) -> None:
        return None


_FINAL_AWAITER = FinalAwaiter()


class FrameBase(_LoggerMixin, metaclass=abc.ABCMeta):
    """
    The suspendable state of one task's body.

    Holds the lock, the weak reference to the waiting parent, the captured exception
    and the all-synchronous flag. Subclasses add result storage.

    The all-synchronous flag, :attr:`is_sync`, starts True and turns False the first
    time the body awaits something that is not ready. While it is True the whole body
    has run on the stack of whoever created the task, so no other thread can be
    touching the frame and :meth:`ez_task.Task.await_ready` can skip the lock.
    """

    def __init__(self, coro: Coroutine[Any, Any, Any]) -> None:
        self._coro = coro
        self._name = getattr(coro, "__qualname__", "")
        self.lock = threading.Lock()
        self.parent: Optional["weakref.ref[Continuation]"] = None
        self.exception: Optional[BaseException] = None
        self.is_sync = True
        self._done = False
        self._result_taken = False
        self._destroyed = False
        self._tracked = bool(ENVS.TRACK_FRAMES)
        if self._tracked:
            _count_frame(1)

    def __repr__(self) -> str:
        status = "done" if self._done else "pending"
        return f"<{type(self).__name__} {self._name or 'object'} at {hex(id(self))} [{status}]>"

    @property
    def done(self) -> bool:
        """True once the body has finished and final resolution has started."""
        return self._done

    def get_return_object(self) -> "Task":
        from ez_task.task import Task

        return Task._bind(self)

    def initial_suspend(self) -> bool:
        """Frames never pre-suspend: the body runs as soon as the task exists."""
        return False

    def final_suspend(self) -> FinalAwaiter:
        return _FINAL_AWAITER

    def await_transform(self, awaitable: Any) -> Tuple[Awaiter, bool]:
        """
        Intercept an object the body awaits.

        Returns:
            The awaiter for `awaitable` and whether it was ready. :attr:`is_sync` is
            cleared for good if it was not.

        Raises:
            NotAwaitable: If the frame cannot suspend on `awaitable`.
        """
        awaiter = as_awaiter(awaitable)
        is_ready = awaiter.await_ready()
        if not is_ready:
            self.is_sync = False
        return awaiter, is_ready

    def unhandled_exception(self, exc: BaseException) -> None:
        """Store an exception raised by the body until the result is retrieved."""
        self.exception = exc

    @abc.abstractmethod
    def _on_return(self, value: Any) -> None:
        """Handle the value the body returned."""

    @abc.abstractmethod
    def take_result(self) -> Any:
        """Move the result out of the frame. Only callable once."""

    def resume(self) -> None:
        """
        Run the body until it suspends on something that is not ready, or finishes.

        This is the frame's continuation. It may be called from any thread, but only
        by whoever the body is suspended on, and only once per suspension.
        """
        coro = self._coro
        to_throw: Optional[BaseException] = None
        while True:
            try:
                if to_throw is None:
                    yielded = coro.send(None)
                else:
                    exc, to_throw = to_throw, None
                    yielded = coro.throw(exc)
            except StopIteration as e:
                self._on_return(e.value)
                break
            except BaseException as e:
                self.unhandled_exception(e)
                break

            try:
                awaiter, is_ready = self.await_transform(yielded)
                if is_ready:
                    continue
                if self.debug_logs_enabled:
                    self.logger.debug("%s suspending on %s", self, awaiter)
                if awaiter.await_suspend(self):
                    # another thread may own the frame from here on
                    return
            except Exception as e:
                to_throw = e

        self._final_resolution()

    def _final_resolution(self) -> None:
        # read before resuming, the waiter may take the exception out of the frame
        exc = self.exception
        final = self.final_suspend()
        target = final.await_suspend(self)
        if self.debug_logs_enabled:
            self.logger.debug("%s finished, resuming %s", self, target)
        target.resume()
        if isinstance(exc, (KeyboardInterrupt, SystemExit)):
            raise exc

    def destroy(self) -> None:
        """
        Release the frame. Only the owning :class:`~ez_task.Task` calls this.

        Raises:
            IncompleteFrameDestroyed: If the body has not finished.
        """
        if not self._done:
            raise IncompleteFrameDestroyed(self)
        if self._destroyed:
            raise InvalidOperation(f"{self} was already destroyed")
        self._destroyed = True
        self._coro.close()
        if self._tracked:
            _count_frame(-1)


class ValueFrame(FrameBase):
    """A frame whose body produces a value."""

    def __init__(self, coro: Coroutine[Any, Any, Any]) -> None:
        super().__init__(coro)
        self.value: Any = _NOT_SET

    def return_value(self, value: Any) -> None:
        """Store the value the body returned."""
        self.value = value

    _on_return = return_value

    def take_result(self) -> Any:
        if self._result_taken:
            raise ResultConsumed(self)
        self._result_taken = True
        value, self.value = self.value, _NOT_SET
        return value


class VoidFrame(FrameBase):
    """A frame whose body produces nothing."""

    def return_void(self) -> None:
        """Nothing to store; finishing is enough."""

    def _on_return(self, value: Any) -> None:
        if value is not None:
            self.unhandled_exception(
                TypeError(f"{self._name or 'task body'} is void but returned {value!r}")
            )
            return
        self.return_void()

    def take_result(self) -> None:
        if self._result_taken:
            raise ResultConsumed(self)
        self._result_taken = True
