"""
This module provides type definitions used throughout the `ez_task` library.

Examples:
    Any object with a ``resume`` method can be registered as the waiter of a task:

    ```python
    from ez_task._typing import Continuation

    class PrintOnResume:
        def resume(self) -> None:
            print("resumed")

    waiter: Continuation = PrintOnResume()
    ```
"""

from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Coroutine,
    Generator,
    Generic,
    NoReturn,
    Optional,
    Protocol,
    Set,
    Tuple,
    Type,
    TypeVar,
    Union,
    final,
    overload,
    runtime_checkable,
)

from typing_extensions import ParamSpec, Self

T = TypeVar("T")

E = TypeVar("E", bound=BaseException)

P = ParamSpec("P")
"""A :class:`ParamSpec` used everywhere in the lib."""

CoroFn = Callable[P, Coroutine[Any, Any, T]]
"Type alias for a function defined with `async def`."


@runtime_checkable
class Continuation(Protocol):
    """
    Protocol for anything that can be resumed once a task it waits on has finished.

    Frames implement it, so do the external waiters in :mod:`ez_task.waiting`.
    """

    def resume(self) -> None: ...
