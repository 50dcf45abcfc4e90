"""
The ez_task library provides :class:`~ez_task.Task`, a self-driving, single-result
asynchronous task built on Python coroutines.

A task starts running its body as soon as it is created, without an event loop. When the
body awaits an operation that is not ready, such as a future completed by a worker thread,
the task suspends and is resumed by that operation, on whichever thread completes it.
Exactly one party may wait on a task: another task's body, a thread blocked in
:func:`~ez_task.wait`, or an asyncio coroutine through :func:`~ez_task.wrap_future`.
The waiter is resumed exactly once, after the task finishes, even if it registers while
the task is finishing on another thread.

Modules and components included:
    - :mod:`~ez_task.task`: :class:`~Task`, :func:`~task` and :func:`~spawn`.
    - :mod:`~ez_task.awaiters`: the awaitable protocol and adapters for futures.
    - :mod:`~ez_task.waiting`: :func:`~wait` and :func:`~wrap_future` for external waiters.
    - :mod:`~ez_task.exceptions`: errors raised by the library.

Examples:
    Chaining tasks across a worker thread:

    >>> from concurrent.futures import ThreadPoolExecutor
    >>> from ez_task import task, wait
    >>> from ez_task.awaiters import from_future
    >>> pool = ThreadPoolExecutor(1)
    >>> @task
    ... async def load(key: str) -> str:
    ...     return await from_future(pool.submit(str.upper, key))
    >>> @task
    ... async def greet(key: str) -> str:
    ...     return "hello " + await load(key)
    >>> wait(greet("world"))
    'hello WORLD'
"""

from ez_task import awaiters, exceptions
from ez_task.awaiters import Awaiter, from_future, ready
from ez_task.exceptions import (
    EzTaskError,
    IncompleteFrameDestroyed,
    InvalidOperation,
    ResultConsumed,
    UnboundHandleAwaited,
    WaitTimeout,
)
from ez_task.task import Task, spawn, task
from ez_task.waiting import wait, wrap_future

__all__ = [
    # modules
    "awaiters",
    "exceptions",
    # core
    "Task",
    "spawn",
    "task",
    # awaiters
    "Awaiter",
    "from_future",
    "ready",
    # waiting
    "wait",
    "wrap_future",
    # exceptions
    "EzTaskError",
    "IncompleteFrameDestroyed",
    "InvalidOperation",
    "ResultConsumed",
    "UnboundHandleAwaited",
    "WaitTimeout",
]
