import copy
import logging
import pickle
import sys
from concurrent.futures import Future

import pytest

from ez_task import Task, spawn, task
from ez_task._frame import _NOT_SET, ValueFrame, VoidFrame, live_frames
from ez_task.exceptions import (
    FunctionNotAsync,
    IncompleteFrameDestroyed,
    InvalidOperation,
    ResultConsumed,
    UnboundHandleAwaited,
)
from tests.fixtures import RecordingLock, add_one, answer, nothing, repeat, track_frames


def test_sync_body_is_ready_immediately():
    t = answer()
    assert t.done()
    # the body never suspended, so readiness must not need the lock
    t._frame.lock = lock = RecordingLock()
    assert t.await_ready() is True
    assert lock.acquired == 0
    assert t.await_resume() == 42


def test_suspended_body_checks_readiness_under_lock():
    fut = Future()
    t = add_one(fut)
    assert not t.done()
    t._frame.lock = lock = RecordingLock()
    assert t.await_ready() is False
    assert lock.acquired == 1
    fut.set_result(1)
    assert t.await_ready() is True
    assert t.await_resume() == 2


def test_value_is_moved_out():
    t = answer()
    assert t.await_resume() == 42
    assert t._frame.value is _NOT_SET
    with pytest.raises(ResultConsumed):
        t.await_resume()


def test_body_exception_is_deferred_until_retrieval():
    err = ValueError("x")

    @task
    async def fails() -> int:
        raise err

    # creating the task does not raise
    t = fails()
    assert t.done()
    with pytest.raises(ValueError, match="x") as exc_info:
        t.await_resume()
    assert exc_info.value is err
    with pytest.raises(ResultConsumed):
        t.await_resume()


def test_exception_after_suspension():
    fut = Future()

    @task
    async def fails_later() -> int:
        await_result = await add_one(fut)
        raise RuntimeError(f"got {await_result}")

    t = fails_later()
    fut.set_result(1)  # must not raise on the completing side
    assert t.done()
    with pytest.raises(RuntimeError, match="got 2"):
        t.await_resume()


def test_result_before_done():
    fut = Future()
    t = add_one(fut)
    with pytest.raises(InvalidOperation):
        t.await_resume()
    fut.set_result(0)
    assert t.await_resume() == 1


def test_void_task():
    t = nothing()
    assert isinstance(t._frame, VoidFrame)
    assert t.done()
    assert t.await_resume() is None
    with pytest.raises(ResultConsumed):
        t.await_resume()


def test_void_inferred_from_annotation():
    assert isinstance(answer()._frame, ValueFrame)

    @task
    async def unannotated():
        return None

    assert isinstance(unannotated()._frame, ValueFrame)

    @task(void=True)
    async def explicit():
        pass

    assert isinstance(explicit()._frame, VoidFrame)


def test_void_task_returning_a_value():
    @task(void=True)
    async def returns_something():
        return 1

    t = returns_something()
    assert t.done()
    with pytest.raises(TypeError, match="is void but returned 1"):
        t.await_resume()


def test_empty_handle():
    t = Task()
    assert not t
    assert not t.done()
    assert repr(t).endswith("[empty]>")
    with pytest.raises(UnboundHandleAwaited):
        t.await_ready()
    with pytest.raises(UnboundHandleAwaited):
        t.await_suspend(object())
    with pytest.raises(UnboundHandleAwaited):
        t.await_resume()
    # destroying an empty handle is a no-op
    t.destroy()


def test_move():
    t1 = answer()
    frame = t1._frame
    t2 = t1.move()
    assert not t1 and t2
    assert t2._frame is frame
    with pytest.raises(UnboundHandleAwaited):
        t1.await_ready()
    assert t2.await_resume() == 42


def test_assign():
    target = nothing()
    source = answer()
    frame = source._frame
    assert target.assign(source) is target
    assert not source
    assert target._frame is frame
    assert target.await_resume() == 42


def test_assign_over_running_frame():
    fut = Future()
    target = add_one(fut)
    source = answer()
    with pytest.raises(IncompleteFrameDestroyed):
        target.assign(source)
    # neither handle changed
    assert source.await_resume() == 42
    fut.set_result(1)
    assert target.await_resume() == 2


def test_cannot_copy():
    t = answer()
    with pytest.raises(TypeError):
        copy.copy(t)
    with pytest.raises(TypeError):
        copy.deepcopy(t)
    with pytest.raises(TypeError):
        pickle.dumps(t)


def test_destroy_finished_task():
    t = answer()
    t.destroy()
    assert not t


def test_destroy_running_task():
    fut = Future()
    t = add_one(fut)
    with pytest.raises(IncompleteFrameDestroyed):
        t.destroy()
    # the handle still owns the frame
    assert t
    fut.set_result(1)
    t.destroy()
    assert not t


def test_context_manager():
    with answer() as t:
        assert t.await_resume() == 42
    assert not t

    fut = Future()
    with pytest.raises(IncompleteFrameDestroyed):
        with add_one(fut) as t:
            pass
    fut.set_result(1)


def test_garbage_collected_while_running(caplog, monkeypatch):
    reported = []
    monkeypatch.setattr(sys, "unraisablehook", reported.append)
    fut = Future()
    t = add_one(fut)
    with caplog.at_level(logging.CRITICAL):
        del t
    assert len(reported) == 1
    assert isinstance(reported[0].exc_value, IncompleteFrameDestroyed)
    assert "garbage collected before its frame finished" in caplog.text
    # the body can still finish with no one waiting
    fut.set_result(1)


def test_repr():
    fut = Future()
    t = add_one(fut)
    assert repr(t).startswith("<Task add_one at ")
    assert repr(t).endswith("[pending]>")
    fut.set_result(1)
    assert repr(t).endswith("[done]>")


def test_decorator_rejects_sync_functions():
    def not_async():
        return 1

    with pytest.raises(FunctionNotAsync):
        task(not_async)


def test_spawn():
    async def body(x):
        return x * 2

    t = spawn(body(21))
    assert t.await_resume() == 42
    with pytest.raises(TypeError):
        spawn(body)


@repeat
def test_frames_are_counted(i, track_frames):
    before = live_frames()
    t = answer()
    assert live_frames() == before + 1
    t.destroy()
    assert live_frames() == before
