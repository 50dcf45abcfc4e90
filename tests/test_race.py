import threading
from concurrent.futures import Future, ThreadPoolExecutor

from ez_task import task, wait
from ez_task.awaiters import from_future
from tests.fixtures import Parent, add_one, repeat


@repeat
def test_registration_races_completion(i):
    outcomes = {"ready": 0, "suspended": 0, "finished meanwhile": 0}
    for _ in range(200):
        fut = Future()
        t = add_one(fut)
        parent = Parent()
        barrier = threading.Barrier(2)
        outcome = []

        def complete():
            barrier.wait()
            fut.set_result(i)

        def register():
            barrier.wait()
            if t.await_ready():
                outcome.append("ready")
            elif t.await_suspend(parent):
                outcome.append("suspended")
            else:
                outcome.append("finished meanwhile")

        threads = [threading.Thread(target=complete), threading.Thread(target=register)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        # resumed exactly once if it suspended, never otherwise
        if outcome == ["suspended"]:
            assert parent.event.wait(5)
            assert parent.resume_count == 1
        else:
            assert parent.resume_count == 0
        assert t.await_resume() == i + 1
        t.destroy()
        outcomes[outcome[0]] += 1
    assert sum(outcomes.values()) == 200


def test_many_waiters_on_many_threads():
    with ThreadPoolExecutor(8) as pool:

        @task
        async def slow_echo(x: int) -> int:
            return await from_future(pool.submit(lambda: x))

        @task
        async def fan_in(n: int) -> int:
            children = [slow_echo(x) for x in range(n)]
            total = 0
            for child in children:
                total += await child
            return total

        results = list(pool.map(lambda n: wait(fan_in(n), timeout=10), range(1, 4)))
    assert results == [0, 1, 3]
