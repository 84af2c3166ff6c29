# tests/test_task_sync.py

from __future__ import annotations

import asyncio
import contextlib

import pytest

from task_minder.account.account_models import User
from task_minder.core.streams import StateStream
from task_minder.tasks.task_models import Task
from task_minder.tasks.task_sync import TaskListSynchronizer

from .fakes import FakeTaskRepo, wait_until

JAN1 = "01/01/2024"
JAN2 = "01/02/2024"


def _setup(user: User | None = None, key: str = JAN1):
    repo = FakeTaskRepo()
    users: StateStream[User] = StateStream(user or User("u1"))
    keys: StateStream[str] = StateStream(key)
    sync = TaskListSynchronizer(repo, users.subscribe, keys.subscribe)
    return repo, users, keys, sync


async def _next(stream, timeout: float = 1.0) -> list[Task]:
    return await asyncio.wait_for(stream.__anext__(), timeout)


@pytest.mark.asyncio
async def test_first_snapshot_for_initial_user_and_key() -> None:
    repo, _users, _keys, sync = _setup()
    a = Task(id="a", title="A", due_date=JAN1, user_id="u1")
    repo.push("u1", JAN1, [a])

    async with contextlib.aclosing(sync.snapshots()) as stream:
        assert await _next(stream) == [a]
        assert repo.opened == [("u1", JAN1)]
        assert sync.generation == 1


@pytest.mark.asyncio
async def test_latest_date_key_wins_over_stale_snapshots() -> None:
    repo, _users, keys, sync = _setup()
    repo.push("u1", JAN1, [Task(id="a")])

    async with contextlib.aclosing(sync.snapshots()) as stream:
        assert [t.id for t in await _next(stream)] == ["a"]

        # The old subscription emits while nobody is consuming...
        repo.push("u1", JAN1, [Task(id="stale")])
        await asyncio.sleep(0.01)

        # ...and the selection moves on before the consumer reads again.
        keys.set(JAN2)
        await wait_until(lambda: ("u1", JAN2) in repo.opened)
        repo.push("u1", JAN2, [Task(id="fresh")])

        assert [t.id for t in await _next(stream)] == ["fresh"]
        await wait_until(lambda: ("u1", JAN1) in repo.closed)
        assert sync.date_key == JAN2


@pytest.mark.asyncio
async def test_user_change_resubscribes_and_same_user_id_does_not() -> None:
    repo, users, _keys, sync = _setup(User("u1", is_anonymous=True))
    repo.push("u1", JAN1, [])

    async with contextlib.aclosing(sync.snapshots()) as stream:
        assert await _next(stream) == []

        # Linking keeps the uid; no new subscription.
        users.set(User("u1", is_anonymous=False))
        await asyncio.sleep(0.01)
        assert repo.opened == [("u1", JAN1)]

        users.set(User("u2"))
        await wait_until(lambda: ("u2", JAN1) in repo.opened)
        b = Task(id="b", user_id="u2")
        repo.push("u2", JAN1, [b])
        assert await _next(stream) == [b]
        assert sync.user_id == "u2"


@pytest.mark.asyncio
async def test_repeated_equal_key_does_not_resubscribe() -> None:
    repo, _users, keys, sync = _setup()
    repo.push("u1", JAN1, [])

    async with contextlib.aclosing(sync.snapshots()) as stream:
        await _next(stream)
        generation = sync.generation
        keys.set(JAN2)
        keys.set(JAN1)
        await asyncio.sleep(0.01)
        # Conflated: the watcher only saw JAN1 again.
        assert sync.generation == generation
        assert repo.opened == [("u1", JAN1)]


@pytest.mark.asyncio
async def test_subscription_error_ends_the_stream() -> None:
    repo, _users, _keys, sync = _setup()
    repo.push("u1", JAN1, RuntimeError("permission denied"))

    async with contextlib.aclosing(sync.snapshots()) as stream:
        with pytest.raises(RuntimeError, match="permission denied"):
            await _next(stream)


@pytest.mark.asyncio
async def test_new_stream_after_error_resubscribes() -> None:
    repo, users, keys, sync = _setup()
    repo.push("u1", JAN1, RuntimeError("transient"))

    async with contextlib.aclosing(sync.snapshots()) as stream:
        with pytest.raises(RuntimeError, match="transient"):
            await _next(stream)

    a = Task(id="a", user_id="u1")
    repo.push("u1", JAN1, [a])
    async with contextlib.aclosing(sync.snapshots()) as stream:
        assert await _next(stream) == [a]

    assert repo.opened.count(("u1", JAN1)) == 2
    assert users.subscriber_count == 0
    assert keys.subscriber_count == 0

@pytest.mark.asyncio
async def test_closing_releases_every_subscription() -> None:
    repo, users, keys, sync = _setup()
    repo.push("u1", JAN1, [])

    stream = sync.snapshots()
    await _next(stream)
    keys.set(JAN2)
    await wait_until(lambda: ("u1", JAN2) in repo.opened)

    await stream.aclose()

    assert sorted(repo.closed) == sorted(repo.opened)
    assert users.subscriber_count == 0
    assert keys.subscriber_count == 0


@pytest.mark.asyncio
async def test_cancelling_the_consumer_releases_subscriptions() -> None:
    repo, users, keys, sync = _setup()
    received: list[list[Task]] = []

    async def consume() -> None:
        async with contextlib.aclosing(sync.snapshots()) as stream:
            async for snapshot in stream:
                received.append(snapshot)

    consumer = asyncio.create_task(consume())
    repo.push("u1", JAN1, [])
    await wait_until(lambda: len(received) == 1)

    consumer.cancel()
    with pytest.raises(asyncio.CancelledError):
        await consumer

    assert repo.closed == [("u1", JAN1)]
    assert users.subscriber_count == 0
    assert keys.subscriber_count == 0
