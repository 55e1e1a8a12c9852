import asyncio
from dataclasses import dataclass

import pytest

from filestreambot.workers import BotWorkers, NoWorkersError, Worker


@dataclass
class FakeBot:
    self_id: int
    username: str


class FloodError(Exception):
    flood_wait_seconds = 0


def make_factory(calls, fail_tokens=(), delay=0.0):
    async def factory(token, worker_id, session_path, middleware):
        calls.append((token, worker_id, session_path, middleware))
        if delay:
            await asyncio.sleep(delay)
        if token in fail_tokens:
            raise ConnectionError("cannot start")
        return FakeBot(worker_id * 10, f"bot{worker_id}")

    return factory


def test_worker_str():
    assert str(Worker(3, FakeBot(1, "alpha"))) == "{Worker (3|@alpha)}"


def test_default_clients_get_increasing_ids():
    workers = BotWorkers()
    ids = [workers.add_default_client(FakeBot(n, f"b{n}")).id for n in range(3)]
    assert ids == [1, 2, 3]
    assert [w.client.self_id for w in workers.bots] == [0, 1, 2]


def test_next_worker_round_robin():
    workers = BotWorkers()
    for n in range(3):
        workers.add_default_client(FakeBot(n, f"b{n}"))
    assert [workers.next_worker().id for _ in range(6)] == [2, 3, 1, 2, 3, 1]


def test_single_worker_always_returned():
    workers = BotWorkers()
    only = workers.add_default_client(FakeBot(1, "solo"))
    assert all(workers.next_worker() is only for _ in range(4))


def test_next_worker_without_bots():
    with pytest.raises(NoWorkersError):
        BotWorkers().next_worker()


@pytest.mark.asyncio
async def test_start_without_tokens(tmp_path):
    calls = []
    workers = BotWorkers(make_factory(calls), sessions_dir=tmp_path / "sessions")
    assert await workers.start([]) == 0
    assert calls == []
    assert workers.bots == []
    assert not (tmp_path / "sessions").exists()


@pytest.mark.asyncio
async def test_start_with_session_files(tmp_path):
    calls = []
    sessions = tmp_path / "sessions"
    workers = BotWorkers(make_factory(calls), sessions_dir=sessions)
    assert await workers.start(["token", "token", "token"]) == 3
    assert sessions.is_dir()
    assert sorted(w.id for w in workers.bots) == [1, 2, 3]
    paths = sorted((call[1], call[2]) for call in calls)
    assert paths == [
        (1, sessions / "worker-1.session"),
        (2, sessions / "worker-2.session"),
        (3, sessions / "worker-3.session"),
    ]


@pytest.mark.asyncio
async def test_start_without_session_files(tmp_path):
    calls = []
    sessions = tmp_path / "sessions"
    workers = BotWorkers(make_factory(calls), use_session_file=False, sessions_dir=sessions)
    assert await workers.start(["token", "token"]) == 2
    assert [path for _, _, path, _ in calls] == [None, None]
    assert not sessions.exists()


@pytest.mark.asyncio
async def test_failed_worker_is_left_out(tmp_path):
    calls = []
    workers = BotWorkers(make_factory(calls, fail_tokens={"bad"}), sessions_dir=tmp_path)
    assert await workers.start(["good", "bad"]) == 1
    assert len(workers.bots) == 1
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_slow_worker_times_out(tmp_path):
    calls = []
    workers = BotWorkers(make_factory(calls, delay=1.0), sessions_dir=tmp_path, start_timeout=0.01)
    assert await workers.start(["token"]) == 0
    assert workers.bots == []


@pytest.mark.asyncio
async def test_add_without_factory():
    with pytest.raises(RuntimeError):
        await BotWorkers().add("token")


@pytest.mark.asyncio
async def test_middleware_retries_flood_wait(tmp_path):
    calls = []
    workers = BotWorkers(make_factory(calls), use_session_file=False)
    await workers.add("token")
    middleware = calls[0][3]
    attempts = []

    async def api_call(value):
        attempts.append(value)
        if len(attempts) == 1:
            raise FloodError()
        return value * 2

    assert await middleware(api_call, 21) == 42
    assert attempts == [21, 21]


@pytest.mark.asyncio
async def test_middleware_passes_other_errors():
    calls = []
    workers = BotWorkers(make_factory(calls), use_session_file=False)
    await workers.add("token")
    middleware = calls[0][3]
    attempts = []

    async def api_call():
        attempts.append(1)
        raise KeyError("broken")

    with pytest.raises(KeyError):
        await middleware(api_call)
    assert len(attempts) == 1