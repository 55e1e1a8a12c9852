"""A pool of bot clients that take turns serving stream requests."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterable, Optional

log = logging.getLogger("filestreambot.workers")

START_TIMEOUT = 30.0
FLOOD_MAX_RETRIES = 10
RATE_INTERVAL = 0.1
RATE_BURST = 5


class NoWorkersError(RuntimeError):
    """Raised when a worker is requested from an empty pool."""


class _RateLimiter:
    """Token bucket: ``burst`` calls at once, then one every ``interval`` seconds."""

    def __init__(self, interval: float, burst: int, clock: Callable[[], float] = time.monotonic) -> None:
        self._interval = interval
        self._burst = burst
        self._tokens = float(burst)
        self._clock = clock
        self._updated = clock()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            while True:
                now = self._clock()
                self._tokens = min(self._burst, self._tokens + (now - self._updated) / self._interval)
                self._updated = now
                if self._tokens >= 1:
                    self._tokens -= 1
                    return
                await asyncio.sleep((1 - self._tokens) * self._interval)


class _FloodMiddleware:
    """Rate limits API calls and retries those rejected with a flood wait.

    An exception counts as a flood wait when it has a ``flood_wait_seconds``
    attribute; the call is retried after that many seconds.
    """

    def __init__(self, max_retries: int = FLOOD_MAX_RETRIES) -> None:
        self._limiter = _RateLimiter(RATE_INTERVAL, RATE_BURST)
        self._max_retries = max_retries

    async def __call__(self, call: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        retries = 0
        while True:
            await self._limiter.acquire()
            try:
                return await call(*args, **kwargs)
            except Exception as exc:
                wait = getattr(exc, "flood_wait_seconds", None)
                if wait is None or retries >= self._max_retries:
                    raise
                retries += 1
                log.debug("Flood wait of %s seconds, retry %d", wait, retries)
                await asyncio.sleep(wait)


ClientFactory = Callable[[str, int, Optional[Path], _FloodMiddleware], Awaitable[Any]]


@dataclass
class Worker:
    """A started bot client and its number in the pool."""

    id: int
    client: Any

    def __str__(self) -> str:
        return f"{{Worker ({self.id}|@{self.client.username})}}"


class BotWorkers:
    """Holds the bot clients and hands them out in turn.

    ``client_factory(token, worker_id, session_path, middleware)`` starts a bot
    client; ``session_path`` is None when session files are not used.
    """

    def __init__(
        self,
        client_factory: ClientFactory | None = None,
        use_session_file: bool = True,
        sessions_dir: str | Path = "sessions",
        start_timeout: float = START_TIMEOUT,
    ) -> None:
        self.bots: list[Worker] = []
        self._factory = client_factory
        self._use_session_file = use_session_file
        self._sessions_dir = Path(sessions_dir)
        self._start_timeout = start_timeout
        self._starting = 0
        self._index = 0
        self._lock = threading.Lock()

    def _next_id(self) -> int:
        with self._lock:
            self._starting += 1
            return self._starting

    def add_default_client(self, client: Any) -> Worker:
        """Add an already started client to the pool."""
        worker = Worker(self._next_id(), client)
        self.bots.append(worker)
        log.info("Default bot loaded")
        return worker

    async def add(self, token: str) -> Worker:
        """Start a bot client for ``token`` and add it to the pool."""
        if self._factory is None:
            raise RuntimeError("no client factory configured")
        worker_id = self._next_id()
        session_path = self._sessions_dir / f"worker-{worker_id}.session" if self._use_session_file else None
        log.info("Starting worker with index - %d", worker_id)
        client = await self._factory(token, worker_id, session_path, _FloodMiddleware())
        log.info("Bot @%s loaded with ID %d", client.username, worker_id)
        worker = Worker(worker_id, client)
        self.bots.append(worker)
        return worker

    def next_worker(self) -> Worker:
        """Return the next worker in round-robin order."""
        with self._lock:
            if not self.bots:
                raise NoWorkersError("no bot clients are available")
            self._index = (self._index + 1) % len(self.bots)
            worker = self.bots[self._index]
        log.debug("Using worker %d", worker.id)
        return worker

    async def start(self, tokens: Iterable[str]) -> int:
        """Start a worker for every token at once; return how many started."""
        tokens = list(tokens)
        if not tokens:
            log.info("No worker bot tokens provided, skipping worker initialization")
            return 0
        log.info("Starting")
        if self._use_session_file:
            log.info("Using session file for workers")
            self._sessions_dir.mkdir(parents=True, exist_ok=True)
        results = await asyncio.gather(*(self._start_one(index, token) for index, token in enumerate(tokens)))
        started = sum(results)
        log.info("Successfully started %d/%d bots", started, len(tokens))
        return started

    async def _start_one(self, index: int, token: str) -> bool:
        try:
            await asyncio.wait_for(self.add(token), self._start_timeout)
        except asyncio.TimeoutError:
            log.error("Timed out starting worker %d", index)
            return False
        except Exception:
            log.exception("Failed to start worker %d", index)
            return False
        return True