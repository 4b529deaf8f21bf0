"""In-memory fixed-window rate limiter.

Each key (usually ``"<endpoint>:<client ip>"``) owns one window.  The first
hit opens the window with ``count=1``; later hits inside it increment the
count; the first hit at or after the window end opens a fresh one.

Entries live in a ``cachetools.TLRUCache`` whose per-item expiry is the
window end, so an elapsed entry is invisible to lookups even before the
periodic sweep evicts it.  All access goes through one lock; a read and
the following update are never interleaved with another caller's.

Nothing is started on import.  The owning application calls :meth:`start`
inside a running event loop and awaits :meth:`stop` on shutdown.
"""

from __future__ import annotations

import asyncio
import contextlib
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog
from cachetools import TLRUCache

from src.utils.logging import get_logger

_DEFAULT_MAX_ENTRIES = 100_000
_DEFAULT_SWEEP_SECONDS = 300.0


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class RateLimitRule:
    """``max_requests`` allowed per ``window_ms`` milliseconds."""

    max_requests: int
    window_ms: int


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one :meth:`FixedWindowRateLimiter.hit`.

    Attributes
    ----------
    success:
        ``True`` when the request is allowed.
    remaining:
        Requests left in the current window (never negative).
    reset_in:
        Milliseconds until the current window ends.
    """

    success: bool
    remaining: int
    reset_in: int


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    """Thread-safe fixed-window counter keyed by arbitrary strings.

    Parameters
    ----------
    max_entries:
        Upper bound on tracked keys.  When full, elapsed windows are evicted
        and, if none have elapsed, new keys are denied until one does.
    clock:
        Millisecond clock, monotonic by default.  Tests inject a fake.
    sweep_interval:
        Seconds between background sweeps once :meth:`start` is called.
    """

    def __init__(
        self,
        max_entries: int = _DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = _monotonic_ms,
        sweep_interval: float = _DEFAULT_SWEEP_SECONDS,
    ) -> None:
        self._clock = clock
        self._max_entries = max_entries
        self._sweep_interval = sweep_interval
        self._windows: TLRUCache[str, _Window] = TLRUCache(
            maxsize=max_entries,
            ttu=lambda _key, window, _now: window.reset_at,
            timer=clock,
        )
        self._lock = threading.Lock()
        self._sweep_task: asyncio.Task[None] | None = None
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def hit(self, key: str, rule: RateLimitRule) -> RateLimitDecision:
        """Count one request against *key* under *rule*.

        A new key arriving while every slot holds a live window is denied
        rather than displacing another key's window.
        """
        with self._lock:
            now = self._clock()
            window = self._windows.get(key)

            if window is None:
                if not self._has_room():
                    self._logger.warning("rate_limit_capacity_reached", key=key)
                    return RateLimitDecision(success=False, remaining=0, reset_in=rule.window_ms)
                self._windows[key] = _Window(count=1, reset_at=now + rule.window_ms)
                return RateLimitDecision(
                    success=True,
                    remaining=rule.max_requests - 1,
                    reset_in=rule.window_ms,
                )

            window.count += 1
            reset_in = max(0, int(window.reset_at - now))
            if window.count > rule.max_requests:
                return RateLimitDecision(success=False, remaining=0, reset_in=reset_in)

            return RateLimitDecision(
                success=True,
                remaining=max(0, rule.max_requests - window.count),
                reset_in=reset_in,
            )

    def reset(self, key: str) -> None:
        """Forget *key*'s window."""
        with self._lock:
            self._windows.pop(key, None)

    def sweep(self) -> int:
        """Evict every elapsed window and return how many were dropped."""
        with self._lock:
            evicted = len(self._windows.expire())
        if evicted:
            self._logger.debug("rate_limit_sweep", evicted=evicted)
        return evicted

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def _has_room(self) -> bool:
        if len(self._windows) < self._max_entries:
            return True
        self._windows.expire()
        return len(self._windows) < self._max_entries

    # ------------------------------------------------------------------
    # Background sweep
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic sweep task on the running event loop."""
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._sweep_task = asyncio.get_running_loop().create_task(self._sweep_loop())
        self._logger.info("rate_limiter_started", sweep_interval=self._sweep_interval)

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self._logger.info("rate_limiter_stopped")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep()
