"""A fixed ("jumping") window rate limiter.

A window allows up to `capacity` triggers per `period` seconds. Once the
period has elapsed since the last reset, the next call that observes it jumps
the counter straight back to full capacity; there is no gradual refill.

Every public method takes an optional `now`. Leaving it out reads the
instance's clock at call time; passing it makes a sequence of calls
deterministic, or pins several related checks to the same instant.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from datetime import timedelta

logger = logging.getLogger("floodgate.window")


def _as_seconds(period: float | timedelta) -> float:
    if isinstance(period, timedelta):
        return period.total_seconds()
    if isinstance(period, bool) or not isinstance(period, (int, float)):
        raise TypeError(
            f"period must be a number of seconds or a timedelta, got {type(period).__name__}"
        )
    return float(period)


class JumpingWindow:
    """Allow `capacity` triggers per `period` seconds.

    Example::

        cooldown = JumpingWindow(2, 10.0)
        assert cooldown.trigger() is None
        assert cooldown.trigger() is None
        # Out of triggers: trigger() now returns how long to wait.
        assert cooldown.trigger() is not None

    Not thread-safe. Serialise access if an instance is shared.
    """

    __slots__ = ("_capacity", "_period", "_clock", "_last_reset", "_tokens")

    def __init__(
        self,
        capacity: int,
        period: float | timedelta,
        *,
        clock: Callable[[], float] | None = None,
        now: float | None = None,
    ) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int):
            raise TypeError(f"capacity must be an int, got {type(capacity).__name__}")
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        period_s = _as_seconds(period)
        if not math.isfinite(period_s) or period_s < 0:
            raise ValueError("period must be a finite number >= 0")

        self._capacity = capacity
        self._period = period_s
        self._clock = clock if clock is not None else time.monotonic
        self._last_reset = self._now(now)
        self._tokens = capacity

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(capacity={self._capacity}, period={self._period}, "
            f"last_reset={self._last_reset}, tokens={self._tokens})"
        )

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def period(self) -> float:
        return self._period

    @property
    def last_reset(self) -> float:
        """Clock reading at the start of the current window."""

        return self._last_reset

    def _now(self, now: float | None) -> float:
        return self._clock() if now is None else now

    def _elapsed(self, now: float) -> float:
        # Saturates at zero for out-of-order timestamps.
        return max(0.0, now - self._last_reset)

    def _maybe_reset(self, now: float | None) -> float:
        """Reset if the window has elapsed at `now`; return the resolved `now`."""

        now = self._now(now)
        elapsed = self._elapsed(now)
        if elapsed > self._period:
            logger.debug(
                "Window elapsed (%.3fs > %.3fs); restoring %d tokens",
                elapsed,
                self._period,
                self._capacity,
            )
            self._tokens = self._capacity
            self._last_reset = now
        return now

    def tokens(self, now: float | None = None) -> int:
        """How many triggers are left in the current window.

        May reset the window as a side effect.
        """

        self._maybe_reset(now)
        return self._tokens

    def next_reset(self, now: float | None = None) -> float:
        """Seconds until the current window ends (0.0 if it already has).

        Never resets the window.
        """

        elapsed = self._elapsed(self._now(now))
        if elapsed > self._period:
            return 0.0
        return self._period - elapsed

    def retry_after(self, now: float | None = None) -> float | None:
        """Like `next_reset`, but None while triggers are still available."""

        now = self._maybe_reset(now)
        if self._tokens == 0:
            return self.next_reset(now)
        return None

    def can_trigger(self, now: float | None = None) -> bool:
        return self.tokens(now) != 0

    def trigger(self, now: float | None = None) -> float | None:
        """Consume one trigger.

        Returns None on success. When the window is exhausted nothing is
        consumed and the number of seconds until the next reset is returned.
        """

        now = self._maybe_reset(now)
        if self._tokens == 0:
            wait = self.next_reset(now)
            logger.debug("Window exhausted; retry after %.3fs", wait)
            return wait

        self._tokens -= 1
        return None

    def reset(self, now: float | None = None) -> None:
        """Restore full capacity and start a new window at `now`."""

        self._tokens = self._capacity
        self._last_reset = self._now(now)
        logger.debug("Window reset at %s", self._last_reset)
