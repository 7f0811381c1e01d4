"""
PhotoVerse Backend — Generation Rate Limiter
==============================================

What:  Minimum-interval limiter: a caller may start one poem generation every
       `interval_ms` milliseconds (default 2000).
Why:   Each generation costs provider quota. Double-clicks and rapid
       re-submits should be rejected before any provider is contacted.
How:   Dict mapping caller id → monotonic timestamp (ms) of the last
       accepted call.

Algorithm:
    1. No entry, or now - last >= interval → store now, allow
    2. Otherwise → deny, state untouched

    Accepted timestamps are never rolled back, even if the generation that
    followed failed.

Concurrency:
    check_and_record() has no await inside, so on a single event loop the
    read-modify-write cannot interleave with another request. No lock needed.
    NOT safe across processes (each uvicorn worker has its own map).

Memory:
    Entries are never evicted. With the default "global" scope there is one
    key; with "client" scope there is one key per client IP seen.
"""

import logging
import math
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_CALLER = "default"


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class RateLimiter:
    """
    In-memory minimum-interval limiter, constructed by the owner of the
    orchestrator and injected into it.

    Args:
        interval_ms: Minimum spacing between accepted calls per caller
        clock: Returns the current time in milliseconds (tests pass a fake)
    """

    def __init__(self, interval_ms: int = 2000, clock: Optional[Callable[[], float]] = None):
        self.interval_ms = interval_ms
        self._clock = clock or monotonic_ms
        self._last_accepted: Dict[str, float] = {}

    def check_and_record(self, caller_id: str = DEFAULT_CALLER) -> bool:
        """Allow and record the call, or deny without touching state."""
        now = self._clock()
        last = self._last_accepted.get(caller_id)

        if last is not None and (now - last) < self.interval_ms:
            logger.debug(
                "Rate limit: caller=%s denied (%.0fms since last accepted call)",
                caller_id,
                now - last,
            )
            return False

        self._last_accepted[caller_id] = now
        return True

    def retry_after(self, caller_id: str = DEFAULT_CALLER) -> int:
        """Whole seconds (at least 1) until `caller_id` would be allowed again."""
        last = self._last_accepted.get(caller_id)
        if last is None:
            return 1
        remaining_ms = self.interval_ms - (self._clock() - last)
        return max(1, math.ceil(remaining_ms / 1000))

    def reset(self) -> None:
        """Forget every caller. Test isolation only."""
        self._last_accepted.clear()

    def __len__(self) -> int:
        return len(self._last_accepted)
