# Overview: Receipt number allocation.

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Container


class ReceiptNumberGenerator:
    """
    Allocates human-facing receipt numbers: R-<epoch milliseconds>.

    Numbers are unique for the life of the process and never go backwards:
    a second sale in the same millisecond (or after the clock stepped back)
    reuses the last millisecond with a counter suffix, R-<ms>-1, R-<ms>-2, ...
    """

    def __init__(self, prefix: str = "R"):
        self.prefix = prefix
        self._last_ms = 0
        self._counter = 0
        self._lock = threading.Lock()

    def _format(self, ms: int, counter: int) -> str:
        if counter == 0:
            return f"{self.prefix}-{ms}"
        return f"{self.prefix}-{ms}-{counter}"

    def next(self, now: datetime, taken: Container[str] = ()) -> str:
        """
        Allocate the next number for a sale recorded at `now` (UTC-naive).

        `taken` holds numbers already in the ledger, so a restarted process
        cannot hand out a number that was issued before it started.
        """
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        ms = int(now.timestamp() * 1000)

        with self._lock:
            if ms <= self._last_ms:
                ms = self._last_ms
                self._counter += 1
            else:
                self._last_ms = ms
                self._counter = 0

            number = self._format(ms, self._counter)
            while number in taken:
                self._counter += 1
                number = self._format(ms, self._counter)
            return number
