"""
Rate/session store interface and an in-process implementation.

Production deployments back :py:class:`RateStore` with a store shared by all
worker processes. :py:class:`MemoryRateStore` keeps counters in this process
only and loses them on restart; use it for tests and local development.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from .models import RateWindow

HOUR_S = 3600
DAY_S = 86400


class RateStore(Protocol):
    """Per-address counters and verification-pass records."""

    def window(self, address: str) -> RateWindow:
        """Current counters and last verification pass for an address."""

    def register_request(self, address: str) -> None:
        """Count one request for an address in the hourly and daily windows."""

    def record_challenge_pass(self, address: str) -> None:
        """Record a successful verification pass at the current time."""


class ReputationSource(Protocol):
    """External signal for proxy and known-bot addresses."""

    def is_known_proxy_or_bot(self, address: str) -> bool:
        ...


class NoReputation:
    """Reputation source that flags nothing."""

    def is_known_proxy_or_bot(self, address: str) -> bool:
        return False


@dataclass
class _Entry:
    hour_start: float
    day_start: float
    hourly: int = 0
    daily: int = 0
    last_challenge_pass: float | None = None


class MemoryRateStore:
    """
    Thread-safe in-memory store with fixed hourly and daily windows.

    A window resets once its length has elapsed since it was opened.

    Args:
        clock: Returns the current Unix time. Default: time.time
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def window(self, address: str) -> RateWindow:
        with self._lock:
            entry = self._entry(address)
            return RateWindow(
                hourly=entry.hourly,
                daily=entry.daily,
                last_challenge_pass=entry.last_challenge_pass,
            )

    def register_request(self, address: str) -> None:
        with self._lock:
            entry = self._entry(address)
            entry.hourly += 1
            entry.daily += 1

    def record_challenge_pass(self, address: str) -> None:
        with self._lock:
            self._entry(address).last_challenge_pass = self._clock()

    def _entry(self, address: str) -> _Entry:
        now = self._clock()
        entry = self._entries.get(address)
        if entry is None:
            entry = _Entry(hour_start=now, day_start=now)
            self._entries[address] = entry
        if now - entry.hour_start >= HOUR_S:
            entry.hour_start = now
            entry.hourly = 0
        if now - entry.day_start >= DAY_S:
            entry.day_start = now
            entry.daily = 0
        return entry
