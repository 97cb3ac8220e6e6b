"""
Forward-confirmed reverse DNS (FCrDNS) verification.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Callable, Protocol, TypeVar

from .signatures import CrawlerSignature

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Resolver(Protocol):
    """DNS lookups used by the crawler check. Failures return empty values."""

    def reverse(self, address: str) -> str | None:
        """Return the PTR hostname for an address, or None."""

    def forward(self, hostname: str) -> list[str]:
        """Return the addresses a hostname resolves to."""


class SocketResolver:
    """
    Resolver backed by the system resolver, bounded by a timeout.

    Lookups run on a small worker pool so a slow resolver cannot hold the
    request longer than ``timeout_s``; a timed out lookup counts as failed.
    At most ``max_workers`` lookups are in flight; when every worker is
    still busy with an earlier lookup, new lookups fail immediately instead
    of queueing behind it.

    Args:
        timeout_s: Timeout for each lookup in seconds. Default: 0.3
        max_workers: Size of the lookup pool. Default: 8
    """

    def __init__(self, timeout_s: float = 0.3, max_workers: int = 8):
        self.timeout_s = timeout_s
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="fcrdns",
        )
        self._slots = threading.BoundedSemaphore(max_workers)

    def reverse(self, address: str) -> str | None:
        result = self._bounded(lambda: socket.gethostbyaddr(address)[0], address)
        return result or None

    def forward(self, hostname: str) -> list[str]:
        infos = self._bounded(
            lambda: socket.getaddrinfo(hostname, None, proto=socket.IPPROTO_TCP),
            hostname,
        )
        if not infos:
            return []
        return [str(info[4][0]) for info in infos]

    def close(self) -> None:
        self._pool.shutdown(wait=False)

    def _bounded(self, lookup: Callable[[], T], name: str) -> T | None:
        if not self._slots.acquire(blocking=False):
            logger.debug("DNS lookup pool saturated: %s", name)
            return None
        future = self._pool.submit(lookup)
        # Runs on completion and on cancellation
        future.add_done_callback(lambda _: self._slots.release())
        try:
            return future.result(timeout=self.timeout_s)
        except FutureTimeout:
            future.cancel()
            logger.debug("DNS lookup timed out: %s", name)
        except OSError as e:
            # socket.herror and socket.gaierror both derive from OSError
            logger.debug("DNS lookup failed: %s (%s)", name, e)
        return None


@dataclass
class DnsCheck:
    """
    Outcome of a forward-confirmed reverse DNS check.

    Attributes:
        verified: Whether all three steps succeeded
        hostname: Hostname from the reverse lookup, if any
        error: Reason the check failed
    """
    verified: bool
    hostname: str | None = None
    error: str | None = None


def _same_address(a: str, b: str) -> bool:
    try:
        return ipaddress.ip_address(a) == ipaddress.ip_address(b)
    except ValueError:
        return a == b


def forward_confirmed(
    address: str,
    crawler: CrawlerSignature,
    resolver: Resolver,
) -> DnsCheck:
    """
    Confirm that an address belongs to a crawler operator.

    1. Reverse-resolve the address; no PTR record (or the address echoed
       back) fails.
    2. The hostname must match the operator's hostname pattern.
    3. Forward-resolve the hostname; the original address must be among
       the results.

    Args:
        address: Client network address
        crawler: Operator the client claims to be
        resolver: DNS resolver

    Returns:
        DnsCheck with the reverse hostname and failure reason
    """
    hostname = resolver.reverse(address)
    if not hostname or _same_address(hostname, address):
        return DnsCheck(verified=False, error="No PTR record")

    hostname = hostname.rstrip(".")
    if not crawler.owns_hostname(hostname):
        return DnsCheck(
            verified=False,
            hostname=hostname,
            error=f"Hostname not owned by {crawler.name}",
        )

    forward = resolver.forward(hostname)
    if not any(_same_address(candidate, address) for candidate in forward):
        return DnsCheck(
            verified=False,
            hostname=hostname,
            error="Forward lookup does not match address",
        )

    return DnsCheck(verified=True, hostname=hostname)
