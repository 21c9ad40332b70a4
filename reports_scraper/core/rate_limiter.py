"""
Per-client token-bucket rate limiting for the read API.

Each client identifier owns an independent bucket. The registry lock
only covers lookup-or-create and eviction; token consumption takes the
bucket's own lock, so different clients never wait on each other.
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Optional

import structlog

logger = structlog.get_logger(__name__)


DEFAULT_CAPACITY = 5
DEFAULT_REFILL_PER_MINUTE = 5
DEFAULT_IDLE_TTL = 300.0
DEFAULT_MAX_CLIENTS = 10_000

# Guards against float drift when a refill lands exactly on a whole token
TOKEN_EPSILON = 1e-9


@dataclass
class TokenBucket:
    """Token bucket for a single client."""
    capacity: float
    refill_tokens: float
    refill_period: float  # seconds
    tokens: float
    last_refill: float
    last_seen: float
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def try_consume(self, now: float) -> bool:
        """Refill for elapsed time, then take one token if available."""
        with self.lock:
            elapsed = max(0.0, now - self.last_refill)
            self.tokens = min(
                self.capacity,
                self.tokens + elapsed * self.refill_tokens / self.refill_period,
            )
            self.last_refill = now
            self.last_seen = now

            if self.tokens + TOKEN_EPSILON >= 1.0:
                self.tokens = max(0.0, self.tokens - 1.0)
                return True
            return False


class RateLimiterRegistry:
    """
    Registry mapping client identifiers to token buckets.

    Buckets are created full on first use. Stale buckets are removed by
    `sweep()`, and the map never holds more than `max_clients` entries
    (least recently used clients are evicted first).

    Usage:
        limiter = RateLimiterRegistry()
        if not limiter.allow(client_id(forwarded_for, remote)):
            ...  # respond 429
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        refill_per_minute: float = DEFAULT_REFILL_PER_MINUTE,
        idle_ttl: float = DEFAULT_IDLE_TTL,
        max_clients: int = DEFAULT_MAX_CLIENTS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize registry.

        Args:
            capacity: Tokens per bucket (burst size)
            refill_per_minute: Tokens added per minute
            idle_ttl: Seconds without requests before a bucket is swept
            max_clients: Upper bound on tracked clients
            clock: Monotonic time source in seconds
        """
        if capacity < 1 or refill_per_minute <= 0:
            raise ValueError("capacity must be >= 1 and refill_per_minute > 0")

        self.capacity = capacity
        self.refill_per_minute = refill_per_minute
        self.idle_ttl = idle_ttl
        self.max_clients = max_clients
        self._clock = clock

        self._buckets: "OrderedDict[str, TokenBucket]" = OrderedDict()
        self._lock = threading.Lock()

        if idle_ttl < self.full_refill_seconds:
            logger.warning(
                "rate_limit_ttl_below_refill",
                idle_ttl=idle_ttl,
                full_refill_seconds=self.full_refill_seconds,
            )

    @property
    def seconds_per_token(self) -> float:
        return 60.0 / self.refill_per_minute

    @property
    def full_refill_seconds(self) -> float:
        return self.capacity * self.seconds_per_token

    def _bucket_for(self, client: str, now: float) -> TokenBucket:
        """Get or create the bucket for a client."""
        with self._lock:
            bucket = self._buckets.get(client)
            if bucket is not None:
                self._buckets.move_to_end(client)
                return bucket

            bucket = TokenBucket(
                capacity=float(self.capacity),
                refill_tokens=float(self.refill_per_minute),
                refill_period=60.0,
                tokens=float(self.capacity),
                last_refill=now,
                last_seen=now,
            )
            self._buckets[client] = bucket

            while len(self._buckets) > self.max_clients:
                evicted, _ = self._buckets.popitem(last=False)
                logger.debug("rate_limit_client_evicted", client=evicted)

            return bucket

    def allow(self, client: str) -> bool:
        """
        Try to consume one token for a client.

        Args:
            client: Client identifier

        Returns:
            True if the request may proceed, False if throttled
        """
        now = self._clock()
        bucket = self._bucket_for(client, now)
        allowed = bucket.try_consume(now)

        if not allowed:
            logger.info("client_throttled", client=client)

        return allowed

    def sweep(self) -> int:
        """
        Remove buckets idle for longer than `idle_ttl`.

        Returns:
            Number of buckets removed
        """
        now = self._clock()
        with self._lock:
            stale = [
                client for client, bucket in self._buckets.items()
                if now - bucket.last_seen > self.idle_ttl
            ]
            for client in stale:
                del self._buckets[client]

        if stale:
            logger.debug("rate_limit_sweep", removed=len(stale), remaining=len(self))

        return len(stale)

    def __contains__(self, client: str) -> bool:
        with self._lock:
            return client in self._buckets

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)


def strip_port(address: str) -> str:
    """
    Remove a trailing ":port" from an address.

    - "203.0.113.7:5123" -> "203.0.113.7"
    - "[2001:db8::1]:443" -> "2001:db8::1"
    - "2001:db8::1" -> unchanged
    """
    if address.startswith("["):
        end = address.find("]")
        return address[1:end] if end != -1 else address

    if address.count(":") == 1:
        return address.rsplit(":", 1)[0]

    return address


def client_id(forwarded_for: Optional[str], remote: Optional[str]) -> str:
    """
    Derive the rate-limit key for a request.

    The forwarded-for header wins over the connection address. The
    header is set by the client unless a trusted proxy overwrites it,
    so a client can spoof it to get fresh buckets.

    Args:
        forwarded_for: X-Forwarded-For header value (first hop is used)
        remote: Connection peer address

    Returns:
        Client identifier without port
    """
    candidate = ""
    if forwarded_for:
        candidate = forwarded_for.split(",")[0].strip()

    if not candidate:
        candidate = (remote or "").strip()

    return strip_port(candidate) or "unknown"
