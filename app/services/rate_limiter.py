"""
Fixed-interval gates for upstream rate-limit courtesy.

A gate lets one caller through, then holds every later caller until
`interval` seconds have passed since the previous pass. The runner calls
gate.wait() before each query, so the spacing policy lives here instead of
as an inline sleep in the loop.

  - IntervalGate       → in-process, clock and sleep injectable for tests
  - RedisIntervalGate  → slot shared through a Redis key, so separate workers
                         running rules at the same time respect one interval.
                         Falls back to an in-process gate if Redis is down.
"""
import logging
import time

import redis

from app.config import QUERY_INTERVAL_SECONDS

logger = logging.getLogger('services.rate_limiter')


class IntervalGate:
    """In-process fixed-interval gate."""

    def __init__(self, interval=QUERY_INTERVAL_SECONDS, clock=time.monotonic, sleep=time.sleep):
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last_pass = None

    def wait(self) -> float:
        """Block until the interval has elapsed. Returns seconds slept."""
        now = self._clock()
        waited = 0.0
        if self._last_pass is not None:
            remaining = self._last_pass + self.interval - now
            if remaining > 0:
                self._sleep(remaining)
                waited = remaining
        self._last_pass = max(now + waited, self._clock())
        return waited

    def reset(self):
        self._last_pass = None


class RedisIntervalGate:
    """
    Redis-backed gate: a pass is `SET key NX PX interval_ms`.

    While the key lives, callers sleep for its remaining PTTL and retry.
    """

    PREFIX = 'gate'

    def __init__(self, name, redis_client, interval=QUERY_INTERVAL_SECONDS, sleep=time.sleep, fallback=None):
        self.name = name
        self.redis = redis_client
        self.interval = interval
        self._sleep = sleep
        self.fallback = fallback or IntervalGate(interval, sleep=sleep)

    @property
    def _key(self):
        return f'{self.PREFIX}:{self.name}'

    def wait(self) -> float:
        interval_ms = max(int(self.interval * 1000), 1)
        waited = 0.0
        try:
            while True:
                if self.redis.set(self._key, '1', nx=True, px=interval_ms):
                    return waited
                ttl_ms = self.redis.pttl(self._key)
                delay = ttl_ms / 1000 if ttl_ms and ttl_ms > 0 else self.interval
                self._sleep(delay)
                waited += delay
        except redis.exceptions.RedisError as e:
            # fail-open: Redis trouble must not stall ingestion
            logger.warning("Gate '%s' falling back to in-process spacing: %s", self.name, e)
            return waited + self.fallback.wait()

    def reset(self):
        try:
            self.redis.delete(self._key)
        except redis.exceptions.RedisError as e:
            logger.error("Failed to reset gate '%s': %s", self.name, e)
        self.fallback.reset()


# ── Global registry ───────────────────────────────────────────────────────

_registry = {}


def get_gate(name, interval=QUERY_INTERVAL_SECONDS):
    """Get the named gate, creating an in-process one if init_gates() hasn't run."""
    if name not in _registry:
        _registry[name] = IntervalGate(interval)
    return _registry[name]


def init_gates(redis_client, interval=QUERY_INTERVAL_SECONDS):
    """Register the shared gate for each upstream service."""
    gates = {
        'youtube': RedisIntervalGate('youtube', redis_client, interval=interval),
    }
    _registry.update(gates)
    return gates
