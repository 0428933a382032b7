"""
Redis-backed circuit breaker guarding calls to GoHighLevel.

State is shared through Redis so every gunicorn worker trips and recovers
together:

    closed     calls pass through; failures are counted
    open       failure_threshold reached; calls fail fast with CircuitOpenError
    half_open  reset_timeout elapsed since the last failure; the next call probes

Per-service counters live in a Redis hash and back GET /api/health.
If Redis itself is unavailable the breaker stays closed.
"""
import logging
import time

from sizzle.exceptions import SizzleError

logger = logging.getLogger('services.circuit_breaker')

CLOSED = 'closed'
OPEN = 'open'
HALF_OPEN = 'half_open'

KEY_PREFIX = 'sizzle:cb'


class CircuitOpenError(SizzleError):
    """A call was refused because the service's breaker is open."""

    def __init__(self, name, retry_after=None):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"{name} is temporarily unavailable (circuit open)")


class CircuitBreaker:
    """
    Usage:
        breaker = CircuitBreaker('ghl', redis_client, failure_threshold=3, reset_timeout=120)
        response = breaker.call(session.request, 'GET', url, timeout=15)
    """

    def __init__(self, name, redis_client, failure_threshold=3, reset_timeout=120):
        self.name = name
        self.redis = redis_client
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout

    def _key(self, suffix):
        return f'{KEY_PREFIX}:{self.name}:{suffix}'

    def _seconds_since_failure(self):
        last = self.redis.get(self._key('last_failure'))
        return time.time() - float(last) if last else None

    # ── Reads ─────────────────────────────────────────────────────────

    @property
    def state(self):
        try:
            current = self.redis.get(self._key('state')) or CLOSED
            if current == OPEN:
                elapsed = self._seconds_since_failure()
                if elapsed is not None and elapsed > self.reset_timeout:
                    self.redis.set(self._key('state'), HALF_OPEN)
                    return HALF_OPEN
            return current
        except Exception:
            logger.warning("Breaker '%s': Redis unavailable, treating as closed", self.name)
            return CLOSED

    @property
    def failure_count(self):
        try:
            return int(self.redis.get(self._key('failures')) or 0)
        except Exception:
            return 0

    def get_health(self):
        try:
            stats = self.redis.hgetall(self._key('health')) or {}
            state = self.state
        except Exception:
            logger.warning("Breaker '%s': health unavailable", self.name)
            stats, state = {}, 'unknown'

        def _ts(field):
            return float(stats[field]) if stats.get(field) else None

        return {
            'name': self.name,
            'state': state,
            'failure_count': self.failure_count,
            'failure_threshold': self.failure_threshold,
            'reset_timeout': self.reset_timeout,
            'total_success': int(stats.get('success', 0)),
            'total_failure': int(stats.get('failure', 0)),
            'last_success': _ts('last_success'),
            'last_failure': _ts('last_failure'),
            'last_error': stats.get('last_error', ''),
        }

    # ── Calls ─────────────────────────────────────────────────────────

    def call(self, func, *args, **kwargs):
        if self.state == OPEN:
            raise CircuitOpenError(self.name, retry_after=self._retry_after())
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self._record_failure(e)
            raise
        self._record_success()
        return result

    def _retry_after(self):
        try:
            elapsed = self._seconds_since_failure()
        except Exception:
            return None
        if elapsed is None:
            return None
        return max(0.0, self.reset_timeout - elapsed)

    def _record_success(self):
        health = self._key('health')
        try:
            (self.redis.pipeline()
                .set(self._key('state'), CLOSED)
                .set(self._key('failures'), 0)
                .hincrby(health, 'success', 1)
                .hset(health, 'last_success', str(time.time()))
                .execute())
        except Exception:
            logger.debug("Breaker '%s': could not record success", self.name)

    def _record_failure(self, error):
        health = self._key('health')
        now = str(time.time())
        try:
            count = self.redis.incr(self._key('failures'))
            pipe = (self.redis.pipeline()
                    .set(self._key('last_failure'), now)
                    .hincrby(health, 'failure', 1)
                    .hset(health, 'last_failure', now)
                    .hset(health, 'last_error', str(error)[:200]))
            tripped = count >= self.failure_threshold
            if tripped:
                pipe.set(self._key('state'), OPEN)
            pipe.execute()
        except Exception:
            logger.debug("Breaker '%s': could not record failure", self.name)
            return

        if tripped:
            logger.warning("Breaker '%s' opened after %d failures: %s", self.name, count, error)
        else:
            logger.info("Breaker '%s' failure %d/%d: %s", self.name, count, self.failure_threshold, error)

    def reset(self):
        """Close the breaker and clear its failure count."""
        try:
            (self.redis.pipeline()
                .set(self._key('state'), CLOSED)
                .set(self._key('failures'), 0)
                .delete(self._key('last_failure'))
                .execute())
        except Exception as e:
            logger.error("Breaker '%s': reset failed: %s", self.name, e)
            return
        logger.info("Breaker '%s' manually reset", self.name)


# ── Registry ──────────────────────────────────────────────────────────────

_registry = {}

# name → (failure_threshold, reset_timeout)
SERVICES = {
    'ghl': (3, 120),
}


def get_breaker(name, redis_client=None, **kwargs):
    """Registered breaker for name, created on first use."""
    if name not in _registry:
        if redis_client is None:
            from sizzle.extensions import redis_client
        _registry[name] = CircuitBreaker(name, redis_client, **kwargs)
    return _registry[name]


def get_all_breakers():
    return dict(_registry)


def init_breakers(redis_client):
    """(Re)create a breaker for every service in SERVICES."""
    breakers = {
        name: CircuitBreaker(name, redis_client, failure_threshold=threshold, reset_timeout=timeout)
        for name, (threshold, timeout) in SERVICES.items()
    }
    _registry.update(breakers)
    return breakers
