"""
Circuit Breaker for Render Provider Calls

Stops sending renders and status polls to a provider that has stopped
answering. One breaker per provider, shared process-wide.

    CLOSED --(N consecutive transport failures)--> OPEN
    OPEN --(recovery window elapsed)--> HALF_OPEN
    HALF_OPEN --(enough trial successes)--> CLOSED
    HALF_OPEN --(any transport failure)--> OPEN

Only transport failures count. A provider that answers with a 4xx/5xx or a
garbled body is reachable; the adapter reports that as a submission or
status query error. The breaker never retries and adds no timeout.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerConfig:
    """Thresholds for one provider's breaker."""
    failure_threshold: int = 5  # Consecutive transport failures before opening
    recovery_timeout: float = 30.0  # Seconds spent OPEN before trial calls
    half_open_max_calls: int = 3  # Trial calls admitted while HALF_OPEN
    success_threshold: int = 2  # Trial successes needed to close
    counted_exceptions: tuple = (httpx.RequestError,)


@dataclass
class CircuitBreakerStats:
    state: CircuitState = CircuitState.CLOSED
    consecutive_failures: int = 0
    trial_calls: int = 0
    trial_successes: int = 0
    opened_at: float = 0.0
    last_failure_time: float = 0.0
    last_success_time: float = 0.0
    total_calls: int = 0
    total_failures: int = 0
    rejected_calls: int = 0
    last_error: Optional[str] = None


class CircuitBreakerOpen(Exception):
    """The provider's breaker refused the call."""

    def __init__(self, service_name: str, retry_after: float):
        self.service_name = service_name
        self.retry_after = max(retry_after, 0.0)
        super().__init__(
            f"{service_name} circuit is open, retry in {self.retry_after:.1f}s"
        )


class CircuitBreaker:
    """
    Breaker guarding one render provider.

    Usage:
        breaker = get_provider_breaker("shotstack")
        response = await breaker.call(client.request, "POST", url, json=edit)
    """

    _instances: dict[str, "CircuitBreaker"] = {}

    def __init__(
        self,
        service_name: str,
        config: Optional[CircuitBreakerConfig] = None,
    ):
        self.service_name = service_name
        self.config = config or CircuitBreakerConfig()
        self.stats = CircuitBreakerStats()
        self._lock = asyncio.Lock()

        CircuitBreaker._instances[service_name] = self

    @classmethod
    def reset_all(cls):
        for breaker in cls._instances.values():
            breaker.reset()

    @property
    def state(self) -> CircuitState:
        return self.stats.state

    @property
    def is_open(self) -> bool:
        return self.stats.state == CircuitState.OPEN

    def _enter(self, state: CircuitState):
        previous = self.stats.state
        self.stats.state = state
        if state == CircuitState.OPEN:
            self.stats.opened_at = time.time()
        elif state == CircuitState.HALF_OPEN:
            self.stats.trial_calls = 0
            self.stats.trial_successes = 0
        elif state == CircuitState.CLOSED:
            self.stats.consecutive_failures = 0

        logger.info(f"{self.service_name} circuit: {previous.value} -> {state.value}")

    async def _admit(self):
        """Let the call through or raise CircuitBreakerOpen."""
        async with self._lock:
            self.stats.total_calls += 1

            if self.stats.state == CircuitState.OPEN:
                remaining = self.config.recovery_timeout - (time.time() - self.stats.opened_at)
                if remaining > 0:
                    self.stats.rejected_calls += 1
                    raise CircuitBreakerOpen(self.service_name, remaining)
                self._enter(CircuitState.HALF_OPEN)

            if self.stats.state == CircuitState.HALF_OPEN:
                if self.stats.trial_calls >= self.config.half_open_max_calls:
                    self.stats.rejected_calls += 1
                    raise CircuitBreakerOpen(self.service_name, self.config.recovery_timeout)
                self.stats.trial_calls += 1

    def _release_trial(self):
        """Free the HALF_OPEN slot of a call that ended in an uncounted exception."""
        if self.stats.state == CircuitState.HALF_OPEN and self.stats.trial_calls > 0:
            self.stats.trial_calls -= 1

    async def _record_success(self):
        async with self._lock:
            self.stats.last_success_time = time.time()
            self.stats.consecutive_failures = 0

            if self.stats.state == CircuitState.HALF_OPEN:
                self.stats.trial_successes += 1
                if self.stats.trial_successes >= self.config.success_threshold:
                    self._enter(CircuitState.CLOSED)

    async def _record_failure(self, error: Exception):
        async with self._lock:
            self.stats.consecutive_failures += 1
            self.stats.total_failures += 1
            self.stats.last_failure_time = time.time()
            self.stats.last_error = f"{type(error).__name__}: {error}"

            logger.warning(
                f"{self.service_name} unreachable ({self.stats.last_error}), "
                f"{self.stats.consecutive_failures}/{self.config.failure_threshold} in a row"
            )

            if self.stats.state == CircuitState.HALF_OPEN:
                self._enter(CircuitState.OPEN)
            elif (
                self.stats.state == CircuitState.CLOSED
                and self.stats.consecutive_failures >= self.config.failure_threshold
            ):
                self._enter(CircuitState.OPEN)

    async def call(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """
        Run one provider request under the breaker.

        Raises:
            CircuitBreakerOpen: The provider is considered down
            Exception: Whatever func raised, counted or not. Uncounted
                exceptions, cancellation included, leave the breaker as it was.
        """
        await self._admit()

        try:
            result = await func(*args, **kwargs)
        except self.config.counted_exceptions as e:
            await self._record_failure(e)
            raise
        except BaseException:
            self._release_trial()
            raise

        await self._record_success()
        return result

    def reset(self):
        self.stats = CircuitBreakerStats()
        logger.debug(f"{self.service_name} circuit reset")

    def force_open(self):
        self._enter(CircuitState.OPEN)

    def get_status(self) -> dict:
        """Snapshot for the /health endpoint."""
        return {
            "service": self.service_name,
            "state": self.stats.state.value,
            "consecutive_failures": self.stats.consecutive_failures,
            "total_calls": self.stats.total_calls,
            "total_failures": self.stats.total_failures,
            "rejected_calls": self.stats.rejected_calls,
            "last_error": self.stats.last_error,
        }


# Luma trips after fewer failures and waits longer before trial calls
PROVIDER_BREAKERS = {
    "shotstack": CircuitBreakerConfig(failure_threshold=5, recovery_timeout=30.0),
    "luma": CircuitBreakerConfig(failure_threshold=3, recovery_timeout=60.0),
}


def get_provider_breaker(provider: str) -> CircuitBreaker:
    """Shared breaker for a provider tag ('shotstack', 'luma')."""
    existing = CircuitBreaker._instances.get(provider)
    if existing is not None:
        return existing
    return CircuitBreaker(provider, PROVIDER_BREAKERS.get(provider))
