"""
Circuit breaker and retry policies guarding calls to Adobe Sign.
"""
import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Tuple, Type, TypeVar

from esign_errors import AuthenticationError, CircuitOpenError, RemoteCallError
from settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    CLOSED = "closed"        # Normal operation
    OPEN = "open"            # Failure rate exceeded, calls rejected
    HALF_OPEN = "half_open"  # Trial call allowed


@dataclass
class ResilienceConfig:
    """Configuration for the Adobe Sign circuit breaker and retry policy."""
    # Circuit breaker settings
    failure_rate_threshold: float = 50.0   # Percent of failed calls in the window
    sliding_window_size: int = 10          # Number of most recent calls considered
    wait_duration_in_open_state: float = 30.0

    # Retry settings
    max_attempts: int = 3
    wait_duration: float = 2.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResilienceConfig":
        # Zero retries still means the call is made once
        return cls(max_attempts=max(1, settings.max_retries))


class CircuitBreaker:
    """
    Count-based circuit breaker.

    Opens once the sliding window is full and its failure rate reaches the
    threshold. While open, calls fail with CircuitOpenError without running.
    After the wait duration one trial call decides between closing and reopening.
    """

    def __init__(
        self,
        name: str,
        config: ResilienceConfig,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.config = config
        self.state = CircuitState.CLOSED
        self._clock = clock
        self._outcomes: Deque[bool] = deque(maxlen=config.sliding_window_size)
        self._opened_at = 0.0
        self._trial_in_flight = False

    @property
    def failure_rate(self) -> float:
        """Failure percentage over the recorded window (0 when empty)."""
        if not self._outcomes:
            return 0.0
        failures = sum(1 for ok in self._outcomes if not ok)
        return failures * 100.0 / len(self._outcomes)

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Execute a coroutine function with circuit breaker protection."""
        trial = self._before_call()
        try:
            result = await func(*args, **kwargs)
        except asyncio.CancelledError:
            if trial:
                self._trial_in_flight = False
            raise
        except Exception:
            self._on_failure(trial)
            raise
        self._on_success(trial)
        return result

    def _before_call(self) -> bool:
        """Admit or reject a call; returns True when the call is the half-open trial."""
        if self.state == CircuitState.CLOSED:
            return False
        if self.state == CircuitState.OPEN:
            elapsed = self._clock() - self._opened_at
            if elapsed < self.config.wait_duration_in_open_state:
                remaining = self.config.wait_duration_in_open_state - elapsed
                raise CircuitOpenError(
                    f"Circuit breaker '{self.name}' is OPEN. Calls blocked for another {remaining:.1f}s"
                )
            logger.info(f"Circuit breaker '{self.name}': transitioning to HALF-OPEN")
            self.state = CircuitState.HALF_OPEN
        elif self._trial_in_flight:
            raise CircuitOpenError(f"Circuit breaker '{self.name}' is HALF-OPEN. Trial call in progress")
        self._trial_in_flight = True
        return True

    def _on_success(self, trial: bool = False) -> None:
        if trial:
            self._trial_in_flight = False
            logger.info(f"Circuit breaker '{self.name}': recovery detected, transitioning to CLOSED")
            self.state = CircuitState.CLOSED
            self._outcomes.clear()
            return
        if self.state == CircuitState.CLOSED:
            self._outcomes.append(True)

    def _on_failure(self, trial: bool = False) -> None:
        if trial:
            self._trial_in_flight = False
            logger.warning(f"Circuit breaker '{self.name}': trial call failed, re-opening circuit")
            self._open()
            return
        # Late results from calls admitted before the circuit opened are ignored
        if self.state != CircuitState.CLOSED:
            return
        self._outcomes.append(False)
        if len(self._outcomes) >= self.config.sliding_window_size:
            rate = self.failure_rate
            if rate >= self.config.failure_rate_threshold:
                logger.warning(
                    f"Circuit breaker '{self.name}': failure rate {rate:.0f}% reached threshold "
                    f"({self.config.failure_rate_threshold:.0f}%). Opening circuit for "
                    f"{self.config.wait_duration_in_open_state}s"
                )
                self._open()

    def _open(self) -> None:
        self.state = CircuitState.OPEN
        self._opened_at = self._clock()
        self._outcomes.clear()


class Retry:
    """Re-attempts a failing call a bounded number of times with a fixed delay."""

    def __init__(
        self,
        name: str,
        config: ResilienceConfig,
        retry_on: Tuple[Type[BaseException], ...] = (AuthenticationError, RemoteCallError),
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.name = name
        self.config = config
        self.retry_on = retry_on
        self._sleep = sleep

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Execute a coroutine function, retrying on the configured error types."""
        attempts = max(1, self.config.max_attempts)
        for attempt in range(1, attempts + 1):
            try:
                return await func(*args, **kwargs)
            except self.retry_on as e:
                if attempt == attempts:
                    logger.error(f"Retry '{self.name}': giving up after {attempts} attempt(s): {e}")
                    raise
                logger.warning(
                    f"Retry '{self.name}': call failed: {e}. "
                    f"Retrying in {self.config.wait_duration:.1f}s (attempt {attempt}/{attempts})..."
                )
                await self._sleep(self.config.wait_duration)
        raise RuntimeError("Retry loop exhausted without a result")
