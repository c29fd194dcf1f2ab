"""
Board Insights Hub — Circuit Breaker
======================================

One breaker per upstream service, shared by the async API integration
(integrations/monday.py) and the sync CLI fetcher (scripts/fetch_monday.py).
After ``failure_threshold`` consecutive failures the breaker opens and every
call fails fast with CircuitOpenError. Once ``reset_timeout`` seconds pass,
exactly one probe request is let through: success closes the breaker,
failure opens it again.

Thresholds come from <SERVICE>_CIRCUIT_THRESHOLD and
<SERVICE>_CIRCUIT_RESET_SECONDS (e.g. MONDAY_CIRCUIT_THRESHOLD=5).

Usage:
    breaker = CircuitBreaker.get("monday")
    breaker.guard()
    try:
        data = await post_graphql(...)
    except aiohttp.ClientError:
        breaker.record_failure()
        raise
    breaker.record_success()

    response = circuit_breaker_request("monday", url, session=session, json=body)
"""
import os
import threading
import time
from typing import Dict, Optional

import requests

from scripts.lib.errors import APIError, APITimeoutError, CircuitOpenError
from scripts.lib.logger import setup_logger

logger = setup_logger("circuit_breaker")

DEFAULT_FAILURE_THRESHOLD = 5
DEFAULT_RESET_TIMEOUT = 60


def breaker_settings(service: str) -> Dict[str, int]:
    prefix = service.upper()
    return {
        "failure_threshold": int(
            os.getenv(f"{prefix}_CIRCUIT_THRESHOLD", DEFAULT_FAILURE_THRESHOLD)
        ),
        "reset_timeout": int(
            os.getenv(f"{prefix}_CIRCUIT_RESET_SECONDS", DEFAULT_RESET_TIMEOUT)
        ),
    }


class CircuitBreaker:
    """
    CLOSED: calls pass, consecutive failures are counted.
    OPEN: calls are refused until reset_timeout has elapsed.
    HALF_OPEN: a single probe call is in flight; others are refused.
    """

    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"

    _instances: Dict[str, "CircuitBreaker"] = {}
    _registry_lock = threading.Lock()

    def __init__(self, service: str, failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
                 reset_timeout: int = DEFAULT_RESET_TIMEOUT):
        self.service = service
        self.failure_threshold = max(1, failure_threshold)
        self.reset_timeout = reset_timeout
        self.state = self.CLOSED
        self.failure_count = 0
        self.opened_at = 0.0
        self._lock = threading.Lock()

    @classmethod
    def get(cls, service: str) -> "CircuitBreaker":
        """Shared breaker for ``service``, created from its env settings."""
        with cls._registry_lock:
            if service not in cls._instances:
                cls._instances[service] = cls(service, **breaker_settings(service))
            return cls._instances[service]

    @classmethod
    def reset_all(cls):
        with cls._registry_lock:
            cls._instances.clear()

    def allow_request(self) -> bool:
        with self._lock:
            if self.state == self.CLOSED:
                return True
            if self.state == self.OPEN and time.monotonic() - self.opened_at >= self.reset_timeout:
                self.state = self.HALF_OPEN
                logger.info("Circuit half-open for '%s', sending one probe", self.service)
                return True
            return False

    def guard(self):
        """Raise CircuitOpenError unless a request may go out now."""
        if not self.allow_request():
            raise CircuitOpenError(self.service, self.failure_count, self.time_until_reset)

    def record_success(self):
        with self._lock:
            if self.state != self.CLOSED:
                logger.info("Circuit closed for '%s', service recovered", self.service)
            self.state = self.CLOSED
            self.failure_count = 0

    def record_failure(self):
        with self._lock:
            self.failure_count += 1
            if self.state == self.HALF_OPEN or self.failure_count >= self.failure_threshold:
                reopened = self.state == self.HALF_OPEN
                self.state = self.OPEN
                self.opened_at = time.monotonic()
                logger.warning(
                    "Circuit %s for '%s' after %d failures (retry in %ds)",
                    "re-opened" if reopened else "opened",
                    self.service, self.failure_count, self.reset_timeout,
                )

    @property
    def time_until_reset(self) -> float:
        if self.state != self.OPEN:
            return 0.0
        return max(0.0, self.reset_timeout - (time.monotonic() - self.opened_at))

    def status(self) -> dict:
        return {
            "service": self.service,
            "state": self.state,
            "failures": self.failure_count,
            "threshold": self.failure_threshold,
            "time_until_reset": round(self.time_until_reset, 1),
        }


def circuit_breaker_request(
    service: str,
    url: str,
    method: str = "POST",
    session: Optional[requests.Session] = None,
    timeout: int = 30,
    **kwargs,
) -> requests.Response:
    """
    Send one HTTP request through the service's breaker.

    5xx responses, timeouts and connection errors count as failures; any
    other response counts as success and is returned for the caller to
    interpret (401, 429 and GraphQL errors are the caller's business).

    Raises:
        CircuitOpenError: The breaker is open.
        APITimeoutError: No response within ``timeout`` seconds.
        APIError: Connection or other transport failure.
    """
    breaker = CircuitBreaker.get(service)
    breaker.guard()

    sender = session or requests
    start = time.monotonic()
    try:
        response = sender.request(method, url, timeout=timeout, **kwargs)
    except requests.exceptions.Timeout:
        breaker.record_failure()
        logger.error("%s %s timed out after %.2fs", method, url, time.monotonic() - start)
        raise APITimeoutError(url, timeout)
    except requests.RequestException as e:
        breaker.record_failure()
        logger.error("%s %s failed: %s", method, url, e)
        raise APIError(f"Request to {service} failed: {e}", url=url) from e

    elapsed = time.monotonic() - start
    if response.status_code >= 500:
        breaker.record_failure()
        logger.warning("%s %s -> %d in %.2fs [%s]", method, url, response.status_code, elapsed, breaker.state)
    else:
        breaker.record_success()
        logger.debug("%s %s -> %d in %.2fs", method, url, response.status_code, elapsed)
    return response
