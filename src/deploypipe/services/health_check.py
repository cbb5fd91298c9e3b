"""Health-check polling for activated deployments."""

import time
from datetime import datetime, timezone
from typing import List, Optional

import requests

from deploypipe.constants import (
    HEALTH_CHECK_INTERVAL_SECONDS,
    HEALTH_CHECK_PATH,
    HEALTH_CHECK_TIMEOUT_SECONDS,
    HEALTH_PROBE_TIMEOUT_SECONDS,
)
from deploypipe.errors import DeployTimeoutError
from deploypipe.errors_catalog import actionable_error
from deploypipe.models import HealthCheckAttempt, ProbeOutcome


class FixedIntervalRetry:
    """Waits the same delay between every probe, no backoff, no jitter."""

    def __init__(self, interval_seconds: float = HEALTH_CHECK_INTERVAL_SECONDS):
        self.interval_seconds = interval_seconds

    def next_delay(self, attempt: int) -> float:
        return self.interval_seconds


class HealthChecker:
    """Polls ``<base-url>/health`` until it answers 2xx or the deadline passes."""

    def __init__(
        self,
        logger,
        console,
        timeout_seconds: float = HEALTH_CHECK_TIMEOUT_SECONDS,
        retry_policy: Optional[FixedIntervalRetry] = None,
        requests_module=requests,
        time_module=time,
    ):
        self.logger = logger
        self.console = console
        self.timeout_seconds = timeout_seconds
        self.retry_policy = retry_policy or FixedIntervalRetry()
        self.requests = requests_module
        self.time = time_module

    def health_url(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}{HEALTH_CHECK_PATH}"

    def probe(self, url: str, number: int) -> HealthCheckAttempt:
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            response = self.requests.get(url, timeout=HEALTH_PROBE_TIMEOUT_SECONDS)
        except self.requests.RequestException as exc:
            return HealthCheckAttempt(
                number=number,
                timestamp=timestamp,
                outcome=ProbeOutcome.TRANSPORT_ERROR,
                error=str(exc),
            )

        status_code = response.status_code
        outcome = ProbeOutcome.READY if 200 <= status_code < 300 else ProbeOutcome.NOT_READY
        return HealthCheckAttempt(
            number=number,
            timestamp=timestamp,
            outcome=outcome,
            status_code=status_code,
        )

    def wait_for_ready(
        self,
        base_url: str,
        timeout_seconds: Optional[float] = None,
    ) -> List[HealthCheckAttempt]:
        url = self.health_url(base_url)
        deadline = timeout_seconds if timeout_seconds is not None else self.timeout_seconds
        attempts: List[HealthCheckAttempt] = []

        self.console.print(f"[yellow]Waiting for {url} to become healthy...[/yellow]")
        self.logger.info("Performing health check against %s (timeout %.0fs)", url, deadline)

        start = self.time.monotonic()
        while self.time.monotonic() - start < deadline:
            attempt = self.probe(url, len(attempts) + 1)
            attempts.append(attempt)

            if attempt.outcome is ProbeOutcome.READY:
                self.console.print("[green]Health check passed.[/green]")
                self.logger.info("Health check passed after %s attempt(s)", attempt.number)
                return attempts

            self.logger.debug(
                "Health probe %s not ready: %s",
                attempt.number,
                attempt.error or f"HTTP {attempt.status_code}",
            )
            self.time.sleep(self.retry_policy.next_delay(attempt.number))

        raise DeployTimeoutError(
            actionable_error(
                "health_check_timeout",
                timeout=f"{deadline:g}",
                attempts=len(attempts),
                url=url,
            )
        )
