"""Submit, poll and collect one processing job.

The engine drives a single job through ``submit -> poll* -> fetch``. Between
polls it sleeps for a delay taken from :class:`BackoffPolicy`; it stops on a
terminal service status, on the client-side deadline, or on a stop request.
A stop request that is already pending when ``run`` is called prevents the
submission altogether.

Submission and transport errors are never retried here. Telling "the job
failed" apart from "we could not ask about the job" is left to the caller,
which decides whether to rerun the whole operation.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from codemaker_cli.client.base import JobClient
from codemaker_cli.errors import (
    ClientTimedOutError,
    JobCancelledError,
    ServiceProcessingFailedError,
    ServiceTimedOutError,
)
from codemaker_cli.models import JobHandle, JobOutput, JobRequest, JobStatus

DEFAULT_PROCESS_TIMEOUT_SECONDS = 600.0
_STOP_CHECK_INTERVAL_SECONDS = 0.1


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    """Maps a poll attempt number to the wait before the next poll."""

    initial_delay_seconds: float = 1.0
    max_delay_seconds: float = 60.0
    non_exponent_retries: int = 8
    max_exponent_retries: int = 16

    def delay_for(self, attempt: int) -> float:
        exponent = max(0, attempt - self.non_exponent_retries)
        exponent = min(exponent, self.max_exponent_retries)
        return min(self.max_delay_seconds, self.initial_delay_seconds * (2**exponent))


class JobLifecycleEngine:
    """Runs one job request to a terminal state and returns its output."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        client: JobClient,
        backoff: BackoffPolicy | None = None,
        timeout_seconds: float = DEFAULT_PROCESS_TIMEOUT_SECONDS,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        stop_requested: Callable[[], bool] | None = None,
    ) -> None:
        self.client = client
        self.backoff = backoff or BackoffPolicy()
        self.timeout_seconds = timeout_seconds
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock
        self._sleep = sleep
        self._stop_requested = stop_requested

    def run(self, request: JobRequest) -> JobOutput:
        if self._stop_requested is not None and self._stop_requested():
            raise JobCancelledError("Stop requested before the job was submitted")
        handle = self.client.submit(request)
        self.logger.debug(
            "Submitted job %s (mode=%s language=%s)",
            handle.job_id,
            request.mode.value,
            request.language,
        )
        deadline = self._clock() + self.timeout_seconds
        self._wait_for_completion(handle, deadline=deadline)
        output = self.client.fetch_output(handle)
        self.logger.debug("Fetched output of job %s (%d chars)", handle.job_id, len(output.source))
        return output

    def _wait_for_completion(self, handle: JobHandle, *, deadline: float) -> None:
        attempt = 0
        while True:
            status = self.client.poll_status(handle)
            if status is JobStatus.COMPLETED:
                return
            if status is JobStatus.FAILED:
                raise ServiceProcessingFailedError(
                    f"The processing of job {handle.job_id} has failed",
                    job_id=handle.job_id,
                )
            if status is JobStatus.TIMED_OUT:
                raise ServiceTimedOutError(
                    f"The processing of job {handle.job_id} timed out on the service",
                    job_id=handle.job_id,
                )

            if self._clock() >= deadline:
                raise ClientTimedOutError(
                    f"Job {handle.job_id} did not finish within {self.timeout_seconds:g}s",
                    job_id=handle.job_id,
                    timeout_seconds=self.timeout_seconds,
                )
            if self._stop_requested is not None and self._stop_requested():
                raise JobCancelledError(
                    f"Stopped waiting for job {handle.job_id}",
                    job_id=handle.job_id,
                )

            delay = self.backoff.delay_for(attempt)
            self.logger.debug(
                "Job %s is %s, next poll in %.1fs (attempt %d)",
                handle.job_id,
                status.value,
                delay,
                attempt,
            )
            self._sleep_with_stop(delay)
            attempt += 1

    def _sleep_with_stop(self, seconds: float) -> None:
        if self._stop_requested is None:
            self._sleep(seconds)
            return
        deadline = self._clock() + seconds
        while not self._stop_requested():
            remaining = deadline - self._clock()
            if remaining <= 0:
                return
            self._sleep(min(_STOP_CHECK_INTERVAL_SECONDS, remaining))
