"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import pytest

from codemaker_cli.models import JobHandle, JobOutput, JobRequest, JobStatus


@dataclass
class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instantly."""

    now: float = 0.0
    sleeps: list[float] = field(default_factory=list)

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeJobClient:
    """In-memory job client replaying a status sequence for every job.

    The last status of ``statuses`` repeats once the sequence is exhausted.
    Jobs whose source is listed in ``failing_sources`` report ``FAILED``.
    ``poll_error`` is raised from the ``poll_error_after``-th poll of a job onwards.
    """

    def __init__(
        self,
        statuses: Sequence[JobStatus] = (JobStatus.COMPLETED,),
        *,
        render: Callable[[JobRequest], str] | None = None,
        failing_sources: Sequence[str] = (),
        submit_error: Exception | None = None,
        poll_error: Exception | None = None,
        poll_error_after: int = 0,
    ) -> None:
        self.statuses = list(statuses)
        self.render = render or (lambda request: f"// {request.mode.value}\n{request.source}")
        self.failing_sources = set(failing_sources)
        self.submit_error = submit_error
        self.poll_error = poll_error
        self.poll_error_after = poll_error_after
        self.calls: list[tuple[str, str]] = []
        self.requests: list[JobRequest] = []
        self.closed = False
        self._jobs: dict[str, JobRequest] = {}
        self._polls: dict[str, int] = {}

    def submit(self, request: JobRequest) -> JobHandle:
        self.calls.append(("submit", ""))
        if self.submit_error is not None:
            raise self.submit_error
        self.requests.append(request)
        job_id = f"job-{len(self.requests)}"
        self._jobs[job_id] = request
        self._polls[job_id] = 0
        return JobHandle(job_id=job_id)

    def poll_status(self, handle: JobHandle) -> JobStatus:
        self.calls.append(("poll", handle.job_id))
        polls = self._polls[handle.job_id]
        self._polls[handle.job_id] = polls + 1
        if self.poll_error is not None and polls >= self.poll_error_after:
            raise self.poll_error
        if self._jobs[handle.job_id].source in self.failing_sources:
            return JobStatus.FAILED
        return self.statuses[min(polls, len(self.statuses) - 1)]

    def fetch_output(self, handle: JobHandle) -> JobOutput:
        self.calls.append(("fetch", handle.job_id))
        return JobOutput(source=self.render(self._jobs[handle.job_id]))

    def close(self) -> None:
        self.closed = True

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def credentials(monkeypatch, tmp_path):
    """Provide an API key and an isolated config file location."""

    monkeypatch.setenv("CODEMAKER_API_KEY", "test-key")
    monkeypatch.setenv("CODEMAKER_CONFIG_FILE", str(tmp_path / "home" / "config"))
    for name in (
        "CODEMAKER_ENDPOINT",
        "CODEMAKER_PROCESS_TIMEOUT_SECONDS",
        "CODEMAKER_RETRY_INITIAL_DELAY_SECONDS",
        "CODEMAKER_RETRY_MAX_DELAY_SECONDS",
        "CODEMAKER_NON_EXPONENT_RETRIES",
        "CODEMAKER_MAX_EXPONENT_RETRIES",
    ):
        monkeypatch.delenv(name, raising=False)
    return "test-key"
