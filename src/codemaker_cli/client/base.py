"""Client interface the job lifecycle engine depends on."""

from __future__ import annotations

from typing import Protocol

from codemaker_cli.models import JobHandle, JobOutput, JobRequest, JobStatus


class JobClient(Protocol):
    """Protocol implemented by remote job transports."""

    def submit(self, request: JobRequest) -> JobHandle:
        """Create a job and return its handle. Raises ``SubmissionError``."""

    def poll_status(self, handle: JobHandle) -> JobStatus:
        """Return a fresh status snapshot. Raises ``TransportError``."""

    def fetch_output(self, handle: JobHandle) -> JobOutput:
        """Return the output of a completed job. Raises ``TransportError``."""

    def close(self) -> None:
        """Release the underlying transport."""
