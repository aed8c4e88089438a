"""Error kinds raised while preparing, running and collecting processing jobs."""

from __future__ import annotations


class CodemakerError(RuntimeError):
    """Base class for all client-side failures."""


class UnsupportedLanguageError(CodemakerError):
    """No language or test naming convention is registered for the input."""


class ConfigurationError(CodemakerError):
    """Settings or credentials could not be resolved."""


class SubmissionError(CodemakerError):
    """The service rejected the job or could not be reached to accept it."""


class TransportError(CodemakerError):
    """A status or output call to the service failed."""


class ServiceProcessingError(CodemakerError):
    """The service reported a terminal negative outcome for a job."""

    def __init__(self, message: str, *, job_id: str) -> None:
        super().__init__(message)
        self.job_id = job_id


class ServiceProcessingFailedError(ServiceProcessingError):
    """The service reported the job as failed."""


class ServiceTimedOutError(ServiceProcessingError):
    """The service reported that it gave up on the job."""


class ClientTimedOutError(CodemakerError):
    """The job was still running when the client-side deadline passed."""

    def __init__(self, message: str, *, job_id: str, timeout_seconds: float) -> None:
        super().__init__(message)
        self.job_id = job_id
        self.timeout_seconds = timeout_seconds


class JobCancelledError(CodemakerError):
    """A shutdown request stopped the job or prevented it from being submitted."""

    def __init__(self, message: str, *, job_id: str | None = None) -> None:
        super().__init__(message)
        self.job_id = job_id
