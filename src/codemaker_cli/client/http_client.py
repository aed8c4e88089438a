"""HTTP transport for the CodeMaker processing API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from codemaker_cli import __version__
from codemaker_cli.errors import CodemakerError, SubmissionError, TransportError
from codemaker_cli.models import JobHandle, JobOutput, JobRequest, JobStatus, ModifyPolicy

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.codemaker.ai"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_USER_AGENT = f"codemaker-cli/{__version__}"

_PROCESS_PATH = "/process"
_STATUS_PATH = "/process/status"
_OUTPUT_PATH = "/process/output"


class CodemakerHttpClient:
    """JSON-over-HTTP client with timeout and connection retries."""

    def __init__(
        self,
        *,
        api_key: str,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {
            "Authorization": f"Bearer {api_key}",
            "User-Agent": user_agent,
            "Accept": "application/json",
        }
        # Connection-level retries only; a request that reached the server is never resent.
        self._client = httpx.Client(
            base_url=endpoint,
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers=headers,
            transport=transport or httpx.HTTPTransport(retries=max_retries),
        )

    def submit(self, request: JobRequest) -> JobHandle:
        payload = self._post(
            _PROCESS_PATH,
            {"process": _process_payload(request)},
            error_type=SubmissionError,
        )
        job_id = payload.get("id")
        if not isinstance(job_id, str) or not job_id:
            raise SubmissionError("The service response did not contain a job id")
        return JobHandle(job_id=job_id)

    def poll_status(self, handle: JobHandle) -> JobStatus:
        payload = self._post(_STATUS_PATH, {"id": handle.job_id}, error_type=TransportError)
        raw = payload.get("status")
        try:
            return JobStatus(raw)
        except ValueError:
            logger.warning("Unrecognised status %r for job %s", raw, handle.job_id)
            return JobStatus.IN_PROGRESS

    def fetch_output(self, handle: JobHandle) -> JobOutput:
        payload = self._post(_OUTPUT_PATH, {"id": handle.job_id}, error_type=TransportError)
        output = payload.get("output")
        source = output.get("source") if isinstance(output, dict) else None
        if not isinstance(source, str):
            raise TransportError(f"The output of job {handle.job_id} did not contain source")
        return JobOutput(source=source)

    def _post(
        self,
        path: str,
        body: dict[str, Any],
        *,
        error_type: type[CodemakerError],
    ) -> dict[str, Any]:
        try:
            response = self._client.post(path, json=body)
        except httpx.TimeoutException as exc:
            raise error_type(f"Timeout calling {path}") from exc
        except httpx.HTTPError as exc:
            raise error_type(f"HTTP error calling {path}: {exc}") from exc

        if not response.is_success:
            raise error_type(f"HTTP {response.status_code} from {path}: {response.text[:200]}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise error_type(f"Invalid JSON returned from {path}") from exc
        if not isinstance(payload, dict):
            raise error_type(f"Unexpected payload returned from {path}")
        return payload

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> CodemakerHttpClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def _process_payload(request: JobRequest) -> dict[str, Any]:
    options: dict[str, Any] = {"modify": ModifyPolicy(request.modify).value}
    if request.codepath:
        options["codePath"] = request.codepath
    if request.language_version:
        options["languageVersion"] = request.language_version
    return {
        "mode": request.mode.value,
        "language": request.language,
        "input": {"source": request.source},
        "options": options,
    }
