"""HTTP transport for the jobs API."""

import json
import logging
from typing import Any, Dict, Optional
import httpx
from pydantic import ValidationError
from . import __version__
from .errors import (
    AuthenticationFailed,
    JobNotFound,
    MalformedResponse,
    RequestFailed,
    TransportError,
)
from .models import JobRequest, JobStatusSnapshot

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = f"humanqa/{__version__}"
EMPTY_BODY = "(empty response body)"


def extract_error_message(response: httpx.Response) -> str:
    """Best human-readable message from an error response."""
    text = response.text
    try:
        data = json.loads(text)
    except ValueError:
        return text or EMPTY_BODY
    if isinstance(data, dict):
        message = data.get("error") or data.get("message")
        if isinstance(message, str) and message:
            return message
    return json.dumps(data)


class ApiTransport:
    """Issues submit and status calls. Holds no state between calls."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers={
                "Authorization": f"Bearer {api_key}",
                "User-Agent": user_agent,
                "Connection": "close",
            },
            transport=transport,
        )

    def submit(self, request: JobRequest) -> str:
        """Create a job and return its id."""
        response = self._send("POST", "/api/jobs", json=request.to_body())
        if not response.is_success:
            self._raise_for_response(response, operation="create job")

        data = self._decode(response)
        job_id = data.get("jobId")
        if not isinstance(job_id, str) or not job_id:
            raise MalformedResponse("API did not return a job ID", field="jobId")
        return job_id

    def fetch_status(self, job_id: str) -> JobStatusSnapshot:
        """Fetch the current status snapshot of a job."""
        response = self._send("GET", f"/api/job/{job_id}")
        if response.status_code == 404:
            raise JobNotFound(job_id)
        if not response.is_success:
            self._raise_for_response(response, operation="get job status")

        data = self._decode(response)
        try:
            return JobStatusSnapshot.model_validate(data)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise MalformedResponse(
                f"Unexpected job status response for {job_id}: {fields}",
                field=fields or None,
            ) from e

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            return self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.error("Network error calling %s: %s", url, e)
            raise TransportError(str(e) or type(e).__name__, url=url) from e

    def _raise_for_response(self, response: httpx.Response, operation: str) -> None:
        logger.error(
            "Failed to %s: status %s, URL %s, body %s",
            operation,
            response.status_code,
            response.request.url,
            response.text or "(empty)",
        )
        message = extract_error_message(response)
        if response.status_code == 401:
            raise AuthenticationFailed(message)
        raise RequestFailed(response.status_code, message, operation=operation)

    @staticmethod
    def _decode(response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponse(f"Response is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedResponse("Response is not a JSON object")
        return data

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiTransport":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
