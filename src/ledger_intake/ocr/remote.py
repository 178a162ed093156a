"""
Remote OCR client.

Posts the file to an HTTP OCR service and reads the recognized text from
either {"text": ...} or {"data": {"text": ...}}.
"""

import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)


class RemoteOcrError(Exception):
    """Remote OCR request failed or returned an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RemoteOcrClient:
    """
    Client for a remote OCR endpoint.

    Features:
    - Multipart upload (field "file")
    - Automatic retry with backoff for gateway errors
    - Per-request timeout
    """

    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        endpoint: str,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = 2,
        backoff_factor: float = 0.5,
    ):
        """
        Initialize remote OCR client.

        Args:
            endpoint: Full URL of the OCR endpoint
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts for transient failures
            backoff_factor: Backoff factor for retries
        """
        self.endpoint = endpoint
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=[502, 503, 504],
            allowed_methods=["POST"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def recognize(self, content: bytes, filename: str) -> str:
        """
        Send a file for recognition.

        Returns:
            Recognized text (may be empty)

        Raises:
            RemoteOcrError: On connection errors, timeouts, HTTP errors or
                a body that is not JSON
        """
        try:
            response = self.session.post(
                self.endpoint,
                files={"file": (filename, content)},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise RemoteOcrError(f"Remote OCR timed out after {self.timeout}s: {e}")
        except requests.exceptions.RequestException as e:
            raise RemoteOcrError(f"Remote OCR request failed: {e}")

        if not response.ok:
            raise RemoteOcrError(
                f"Remote OCR returned {response.status_code}: {response.reason}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise RemoteOcrError(f"Remote OCR returned a non-JSON body: {e}")

        if not isinstance(payload, dict):
            raise RemoteOcrError("Remote OCR returned an unexpected JSON shape")

        text = payload.get("text")
        if not text and isinstance(payload.get("data"), dict):
            text = payload["data"].get("text")

        logger.debug(f"Remote OCR returned {len(text or '')} characters for {filename}")
        return str(text or "")
