"""
Core HTTP client for the Rundeck API.

Handles authentication, API version gating, request/response, and error handling.
"""

import http.client
import json
import logging
import os
import urllib.error
import urllib.request
from collections.abc import Collection
from typing import Any

from rundeck_cli.core.types import VersionedResponse

# Configuration
DEFAULT_BASE_URL = "http://localhost:4440"
DEFAULT_API_VERSION = 24
DEFAULT_TIMEOUT = 60

logger = logging.getLogger("rundeck_cli.core.client")


class CLIError(Exception):
    """Base error class for CLI errors."""

    kind = "error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {"error": self.message, "kind": self.kind}
        if self.details:
            result["details"] = self.details
        return result


class TransportError(CLIError):
    """HTTP error: unexpected status code, connection failure or timeout."""

    kind = "transport"

    def __init__(self, message: str, status: int = 0, details: dict | None = None):
        super().__init__(message, details)
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        if self.status:
            result["status"] = self.status
        return result


class DecodeError(CLIError):
    """Response body did not match the expected schema."""

    kind = "decode"

    def __init__(self, message: str, cause: Exception, details: dict | None = None):
        super().__init__(f"{message}: {cause}", details)
        self.cause = cause


class VersionError(CLIError):
    """Operation is not supported by the configured API version."""

    kind = "version"

    def __init__(self, configured: int, min_version: int, max_version: int | None = None):
        if max_version is None:
            supported = f">= {min_version}"
        else:
            supported = f"{min_version} to {max_version}"
        super().__init__(
            f"API version {configured} not supported (requires {supported})",
            details={"configured": configured, "min_version": min_version, "max_version": max_version},
        )
        self.configured = configured
        self.min_version = min_version
        self.max_version = max_version


class ValidationError(CLIError):
    """Validation error for local input/data issues (not API errors)."""

    kind = "validation"


def _parse_positive_int(value: Any, label: str) -> int:
    """Parse a configuration value that must be a positive integer."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label}: {value!r}")
    if number < 1:
        raise ValidationError(f"Invalid {label}: {value!r}")
    return number


class APIClient:
    """
    Low-level HTTP client for the Rundeck API.

    Handles:
    - Authentication via API token
    - API version gating
    - HTTP methods (GET, POST) with expected status codes
    - Error handling
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        api_version: int | str | None = None,
        timeout: int | None = None,
    ):
        """
        Initialize the API client.

        Args:
            token: Rundeck API token (or RUNDECK_TOKEN env var)
            base_url: Server base URL (or RUNDECK_URL env var)
            api_version: API version to speak (or RUNDECK_API_VERSION env var)
            timeout: Request timeout in seconds (or RUNDECK_TIMEOUT env var)

        """
        self.token = token or os.environ.get("RUNDECK_TOKEN")
        self.base_url = (base_url or os.environ.get("RUNDECK_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.api_version = _parse_positive_int(
            api_version or os.environ.get("RUNDECK_API_VERSION") or DEFAULT_API_VERSION,
            "API version",
        )
        self.timeout = _parse_positive_int(
            timeout or os.environ.get("RUNDECK_TIMEOUT") or DEFAULT_TIMEOUT,
            "timeout",
        )

    def _ensure_token(self) -> str:
        """Ensure API token is configured."""
        if not self.token:
            raise ValidationError("RUNDECK_TOKEN environment variable not set")
        return self.token

    def check_required_api_version(self, response_type: type[VersionedResponse]) -> None:
        """
        Check that a response schema is valid for the configured API version.

        Raises:
            VersionError: If the configured version is outside the schema's range

        """
        if response_type.supports(self.api_version):
            return
        logger.debug(
            "%s requires API %s-%s, configured %s",
            response_type.__name__,
            response_type.min_version,
            response_type.max_version or "",
            self.api_version,
        )
        raise VersionError(self.api_version, response_type.min_version, response_type.max_version)

    def _build_url(self, path: str) -> str:
        """Build full URL from a path relative to the versioned API root."""
        return f"{self.base_url}/api/{self.api_version}/{path.lstrip('/')}"

    def _make_request(
        self,
        method: str,
        path: str,
        data: dict | None = None,
        expects: Collection[int] = (200,),
    ) -> bytes:
        """
        Make an HTTP request to the API.

        Args:
            method: HTTP method (GET, POST)
            path: API path relative to the versioned root (e.g., user/list)
            data: Request body for POST
            expects: Status codes that count as success

        Returns:
            Raw response body

        Raises:
            TransportError: On unexpected status, connection failure or timeout

        """
        token = self._ensure_token()

        url = self._build_url(path)
        headers = {
            "X-Rundeck-Auth-Token": token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        body = json.dumps(data).encode("utf-8") if data is not None else None
        logger.debug("%s %s", method, url)

        try:
            req = urllib.request.Request(url, data=body, headers=headers, method=method)
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                status = response.status
                payload = response.read()

        except urllib.error.HTTPError as e:
            logger.warning("%s %s failed with status %s", method, url, e.code)
            raise _error_from_body(e, e.read())

        except urllib.error.URLError as e:
            logger.warning("%s %s failed: %s", method, url, e.reason)
            raise TransportError(f"Connection error: {e.reason}")

        except TimeoutError:
            raise TransportError(f"Request timed out after {self.timeout} seconds")

        except (http.client.HTTPException, ConnectionError) as e:
            # Dropped connections surface from getresponse() without a URLError wrapper
            logger.warning("%s %s failed: %r", method, url, e)
            raise TransportError(f"Connection error: {e}")

        if status not in expects:
            raise TransportError(
                f"Unexpected status {status} (expected {', '.join(str(c) for c in expects)})",
                status=status,
            )
        return payload

    # =========================================================================
    # HTTP Methods
    # =========================================================================

    def get(self, path: str, expects: Collection[int] = (200,)) -> bytes:
        """Make a GET request."""
        return self._make_request("GET", path, expects=expects)

    def post(
        self,
        path: str,
        data: dict | None = None,
        expects: Collection[int] = (200,),
    ) -> bytes:
        """Make a POST request."""
        return self._make_request("POST", path, data, expects=expects)


def _error_from_body(e: urllib.error.HTTPError, body: bytes) -> TransportError:
    """Build a TransportError, preferring the server's own error message."""
    try:
        error_data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return TransportError(str(e), status=e.code)
    if not isinstance(error_data, dict):
        return TransportError(str(e), status=e.code)
    # Rundeck errors look like {"error": true, "errorCode": "...", "message": "..."}
    message = error_data.get("message")
    if not isinstance(message, str) or not message:
        message = str(e)
    return TransportError(message, status=e.code, details=error_data)
