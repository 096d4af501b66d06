"""Client for the external accessibility-testing API."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from a11y_auditor import config
from a11y_auditor.errors import (
    AccessDeniedError,
    AuditApiError,
    AuditClientError,
    AuthenticationError,
    NetworkError,
)
from a11y_auditor.models import AuthStatus

logger = logging.getLogger(__name__)


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return resp.reason or f"HTTP {resp.status_code}"


def classify_response_error(resp: requests.Response) -> AuditClientError:
    status = resp.status_code
    if status == 401:
        return AuthenticationError("Authentication failed: Invalid API key or auth token", status)
    if status == 403:
        return AccessDeniedError("Authentication failed: Access denied", status)
    return AuditApiError(f"API Error: {_error_message(resp)}", status)


class AuditClient:
    """Submits one URL at a time to the accessibility API."""

    def __init__(
        self,
        api_url: str = config.A11Y_API_URL,
        api_key: str = config.A11Y_API_KEY,
        auth_token: str = config.A11Y_AUTH_TOKEN,
        language: str = config.REPORT_LANGUAGE,
        highlight: bool = config.ENABLE_HIGHLIGHT,
        screenshots: bool = config.ENABLE_SCREENSHOTS,
        origin: str = config.A11Y_API_ORIGIN,
        timeout: float = config.AUDIT_TIMEOUT,
        auth_timeout: float = config.AUTH_TEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.auth_token = auth_token
        self.language = language
        self.highlight = highlight
        self.screenshots = screenshots
        self.origin = origin
        self.timeout = timeout
        self.auth_timeout = auth_timeout
        self.session = session or requests.Session()

        if not self.api_key:
            logger.warning("A11Y_API_KEY is not configured")
        logger.info("Audit client using %s (API key: %s, auth token: %s)",
                    self.api_url, "yes" if self.api_key else "no",
                    "yes" if self.auth_token else "no")

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-API-Key": self.api_key,
            "User-Agent": config.API_USER_AGENT,
        }
        if self.origin:
            headers["Origin"] = self.origin
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    def _post(self, body: dict[str, Any], timeout: float) -> dict[str, Any]:
        try:
            resp = self.session.post(self.api_url, json=body, headers=self._headers(), timeout=timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise NetworkError("Network error: Unable to reach the API") from e
        except requests.RequestException as e:
            raise AuditApiError(f"Request error: {e}") from e

        if resp.status_code != 200:
            raise classify_response_error(resp)

        try:
            data = resp.json()
        except ValueError as e:
            raise AuditApiError("API Error: response is not valid JSON", resp.status_code) from e
        if not isinstance(data, dict):
            raise AuditApiError("API Error: unexpected response payload", resp.status_code)
        return data

    def submit(self, url: str) -> dict[str, Any]:
        """Raw rule-evaluation payload for ``url``; raises AuditClientError subclasses."""
        body = {
            "url": url,
            "highlight": self.highlight,
            "screenshots": self.screenshots,
            "language": self.language,
            "enableGroupSummaries": True,
        }
        return self._post(body, self.timeout)

    def test_auth(self) -> AuthStatus:
        """Check the configured credentials against a fixed canary URL."""
        if not self.api_key:
            return AuthStatus(valid=False, message="API key not configured")

        body = {
            "url": config.AUTH_TEST_URL,
            "highlight": False,
            "screenshots": False,
            "language": self.language,
            "enableGroupSummaries": False,
        }
        logger.info("Testing API authentication against %s", self.api_url)
        try:
            self._post(body, self.auth_timeout)
        except AuditClientError as e:
            logger.warning("Authentication test failed: %s", e.message)
            details = {"status": e.status_code} if e.status_code else None
            return AuthStatus(valid=False, message=e.message, details=details)

        return AuthStatus(
            valid=True,
            message="Authentication successful",
            details={
                "apiUrl": self.api_url,
                "hasApiKey": bool(self.api_key),
                "hasAuthToken": bool(self.auth_token),
                "responseStatus": 200,
            },
        )
