"""Exception hierarchy shared by the crawl and audit pipeline."""

from __future__ import annotations

from typing import Optional


class A11yAuditError(Exception):
    """Base class for every error raised by the auditor."""


class InvalidArgumentError(A11yAuditError, ValueError):
    """Rejected input, raised before any network I/O starts."""


class AuditClientError(A11yAuditError):
    """The accessibility API could not produce a result for a URL."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(AuditClientError):
    """The API rejected the configured key or token (HTTP 401)."""


class AccessDeniedError(AuthenticationError):
    """Credentials were accepted but access was refused (HTTP 403)."""


class AuditApiError(AuditClientError):
    """Any other non-200 answer or an unreadable response body."""


class NetworkError(AuditClientError):
    """The API host could not be reached or did not answer in time."""
