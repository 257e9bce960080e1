from __future__ import annotations
from typing import Any, Dict, Optional


class LmsRecordsError(Exception):
    """Base class for every error the CLI reports and exits on."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ParseError(LmsRecordsError):
    """Input file is missing, unreadable or has nothing in it."""


class ConfigError(LmsRecordsError):
    """An LMS_* setting has a value that can't be used."""


class AuthError(LmsRecordsError):
    """Login or token refresh failed. Fatal for the whole invocation."""

    # set by execute_plan when a run stops halfway: results of the items already sent
    partial_report = None


class RemoteError(LmsRecordsError):
    """A single LMS call failed (transport, HTTP status or success=false)."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        self.status_code = status_code
        super().__init__(message, details)
