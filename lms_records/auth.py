from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Tuple

import requests
from pydantic import ValidationError

from .config import Settings
from .errors import AuthError
from .models import TokenResponse

log = logging.getLogger(__name__)


def read_refresh_token(path: str) -> str:
    try:
        token = Path(path).read_text(encoding="utf-8").strip()
    except OSError as e:
        raise AuthError(f"Could not find {path} file, log in first") from e
    if not token:
        raise AuthError(f"{path} is empty, log in again")
    return token


def save_refresh_token(path: str, token: str) -> None:
    Path(path).write_text(token, encoding="utf-8")
    log.debug("refresh token saved to %s", path)


def _token_response(r: requests.Response, what: str) -> TokenResponse:
    try:
        res = TokenResponse.model_validate(r.json())
    except (ValueError, ValidationError) as e:
        raise AuthError(f"GoITeens LMS returned an invalid {what} response (HTTP {r.status_code})") from e
    if not res.success:
        raise AuthError(f"GoITeens LMS returned an error: {res.error or 'unknown error'}")
    if not res.refresh_token:
        raise AuthError(f"GoITeens LMS {what} response has no refresh token")
    return res


def login(username: str, password: str, settings: Settings, http: Optional[requests.Session] = None) -> str:
    """Log in with admin credentials, store the refresh token, return it."""
    http = http or requests.Session()
    try:
        r = http.post(
            f"{settings.api_url}/auth/login",
            json={
                "username": username,
                "password": password,
                "url": settings.login_page_url,
            },
            timeout=settings.login_timeout,
        )
    except requests.RequestException as e:
        raise AuthError(f"Network error while logging in: {e}") from e

    res = _token_response(r, "login")
    save_refresh_token(settings.token_file, res.refresh_token)
    log.info("logged in as %s", username)
    return res.refresh_token


def refresh(refresh_token: str, settings: Settings, http: Optional[requests.Session] = None) -> Tuple[str, str]:
    """Exchange a refresh token for (access_token, new_refresh_token)."""
    http = http or requests.Session()
    try:
        r = http.post(
            f"{settings.api_url}/auth/refresh",
            headers={"Cookie": f"refreshToken={refresh_token}"},
            timeout=settings.timeout,
        )
    except requests.RequestException as e:
        raise AuthError(f"Network error while refreshing the session: {e}") from e

    res = _token_response(r, "refresh")
    if not res.access_token:
        raise AuthError("GoITeens LMS refresh response has no access token")
    return res.access_token, res.refresh_token


class TokenSession:
    """
    Holds the access token for one run.
    The token is fetched once on first use; `renew()` is allowed a single time
    (for an access token that expired mid-run), after that auth failures are fatal.
    """

    def __init__(self, settings: Settings, http: Optional[requests.Session] = None, max_renewals: int = 1):
        self.settings = settings
        self.http = http or requests.Session()
        self.max_renewals = max_renewals
        self.renewals = 0
        self._access_token: Optional[str] = None

    def _fetch(self) -> str:
        current = read_refresh_token(self.settings.token_file)
        access, rotated = refresh(current, self.settings, self.http)
        # the LMS rotates refresh tokens; the old one is dead after this call
        save_refresh_token(self.settings.token_file, rotated)
        return access

    @property
    def access_token(self) -> str:
        if self._access_token is None:
            self._access_token = self._fetch()
        return self._access_token

    def renew(self) -> str:
        if self.renewals >= self.max_renewals:
            raise AuthError("GoITeens LMS rejected the access token again after refreshing it, log in again")
        self.renewals += 1
        log.warning("access token rejected, refreshing it (%d/%d)", self.renewals, self.max_renewals)
        self._access_token = self._fetch()
        return self._access_token
