"""tools/qtest/auth.py

Access-token handling for the qTest API.

Two modes:
  - bearer token: returned as-is, never refreshed
  - password grant: POST {qtest_url}/oauth/token with Basic client credentials,
    cached until shortly before ``expires_in`` runs out
"""

from __future__ import annotations

import time
from typing import Callable, Optional

import requests

from .types import AuthConfig

DEFAULT_EXPIRES_IN = 3600
EXPIRY_BUFFER_SECONDS = 300


class AuthError(RuntimeError):
    """Token acquisition failed. Always fatal for the run."""


class QTestAuth:
    def __init__(
        self,
        qtest_url: str,
        config: AuthConfig,
        *,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._token_url = f"{qtest_url.rstrip('/')}/oauth/token"
        self._config = config
        self._session = session or requests.Session()
        self._clock = clock
        self._access_token: Optional[str] = config.bearer_token if config.uses_bearer_token else None
        self._expires_at: Optional[float] = None

    @property
    def uses_bearer_token(self) -> bool:
        return self._config.uses_bearer_token

    def get_access_token(self) -> str:
        if self.uses_bearer_token:
            if not self._access_token:
                raise AuthError("Bearer token is not configured")
            return self._access_token

        if self._access_token and self._expires_at and self._clock() < self._expires_at:
            return self._access_token

        self._authenticate()
        if not self._access_token:
            raise AuthError("Failed to obtain access token")
        return self._access_token

    def _authenticate(self) -> None:
        cfg = self._config
        if not cfg.has_password_grant:
            raise AuthError("username, password and clientCredentials are required for OAuth authentication")

        headers = {
            "Authorization": f"Basic {cfg.client_credentials}",
            "Content-Type": "application/x-www-form-urlencoded",
        }
        data = {"grant_type": "password", "username": cfg.username, "password": cfg.password}
        try:
            resp = self._session.post(self._token_url, headers=headers, data=data, timeout=30)
        except requests.RequestException as e:
            raise AuthError(f"qTest authentication failed: {e}") from e

        if not resp.ok:
            try:
                detail = (resp.json() or {}).get("error_description")
            except ValueError:
                detail = None
            raise AuthError(f"qTest authentication failed: {detail or f'HTTP {resp.status_code}'}")

        payload = resp.json()
        self._access_token = payload["access_token"]
        expires_in = int(payload.get("expires_in") or DEFAULT_EXPIRES_IN)
        self._expires_at = self._clock() + (expires_in - EXPIRY_BUFFER_SECONDS)
        print("✅ Authenticated with qTest using OAuth")
