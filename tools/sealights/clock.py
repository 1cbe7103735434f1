"""tools/sealights/clock.py

Server-time probe against the Sealights ``/clock/sync`` endpoint.

Response handling, in order of preference:
  1. ``data.slDriftMs``   -> server time = local time sent - drift
  2. ``data.slServerTime`` -> server time as reported
  3. ``Date`` header       -> server time from the HTTP layer
Anything else (or any network failure) means the sample is unavailable.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from tools.timeutil import http_date_to_ms

logger = logging.getLogger(__name__)

SYNC_TIMEOUT_SECONDS = 5


def sync_base_url(backend_url: str) -> str:
    """``/clock/sync`` lives at the host root, not under ``/api``."""
    base = backend_url.rstrip("/")
    if base.endswith("/api"):
        base = base[: -len("/api")]
    return base


def _body_server_time(payload: Any, local_ms: int) -> Optional[int]:
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    drift = data.get("slDriftMs")
    if isinstance(drift, (int, float)) and not isinstance(drift, bool):
        return int(local_ms - drift)
    server_time = data.get("slServerTime")
    if isinstance(server_time, (int, float)) and not isinstance(server_time, bool):
        return int(server_time)
    return None


class SealightsClock:
    def __init__(
        self,
        backend_url: Optional[str],
        token: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.backend_url = backend_url
        self._token = token
        self._session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.backend_url)

    def server_time_ms(self, local_ms: int) -> Optional[int]:
        """Return the Sealights server time for a request stamped ``local_ms``."""
        if not self.backend_url:
            return None

        url = f"{sync_base_url(self.backend_url)}/clock/sync"
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        logger.debug("clock sync: GET %s time=%s", url, local_ms)
        try:
            resp = self._session.get(url, params={"time": local_ms}, headers=headers, timeout=SYNC_TIMEOUT_SECONDS)
            resp.raise_for_status()
        except requests.RequestException as e:
            print(f"⚠️  Failed to get Sealights server time: {e}")
            return None

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        server_time = _body_server_time(payload, local_ms)
        if server_time is not None:
            return server_time

        server_time = http_date_to_ms(resp.headers.get("Date"))
        if server_time is None:
            print("⚠️  No server time in Sealights /clock/sync response")
        return server_time
