"""tools/qtest/api.py

All qTest HTTP calls live here.

Design goals:
  - Keep network I/O separated from traversal, mirroring and filtering.
  - Surface every failure as :class:`QTestApiError` so callers decide whether
    a failure is per-item (record and continue) or fatal.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from .auth import AuthError, QTestAuth
from .types import ApiResponse

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v3"


class QTestApiError(RuntimeError):
    """A qTest request failed (network error or non-2xx status)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, data: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.data = data


def _decode(resp: requests.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


def unwrap_items(data: Any) -> List[Dict[str, Any]]:
    """Accept both a bare list and the paginated ``{"items": [...]}`` envelope."""
    if isinstance(data, dict) and isinstance(data.get("items"), list):
        return data["items"]
    if isinstance(data, list):
        return data
    return []


class QTestClient:
    """Thin transport over the qTest REST API.

    ``get``/``post`` are the collaborator interface the core depends on; the
    named helpers below are conveniences for the flat listing calls.
    """

    def __init__(
        self,
        base_url: str,
        auth: QTestAuth,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._auth = auth
        self._session = session or requests.Session()
        self._timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._auth.get_access_token()}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
    ) -> ApiResponse:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s params=%s", method, path, params)
        try:
            headers = self._headers()
        except AuthError as e:
            raise QTestApiError(f"{method} {path} failed: {e}") from e
        try:
            resp = self._session.request(
                method,
                url,
                params=params,
                json=body,
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise QTestApiError(f"{method} {path} failed: {e}") from e

        data = _decode(resp)
        if not resp.ok:
            raise QTestApiError(
                f"{method} {path} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                data=data,
            )
        return ApiResponse(status=resp.status_code, headers=dict(resp.headers), data=data)

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        return self._request("GET", path, params=params)

    def post(self, path: str, body: Any = None, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        return self._request("POST", path, params=params, body=body)

    # -------------------------
    # Listing helpers
    # -------------------------

    def get_projects(self) -> List[Dict[str, Any]]:
        return unwrap_items(self.get(f"{API_PREFIX}/projects").data)

    def get_test_suites(self, project_id: int) -> List[Dict[str, Any]]:
        return unwrap_items(self.get(f"{API_PREFIX}/projects/{project_id}/test-suites").data)

    def get_test_runs(self, project_id: int, suite_id: int) -> List[Dict[str, Any]]:
        resp = self.get(
            f"{API_PREFIX}/projects/{project_id}/test-runs",
            {"parentId": suite_id, "parentType": "test-suite"},
        )
        return unwrap_items(resp.data)

    def get_test_logs_for_run(self, project_id: int, run_id: int) -> List[Dict[str, Any]]:
        return unwrap_items(self.get(f"{API_PREFIX}/projects/{project_id}/test-runs/{run_id}/test-logs").data)

    def get_users(self) -> List[Dict[str, Any]]:
        return unwrap_items(self.get(f"{API_PREFIX}/users").data)

    def get_test_case(self, project_id: int, test_case_id: int) -> Dict[str, Any]:
        return self.get(f"{API_PREFIX}/projects/{project_id}/test-cases/{test_case_id}").data or {}
