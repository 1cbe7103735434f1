from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AuthConfig:
    """Credentials for the test-management API.

    Either ``bearer_token`` or the username/password/client_credentials triple
    must be set.
    """
    username: Optional[str] = None
    password: Optional[str] = None
    client_credentials: Optional[str] = None
    bearer_token: Optional[str] = None

    @property
    def uses_bearer_token(self) -> bool:
        return bool(self.bearer_token)

    @property
    def has_password_grant(self) -> bool:
        return bool(self.username and self.password and self.client_credentials)


@dataclass(frozen=True)
class ApiResponse:
    """Transport-neutral view of one HTTP response."""
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    data: Any = None

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None
