"""pipeline.config

Loading, validating and updating the tool configuration.

Sources, lowest to highest precedence:
  1. config file (``config.json``, or ``config.yaml``/``config.yml``)
  2. environment variables (optionally from a ``.env`` file)

The file keeps the camelCase keys users already have in their config.json;
the rest of the code only sees :class:`AppConfig`.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from tools.qtest.types import AuthConfig

DEFAULT_CONFIG_NAMES = ("config.json", "config.yaml", "config.yml")
DEFAULT_SKIP_STATUS_NAME = "SL Skipped"
DEFAULT_MOCK_FILE = "mock-recommendations.json"

ENV_OVERRIDES = {
    "QTEST_URL": ("qTestUrl",),
    "QTEST_BEARER_TOKEN": ("auth", "bearerToken"),
    "QTEST_USERNAME": ("auth", "username"),
    "QTEST_PASSWORD": ("auth", "password"),
    "QTEST_CLIENT_CREDENTIALS": ("auth", "clientCredentials"),
    "SEALIGHTS_TOKEN": ("sealights", "token"),
    "SEALIGHTS_BACKEND_URL": ("sealights", "backendUrl"),
}


class ConfigError(RuntimeError):
    """The configuration is missing or invalid. Always fatal."""


@dataclass(frozen=True)
class SealightsConfig:
    token: Optional[str] = None
    backend_url: Optional[str] = None


@dataclass(frozen=True)
class RecommendationsConfig:
    skip_status_name: str = DEFAULT_SKIP_STATUS_NAME
    enable_mock_mode: bool = True
    mock_file: str = DEFAULT_MOCK_FILE


@dataclass(frozen=True)
class AppConfig:
    qtest_url: str
    auth: AuthConfig
    sealights: SealightsConfig = field(default_factory=SealightsConfig)
    user_lab_mapping: Dict[str, str] = field(default_factory=dict)
    test_stage_mapping: Dict[str, str] = field(default_factory=dict)
    recommendations: RecommendationsConfig = field(default_factory=RecommendationsConfig)
    source_path: Optional[Path] = None


def _is_yaml(path: Path) -> bool:
    return path.suffix.lower() in (".yaml", ".yml")


def read_config_file(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e
    try:
        raw = yaml.safe_load(text) if _is_yaml(path) else json.loads(text)
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Configuration file {path} is not valid: {e}") from e
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping at the top level")
    return raw


def write_config_file(path: Path, raw: Dict[str, Any]) -> None:
    if _is_yaml(path):
        text = yaml.safe_dump(raw, sort_keys=False, allow_unicode=True)
    else:
        text = json.dumps(raw, indent=2, ensure_ascii=False) + "\n"
    path.write_text(text, encoding="utf-8")


def find_config_file(explicit: Optional[Path] = None, *, search_dir: Optional[Path] = None) -> Path:
    if explicit is not None:
        p = Path(explicit)
        if not p.exists():
            raise ConfigError(f"Configuration file not found at {p}")
        return p
    base = Path(search_dir) if search_dir else Path.cwd()
    for name in DEFAULT_CONFIG_NAMES:
        candidate = base / name
        if candidate.exists():
            return candidate
    raise ConfigError(
        f"Configuration file not found in {base}. Create config.json based on config.example.json."
    )


def apply_env_overrides(raw: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    env = os.environ if environ is None else environ
    out = json.loads(json.dumps(raw))
    for var, keys in ENV_OVERRIDES.items():
        value = env.get(var)
        if not value:
            continue
        target = out
        for key in keys[:-1]:
            target = target.setdefault(key, {})
        target[keys[-1]] = value
    return out


def _str_map(raw: Any, name: str) -> Dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{name} must be a mapping")
    return {str(k): str(v) for k, v in raw.items()}


def parse_config(raw: Dict[str, Any], *, source_path: Optional[Path] = None) -> AppConfig:
    """Validate ``raw`` and build an :class:`AppConfig`."""
    qtest_url = raw.get("qTestUrl")
    if not isinstance(qtest_url, str) or not qtest_url.startswith("http"):
        raise ConfigError("qTestUrl must be a valid URL starting with http:// or https://")

    auth_raw = raw.get("auth")
    if not isinstance(auth_raw, dict):
        raise ConfigError("auth configuration is required")
    auth = AuthConfig(
        username=auth_raw.get("username"),
        password=auth_raw.get("password"),
        client_credentials=auth_raw.get("clientCredentials"),
        bearer_token=auth_raw.get("bearerToken"),
    )
    if not auth.uses_bearer_token and not auth.has_password_grant:
        raise ConfigError(
            "auth configuration must include either:\n"
            "  - bearerToken: a valid bearer token string, OR\n"
            "  - username, password, and clientCredentials for OAuth authentication"
        )

    sl_raw = raw.get("sealights") or {}
    recs_raw = raw.get("recommendations") or {}
    return AppConfig(
        qtest_url=qtest_url.rstrip("/"),
        auth=auth,
        sealights=SealightsConfig(token=sl_raw.get("token"), backend_url=sl_raw.get("backendUrl")),
        user_lab_mapping=_str_map(raw.get("userLabMapping"), "userLabMapping"),
        test_stage_mapping=_str_map(raw.get("testStageMapping"), "testStageMapping"),
        recommendations=RecommendationsConfig(
            skip_status_name=str(recs_raw.get("skipStatusName") or DEFAULT_SKIP_STATUS_NAME),
            enable_mock_mode=bool(recs_raw.get("enableMockMode", True)),
            mock_file=str(recs_raw.get("mockFile") or DEFAULT_MOCK_FILE),
        ),
        source_path=source_path,
    )


def load_config(
    path: Optional[Path] = None,
    *,
    dotenv_path: Optional[Path] = None,
    use_env: bool = True,
) -> AppConfig:
    """Locate, read, merge env overrides and validate the configuration."""
    config_path = find_config_file(path)
    raw = read_config_file(config_path)
    if use_env:
        if dotenv_path is not None:
            load_dotenv(dotenv_path, override=False)
        else:
            load_dotenv(find_dotenv(usecwd=True), override=False)
        raw = apply_env_overrides(raw)

    cfg = parse_config(raw, source_path=config_path)
    if cfg.auth.uses_bearer_token:
        print("ℹ️  Using bearer token authentication")
    else:
        print("ℹ️  Using username/password OAuth authentication")
    return cfg


def update_config_file(path: Path, update: Callable[[Dict[str, Any]], None]) -> None:
    """Read-modify-write the on-disk file (env overrides are never persisted)."""
    raw = read_config_file(path)
    update(raw)
    write_config_file(path, raw)


def save_skip_status_name(path: Path, status_name: str) -> None:
    def _update(raw: Dict[str, Any]) -> None:
        recs = raw.setdefault("recommendations", {})
        recs["skipStatusName"] = status_name
        recs.setdefault("enableMockMode", True)

    update_config_file(path, _update)


def save_test_stage_mapping(path: Path, key: str, stage: str) -> None:
    def _update(raw: Dict[str, Any]) -> None:
        raw.setdefault("testStageMapping", {})[key] = stage

    update_config_file(path, _update)
