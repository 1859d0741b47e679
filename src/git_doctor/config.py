from __future__ import annotations

import json
import os
from pathlib import Path

from .github_api import DEFAULT_API_URL

DEFAULT_CONFIG_PATH = Path("git-doctor.json")


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        return {}
    data = json.loads(config_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise SystemExit(f"Config must be a JSON object: {config_path}")
    return data


def config_str(config: dict, key: str, override: str = "", default: str = "") -> str:
    v = (override or "").strip()
    if v:
        return v
    v = str(config.get(key, "") or "").strip()
    return v or default


def config_path_value(config: dict, key: str, override: Path | None = None) -> Path | None:
    if override is not None:
        return Path(override).expanduser()
    v = str(config.get(key, "") or "").strip()
    if not v:
        return None
    return Path(v).expanduser()


def resolve_token(config: dict, override: str = "") -> str:
    token = config_str(config, "github_token", override)
    if token:
        return token
    for env_name in ("GITHUB_TOKEN", "GH_TOKEN"):
        v = str(os.environ.get(env_name) or "").strip()
        if v:
            return v
    return ""


def resolve_api_url(config: dict, override: str = "") -> str:
    return config_str(config, "api_url", override, DEFAULT_API_URL).rstrip("/")


def resolve_timeout(config: dict) -> int:
    try:
        return max(1, int(config.get("http_timeout_s", 30)))
    except (TypeError, ValueError):
        return 30
