from __future__ import annotations

import json
from pathlib import Path

from .errors import NotFoundError, RemoteFetchError
from .github_api import api_get, api_url_for
from .models import RemoteKey


def canonical_public_key(text: str) -> str:
    """
    Reduce an OpenSSH public key to `algorithm base64`.

    Only the first line is considered; a trailing comment is dropped.
    """
    lines = (text or "").strip().splitlines()
    if not lines:
        return ""
    parts = lines[0].split()
    return " ".join(parts[:2])


def fetch_keys(token: str, api_base_url: str, *, timeout_s: int = 30) -> list[RemoteKey]:
    """
    List the public keys registered on the account that owns `token`.

    Raises RemoteFetchError on transport errors, non-2xx responses and
    bodies that are not a list of key objects.
    """
    if not (token or "").strip():
        raise RemoteFetchError("no API token configured")
    url = api_url_for(api_base_url, "/user/keys")
    code, body = api_get(url, token=token, timeout_s=timeout_s)
    if not 200 <= code < 300:
        raise RemoteFetchError(f"GET {url} failed: HTTP {code}: {body[:500]}")
    try:
        data = json.loads(body)
    except ValueError as e:
        raise RemoteFetchError(f"GET {url} returned invalid JSON") from e
    if not isinstance(data, list):
        raise RemoteFetchError(f"GET {url} returned {type(data).__name__}, expected a list")

    keys: list[RemoteKey] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        key = canonical_public_key(str(item.get("key", "") or ""))
        if key:
            keys.append(RemoteKey(key=key, title=str(item.get("title", "") or "")))
    return keys


def key_matches(local_public_key_text: str, registry: list[RemoteKey]) -> bool:
    local = canonical_public_key(local_public_key_text)
    if not local:
        return False
    return any(k.key == local for k in registry)


def matching_key(public_key_path: Path, registry: list[RemoteKey]) -> RemoteKey | None:
    if not public_key_path.is_file():
        raise NotFoundError(public_key_path, "public key")
    local = canonical_public_key(public_key_path.read_text(encoding="utf-8", errors="replace"))
    for k in registry:
        if local and k.key == local:
            return k
    return None
