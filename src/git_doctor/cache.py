from __future__ import annotations

import dataclasses
import hashlib
import inspect
import json
import os
import shlex
import subprocess
import sys
import time
from pathlib import Path, PurePath
from typing import Callable, Union

from .errors import NotFoundError, QueryError
from .models import CacheEntry

RETENTION_S = 24 * 60 * 60
_VALUE_TYPES = (str, bytes, int, float, bool, type(None), PurePath)


@dataclasses.dataclass(frozen=True)
class ShellQuery:
    argv: tuple[str, ...]
    cwd: Path | None = None

    @property
    def text(self) -> str:
        s = shlex.join(self.argv)
        if self.cwd is not None:
            s = f"cd {shlex.quote(str(self.cwd))} && {s}"
        return s

    def run(self) -> str:
        try:
            proc = subprocess.run(
                list(self.argv),
                cwd=str(self.cwd) if self.cwd is not None else None,
                capture_output=True,
                text=True,
            )
        except OSError as e:
            raise QueryError(f"{self.argv[0]} failed to start: {e}") from e
        if proc.returncode != 0:
            raise QueryError(f"{self.argv[0]} exited {proc.returncode}: {(proc.stderr or '').strip()[:500]}")
        return proc.stdout


Query = Union[Callable[[], str], ShellQuery]


def default_cache_dir() -> Path:
    xdg = str(os.environ.get("XDG_CACHE_HOME") or "").strip()
    if xdg:
        return Path(xdg) / "git-doctor"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Caches" / "git-doctor"
    return Path.home() / ".cache" / "git-doctor"


def query_text(query: Query) -> str:
    if isinstance(query, ShellQuery):
        return query.text
    try:
        text = inspect.getsource(query)
    except (OSError, TypeError):
        module = getattr(query, "__module__", "") or ""
        name = getattr(query, "__qualname__", "") or type(query).__qualname__
        text = f"{module}.{name}"
    return text + _captured_state(query)


def _value_text(v: object) -> str:
    # Only plain values enter the key; a captured list or client contributes its type name.
    if isinstance(v, _VALUE_TYPES):
        return repr(v)
    if isinstance(v, tuple):
        return "(" + ", ".join(_value_text(x) for x in v) + ")"
    return f"<{type(v).__qualname__}>"


def _captured_state(fn: object) -> str:
    # Closures from one factory share source; their defaults and cells differ.
    parts: list[str] = []
    defaults = getattr(fn, "__defaults__", None)
    if defaults:
        parts.append("defaults=" + _value_text(defaults))
    kwdefaults = getattr(fn, "__kwdefaults__", None)
    if kwdefaults:
        parts.extend(f"{name}=" + _value_text(v) for name, v in sorted(kwdefaults.items()))
    for cell in getattr(fn, "__closure__", None) or ():
        try:
            parts.append("cell=" + _value_text(cell.cell_contents))
        except ValueError:
            parts.append("cell=<empty>")
    if not parts:
        return ""
    return "\n# " + "; ".join(parts)


def query_key(query: Query) -> str:
    return hashlib.sha256(query_text(query).encode("utf-8")).hexdigest()


def is_not_found_payload(text: str) -> bool:
    s = (text or "").strip()
    if not s.startswith("{"):
        return False
    try:
        obj = json.loads(s)
    except ValueError:
        return False
    if not isinstance(obj, dict):
        return False
    msg = str(obj.get("message", "") or "").strip().lower()
    status = str(obj.get("status", "") or "").strip()
    return msg == "not found" or status == "404"


class QueryCache:
    """
    File-backed memoization of expensive query results.

    One `<key>.txt` file per entry; the file mtime is the only staleness
    signal. Entries older than `retention_s` are deleted on the next lookup of
    that key, whether or not the caller wants a cached answer.
    """

    def __init__(self, cache_dir: Path, *, retention_s: float = RETENTION_S, clock: Callable[[], float] = time.time) -> None:
        self.cache_dir = cache_dir
        self.retention_s = retention_s
        self.clock = clock

    def path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise ValueError(f"invalid cache key: {key!r}")
        return self.cache_dir / f"{key}.txt"

    def read(self, key: str) -> CacheEntry:
        path = self.path_for(key)
        try:
            written_at = path.stat().st_mtime
            payload = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise NotFoundError(path, "cache entry") from e
        return CacheEntry(key=key, payload=payload, written_at=written_at)

    def write(self, key: str, payload: str) -> None:
        path = self.path_for(key)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")

    def evict(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)

    def is_stale(self, entry: CacheEntry) -> bool:
        return self.clock() - entry.written_at > self.retention_s

    def cached_query(self, query: Query, key: str | None = None, use_cache: bool = True) -> str:
        k = key if key is not None else query_key(query)

        try:
            entry: CacheEntry | None = self.read(k)
        except NotFoundError:
            entry = None
        except UnicodeDecodeError:
            self.evict(k)
            entry = None

        if entry is not None:
            if self.is_stale(entry):
                self.evict(k)
            elif use_cache:
                return entry.payload

        if isinstance(query, ShellQuery):
            result = query.run()
        else:
            result = query()
        if is_not_found_payload(result):
            result = ""
        if result:
            self.write(k, result)
        return result
