from __future__ import annotations

import re
import shutil
from pathlib import Path

from .errors import NotFoundError
from .models import AliasEntry

# `Host` is matched case-sensitively; a lowercase `host` line is ignored.
_HOST_RE = re.compile(r"^\s*Host\s+(.+?)\s*$")
_IDENTITY_RE = re.compile(r"^\s*IdentityFile\s+(.+?)\s*$")
_REPAIRABLE_RE = re.compile(r"^\s*IdentityFile\s.*\\")


def default_ssh_config_path() -> Path:
    return Path.home() / ".ssh" / "config"


def normalize_identity_path(raw: str) -> str:
    p = (raw or "").strip()
    if len(p) >= 2 and p[0] == '"' and p[-1] == '"':
        p = p[1:-1]
    return p.replace("\\", "/")


def parse_ssh_config_text(text: str) -> dict[str, AliasEntry]:
    aliases: dict[str, AliasEntry] = {}
    current = ""
    for line in text.splitlines():
        m = _HOST_RE.match(line)
        if m:
            current = m.group(1)
            aliases[current] = AliasEntry(alias=current)
            continue
        if not current:
            continue
        m = _IDENTITY_RE.match(line)
        if m:
            aliases[current] = AliasEntry(alias=current, identity_file=normalize_identity_path(m.group(1)))
    return aliases


def parse_ssh_config(path: Path) -> dict[str, AliasEntry]:
    """
    Map each `Host` alias in an SSH client config to its `IdentityFile`.

    A Host block without an IdentityFile maps to an entry with
    `identity_file=None`. Re-declaring a Host starts that alias over, and the
    last IdentityFile inside a block wins. Backslash separators are rewritten
    to forward slashes.
    """
    if not path.is_file():
        raise NotFoundError(path, "SSH config")
    return parse_ssh_config_text(path.read_text(encoding="utf-8", errors="replace"))


def repair_identity_paths(path: Path) -> Path:
    """
    Rewrite backslashes in `IdentityFile` lines to forward slashes, in place.

    The original file is first copied to `<path>.bak` (any previous backup is
    overwritten). Returns the backup path.
    """
    if not path.is_file():
        raise NotFoundError(path, "SSH config")
    backup = path.with_name(path.name + ".bak")
    shutil.copyfile(path, backup)

    with path.open("r", encoding="utf-8", errors="surrogateescape", newline="") as f:
        lines = f.read().splitlines(keepends=True)
    out: list[str] = []
    for line in lines:
        if _REPAIRABLE_RE.match(line):
            line = line.replace("\\", "/")
        out.append(line)
    with path.open("w", encoding="utf-8", errors="surrogateescape", newline="") as f:
        f.write("".join(out))
    return backup
