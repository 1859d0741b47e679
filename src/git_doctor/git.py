from __future__ import annotations

import os
import subprocess
from pathlib import Path
from urllib.parse import urlparse

from .errors import RemoteFetchError


def run_git(args: list[str], cwd: Path, timeout_s: int | None = None, env: dict[str, str] | None = None) -> tuple[int, str, str]:
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=timeout_s,
        env=env,
    )
    return proc.returncode, proc.stdout, proc.stderr


def get_config_value(key: str, cwd: Path) -> str:
    code, out, _ = run_git(["config", "--get", key], cwd=cwd)
    if code == 0:
        return out.strip()
    return ""


def get_remote_origin(repo: Path) -> str:
    return get_config_value("remote.origin.url", repo)


def canonicalize_remote(remote: str) -> str:
    r = (remote or "").strip()
    if not r:
        return ""

    if "://" not in r and ":" in r and "@" in r.split(":", 1)[0]:
        left, path = r.split(":", 1)
        host = left.split("@", 1)[1]
        canon = f"{host}/{path}"
    else:
        parsed = urlparse(r)
        if parsed.scheme and parsed.netloc:
            host = parsed.netloc
            if "@" in host:
                host = host.split("@", 1)[1]
            canon = f"{host}/{parsed.path.lstrip('/')}"
        else:
            canon = r

    canon = canon.rstrip("/")
    if canon.endswith(".git"):
        canon = canon[:-4]
    return canon.lower()


def github_slug(remote: str) -> str:
    """Return `owner/repo` for a github.com remote, else ""."""
    canon = canonicalize_remote(remote)
    parts = [p for p in canon.split("/") if p]
    if len(parts) != 3 or parts[0] != "github.com":
        return ""
    return f"{parts[1]}/{parts[2]}"


def repo_name(repo: Path) -> str:
    canon = canonicalize_remote(get_remote_origin(repo))
    if canon:
        return canon.rsplit("/", 1)[-1]
    return repo.resolve().name


def ls_remote(remote: str, cwd: Path) -> tuple[int, str]:
    """
    Run `git ls-remote` against `remote` with ssh in batch mode.

    Returns the exit code and the combined stdout/stderr text. Raises
    RemoteFetchError when git itself cannot be started.
    """
    env = os.environ.copy()
    env["GIT_SSH_COMMAND"] = "ssh -o BatchMode=yes"
    env["GIT_TERMINAL_PROMPT"] = "0"
    try:
        code, out, err = run_git(["ls-remote", "--heads", remote], cwd=cwd, env=env)
    except OSError as e:
        raise RemoteFetchError(f"git ls-remote failed to start: {e}") from e
    return code, (out + err).strip()
