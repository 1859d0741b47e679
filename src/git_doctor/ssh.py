from __future__ import annotations

import subprocess
from pathlib import Path

# `ssh-add -l`: 0 = keys listed, 1 = agent up but empty, 2 = no agent.
_AGENT_UNREACHABLE = 2


def _run(cmd: list[str]) -> tuple[int, str, str]:
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, stdin=subprocess.DEVNULL)
    except OSError as e:
        return 127, "", str(e)
    return proc.returncode, proc.stdout, proc.stderr


def agent_reachable() -> bool:
    code, _, _ = _run(["ssh-add", "-l"])
    return code not in (_AGENT_UNREACHABLE, 127)


def agent_add(key_path: Path) -> tuple[bool, str]:
    code, out, err = _run(["ssh-add", str(key_path)])
    if code == 0:
        return True, ""
    return False, (err or out).strip()


def probe_connection(alias: str, user: str = "git") -> str:
    """Non-interactive `ssh -T`; returns combined stdout/stderr."""
    _, out, err = _run(["ssh", "-T", "-o", "BatchMode=yes", f"{user}@{alias}"])
    return (out + err).strip()
