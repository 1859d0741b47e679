from __future__ import annotations

import dataclasses
import os
from pathlib import Path

from . import git, ssh
from .errors import MalformedResponseError, NotFoundError, RemoteFetchError
from .key_registry import fetch_keys, matching_key
from .models import AliasEntry, RemoteKey
from .report import Report
from .ssh_config import default_ssh_config_path, parse_ssh_config, repair_identity_paths

DEFAULT_ALIAS = "github.com"
AUTH_MARKER = "authenticated"

SAML_REQUIRED = "saml_required"
BROWSER_AUTH_REQUIRED = "browser_authorization_required"
EXPECTED_DENIAL = "expected_denial"
REACHABLE = "reachable"

_SAML_MARKERS = ("saml",)
_BROWSER_MARKERS = ("authorization_request", "in your browser", "authorize this", "re-authorize")
_DENIAL_MARKERS = (
    "repository not found",
    "permission denied",
    "could not read from remote repository",
    "access denied",
)


@dataclasses.dataclass(frozen=True)
class ValidationOptions:
    ssh_config: Path = dataclasses.field(default_factory=default_ssh_config_path)
    token: str = ""
    api_url: str = ""
    test_repo: str = ""
    repair: bool = False
    cwd: Path = dataclasses.field(default_factory=Path.cwd)
    http_timeout_s: int = 30


def default_alias_entry() -> AliasEntry:
    return AliasEntry(alias=DEFAULT_ALIAS, identity_file=(Path.home() / ".ssh" / "id_ed25519").as_posix())


def expand_identity_path(identity_file: str) -> Path:
    return Path(os.path.expanduser(identity_file))


def check_git_identity(report: Report, cwd: Path) -> None:
    report.heading("Git identity")
    for key, label in (("user.name", "Git user.name"), ("user.email", "Git user.email")):
        try:
            value = git.get_config_value(key, cwd)
        except OSError:
            value = ""
        if value:
            report.ok(f"{label} is configured", indent=1)
        else:
            report.fail(f"{label} is not configured", indent=1)


def validate_alias(entry: AliasEntry, report: Report, registry: list[RemoteKey]) -> None:
    """Run the per-alias checks; a missing identity or private key ends the alias early."""
    report.heading(f"Host {entry.alias}")
    if not entry.identity_file:
        report.fail(f"{entry.alias}: no IdentityFile specified", indent=1)
        return

    key_path = expand_identity_path(entry.identity_file)
    if not key_path.is_file():
        report.fail(f"Private key not found: {key_path}", indent=1)
        return
    report.ok(f"Private key exists: {key_path}", indent=1)

    pub_path = key_path.with_name(key_path.name + ".pub")
    if pub_path.is_file():
        report.ok(f"Public key exists: {pub_path}", indent=1)
    else:
        report.fail(f"Public key not found: {pub_path}", indent=1)

    if not ssh.agent_reachable():
        report.fail("ssh-agent is not reachable; skipping ssh-add", indent=1)
    else:
        added, err = ssh.agent_add(key_path)
        if added:
            report.ok("Key added to ssh-agent", indent=1)
        else:
            report.fail("Failed to add key to ssh-agent", indent=1, detail=err)

    # A missing .pub file was already reported above.
    if registry and pub_path.is_file():
        match = matching_key(pub_path, registry)
        if match is not None:
            report.ok(f"Public key is registered on the account ({match.title or 'untitled'})", indent=1)
        else:
            report.fail("Public key is not registered on the account", indent=1)

    response = ssh.probe_connection(entry.alias)
    if AUTH_MARKER in response:
        report.ok(f"SSH authentication to {entry.alias} succeeded", indent=1)
    else:
        report.fail(f"SSH authentication to {entry.alias} failed", indent=1, detail=response or "(no output)")


def classify_saml_response(code: int, text: str) -> str:
    """
    Bucket the output of `git ls-remote` against an org repository.

    Raises MalformedResponseError when the output matches no known shape.
    """
    low = (text or "").lower()
    if any(m in low for m in _SAML_MARKERS):
        return SAML_REQUIRED
    if any(m in low for m in _BROWSER_MARKERS):
        return BROWSER_AUTH_REQUIRED
    if any(m in low for m in _DENIAL_MARKERS):
        return EXPECTED_DENIAL
    if code == 0:
        return REACHABLE
    raise MalformedResponseError(text)


def detect_test_repo(explicit: str, cwd: Path) -> str:
    if explicit.strip():
        return explicit.strip()
    try:
        return git.get_remote_origin(cwd)
    except OSError:
        return ""


def probe_saml(report: Report, test_repo: str, cwd: Path) -> None:
    report.heading("Organization SSO")
    repo = detect_test_repo(test_repo, cwd)
    if not repo:
        report.ok("SAML/SSO check skipped (no test repository)", indent=1)
        return
    try:
        code, text = git.ls_remote(repo, cwd)
    except RemoteFetchError as e:
        report.fail(f"SAML/SSO check could not reach {repo}", indent=1, detail=str(e))
        return

    try:
        outcome = classify_saml_response(code, text)
    except MalformedResponseError as e:
        report.ok(f"{repo} reachable (unrecognized response)", indent=1, detail=e.text)
        return
    if outcome == SAML_REQUIRED:
        report.fail(f"SAML SSO authorization required for {repo}", indent=1, detail=text)
    elif outcome == BROWSER_AUTH_REQUIRED:
        report.fail(f"Browser authorization required for {repo}", indent=1, detail=text)
    elif outcome == EXPECTED_DENIAL:
        report.ok(f"{repo} reachable (access denied as expected)", indent=1)
    else:
        report.ok(f"{repo} reachable", indent=1)


def load_registry(report: Report, options: ValidationOptions) -> list[RemoteKey]:
    report.heading("Registered keys")
    if not options.token.strip():
        report.ok("Registered key comparison skipped (no API token)", indent=1)
        return []
    try:
        keys = fetch_keys(options.token, options.api_url, timeout_s=options.http_timeout_s)
    except RemoteFetchError as e:
        report.fail("Could not fetch registered keys", indent=1, detail=str(e))
        return []
    report.ok(f"Fetched {len(keys)} registered key(s)", indent=1)
    return keys


def load_aliases(report: Report, options: ValidationOptions) -> list[AliasEntry]:
    report.heading("SSH config")
    if options.repair:
        try:
            backup = repair_identity_paths(options.ssh_config)
        except NotFoundError as e:
            report.fail(f"Repair skipped: {e}", indent=1)
        else:
            report.ok(f"Repaired IdentityFile paths (backup: {backup})", indent=1)

    aliases: dict[str, AliasEntry] = {}
    try:
        aliases = parse_ssh_config(options.ssh_config)
    except NotFoundError as e:
        report.fail(str(e), indent=1)
    else:
        report.ok(f"Parsed {options.ssh_config} ({len(aliases)} host alias(es))", indent=1)

    if not aliases:
        entry = default_alias_entry()
        report.ok(f"No host aliases; checking default identity {entry.identity_file}", indent=1)
        return [entry]
    return list(aliases.values())


def run_validation(options: ValidationOptions, report: Report) -> Report:
    check_git_identity(report, options.cwd)
    entries = load_aliases(report, options)
    registry = load_registry(report, options)
    for entry in entries:
        validate_alias(entry, report, registry)
    probe_saml(report, options.test_repo, options.cwd)
    return report
