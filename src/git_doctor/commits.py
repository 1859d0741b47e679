from __future__ import annotations

import json
from pathlib import Path

from .cache import QueryCache, ShellQuery
from .errors import RemoteFetchError
from .github_api import api_get, api_url_for
from .models import AuthorStats
from .periods import Period, slugify

_COMMIT_MARKER = "@@@"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def git_log_query(repo: Path, period: Period, *, include_merges: bool = False) -> ShellQuery:
    pretty = f"{_COMMIT_MARKER}%H\t%an\t%ae\t%aI"
    argv = [
        "git",
        "log",
        "--all",
        f"--since={period.start_iso}T00:00:00Z",
        f"--before={period.end_iso}T00:00:00Z",
        f"--pretty=format:{pretty}",
        "--numstat",
    ]
    if not include_merges:
        argv.insert(2, "--no-merges")
    return ShellQuery(argv=tuple(argv), cwd=repo)


def cache_key_for(repo_name: str, period: Period, *, include_merges: bool = False) -> str:
    key = f"{repo_name}_{period.start_iso}_{period.end_iso}"
    if include_merges:
        key += "_merges"
    return slugify(key)


def _parse_count(s: str) -> int:
    s = s.strip()
    if s == "-" or not s.isdigit():
        return 0
    return int(s)


def parse_git_log(text: str) -> dict[str, AuthorStats]:
    """Fold `git log --numstat` output into per-author totals keyed by normalized email."""
    authors: dict[str, AuthorStats] = {}
    current: AuthorStats | None = None
    for raw in (text or "").splitlines():
        line = raw.rstrip("\r")
        if line.startswith(_COMMIT_MARKER):
            parts = line[len(_COMMIT_MARKER) :].split("\t")
            if len(parts) < 3:
                current = None
                continue
            sha, name, email = parts[0], parts[1], parts[2]
            key = normalize_email(email) or name.strip().casefold()
            current = authors.get(key)
            if current is None:
                current = AuthorStats(name=name, email=email, first_sha=sha)
                authors[key] = current
            current.commits += 1
            continue
        if current is None or not line.strip():
            continue
        cols = line.split("\t", 2)
        if len(cols) != 3:
            continue
        current.insertions += _parse_count(cols[0])
        current.deletions += _parse_count(cols[1])
    return authors


def aggregate_commits(
    repo: Path,
    period: Period,
    cache: QueryCache,
    *,
    repo_label: str,
    use_cache: bool = True,
    include_merges: bool = False,
) -> list[AuthorStats]:
    query = git_log_query(repo, period, include_merges=include_merges)
    text = cache.cached_query(query, key=cache_key_for(repo_label, period, include_merges=include_merges), use_cache=use_cache)
    authors = parse_git_log(text)
    return sorted(authors.values(), key=lambda a: (-a.commits, -a.changed, a.email.lower()))


def resolve_github_logins(
    authors: list[AuthorStats],
    *,
    slug: str,
    cache: QueryCache,
    token: str = "",
    api_url: str = "",
    use_cache: bool = True,
    timeout_s: int = 30,
) -> list[str]:
    """
    Fill `github_login` from the commit recorded in each author's `first_sha`.

    Returns error strings for lookups that failed; a 404 is not an error, it
    just leaves the login blank.
    """
    errors: list[str] = []
    for a in authors:
        if not a.first_sha:
            continue
        url = api_url_for(api_url, f"/repos/{slug}/commits/{a.first_sha}")

        def fetch(url: str = url) -> str:
            code, body = api_get(url, token=token, timeout_s=timeout_s)
            if 200 <= code < 300 or code == 404:
                return body
            raise RemoteFetchError(f"GET {url} failed: HTTP {code}: {body[:200]}")

        try:
            body = cache.cached_query(fetch, key=f"github_commit_{a.first_sha}", use_cache=use_cache)
        except RemoteFetchError as e:
            errors.append(str(e))
            continue
        if not body:
            continue
        try:
            obj = json.loads(body)
        except ValueError:
            errors.append(f"unreadable commit metadata for {a.first_sha}")
            continue
        author = obj.get("author") if isinstance(obj, dict) else None
        if isinstance(author, dict):
            a.github_login = str(author.get("login", "") or "")
    return errors


def fmt_int(n: int) -> str:
    return f"{int(n):,}"


def render_author_table(authors: list[AuthorStats], *, repo_label: str, period: Period) -> str:
    show_login = any(a.github_login for a in authors)
    lines = [f"Commits by author in {repo_label} ({period.start_iso} .. {period.end_iso}, end exclusive)", ""]
    if not authors:
        lines.append("(no commits in window)")
        return "\n".join(lines)

    header = f"{'commits':>8}  {'+lines':>9}  {'-lines':>9}  author"
    lines.append(header)
    lines.append("-" * len(header))
    for a in authors:
        who = f"{a.name} <{a.email}>"
        if show_login and a.github_login:
            who += f" @{a.github_login}"
        lines.append(f"{fmt_int(a.commits):>8}  {fmt_int(a.insertions):>9}  {fmt_int(a.deletions):>9}  {who}")
    total_commits = sum(a.commits for a in authors)
    lines.append("")
    lines.append(f"{len(authors)} author(s), {fmt_int(total_commits)} commit(s)")
    return "\n".join(lines)
