from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .cache import QueryCache, default_cache_dir
from .commits import aggregate_commits, render_author_table, resolve_github_logins
from .config import DEFAULT_CONFIG_PATH, config_path_value, config_str, load_config, resolve_api_url, resolve_timeout, resolve_token
from .errors import QueryError
from .git import get_remote_origin, github_slug, repo_name
from .periods import Period, parse_period, window_period
from .pipeline import ValidationOptions, run_validation
from .report import Report, summary_line
from .ssh_config import default_ssh_config_path


def _build_ssh_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="git-doctor ssh", description="Check SSH-based Git authentication setup.")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to git-doctor.json (optional).")
    p.add_argument("--ssh-config", type=Path, default=None, help="SSH client config to inspect (default: ~/.ssh/config).")
    p.add_argument("--repair", action="store_true", help="Rewrite backslashes in IdentityFile paths (writes <config>.bak first).")
    p.add_argument("--token", type=str, default="", help="GitHub token used to list registered keys (default: $GITHUB_TOKEN).")
    p.add_argument("--api-url", type=str, default="", help="GitHub API base URL (default: https://api.github.com).")
    p.add_argument("--test-repo", type=str, default="", help="Repository used for the SAML/SSO probe (default: origin of the current directory).")
    p.add_argument("--log-file", type=Path, default=None, help="Append failure details to this file.")
    return p


def _build_commits_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="git-doctor commits", description="Summarize commit history by author over a time window.")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to git-doctor.json (optional).")
    p.add_argument("--repo", type=Path, default=Path("."), help="Repository to analyze.")
    g = p.add_mutually_exclusive_group()
    g.add_argument("--period", type=str, default="", help="Period to analyze (YYYY, YYYYH1, YYYYH2).")
    g.add_argument("--since", type=str, default="", help="Start date (YYYY-MM-DD, inclusive).")
    p.add_argument("--until", type=str, default="", help="End date (YYYY-MM-DD, inclusive; default: today). Requires --since.")
    p.add_argument("--include-merges", action="store_true", help="Count merge commits.")
    p.add_argument("--no-cache", action="store_true", help="Re-run queries instead of reading cached results.")
    p.add_argument("--cache-dir", type=Path, default=None, help="Cache directory (default: ~/.cache/git-doctor).")
    p.add_argument("--github-logins", action="store_true", help="Resolve GitHub logins for authors (github.com remotes only).")
    p.add_argument("--token", type=str, default="", help="GitHub token for login lookups (default: $GITHUB_TOKEN).")
    p.add_argument("--api-url", type=str, default="", help="GitHub API base URL.")
    return p


def _print_help() -> None:
    print("usage: git-doctor <command> [options]")
    print("")
    print("commands:")
    print("  ssh      Check SSH config, keys, ssh-agent, connectivity and org SSO.")
    print("  commits  Summarize commit history by author over a time window.")
    print("")
    print("Run `git-doctor <command> --help` for command-specific options.")


def run_ssh(argv: list[str]) -> int:
    args = _build_ssh_parser().parse_args(argv)
    config = load_config(args.config)

    ssh_config = config_path_value(config, "ssh_config", args.ssh_config) or default_ssh_config_path()
    options = ValidationOptions(
        ssh_config=ssh_config,
        token=resolve_token(config, args.token),
        api_url=resolve_api_url(config, args.api_url),
        test_repo=config_str(config, "test_repo", args.test_repo),
        repair=bool(args.repair),
        cwd=Path.cwd(),
        http_timeout_s=resolve_timeout(config),
    )
    report = Report(log_file=config_path_value(config, "log_file", args.log_file), echo=True)
    run_validation(options, report)

    print("")
    print(summary_line(report))
    return 0 if report.passed else 1


def _period_from_args(args: argparse.Namespace) -> Period:
    if args.until and not args.since:
        raise SystemExit("--until requires --since")
    try:
        if args.since:
            return window_period(args.since, args.until)
        if args.period:
            return parse_period(args.period)
    except ValueError as e:
        raise SystemExit(str(e)) from e
    raise SystemExit("one of --period or --since is required")


def run_commits(argv: list[str]) -> int:
    args = _build_commits_parser().parse_args(argv)
    config = load_config(args.config)
    period = _period_from_args(args)

    repo = args.repo.resolve()
    if not (repo / ".git").exists():
        raise SystemExit(f"Not a git repository: {repo}")

    cache = QueryCache(config_path_value(config, "cache_dir", args.cache_dir) or default_cache_dir())
    use_cache = not args.no_cache
    label = repo_name(repo)
    try:
        authors = aggregate_commits(repo, period, cache, repo_label=label, use_cache=use_cache, include_merges=bool(args.include_merges))
    except QueryError as e:
        print(f"[WARN] {e}", file=sys.stderr)
        return 1

    if args.github_logins:
        slug = github_slug(get_remote_origin(repo))
        if not slug:
            print("Note: --github-logins needs a github.com origin remote; skipping login lookup.")
        else:
            errors = resolve_github_logins(
                authors,
                slug=slug,
                cache=cache,
                token=resolve_token(config, args.token),
                api_url=resolve_api_url(config, args.api_url),
                use_cache=use_cache,
                timeout_s=resolve_timeout(config),
            )
            for err in errors:
                print(f"[WARN] {err}", file=sys.stderr)

    print(render_author_table(authors, repo_label=label, period=period))
    return 0


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if not argv or argv[0] in ("-h", "--help"):
        _print_help()
        return 0
    if argv[0] == "ssh":
        return run_ssh(argv[1:])
    if argv[0] == "commits":
        return run_commits(argv[1:])
    print(f"git-doctor: unknown command {argv[0]!r}", file=sys.stderr)
    _print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
