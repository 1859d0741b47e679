from __future__ import annotations


class GitDoctorError(Exception):
    pass


class NotFoundError(GitDoctorError):
    """A config, key or cache file that a check needs does not exist."""

    def __init__(self, path: object, what: str = "file") -> None:
        self.path = str(path)
        self.what = what
        super().__init__(f"{what} not found: {self.path}")


class RemoteFetchError(GitDoctorError):
    """Transport or auth failure talking to a remote (HTTP API, git remote)."""


class MalformedResponseError(GitDoctorError):
    """A remote answered with text we could not classify."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"unexpected response: {text[:200]!r}")


class QueryError(GitDoctorError):
    """An external command behind a cached query failed to start or exited non-zero."""
