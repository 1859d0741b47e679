from __future__ import annotations

import dataclasses


@dataclasses.dataclass(frozen=True)
class AliasEntry:
    alias: str
    identity_file: str | None = None


@dataclasses.dataclass(frozen=True)
class RemoteKey:
    key: str  # "algorithm base64", comment stripped
    title: str = ""


@dataclasses.dataclass(frozen=True)
class CheckResult:
    message: str
    success: bool
    indent: int = 0
    detail: str | None = None


@dataclasses.dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: str
    written_at: float  # file mtime, epoch seconds


@dataclasses.dataclass
class AuthorStats:
    name: str = ""
    email: str = ""
    commits: int = 0
    insertions: int = 0
    deletions: int = 0
    first_sha: str = ""
    github_login: str = ""

    @property
    def changed(self) -> int:
        return self.insertions + self.deletions
