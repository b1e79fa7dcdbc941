from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Optional

from .remote import web_url

SHORT_HASH_LEN = 7


def short_hash(sha: str) -> str:
    return (sha or "").strip()[:SHORT_HASH_LEN]


@dataclasses.dataclass(eq=False)
class Repository:
    path: Path
    remote_url: str
    owner: str
    name: str
    mount_path: str = ""  # relative to the parent; "" for the top-level repository
    submodules: list[Repository] = dataclasses.field(default_factory=list, repr=False)
    parent: Optional[Repository] = dataclasses.field(default=None, repr=False)  # non-owning
    from_commit: Optional[Commit] = dataclasses.field(default=None, repr=False)
    to_commit: Optional[Commit] = dataclasses.field(default=None, repr=False)

    @property
    def web_url(self) -> str:
        return web_url(self.owner, self.name)

    @property
    def is_resolved(self) -> bool:
        return self.from_commit is not None and self.to_commit is not None

    @property
    def changed(self) -> bool:
        if not self.is_resolved:
            return False
        assert self.from_commit is not None and self.to_commit is not None
        return self.from_commit.hash != self.to_commit.hash

    def compare_url(self) -> str:
        from_hash = self.from_commit.hash if self.from_commit else ""
        to_hash = self.to_commit.hash if self.to_commit else ""
        return f"{self.web_url}/compare/{from_hash}...{to_hash}"

    def tree_url(self, commit: Optional[Commit]) -> str:
        return f"{self.web_url}/tree/{commit.hash if commit else ''}"


@dataclasses.dataclass(eq=False)
class Commit:
    hash: str
    repo: Repository = dataclasses.field(repr=False)
    long_hash: str = ""
    subject: str = ""
    author: Optional[Author] = dataclasses.field(default=None, repr=False)

    def update(self, *, long_hash: str = "", subject: str = "", author: Optional[Author] = None) -> Commit:
        # first value wins; a commit is immutable once described
        if long_hash and not self.long_hash:
            self.long_hash = long_hash
        if subject and not self.subject:
            self.subject = subject
        if author is not None and self.author is None:
            self.author = author
        return self

    @property
    def url(self) -> str:
        return f"{self.repo.web_url}/commit/{self.long_hash or self.hash}"


@dataclasses.dataclass(eq=False)
class Author:
    name: str
    commits: dict[str, list[Commit]] = dataclasses.field(default_factory=dict, repr=False)

    def add_commits(self, repo_name: str, commits: list[Commit]) -> None:
        if not commits:
            return
        bucket = self.commits.setdefault(repo_name, [])
        for c in commits:
            if not any(existing is c for existing in bucket):
                bucket.append(c)

    @property
    def total_commits(self) -> int:
        return sum(len(v) for v in self.commits.values())
