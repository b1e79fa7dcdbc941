from __future__ import annotations

import re
from typing import Optional

from .git import GitError, GitGateway
from .models import Commit, Repository
from .session import Session

# hash, author name, subject
COMMIT_FORMAT = "%H%x09%an%x09%s"
AUTHOR_FORMAT = "%an"

_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")


def sanitize_subject(s: str) -> str:
    s = _ANSI_RE.sub("", s or "")
    s = _CONTROL_RE.sub("", s)
    return s.strip()


def parse_commit_lines(out: str) -> list[tuple[str, str, str]]:
    rows: list[tuple[str, str, str]] = []
    for line in out.splitlines():
        if not line.strip():
            continue
        parts = line.split("\t", 2)
        if len(parts) < 2:
            continue
        sha = parts[0].strip()
        name = parts[1]
        subject = parts[2] if len(parts) > 2 else ""
        rows.append((sha, name, subject))
    return rows


def list_author_names(git: GitGateway, from_rev: str, to_rev: str) -> list[str]:
    out = git.log_range(from_rev, to_rev, fmt=AUTHOR_FORMAT)
    names = {line.strip() for line in out.splitlines() if line.strip()}
    return sorted(names)


class CommitRangeCollector:
    """
    Walks the resolved range of a repository, groups its commits by author and
    descends into every submodule whose pointer moved between the two revisions.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def collect(self, repo: Repository) -> None:
        if repo.from_commit is None or repo.to_commit is None:
            raise ValueError(f"repository {repo.name} has no resolved range")

        from_hash = repo.from_commit.hash
        to_hash = repo.to_commit.hash
        self._session.trace(f"collect {repo.name}: {from_hash}..{to_hash}")

        with self._session.context.enter(repo) as git:
            for name in list_author_names(git, from_hash, to_hash):
                out = git.log_range(
                    from_hash,
                    to_hash,
                    fmt=COMMIT_FORMAT,
                    author=name,
                    no_merges=True,
                    reverse=True,
                )
                commits = self._materialize(repo, out, only_author=name)
                if commits:
                    self._session.authors.get_or_create(name).add_commits(repo.name, commits)

            for sub in repo.submodules:
                if not sub.changed:
                    self._session.trace(f"skip {sub.mount_path}: pointer unchanged")
                    continue
                if not self._session.gateway(sub).is_checked_out():
                    self._session.trace(f"skip {sub.mount_path}: not cloned")
                    continue
                try:
                    self.collect(sub)
                except GitError as e:
                    # pointer commits missing from the local clone (never fetched)
                    self._session.trace(f"skip {sub.mount_path}: {e.stderr.strip()}")

    def last_commit(self, repo: Repository) -> Optional[Commit]:
        if repo.from_commit is None or repo.to_commit is None:
            raise ValueError(f"repository {repo.name} has no resolved range")
        with self._session.context.enter(repo) as git:
            out = git.log_range(
                repo.from_commit.hash,
                repo.to_commit.hash,
                fmt=COMMIT_FORMAT,
                no_merges=True,
                max_count=1,
            )
        commits = self._materialize(repo, out)
        return commits[0] if commits else None

    def _materialize(self, repo: Repository, out: str, only_author: str = "") -> list[Commit]:
        commits: list[Commit] = []
        for sha, name, subject in parse_commit_lines(out):
            # --author is a substring match
            if only_author and name != only_author:
                continue
            commit = self._session.commits.get_or_create(sha, repo)
            commit.update(
                long_hash=sha,
                subject=sanitize_subject(subject),
                author=self._session.authors.get_or_create(name),
            )
            commits.append(commit)
        return commits
