from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from .git import GitGateway
from .models import Author, Commit, Repository, short_hash
from .remote import parse_remote_url, resolve_submodule_url
from .submodules import SubmoduleDeclaration, discover_submodules


def _key(path: Path) -> Path:
    return Path(path).resolve()


class RepositoryRegistry:
    """Identity map of repositories keyed by resolved filesystem path."""

    def __init__(
        self,
        gateway_factory: Callable[[Path], GitGateway],
        discover: Callable[[Path], list[SubmoduleDeclaration]] = discover_submodules,
    ) -> None:
        self._gateway_factory = gateway_factory
        self._discover = discover
        self._repos: dict[Path, Repository] = {}

    def get(self, path: Path) -> Optional[Repository]:
        return self._repos.get(_key(path))

    def get_or_create(self, path: Path, remote_url: Optional[str] = None) -> Repository:
        key = _key(path)
        existing = self._repos.get(key)
        if existing is not None:
            return existing

        url = remote_url if remote_url else self._gateway_factory(key).remote_url()
        owner, name = parse_remote_url(url)
        repo = Repository(path=key, remote_url=url, owner=owner, name=name)
        self._repos[key] = repo

        for decl in self._discover(key):
            child_key = _key(key / decl.path)
            if child_key in self._repos and self._repos[child_key].parent is None:
                # the top-level repository (or another root) never becomes a submodule
                continue
            child = self.get_or_create(child_key, resolve_submodule_url(url, decl.url))
            if child.parent is None and child is not repo:
                child.parent = repo
                child.mount_path = decl.path
                repo.submodules.append(child)
        return repo

    def all(self) -> list[Repository]:
        return list(self._repos.values())


class CommitRegistry:
    """Identity map of commits keyed by (abbreviated hash, repository path)."""

    def __init__(self) -> None:
        self._commits: dict[tuple[str, Path], Commit] = {}

    def get(self, sha: str, repo: Repository) -> Optional[Commit]:
        return self._commits.get((short_hash(sha), repo.path))

    def get_or_create(self, sha: str, repo: Repository) -> Commit:
        key = (short_hash(sha), repo.path)
        commit = self._commits.get(key)
        if commit is None:
            commit = Commit(hash=key[0], repo=repo)
            self._commits[key] = commit
        if len(sha.strip()) > len(commit.hash):
            commit.update(long_hash=sha.strip())
        return commit


class AuthorRegistry:
    """Identity map of authors keyed by git author display name."""

    def __init__(self) -> None:
        self._authors: dict[str, Author] = {}

    def get(self, name: str) -> Optional[Author]:
        return self._authors.get(name)

    def get_or_create(self, name: str) -> Author:
        author = self._authors.get(name)
        if author is None:
            author = Author(name=name)
            self._authors[name] = author
        return author

    def all(self) -> list[Author]:
        """Authors that have at least one commit, sorted by name."""
        return [self._authors[k] for k in sorted(self._authors) if self._authors[k].commits]
