from __future__ import annotations

import contextlib
import sys
from pathlib import Path
from typing import Callable, Iterator, Optional

from .git import GitGateway
from .models import Repository
from .registry import AuthorRegistry, CommitRegistry, RepositoryRegistry


class RepositoryContext:
    """
    Tracks which repository the traversal is currently working in.

    `enter()` pushes a repository and yields a gateway bound to its working tree;
    the previous repository is current again once the block exits, also when the
    block raises.
    """

    def __init__(self, gateway_factory: Callable[[Path], GitGateway]) -> None:
        self._gateway_factory = gateway_factory
        self._stack: list[Repository] = []

    @property
    def current(self) -> Optional[Repository]:
        return self._stack[-1] if self._stack else None

    @property
    def depth(self) -> int:
        return len(self._stack)

    @contextlib.contextmanager
    def enter(self, repo: Repository) -> Iterator[GitGateway]:
        self._stack.append(repo)
        try:
            yield self._gateway_factory(repo.path)
        finally:
            self._stack.pop()


class Session:
    """Registries and git access for a single diff run."""

    def __init__(
        self,
        gateway_factory: Optional[Callable[[Path], GitGateway]] = None,
        *,
        verbose: bool = False,
    ) -> None:
        self.verbose = verbose
        if gateway_factory is None:
            gateway_factory = self._default_gateway
        self.gateway_factory = gateway_factory
        self.repositories = RepositoryRegistry(gateway_factory)
        self.commits = CommitRegistry()
        self.authors = AuthorRegistry()
        self.context = RepositoryContext(gateway_factory)

    def _default_gateway(self, path: Path) -> GitGateway:
        return GitGateway(path, trace=self.trace if self.verbose else None)

    def gateway(self, repo: Repository) -> GitGateway:
        return self.gateway_factory(repo.path)

    def trace(self, msg: str) -> None:
        if self.verbose:
            print(msg, file=sys.stderr)
