from __future__ import annotations

from pathlib import Path

from .errors import RevisionNotFound
from .git import GitError, GitGateway, looks_like_hash
from .models import Commit, Repository, short_hash
from .session import Session

PHASE_FROM = "from"
PHASE_TO = "to"
PHASES = (PHASE_FROM, PHASE_TO)


def _record(repo: Repository, commit: Commit, phase: str) -> None:
    if phase == PHASE_FROM:
        repo.from_commit = commit
    else:
        repo.to_commit = commit


def _submodule_pointers(git: GitGateway, repo: Repository, rev: str) -> dict[str, str]:
    if not repo.submodules:
        return {}
    paths = [sub.mount_path for sub in repo.submodules]
    pointers: dict[str, str] = {}
    for _mode, kind, obj, path in git.tree_entries(paths, rev=rev):
        if kind == "commit":
            pointers[path] = obj
    return pointers


class RevisionResolver:
    """
    Resolves revision labels to commits in a repository and, through the
    pointers recorded in each parent tree, in every submodule below it.

    Only the top-level repository is checked out. Submodule pointers are read
    with `ls-tree`, so submodule working trees are left untouched.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        # (repo path, label) -> (HEAD hash, submodule pointers by mount path)
        self._resolved: dict[tuple[Path, str], tuple[str, dict[str, str]]] = {}

    def resolve_range(self, repo: Repository, target: str, source: str) -> tuple[Commit, Commit]:
        git = self._session.gateway(repo)
        original_ref = git.current_ref()
        self._session.trace(f"resolve {repo.name}: {target}...{source} (currently on {original_ref})")
        try:
            self.resolve(repo, target, PHASE_FROM)
            self.resolve(repo, source, PHASE_TO)
        except Exception as e:
            try:
                git.checkout(original_ref)
            except GitError as restore_error:
                raise e from restore_error
            raise
        git.checkout(original_ref)
        assert repo.from_commit is not None and repo.to_commit is not None
        return repo.from_commit, repo.to_commit

    def resolve(self, repo: Repository, label: str, phase: str) -> str:
        if phase not in PHASES:
            raise ValueError(f"unknown phase: {phase!r}")

        cached = self._resolved.get((repo.path, label))
        if cached is not None:
            head, pointers = cached
        else:
            git = self._session.gateway(repo)
            revision = self._revision_for_label(git, label)
            try:
                git.checkout(revision)
            except GitError as e:
                raise RevisionNotFound(label, str(repo.path), e.stderr.strip()) from e
            if not git.pull():
                self._session.trace(f"pull skipped for {revision} (detached or no upstream)")
            head = git.head_hash()
            pointers = _submodule_pointers(git, repo, head)
            self._resolved[(repo.path, label)] = (head, pointers)

        _record(repo, self._session.commits.get_or_create(head, repo), phase)
        for sub in repo.submodules:
            pointer = pointers.get(sub.mount_path)
            if pointer is None:
                self._session.trace(f"{sub.mount_path}: not present at {label}")
                continue
            self._record_pointer(sub, pointer, phase)
        return short_hash(head)

    def _revision_for_label(self, git: GitGateway, label: str) -> str:
        if looks_like_hash(label):
            return label
        if not git.tag_exists(label):
            return label
        if not git.fetch_tag(label):
            self._session.trace(f"could not fetch tag {label} from origin; using the local tag")
        try:
            return short_hash(git.resolve_tag_to_commit(label))
        except GitError as e:
            raise RevisionNotFound(label, str(git.cwd), e.stderr.strip()) from e

    def _record_pointer(self, repo: Repository, pointer: str, phase: str) -> None:
        _record(repo, self._session.commits.get_or_create(pointer, repo), phase)
        if not repo.submodules:
            return

        key = (repo.path, pointer)
        cached = self._resolved.get(key)
        if cached is None:
            git = self._session.gateway(repo)
            try:
                pointers = _submodule_pointers(git, repo, pointer)
            except GitError as e:
                raise RevisionNotFound(pointer, str(repo.path), e.stderr.strip()) from e
            cached = (pointer, pointers)
            self._resolved[key] = cached

        for sub in repo.submodules:
            nested = cached[1].get(sub.mount_path)
            if nested is not None:
                self._record_pointer(sub, nested, phase)
