from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import Callable, Optional

from .errors import DeployReviewError

HASH_RE = re.compile(r"^[0-9a-fA-F]{7,40}$")


def run_git(args: list[str], cwd: Path, timeout_s: Optional[int] = None) -> tuple[int, str, str]:
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=timeout_s,
    )
    return proc.returncode, proc.stdout, proc.stderr


def looks_like_hash(label: str) -> bool:
    return bool(HASH_RE.match((label or "").strip()))


class GitError(DeployReviewError):
    def __init__(self, args: list[str], cwd: Path, code: int, stderr: str) -> None:
        self.git_args = list(args)
        self.cwd = cwd
        self.code = code
        self.stderr = stderr
        super().__init__(f"git {' '.join(args)} failed in {cwd} (exit {code}): {stderr.strip()[:500]}")


class GitGateway:
    """Runs git commands against one working tree.

    Every call is bound to `cwd`; the process working directory is never changed.
    """

    def __init__(self, cwd: Path, trace: Optional[Callable[[str], None]] = None) -> None:
        self.cwd = Path(cwd)
        self._trace = trace

    def _git(self, args: list[str]) -> tuple[int, str, str]:
        if self._trace is not None:
            self._trace(f"$ git {' '.join(args)}  ({self.cwd})")
        return run_git(args, cwd=self.cwd)

    def _git_ok(self, args: list[str]) -> str:
        code, out, err = self._git(args)
        if code != 0:
            raise GitError(args, self.cwd, code, err)
        return out

    def is_repository(self) -> bool:
        code, out, _ = self._git(["rev-parse", "--is-inside-work-tree"])
        return code == 0 and out.strip() == "true"

    def is_checked_out(self) -> bool:
        # an uncloned submodule is an empty directory inside the parent work tree
        return (self.cwd / ".git").exists()

    def current_ref(self) -> str:
        out = self._git_ok(["rev-parse", "--abbrev-ref", "HEAD"]).strip()
        if out == "HEAD":
            # detached: restore to the exact commit
            return self._git_ok(["rev-parse", "HEAD"]).strip()
        return out

    def checkout(self, ref: str) -> None:
        self._git_ok(["checkout", "--quiet", ref])

    def pull(self) -> bool:
        code, _, _ = self._git(["pull", "--quiet"])
        return code == 0

    def tag_exists(self, label: str) -> bool:
        code, out, _ = self._git(["tag", "--list", label])
        if code != 0:
            return False
        return label in [line.strip() for line in out.splitlines()]

    def fetch_tag(self, tag: str) -> bool:
        code, _, _ = self._git(["fetch", "--quiet", "--force", "origin", "tag", tag])
        return code == 0

    def resolve_tag_to_commit(self, tag: str) -> str:
        return self._git_ok(["rev-list", "-n", "1", tag]).strip()

    def head_hash(self) -> str:
        return self._git_ok(["rev-parse", "HEAD"]).strip()

    def log_range(
        self,
        from_rev: str,
        to_rev: str,
        *,
        fmt: str,
        author: str = "",
        no_merges: bool = False,
        reverse: bool = False,
        max_count: int = 0,
    ) -> str:
        args = ["--no-pager", "log", f"--format={fmt}"]
        if reverse:
            args.append("--reverse")
        if no_merges:
            args.append("--no-merges")
        if author:
            args.extend(["--fixed-strings", f"--author={author}"])
        if max_count > 0:
            args.append(f"--max-count={max_count}")
        args.append(f"{from_rev}..{to_rev}")
        return self._git_ok(args)

    def tree_entries(self, paths: list[str], rev: str = "HEAD") -> list[tuple[str, str, str, str]]:
        if not paths:
            return []
        out = self._git_ok(["ls-tree", rev, "--", *paths])
        entries: list[tuple[str, str, str, str]] = []
        for line in out.splitlines():
            if not line.strip():
                continue
            meta, _, path = line.partition("\t")
            parts = meta.split()
            if len(parts) != 3:
                continue
            mode, kind, obj = parts
            entries.append((mode, kind, obj, path))
        return entries

    def remote_url(self) -> str:
        code, out, _ = self._git(["config", "--get", "remote.origin.url"])
        if code == 0:
            return out.strip()
        return ""

    def uncommitted_files(self) -> list[str]:
        out = self._git_ok(["diff", "HEAD", "--name-only"])
        return [line.strip() for line in out.splitlines() if line.strip()]

    def has_uncommitted_changes(self) -> bool:
        return bool(self.uncommitted_files())

    def user_name(self) -> str:
        code, out, _ = self._git(["config", "user.name"])
        if code == 0:
            return out.strip()
        return ""
