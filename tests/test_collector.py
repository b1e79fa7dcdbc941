from __future__ import annotations

from pathlib import Path

import pytest
from fake_git import FakeCommit, FakeGit, FakeGitFactory, sha

from deploy_review.collector import CommitRangeCollector, parse_commit_lines, sanitize_subject
from deploy_review.git import GitError
from deploy_review.models import Repository
from deploy_review.report import ReportData, render_console
from deploy_review.resolver import RevisionResolver
from deploy_review.session import Session

GITMODULES = '[submodule "lib"]\n\tpath = lib\n\turl = git@github.com:acme/lib.git\n'


def _scenario(tmp_path: Path, *, lib_changes: bool) -> tuple[Session, Repository, FakeGit, FakeGit]:
    app = tmp_path / "app"
    app.mkdir()
    (app / ".gitmodules").write_text(GITMODULES, encoding="utf-8")
    lib_to = "3333333" if lib_changes else "1111111"
    app_git = FakeGit(
        app,
        remote="git@github.com:acme/widget.git",
        commits=[
            FakeCommit(sha("abc1234"), "amy", "init"),
            FakeCommit(sha("a000001"), "amy", "feat: one"),
            FakeCommit(sha("a000002"), "zed", "fix: two"),
            FakeCommit(sha("a000003"), "zed", "Merge branch 'fix'", merge=True),
            FakeCommit(sha("def5678"), "amy", "feat: three"),
        ],
        branches={"main": sha("def5678")},
        trees={
            sha("abc1234"): {"lib": sha("1111111")},
            sha("def5678"): {"lib": sha(lib_to)},
        },
    )
    lib_git = FakeGit(
        app / "lib",
        remote="git@github.com:acme/lib.git",
        commits=[
            FakeCommit(sha("1111111"), "amy", "lib init"),
            FakeCommit(sha("2222222"), "bob", "lib: helper"),
            FakeCommit(sha("3333333"), "amy", "lib: bump"),
        ],
    )
    session = Session(FakeGitFactory([app_git, lib_git]))
    repo = session.repositories.get_or_create(app)
    RevisionResolver(session).resolve_range(repo, "abc1234", "def5678")
    return session, repo, app_git, lib_git


def test_commits_grouped_by_author_and_unchanged_submodule_pruned(tmp_path: Path) -> None:
    session, repo, _, lib_git = _scenario(tmp_path, lib_changes=False)

    CommitRangeCollector(session).collect(repo)

    authors = session.authors.all()
    assert [a.name for a in authors] == ["amy", "zed"]
    amy, zed = authors
    assert list(amy.commits) == ["widget"]
    assert [c.subject for c in amy.commits["widget"]] == ["feat: one", "feat: three"]
    assert [c.hash for c in zed.commits["widget"]] == ["a000002"]
    assert lib_git.calls_named("log_range") == []

    report = ReportData(app_name=repo.name, target="abc1234", source="def5678", repo=repo, authors=authors)
    out = render_console(report, color=False, width=100)
    assert "Author: 2" in out.splitlines()


def test_changed_submodule_is_collected_under_its_own_name(tmp_path: Path) -> None:
    session, repo, _, lib_git = _scenario(tmp_path, lib_changes=True)

    CommitRangeCollector(session).collect(repo)

    names = [a.name for a in session.authors.all()]
    assert names == ["amy", "bob", "zed"]
    amy = session.authors.get("amy")
    bob = session.authors.get("bob")
    assert amy is not None and bob is not None
    assert list(amy.commits) == ["widget", "lib"]
    assert [c.subject for c in amy.commits["lib"]] == ["lib: bump"]
    assert list(bob.commits) == ["lib"]
    assert bob.commits["lib"][0].url == f"https://github.com/acme/lib/commit/{sha('2222222')}"
    assert lib_git.calls_named("log_range")


def test_changed_submodule_that_is_not_cloned_is_skipped(tmp_path: Path) -> None:
    session, repo, _, lib_git = _scenario(tmp_path, lib_changes=True)
    lib_git.checked_out = False

    CommitRangeCollector(session).collect(repo)

    assert [a.name for a in session.authors.all()] == ["amy", "zed"]
    assert lib_git.calls_named("log_range") == []


def test_changed_submodule_missing_pointer_commits_is_skipped(tmp_path: Path) -> None:
    session, repo, _, lib_git = _scenario(tmp_path, lib_changes=True)
    lib_git.commits = []

    CommitRangeCollector(session).collect(repo)

    amy = session.authors.get("amy")
    assert amy is not None
    assert list(amy.commits) == ["widget"]
    assert session.authors.get("bob") is None
    assert session.context.depth == 0


def test_author_filter_is_exact_not_substring(tmp_path: Path) -> None:
    app = tmp_path / "app"
    app.mkdir()
    git = FakeGit(
        app,
        remote="git@github.com:acme/widget.git",
        commits=[
            FakeCommit(sha("abc1234"), "amy", "init"),
            FakeCommit(sha("a000001"), "amy", "by amy"),
            FakeCommit(sha("a000002"), "amy jr", "by amy jr"),
        ],
        branches={"main": sha("a000002")},
    )
    session = Session(FakeGitFactory([git]))
    repo = session.repositories.get_or_create(app)
    RevisionResolver(session).resolve_range(repo, "abc1234", "a000002")

    CommitRangeCollector(session).collect(repo)

    amy = session.authors.get("amy")
    amy_jr = session.authors.get("amy jr")
    assert amy is not None and amy_jr is not None
    assert [c.subject for c in amy.commits["widget"]] == ["by amy"]
    assert [c.subject for c in amy_jr.commits["widget"]] == ["by amy jr"]


def test_collect_requires_resolved_range(tmp_path: Path) -> None:
    app = tmp_path / "app"
    app.mkdir()
    session = Session(FakeGitFactory([FakeGit(app, remote="git@github.com:acme/widget.git")]))
    repo = session.repositories.get_or_create(app)
    with pytest.raises(ValueError):
        CommitRangeCollector(session).collect(repo)


def test_context_is_restored_when_git_fails(tmp_path: Path) -> None:
    session, repo, app_git, _ = _scenario(tmp_path, lib_changes=False)

    def boom(*args: object, **kwargs: object) -> str:
        raise GitError(["log"], app_git.cwd, 128, "fatal: bad revision")

    app_git.log_range = boom  # type: ignore[method-assign]
    with pytest.raises(GitError):
        CommitRangeCollector(session).collect(repo)
    assert session.context.current is None
    assert session.context.depth == 0


def test_last_commit_is_newest_non_merge_commit(tmp_path: Path) -> None:
    session, repo, _, _ = _scenario(tmp_path, lib_changes=False)
    last = CommitRangeCollector(session).last_commit(repo)
    assert last is not None
    assert (last.hash, last.subject) == ("def5678", "feat: three")
    assert last is repo.to_commit


def test_sanitize_subject_strips_terminal_bytes() -> None:
    assert sanitize_subject("\x1b[1;33mfix\x1b[0m: tidy\x07 up\r") == "fix: tidy up"
    assert sanitize_subject("café ☃") == "café ☃"
    assert sanitize_subject("a\x85b") == "ab"


def test_parse_commit_lines_skips_blank_and_short_lines() -> None:
    out = f"{sha('abc1234')}\tamy\tsubject\twith tab\n\njunk\n{sha('def5678')}\tzed\t\n"
    assert parse_commit_lines(out) == [
        (sha("abc1234"), "amy", "subject\twith tab"),
        (sha("def5678"), "zed", ""),
    ]
