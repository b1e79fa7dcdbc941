from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import Callable, Optional, TextIO

from .collector import CommitRangeCollector
from .config import CONFIG_FILE, ENV_LOCAL, KEY_SLACK_WEBHOOK
from .delivery import post_webhook
from .errors import DirtyWorkingTree, MissingDeliveryTarget, NoCommitsInRange, NotAGitRepository, SameRevisions
from .report import DEFAULT_WIDTH, OUTPUT_SLACK, OUTPUT_TERMINAL, OUTPUTS, ReportData, render
from .resolver import RevisionResolver
from .session import Session


def _validate(
    *,
    session: Session,
    cwd: Path,
    target: str,
    source: Optional[str],
    output: str,
    webhook_url: Optional[str],
) -> str:
    if output not in OUTPUTS:
        raise ValueError(f"unknown output: {output!r}")
    if output == OUTPUT_SLACK and not (webhook_url or "").strip():
        raise MissingDeliveryTarget(
            f"Can't find any slack webhook. Set one with "
            f"`deploy-review config --{ENV_LOCAL} {KEY_SLACK_WEBHOOK} <URL>` ({CONFIG_FILE})."
        )

    git = session.gateway_factory(cwd)
    if not git.is_repository():
        raise NotAGitRepository(f'There is no ".git" in {cwd}.')
    if source is None:
        source = git.current_ref()
    if target == source:
        raise SameRevisions(f"target({target}) and source({source}) can't be equal.")
    files = git.uncommitted_files()
    if files:
        raise DirtyWorkingTree(files)
    return source


def run_diff(
    *,
    target: str,
    source: Optional[str] = None,
    output: str = OUTPUT_TERMINAL,
    cwd: Optional[Path] = None,
    webhook_url: Optional[str] = None,
    deliver: Optional[Callable[[dict], str]] = None,
    session: Optional[Session] = None,
    color: Optional[bool] = None,
    width: Optional[int] = None,
    verbose: bool = False,
    out: Optional[TextIO] = None,
) -> int:
    stream = out if out is not None else sys.stdout
    root = Path(cwd or Path.cwd()).resolve()
    if session is None:
        session = Session(verbose=verbose)

    source = _validate(session=session, cwd=root, target=target, source=source, output=output, webhook_url=webhook_url)
    session.trace(f"$ deploy-review diff {target} {source} ({output})")

    repo = session.repositories.get_or_create(root)
    RevisionResolver(session).resolve_range(repo, target, source)

    collector = CommitRangeCollector(session)
    collector.collect(repo)

    authors = session.authors.all()
    if not authors:
        raise NoCommitsInRange(target, source)

    report = ReportData(
        app_name=repo.name,
        target=target,
        source=source,
        repo=repo,
        authors=authors,
        last_commit=collector.last_commit(repo),
    )

    if output == OUTPUT_SLACK:
        report.actor = session.gateway(repo).user_name()
    else:
        if color is None:
            color = bool(getattr(stream, "isatty", lambda: False)())
        if width is None:
            width = shutil.get_terminal_size((DEFAULT_WIDTH, 24)).columns
    rendered = render(output, report, color=bool(color), width=width or DEFAULT_WIDTH)

    if isinstance(rendered, str):
        print(rendered, file=stream)
        return 0
    if deliver is None:
        assert webhook_url is not None

        def deliver(p: dict) -> str:
            return post_webhook(webhook_url, p)

    print(deliver(rendered), file=stream)
    return 0
