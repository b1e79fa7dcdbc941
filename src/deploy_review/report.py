from __future__ import annotations

import dataclasses
import re
import unicodedata
from typing import Optional

from .models import Author, Commit, Repository

OUTPUT_TERMINAL = "terminal"
OUTPUT_SLACK = "slack"
OUTPUTS = (OUTPUT_TERMINAL, OUTPUT_SLACK)

ATTACHMENT_COLOR = "#00B86A"
DEFAULT_WIDTH = 120

_ANSI = {
    "gray": "\x1b[1;30m",
    "red": "\x1b[1;31m",
    "green": "\x1b[1;32m",
    "yellow": "\x1b[1;33m",
    "blue": "\x1b[1;34m",
    "cyan": "\x1b[1;36m",
}
_RESET = "\x1b[0m"
_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


@dataclasses.dataclass
class ReportData:
    app_name: str
    target: str
    source: str
    repo: Repository
    authors: list[Author]
    last_commit: Optional[Commit] = None
    actor: str = ""


def _plural(count: int, word: str) -> str:
    return word if count == 1 else f"{word}s"


def pluralize(count: int, word: str) -> str:
    return f"{count} {_plural(count, word)}"


def new_commits_label(count: int) -> str:
    return f"{count} new {_plural(count, 'commit')}"


def paint(s: str, color: str, enabled: bool) -> str:
    if not enabled:
        return s
    return f"{_ANSI[color]}{s}{_RESET}"


def display_width(s: str) -> int:
    plain = _ANSI_RE.sub("", s)
    return sum(2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1 for ch in plain)


def justify(left: str, right: str, width: int) -> str:
    gap = width - display_width(left) - display_width(right)
    return left + " " * max(1, gap) + right


def _repo_lines(repo_name: str, commits: list[Commit], *, color: bool, width: int) -> list[str]:
    lines = [f" > {paint(repo_name, 'blue', color)}: {new_commits_label(len(commits))}"]
    for c in commits:
        lines.append(justify(f" - {paint(c.hash, 'yellow', color)} {c.subject}", paint(c.url, "gray", color), width))
    return lines


def render_console(report: ReportData, *, color: bool = False, width: int = DEFAULT_WIDTH) -> str:
    repo = report.repo
    labels = f"{paint(report.target, 'cyan', color)}...{paint(report.source, 'cyan', color)}"
    lines = [
        justify(
            f"Check commits before {paint(report.app_name, 'red', color)} deployment. ({labels})",
            paint(repo.compare_url(), "gray", color),
            width,
        ),
        f"{paint('Author', 'yellow', color)}: {len(report.authors)}",
    ]
    last = report.last_commit
    if last is not None:
        lines.append(
            justify(
                f"{paint('Last commit', 'blue', color)}: {paint(last.hash, 'yellow', color)} {last.subject}",
                paint(last.url, "gray", color),
                width,
            )
        )
    for author in report.authors:
        lines.append("")
        lines.append(paint(f"@{author.name}", "green", color))
        for repo_name, commits in author.commits.items():
            if not commits:
                continue
            lines.extend(_repo_lines(repo_name, commits, color=color, width=width))
    return "\n".join(lines)


def chat_commit_line(commit: Commit) -> str:
    author = commit.author.name if commit.author is not None else ""
    return f"`<{commit.url}|{commit.hash}>` {commit.subject} - {author}"


def chat_attachment(author: Author) -> dict[str, str]:
    # https://api.slack.com/messaging/composing/layouts#building-attachments
    blocks = []
    for repo_name, commits in author.commits.items():
        if not commits:
            continue
        blocks.append(f"*{repo_name}*: {new_commits_label(len(commits))}\n" + "\n".join(chat_commit_line(c) for c in commits))
    return {
        "text": f"- <@{author.name}>\n" + "\n".join(blocks),
        "color": ATTACHMENT_COLOR,
    }


def build_chat_payload(report: ReportData) -> dict:
    repo = report.repo
    from_tree = repo.tree_url(repo.from_commit)
    to_tree = repo.tree_url(repo.to_commit)
    text = (
        f":white_check_mark: *{report.app_name}* deployment request by <@{report.actor}>"
        f" (`<{from_tree}|{report.target}>`<{repo.compare_url()}|...>`<{to_tree}|{report.source}>`)"
        f"\n:technologist: Author: {len(report.authors)}"
    )
    if report.last_commit is not None:
        text += f"\nLast commit: {chat_commit_line(report.last_commit)}"
    return {
        "text": text,
        "attachments": [chat_attachment(a) for a in report.authors],
    }


def render(output: str, report: ReportData, *, color: bool = False, width: int = DEFAULT_WIDTH) -> str | dict:
    if output == OUTPUT_TERMINAL:
        return render_console(report, color=color, width=width)
    if output == OUTPUT_SLACK:
        return build_chat_payload(report)
    raise ValueError(f"unknown output: {output!r} (expected one of {', '.join(OUTPUTS)})")
