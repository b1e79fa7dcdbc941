from __future__ import annotations

import dataclasses
import re
from pathlib import Path

GITMODULES_FILE = ".gitmodules"

_SECTION_RE = re.compile(r"^\[\s*submodule\s+\"(.*)\"\s*\]$")


@dataclasses.dataclass(frozen=True)
class SubmoduleDeclaration:
    path: str
    url: str


def parse_gitmodules(text: str) -> list[SubmoduleDeclaration]:
    """
    Parse the contents of a `.gitmodules` file.

    Only `path` and `url` are read from each `[submodule "..."]` block; other keys
    and blocks without a path are ignored. The result is sorted by path.
    """
    blocks: list[dict[str, str]] = []
    current: dict[str, str] | None = None
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(("#", ";")):
            continue
        if line.startswith("["):
            current = {} if _SECTION_RE.match(line) else None
            if current is not None:
                blocks.append(current)
            continue
        if current is None or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip().lower()
        if key in ("path", "url"):
            current[key] = value.strip()

    out = [SubmoduleDeclaration(path=b["path"].rstrip("/"), url=b.get("url", "")) for b in blocks if b.get("path")]
    return sorted(out, key=lambda d: d.path)


def discover_submodules(root: Path) -> list[SubmoduleDeclaration]:
    path = Path(root) / GITMODULES_FILE
    if not path.exists():
        return []
    return parse_gitmodules(path.read_text(encoding="utf-8"))
