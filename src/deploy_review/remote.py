from __future__ import annotations

import re

from .errors import UnrecognizedRemoteFormat

WEB_HOST = "https://github.com"

# Tried in order; the first match wins. Groups: host, owner, name.
REMOTE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    # https://github.com/acme/widget(.git)(/)
    ("https", re.compile(r"^https?://(?:[^@/]+@)?([^/]+)/([^/]+)/([^/]+?)(?:\.git)?/?$")),
    # git@github.com:acme/widget(.git)(/)
    ("scp", re.compile(r"^[^@/:]+@([^:/]+):([^/]+)/([^/]+?)(?:\.git)?/?$")),
    # git://github.com/acme/widget(.git)(/)
    ("git", re.compile(r"^git://([^/]+)/([^/]+)/([^/]+?)(?:\.git)?/?$")),
    # git:github.com/acme/widget(.git)(/)
    ("git-legacy", re.compile(r"^git:([^/]+)/([^/]+)/([^/]+?)(?:\.git)?/?$")),
    # ssh://git@github.com(:22)/acme/widget.git
    ("ssh", re.compile(r"^ssh://(?:[^@/]+@)?([^/:]+)(?::\d+)?/([^/]+)/([^/]+?)(?:\.git)?/?$")),
)


def parse_remote_url(remote_url: str) -> tuple[str, str]:
    url = (remote_url or "").strip()
    for _label, pattern in REMOTE_PATTERNS:
        m = pattern.match(url)
        if m is not None:
            return m.group(2), m.group(3)
    raise UnrecognizedRemoteFormat(url)


def web_url(owner: str, name: str) -> str:
    return f"{WEB_HOST}/{owner}/{name}"


def resolve_submodule_url(parent_url: str, url: str) -> str:
    """Resolve a `./` or `../` submodule url against the parent repository's remote."""
    rel = (url or "").strip()
    if not rel.startswith(("./", "../")):
        return rel

    base = (parent_url or "").strip().rstrip("/")
    sep = "/"
    while True:
        if rel.startswith("./"):
            rel = rel[2:]
        elif rel.startswith("../"):
            rel = rel[3:]
            # scp-style remotes separate host and path with ':'
            cut = max(base.rfind("/"), base.rfind(":"))
            if cut <= 0 or base[cut - 1] == "/":
                raise UnrecognizedRemoteFormat(url)
            sep = base[cut]
            base = base[:cut]
        else:
            break
    return f"{base}{sep}{rel}"
