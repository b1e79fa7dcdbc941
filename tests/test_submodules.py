from __future__ import annotations

from pathlib import Path

from deploy_review.submodules import SubmoduleDeclaration, discover_submodules, parse_gitmodules

GITMODULES = """\
[submodule "vendor/zeta"]
\tpath = vendor/zeta
\turl = git@github.com:acme/zeta.git
\tbranch = main
# a comment
[submodule "alpha"]
\turl = https://github.com/acme/alpha
\tpath = alpha
[submodule "broken"]
\turl = https://github.com/acme/broken
[core]
\tpath = not-a-submodule
"""


def test_parse_gitmodules_sorted_by_path_and_ignores_unknown_fields() -> None:
    decls = parse_gitmodules(GITMODULES)
    assert decls == [
        SubmoduleDeclaration(path="alpha", url="https://github.com/acme/alpha"),
        SubmoduleDeclaration(path="vendor/zeta", url="git@github.com:acme/zeta.git"),
    ]


def test_discover_submodules_without_file_is_empty(tmp_path: Path) -> None:
    assert discover_submodules(tmp_path) == []


def test_discover_submodules_reads_declaration_file(tmp_path: Path) -> None:
    (tmp_path / ".gitmodules").write_text(GITMODULES, encoding="utf-8")
    assert [d.path for d in discover_submodules(tmp_path)] == ["alpha", "vendor/zeta"]
