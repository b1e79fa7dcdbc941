from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import __version__
from .config import ENV_GLOBAL, ENV_LOCAL, ENVIRONMENTS, KEY_SLACK_WEBHOOK, KEYS, Config, lookup
from .diff import run_diff
from .errors import DeployReviewError, InvalidConfigKey
from .report import OUTPUT_SLACK, OUTPUT_TERMINAL


def _print_help() -> None:
    print("usage: deploy-review <command> [options]")
    print("")
    print("Review every commit between two revisions of a repository and its submodules.")
    print("")
    print("commands:")
    print("  init      Create an empty .deploy-review.json in the current directory.")
    print("  config    Show or set configuration values (--local or --global).")
    print("  diff      Diff commits between TARGET and SOURCE, grouped by author.")
    print("  version   Display version information.")
    print("")
    print("Run `deploy-review <command> --help` for command-specific options.")


def _cmd_init(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="deploy-review init", description="Create an empty configuration file.")
    p.add_argument("-f", "--force", action="store_true", help="Initialize forcely if already initialized.")
    p.add_argument("--global", dest="is_global", action="store_true", help="Create the file in your home directory.")
    args = p.parse_args(argv)
    conf = Config(ENV_GLOBAL if args.is_global else ENV_LOCAL)
    path = conf.init_file(force=bool(args.force))
    print(f"Initialized deploy-review ({path}).")
    return 0


def _cmd_config(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="deploy-review config", description="Show or set configuration values.")
    g = p.add_mutually_exclusive_group(required=True)
    for env in ENVIRONMENTS:
        g.add_argument(f"--{env}", dest="env", action="store_const", const=env, help=f"Use the {env} configuration file.")
    p.add_argument("key", nargs="?", default=None, help=f"One of: {', '.join(KEYS)}.")
    p.add_argument("value", nargs="?", default=None, help="New value; omit to print the current one.")
    args = p.parse_args(argv)

    conf = Config(args.env)
    if args.key is None:
        for key, value in conf.items():
            print(f"{key}: {value}")
        return 0
    if args.key not in KEYS:
        raise InvalidConfigKey(f"Key must be within {list(KEYS)}, got {args.key!r}")
    if args.value is None:
        print(conf.load().get(args.key, ""))
        return 0
    conf.set(args.key, args.value)
    return 0


def _cmd_diff(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="deploy-review diff", description="Diff commits between TARGET and SOURCE.")
    p.add_argument("target", help="Tag, branch or commit currently deployed.")
    p.add_argument("source", nargs="?", default=None, help="Tag, branch or commit to deploy (default: current branch).")
    p.add_argument("-s", "--slack", action="store_true", help="Send to slack using the configured slack webhook URL.")
    p.add_argument("--verbose", action="store_true", help="Print each step and git command to stderr.")
    p.add_argument("--no-color", action="store_true", help="Disable ANSI colors in terminal output.")
    args = p.parse_args(argv)

    output = OUTPUT_SLACK if args.slack else OUTPUT_TERMINAL
    webhook_url = lookup(KEY_SLACK_WEBHOOK, cwd=Path.cwd()) if args.slack else None
    return run_diff(
        target=args.target,
        source=args.source,
        output=output,
        cwd=Path.cwd(),
        webhook_url=webhook_url,
        color=False if args.no_color else None,
        verbose=bool(args.verbose),
    )


COMMANDS = {
    "init": _cmd_init,
    "config": _cmd_config,
    "diff": _cmd_diff,
}


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if not argv or argv[0] in ("-h", "--help"):
        _print_help()
        return 0
    if argv[0] in ("version", "--version"):
        print(f"deploy-review version {__version__}")
        return 0

    command = COMMANDS.get(argv[0])
    if command is None:
        print(f"ERROR: unknown command: {argv[0]!r}", file=sys.stderr)
        _print_help()
        return 2
    try:
        return command(argv[1:])
    except DeployReviewError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
