"""Thin CLI router: dispatches to commands."""
from __future__ import annotations

import logging
import os
import sys

USAGE = """\
loom: convention-constrained test synthesis

Usage:
  loom check                       Load .loom/catalog.yaml + rules.yaml, report what compiled
  loom resolve "<step>"            Show the catalog method a step resolves to
  loom synth <plan> [--out DIR] [--workers N]
                                   Group, synthesize and validate a test plan
  loom audit <file>...             Check existing spec files against the rule set

Internal:
  loom mcp-server                  Start MCP Server
"""


def _configure_logging():
    level = os.environ.get("LOOM_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _pop_option(args: list[str], name: str) -> str | None:
    if name not in args:
        return None
    idx = args.index(name)
    if idx + 1 >= len(args):
        print(f"Missing value for {name}", file=sys.stderr)
        sys.exit(1)
    value = args[idx + 1]
    del args[idx:idx + 2]
    return value


def main():
    _configure_logging()
    args = sys.argv[1:]
    cwd = os.getcwd()
    command = args[0] if args else None

    if command == "check":
        from testloom.commands.check import cmd_check
        cmd_check(cwd)

    elif command == "resolve":
        if len(args) < 2:
            print('Usage: loom resolve "<step>"', file=sys.stderr)
            sys.exit(1)
        from testloom.commands.resolve import cmd_resolve
        cmd_resolve(" ".join(args[1:]), cwd)

    elif command == "synth":
        rest = args[1:]
        out_dir = _pop_option(rest, "--out")
        workers = _pop_option(rest, "--workers")
        if len(rest) != 1:
            print("Usage: loom synth <plan> [--out DIR] [--workers N]", file=sys.stderr)
            sys.exit(1)
        if workers is not None and (not workers.isdigit() or int(workers) < 1):
            print("--workers must be a positive integer", file=sys.stderr)
            sys.exit(1)
        from testloom.commands.synth import cmd_synth
        cmd_synth(rest[0], cwd, out_dir=out_dir, workers=int(workers) if workers else None)

    elif command == "audit":
        if len(args) < 2:
            print("Usage: loom audit <file>...", file=sys.stderr)
            sys.exit(1)
        from testloom.commands.audit import cmd_audit
        cmd_audit(args[1:], cwd)

    elif command == "mcp-server":
        from testloom.integrations.mcp_server import run_server
        run_server()

    elif command in ("help", "--help", "-h", None):
        print(USAGE)

    else:
        print(f"Unknown command: {command}", file=sys.stderr)
        print(USAGE)
        sys.exit(1)


if __name__ == "__main__":
    main()
