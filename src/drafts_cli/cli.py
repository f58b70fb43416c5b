"""
drafts - edit your Drafts from the command line.

Commands that take text read it from stdin when the message is omitted;
commands that take a UUID use the draft currently open in Drafts when it is
omitted.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import platform
import re
import subprocess
import sys
import tempfile

from drafts_cli import __version__, bridge
from drafts_cli.errors import BridgeError, ConfigError

logger = logging.getLogger("drafts_cli")

LINEBREAK = " ¶ "
SEPARATOR = "|"
MAX_LIST_WIDTH = 80

_linebreaks = re.compile(r"\n+")


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


def or_stdin(message: str | None) -> str:
    if message is not None:
        return message
    return sys.stdin.read().rstrip("\n")


def or_active(uuid: str | None) -> str:
    return uuid or bridge.active_uuid()


def require_draft(uuid: str) -> bridge.DraftRecord:
    draft = bridge.get_draft(uuid)
    if draft is None:
        raise BridgeError(f"No draft with UUID '{uuid}'")
    return draft


def edit_in_editor(text: str) -> str:
    """Open ``text`` in $EDITOR and return what was saved."""
    editor = os.getenv("EDITOR", "vi")
    with tempfile.NamedTemporaryFile(mode="w", suffix=".md", delete=False) as f:
        f.write(text)
        path = f.name
    try:
        try:
            subprocess.run([*editor.split(), path], check=True)
        except FileNotFoundError as e:
            raise BridgeError(f"Editor '{editor}' not found; set $EDITOR") from e
        with open(path, encoding="utf-8") as f:
            return f.read()
    finally:
        os.unlink(path)


def fzf_uuid(choices: str) -> str:
    """Let the user pick a line with fzf; return the UUID that starts it."""
    try:
        proc = subprocess.run(
            ["fzf"], input=choices, stdout=subprocess.PIPE, text=True,
        )
    except FileNotFoundError as e:
        raise BridgeError("fzf is required for 'drafts select'") from e
    if proc.returncode != 0 or not proc.stdout.strip():
        raise BridgeError("No draft selected")
    return proc.stdout.split(SEPARATOR, 1)[0].strip()


def list_line(draft: bridge.DraftRecord) -> str:
    first_line = _linebreaks.split(draft.content, 1)[0]
    if len(first_line) > MAX_LIST_WIDTH:
        first_line = first_line[:MAX_LIST_WIDTH - 3] + "..."
    return f"{draft.uuid}\t{first_line}"


# ─────────────────────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────────────────────


def cmd_new(args: argparse.Namespace) -> str:
    text = or_stdin(args.message)
    return bridge.create_draft(text, tags=args.tag, archive=args.archive, flagged=args.flagged)


def cmd_prepend(args: argparse.Namespace) -> str:
    text = or_stdin(args.message)
    uuid = or_active(args.uuid)
    bridge.prepend(uuid, text, tags=args.tag)
    return require_draft(uuid).content


def cmd_append(args: argparse.Namespace) -> str:
    text = or_stdin(args.message)
    uuid = or_active(args.uuid)
    bridge.append(uuid, text, tags=args.tag)
    return require_draft(uuid).content


def cmd_replace(args: argparse.Namespace) -> str:
    text = or_stdin(args.message)
    uuid = or_active(args.uuid)
    bridge.replace(uuid, text)
    return require_draft(uuid).content


def cmd_edit(args: argparse.Namespace) -> str:
    uuid = or_active(args.uuid)
    new = edit_in_editor(require_draft(uuid).content)
    bridge.replace(uuid, new)
    return new


def cmd_get(args: argparse.Namespace) -> str:
    draft = require_draft(or_active(args.uuid))
    if args.json:
        return json.dumps(draft.to_dict(), indent=2)
    return draft.content


def cmd_select(args: argparse.Namespace) -> str:
    drafts = bridge.query_drafts(filter=bridge.Filter.INBOX)
    choices = "".join(
        f"{d.uuid} {SEPARATOR} {_linebreaks.sub(LINEBREAK, d.content)}\n" for d in drafts
    )
    uuid = fzf_uuid(choices)
    bridge.select(uuid)
    return require_draft(uuid).content


def cmd_list(args: argparse.Namespace) -> str:
    drafts = bridge.query_drafts(filter=bridge.Filter(args.filter), tags=args.tag)
    if args.json:
        return json.dumps([d.to_dict() for d in drafts], indent=2)
    return "\n".join(list_line(d) for d in drafts)


def cmd_version(args: argparse.Namespace) -> str:
    return json.dumps({
        "name": "drafts",
        "version": __version__,
        "os": platform.system().lower(),
        "arch": platform.machine(),
    })


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drafts", description="drafts - edit your Drafts from the command line"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p = sub.add_parser("new", help="create new draft")
    p.add_argument("message", nargs="?", help="draft content (omit to use stdin)")
    p.add_argument("-t", "--tag", action="append", default=[], help="tag")
    p.add_argument("-a", "--archive", action="store_true", help="create draft in archive")
    p.add_argument("-f", "--flagged", action="store_true", help="create flagged draft")
    p.set_defaults(func=cmd_new)

    for name, func, help_text in [
        ("prepend", cmd_prepend, "prepend to draft"),
        ("append", cmd_append, "append to draft"),
        ("replace", cmd_replace, "replace content of draft"),
    ]:
        p = sub.add_parser(name, help=help_text)
        p.add_argument("message", nargs="?", help="text (omit to use stdin)")
        p.add_argument("-u", "--uuid", help="UUID (omit to use active draft)")
        if name != "replace":
            p.add_argument("-t", "--tag", action="append", default=[], help="also add tag")
        p.set_defaults(func=func)

    p = sub.add_parser("edit", help="edit draft in $EDITOR")
    p.add_argument("uuid", nargs="?", help="UUID (omit to use active draft)")
    p.set_defaults(func=cmd_edit)

    p = sub.add_parser("get", help="get content of draft")
    p.add_argument("uuid", nargs="?", help="UUID (omit to use active draft)")
    p.add_argument("--json", action="store_true", help="print the full draft as JSON")
    p.set_defaults(func=cmd_get)

    p = sub.add_parser("select", help="select active draft using fzf")
    p.set_defaults(func=cmd_select)

    p = sub.add_parser("list", help="list drafts")
    p.add_argument("-f", "--filter", default="inbox",
                   choices=[f.value for f in bridge.Filter],
                   help="filter: inbox|flagged|archive|trash|all")
    p.add_argument("-t", "--tag", action="append", default=[], help="filter by tag")
    p.add_argument("--json", action="store_true", help="print drafts as JSON")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("version", help="show version information")
    p.set_defaults(func=cmd_version)

    return parser


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.error("missing subcommand")

    if args.debug:
        logging.getLogger("drafts_cli").setLevel(logging.DEBUG)

    try:
        output = args.func(args)
    except (BridgeError, ConfigError, subprocess.CalledProcessError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if output:
        print(output)


if __name__ == "__main__":
    main()
