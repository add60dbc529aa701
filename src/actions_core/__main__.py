"""Command-line entrypoint for issuing workflow commands from shell steps."""

from __future__ import annotations

import argparse
import sys

from actions_core.action import Action
from actions_core.inputs import InputError
from actions_core.oidc import OIDCError
from actions_core.sink import FileCommandError

_LOG_LEVELS = ("debug", "notice", "warning", "error")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="actions-core",
        description="Issue GitHub Actions workflow commands.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("mask", help="mask a value in the log").add_argument("value")
    sub.add_parser("group", help="start a log group").add_argument("title")
    sub.add_parser("endgroup", help="end the current log group")

    for level in _LOG_LEVELS:
        p = sub.add_parser(level, help=f"write a {level} message")
        p.add_argument("message")
        p.add_argument("--file")
        p.add_argument("--line")
        p.add_argument("--col")
        p.add_argument("--title")

    for name in ("set-env", "set-output", "save-state"):
        p = sub.add_parser(name)
        p.add_argument("key")
        p.add_argument("value")

    sub.add_parser("add-path", help="prepend a directory to PATH").add_argument("path")
    sub.add_parser("summary", help="append markdown to the job summary").add_argument("markdown")

    p = sub.add_parser("get-input", help="print the value of an action input")
    p.add_argument("name")
    p.add_argument("--required", action="store_true")

    p = sub.add_parser("id-token", help="print an OIDC token")
    p.add_argument("--audience", default="")

    return parser


def _run(action: Action, args: argparse.Namespace) -> None:
    if args.command == "mask":
        action.add_mask(args.value)
    elif args.command == "group":
        action.group(args.title)
    elif args.command == "endgroup":
        action.end_group()
    elif args.command in _LOG_LEVELS:
        fields = {
            k: getattr(args, k)
            for k in ("file", "line", "col", "title")
            if getattr(args, k) is not None
        }
        logger = action.with_fields(fields)
        getattr(logger, args.command)(args.message)
    elif args.command == "set-env":
        action.set_env(args.key, args.value)
    elif args.command == "set-output":
        action.set_output(args.key, args.value)
    elif args.command == "save-state":
        action.save_state(args.key, args.value)
    elif args.command == "add-path":
        action.add_path(args.path)
    elif args.command == "summary":
        action.add_step_summary(args.markdown)
    elif args.command == "get-input":
        action.info(action.get_input(args.name, required=args.required))
    elif args.command == "id-token":
        token = action.get_id_token(args.audience)
        action.add_mask(token)
        action.info(token)


def main(argv: list[str] | None = None, action: Action | None = None) -> int:
    args = _build_parser().parse_args(argv)
    action = action or Action()

    try:
        _run(action, args)
    except (InputError, FileCommandError, OIDCError) as e:
        action.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
