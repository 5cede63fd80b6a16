import argparse
import logging
import sys
from typing import List, Optional

from .config import LOG_LEVELS, Settings, configure_logging
from .exceptions import SQLBasicsError
from .executor import Executor
from .formatter import format_error, format_result
from .repl import repl_loop
from .seed import seed_catalog
from .tutorial import EXAMPLES, SECTIONS, Outcome, get_example, run_example, run_section

logger = logging.getLogger(__name__)


def _print_outcome(outcome: Outcome):
    ex = outcome.example
    print(f"-- {ex.name}: {ex.title}")
    for parsed, result in outcome.results:
        print(parsed.sql)
        print(format_result(result))
        print()
    if outcome.error is not None:
        print(outcome.error.sql)
        if outcome.ok:
            print(f"Expected failure: {outcome.error.error.kind}: {outcome.error.error}")
        else:
            print(format_error(outcome.error), file=sys.stderr)
        print()
    elif not outcome.ok:
        print(f"Expected {ex.expect_error}, but the statement succeeded", file=sys.stderr)


def cmd_list(args) -> int:
    width = max(len(e.name) for e in EXAMPLES)
    for e in EXAMPLES:
        print(f"{e.name.ljust(width)}  [{e.section}] {e.title}")
    return 0


def cmd_run(args) -> int:
    try:
        examples = [get_example(n) for n in args.names]
    except KeyError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        return 2
    for example in examples:
        outcome = run_example(example)
        _print_outcome(outcome)
        if not outcome.ok:
            return 1
    return 0


def cmd_tutorial(args) -> int:
    sections = [args.section] if args.section else list(SECTIONS)
    for section in sections:
        print(f"==== {section.upper()} ====")
        for outcome in run_section(section):
            _print_outcome(outcome)
            if not outcome.ok:
                return 1
    return 0


def cmd_script(args) -> int:
    if args.file == "-":
        sql = sys.stdin.read()
    else:
        try:
            with open(args.file, "r", encoding="utf-8") as f:
                sql = f.read()
        except OSError as e:
            print(f"Error: cannot read {args.file}: {e}", file=sys.stderr)
            return 1
    exe = Executor(seed_catalog() if args.seed else None)
    try:
        statements = exe.parser.parse_script(sql)
        for parsed in statements:
            print(format_result(exe.execute_statement(parsed)))
    except SQLBasicsError as e:
        print(format_error(e), file=sys.stderr)
        return 1
    return 0


def cmd_repl(args) -> int:
    repl_loop(seed=args.seed)
    return 0


def cmd_serve(args) -> int:
    from webapp.app import create_app

    app = create_app(seed=args.seed)
    app.run(port=args.port)
    return 0


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sqlbasics", description="Run SQL basics tutorial statements in memory.")
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=settings.log_level,
                        help="logging level (default: %(default)s)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="list canned examples")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("run", help="run canned examples, each on a fresh catalog")
    p.add_argument("names", nargs="+", metavar="NAME")
    p.set_defaults(func=cmd_run)

    p = sub.add_parser("tutorial", help="run a whole tutorial section in order")
    p.add_argument("section", nargs="?", choices=SECTIONS)
    p.set_defaults(func=cmd_tutorial)

    for name, func, help_text in (
        ("script", cmd_script, "execute a SQL file as one fail-fast batch"),
        ("repl", cmd_repl, "interactive SQL prompt"),
        ("serve", cmd_serve, "start the web console"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--no-seed", dest="seed", action="store_false", default=settings.seed,
                       help="start from an empty catalog")
        p.set_defaults(func=func)
        if name == "script":
            p.add_argument("file", help="path to a .sql file, or - for stdin")
        if name == "serve":
            p.add_argument("--port", type=int, default=settings.web_port)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = Settings.from_env()
    except ValueError as e:
        build_parser(Settings()).error(str(e))
    args = build_parser(settings).parse_args(argv)
    configure_logging(args.log_level)
    logger.debug("running command %s", args.command)
    return args.func(args)
