"""Ze CLI — run a script file or an interactive prompt."""

from __future__ import annotations

import sys

from .diagnostics import EXIT_NO_INPUT, EXIT_OK, EXIT_STATIC_ERROR, Diagnostics
from .session import Session


USAGE: str = """\
ze [OPTIONS] [FILE]

Run a Ze script, or start an interactive prompt when FILE is omitted.

Options:
  --tokens           Print the token stream instead of running
  --help             Show this help message
"""

PROMPT = "> "


def _run_source(session: Session, source: str, tokens_only: bool) -> Diagnostics:
    if tokens_only:
        return session.dump_tokens(source)
    return session.run(source)


def run_file(session: Session, filepath: str, tokens_only: bool) -> int:
    try:
        with open(filepath, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("ze: " + filepath + ": No such file or directory", file=sys.stderr)
        return EXIT_NO_INPUT
    except OSError as e:
        print("ze: " + filepath + ": " + str(e), file=sys.stderr)
        return EXIT_NO_INPUT
    try:
        source = raw.decode("utf-8")
    except ValueError:
        print("ze: " + filepath + ": invalid utf-8", file=sys.stderr)
        return EXIT_NO_INPUT
    return _run_source(session, source, tokens_only).exit_code


def run_prompt(session: Session, tokens_only: bool) -> int:
    """Read-eval-print loop. Errors are reported and the prompt continues."""
    while True:
        print(PROMPT, end="", file=session.stdout, flush=True)
        line = sys.stdin.readline()
        if line == "":
            return EXIT_OK
        _run_source(session, line, tokens_only)


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    tokens_only = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return EXIT_OK
        elif arg == "--tokens":
            tokens_only = True
            i += 1
        elif arg.startswith("-"):
            print("ze: unknown flag '" + arg + "'", file=sys.stderr)
            print(USAGE, end="", file=sys.stderr)
            return EXIT_STATIC_ERROR
        elif filepath == "":
            filepath = arg
            i += 1
        else:
            print("ze: unexpected argument '" + arg + "'", file=sys.stderr)
            print(USAGE, end="", file=sys.stderr)
            return EXIT_STATIC_ERROR

    session = Session()
    if filepath == "":
        return run_prompt(session, tokens_only)
    return run_file(session, filepath, tokens_only)


if __name__ == "__main__":
    sys.exit(main())
