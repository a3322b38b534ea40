"""Ze session — runs source text through every phase against persistent state."""

from __future__ import annotations

from dataclasses import dataclass
import io
import sys
from typing import TextIO

from .diagnostics import Diagnostics
from .parse import parse_tokens
from .resolve import resolve
from .runtime import Interpreter
from .tokens import tokenize


@dataclass
class RunResult:
    """Captured outcome of a one-shot run."""

    exit_code: int
    stdout: str
    stderr: str


class Session:
    """Globals and the resolver side-table, shared by successive `run` calls.

    A script is one call; a REPL makes one call per line, so definitions from
    earlier lines stay visible to later ones.
    """

    def __init__(self, stdout: TextIO | None = None, stderr: TextIO | None = None):
        self.stdout: TextIO = stdout if stdout is not None else sys.stdout
        self.stderr: TextIO = stderr if stderr is not None else sys.stderr
        self.interpreter = Interpreter(self.stdout)

    def run(self, source: str) -> Diagnostics:
        """Lex, parse, resolve, and execute. Errors are printed to stderr."""
        diag = Diagnostics()
        tokens, lex_errors = tokenize(source)
        diag.add_static(lex_errors)
        stmts, parse_errors = parse_tokens(tokens)
        diag.add_static(parse_errors)
        if diag.had_error:
            diag.report(self.stderr)
            return diag

        _, resolve_errors = resolve(stmts, self.interpreter.locals)
        diag.add_static(resolve_errors)
        if diag.had_error:
            diag.report(self.stderr)
            return diag

        diag.runtime_error = self.interpreter.interpret(stmts)
        diag.report(self.stderr)
        return diag

    def dump_tokens(self, source: str) -> Diagnostics:
        """Print the token stream instead of running it."""
        diag = Diagnostics()
        tokens, lex_errors = tokenize(source)
        diag.add_static(lex_errors)
        for tok in tokens:
            print(str(tok), file=self.stdout)
        diag.report(self.stderr)
        return diag


def run(source: str) -> RunResult:
    """Run source once in a fresh session, capturing both output streams."""
    stdout = io.StringIO()
    stderr = io.StringIO()
    diag = Session(stdout, stderr).run(source)
    return RunResult(diag.exit_code, stdout.getvalue(), stderr.getvalue())
