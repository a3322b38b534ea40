"""Ze interpreter — public API."""

from __future__ import annotations

from .ast import Stmt
from .diagnostics import Diagnostics as Diagnostics, StaticError
from .parse import ParseError as ParseError, parse_tokens
from .resolve import ResolveError as ResolveError, resolve
from .runtime import ZeRuntimeError as ZeRuntimeError
from .session import RunResult as RunResult, Session as Session, run as run
from .tokens import Token as Token, TokenizeError as TokenizeError, tokenize


def parse(source: str) -> tuple[list[Stmt], list[StaticError]]:
    """Tokenize and parse Ze source. Returns (statements, errors)."""
    tokens, lex_errors = tokenize(source)
    stmts, parse_errors = parse_tokens(tokens)
    errors: list[StaticError] = []
    errors.extend(lex_errors)
    errors.extend(parse_errors)
    errors.sort(key=lambda e: e.line)
    return stmts, errors


def check(source: str) -> list[StaticError]:
    """Parse and resolve Ze source. Returns list of errors (empty = ok)."""
    stmts, errors = parse(source)
    if len(errors) > 0:
        return errors
    _, resolve_errors = resolve(stmts)
    return list(resolve_errors)
