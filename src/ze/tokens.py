"""Ze tokenizer — lexes source into a flat token list."""

from __future__ import annotations

from dataclasses import dataclass

from .diagnostics import StaticError


# Token type constants. Keywords and operators use their own spelling as type.
TK_IDENT = "IDENT"
TK_NUMBER = "NUMBER"
TK_STRING = "STRING"
TK_EOF = "EOF"

KEYWORDS: set[str] = {
    "and",
    "break",
    "class",
    "continue",
    "else",
    "false",
    "for",
    "fun",
    "if",
    "nil",
    "or",
    "print",
    "return",
    "this",
    "true",
    "var",
    "while",
}

# Two-character operators, tried before single characters for greedy matching
MULTI_OPS: list[str] = [
    "!=",
    "==",
    "<=",
    ">=",
]

SINGLE_OPS: set[str] = {
    "(",
    ")",
    "{",
    "}",
    ",",
    ".",
    "-",
    "+",
    ";",
    "*",
    "/",
    "?",
    ":",
    "!",
    "=",
    "<",
    ">",
}


class TokenizeError(StaticError):
    """Error during tokenization. Carries a line, never a location."""

    def __init__(self, msg: str, line: int):
        super().__init__(msg, line)


@dataclass(frozen=True)
class Token:
    """A token with type, exact source text, decoded literal, and line."""

    type: str
    lexeme: str
    literal: float | str | None
    line: int

    def __str__(self) -> str:
        literal = "null" if self.literal is None else str(self.literal)
        return self.type + " " + self.lexeme + " " + literal


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


def _skip_block_comment(source: str, pos: int, line: int) -> tuple[int, int, bool]:
    """Skip a nested /* */ comment whose opener ends at pos.

    Returns (new_pos, new_line, terminated).
    """
    length = len(source)
    depth = 1
    while depth > 0:
        if pos >= length:
            return pos, line, False
        c = source[pos]
        nxt = source[pos + 1] if pos + 1 < length else ""
        if c == "/" and nxt == "*":
            pos += 2
            depth += 1
        elif c == "*" and nxt == "/":
            pos += 2
            depth -= 1
        else:
            if c == "\n":
                line += 1
            pos += 1
    return pos, line, True


def tokenize(source: str) -> tuple[list[Token], list[TokenizeError]]:
    """Tokenize Ze source into a flat list ending with TK_EOF.

    Errors are collected rather than raised, so the whole input is always
    scanned and the caller still gets every token that could be recognized.
    """
    tokens: list[Token] = []
    errors: list[TokenizeError] = []
    pos = 0
    line = 1
    length = len(source)

    while pos < length:
        c = source[pos]

        # Newlines
        if c == "\n":
            pos += 1
            line += 1
            continue

        # Whitespace
        if c == " " or c == "\t" or c == "\r":
            pos += 1
            continue

        # Line comment: //
        if c == "/" and pos + 1 < length and source[pos + 1] == "/":
            while pos < length and source[pos] != "\n":
                pos += 1
            continue

        # Block comment: /* ... */, nesting
        if c == "/" and pos + 1 < length and source[pos + 1] == "*":
            start_line = line
            pos, line, terminated = _skip_block_comment(source, pos + 2, line)
            if not terminated:
                errors.append(TokenizeError("Unterminated block comment.", start_line))
            continue

        start_pos = pos

        # Number: digits with an optional fraction
        if _is_digit(c):
            while pos < length and _is_digit(source[pos]):
                pos += 1
            if pos + 1 < length and source[pos] == "." and _is_digit(source[pos + 1]):
                pos += 1
                while pos < length and _is_digit(source[pos]):
                    pos += 1
            raw = source[start_pos:pos]
            tokens.append(Token(TK_NUMBER, raw, float(raw), line))
            continue

        # String literal: "...", may span lines
        if c == '"':
            start_line = line
            pos += 1
            while pos < length and source[pos] != '"':
                if source[pos] == "\n":
                    line += 1
                pos += 1
            if pos >= length:
                errors.append(TokenizeError("Unterminated string.", line))
                continue
            pos += 1  # skip closing "
            raw = source[start_pos:pos]
            tokens.append(Token(TK_STRING, raw, raw[1:-1], start_line))
            continue

        # Identifier or keyword
        if _is_alpha(c):
            while pos < length and _is_alnum(source[pos]):
                pos += 1
            word = source[start_pos:pos]
            if word in KEYWORDS:
                tokens.append(Token(word, word, None, line))
            else:
                tokens.append(Token(TK_IDENT, word, None, line))
            continue

        # Two-character operators
        matched = False
        for op in MULTI_OPS:
            if source[pos : pos + 2] == op:
                tokens.append(Token(op, op, None, line))
                pos += 2
                matched = True
                break
        if matched:
            continue

        # Single-character operators
        if c in SINGLE_OPS:
            tokens.append(Token(c, c, None, line))
            pos += 1
            continue

        errors.append(TokenizeError("Unexpected character.", line))
        pos += 1

    tokens.append(Token(TK_EOF, "", None, line))
    return tokens, errors
