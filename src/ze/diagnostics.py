"""Ze diagnostics — error records and the per-run result collector."""

from __future__ import annotations

from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from .runtime import ZeRuntimeError


EXIT_OK = 0
EXIT_STATIC_ERROR = 64
EXIT_NO_INPUT = 66
EXIT_RUNTIME_ERROR = 70


class StaticError(Exception):
    """Error found before execution (lexing, parsing, resolution)."""

    def __init__(self, msg: str, line: int, where: str = ""):
        self.msg: str = msg
        self.line: int = line
        self.where: str = where
        super().__init__(self.format())

    def format(self) -> str:
        return "[line " + str(self.line) + "] Error" + self.where + ": " + self.msg


class Diagnostics:
    """Everything one `run` reported. A fresh instance is returned per run."""

    def __init__(self) -> None:
        self.static_errors: list[StaticError] = []
        self.runtime_error: ZeRuntimeError | None = None

    def add_static(self, errors: list[StaticError]) -> None:
        """Merge errors in, keeping source line order (stable within a line)."""
        self.static_errors.extend(errors)
        self.static_errors.sort(key=lambda e: e.line)

    @property
    def had_error(self) -> bool:
        return len(self.static_errors) > 0

    @property
    def had_runtime_error(self) -> bool:
        return self.runtime_error is not None

    @property
    def exit_code(self) -> int:
        if self.had_error:
            return EXIT_STATIC_ERROR
        if self.had_runtime_error:
            return EXIT_RUNTIME_ERROR
        return EXIT_OK

    def ok(self) -> bool:
        return not self.had_error and not self.had_runtime_error

    def report(self, stream: TextIO) -> None:
        for err in self.static_errors:
            print(err.format(), file=stream)
        if self.runtime_error is not None:
            print(self.runtime_error.format(), file=stream)
