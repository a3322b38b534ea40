"""End-to-end program tests.

Test cases live in programs/*.tests files. The expected section lists the
program's stdout line by line, plus optional diagnostic lines:

    error: <text>          static error; exit 64, stderr contains text
    runtime error: <text>  runtime error; exit 70, stderr contains text

Without diagnostic lines the program must exit 0 with empty stderr.
"""

from pathlib import Path

import pytest

from conftest import discover_spec_tests
from ze import run

PROGRAMS_DIR = Path(__file__).parent / "programs"


def split_expected(lines: list[str]) -> tuple[str, list[str], list[str]]:
    """Returns (stdout, static error texts, runtime error texts)."""
    out: list[str] = []
    static: list[str] = []
    runtime: list[str] = []
    for line in lines:
        if line.startswith("runtime error:"):
            runtime.append(line[len("runtime error:") :].strip())
        elif line.startswith("error:"):
            static.append(line[len("error:") :].strip())
        else:
            out.append(line + "\n")
    return "".join(out), static, runtime


def pytest_generate_tests(metafunc):
    """Parametrize test_program over all .tests files."""
    if "program_source" in metafunc.fixturenames:
        params = [
            pytest.param(source, expected, id=test_id)
            for test_id, source, expected in discover_spec_tests(PROGRAMS_DIR)
        ]
        metafunc.parametrize("program_source,program_expected", params)


def test_program(program_source: str, program_expected: list[str]) -> None:
    stdout, static, runtime = split_expected(program_expected)
    result = run(program_source)
    assert result.stdout == stdout
    if static:
        assert result.exit_code == 64, f"stderr: {result.stderr}"
        for text in static:
            assert text in result.stderr, (
                f"expected stderr to contain {text!r}, got {result.stderr!r}"
            )
    elif runtime:
        assert result.exit_code == 70, f"stderr: {result.stderr}"
        for text in runtime:
            assert text in result.stderr, (
                f"expected stderr to contain {text!r}, got {result.stderr!r}"
            )
    else:
        assert result.exit_code == 0, f"stderr: {result.stderr}"
        assert result.stderr == ""
