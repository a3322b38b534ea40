"""Pytest configuration for the Ze test suite."""

import sys
from pathlib import Path

# Add src directory to path for package imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def parse_spec_file(path: Path) -> list[tuple[str, str, list[str]]]:
    """Parse a .tests file into (name, input, expected_lines) tuples.

    Format:

        === test name
        source lines
        ---
        expected lines
        ---

    Trailing blank lines of the expected section are dropped; leading and
    interior ones are kept, since a program may print empty lines.
    """
    lines = path.read_text().split("\n")
    result: list[tuple[str, str, list[str]]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith("=== "):
            test_name = line[4:].strip()
            i += 1
            input_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                input_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            expected_lines: list[str] = []
            while i < len(lines) and not lines[i].startswith("---"):
                expected_lines.append(lines[i])
                i += 1
            if i < len(lines) and lines[i] == "---":
                i += 1
            while expected_lines and expected_lines[-1].strip() == "":
                expected_lines.pop()
            result.append((test_name, "\n".join(input_lines), expected_lines))
        else:
            i += 1
    return result


def discover_spec_tests(directory: Path) -> list[tuple[str, str, list[str]]]:
    """Find all cases under a directory, returns (test_id, input, expected_lines)."""
    results = []
    for test_file in sorted(directory.glob("*.tests")):
        for name, source, expected in parse_spec_file(test_file):
            results.append((f"{test_file.stem}/{name}", source, expected))
    return results
