"""Pytest configuration for the shapejson test suite."""

import logging
import sys
from pathlib import Path

import pytest

# Add repository root to path so the suite runs without an install
sys.path.insert(0, str(Path(__file__).parent.parent))


def parse_tests_file(path: Path) -> list[tuple[str, str, str]]:
    """Parse .tests file into (name, input, expected) tuples.

    Each case is '=== name', the input lines, '---', the expected lines, '---'.
    """
    lines = path.read_text(encoding="utf-8").split("\n")
    result: list[tuple[str, str, str]] = []
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
            test_input = "\n".join(input_lines)
            expected = "\n".join(expected_lines).strip()
            result.append((test_name, test_input, expected))
        else:
            i += 1
    return result


def discover_tests(directory: Path) -> list[tuple[str, str, str]]:
    """Find all cases under a directory, returns (test_id, input, expected)."""
    results = []
    for test_file in sorted(directory.glob("*.tests")):
        for name, test_input, expected in parse_tests_file(test_file):
            results.append((f"{test_file.stem}/{name}", test_input, expected))
    return results


@pytest.fixture
def debug_log(caplog):
    """Capture shapejson debug records."""
    caplog.set_level(logging.DEBUG, logger="shapejson")
    return caplog
