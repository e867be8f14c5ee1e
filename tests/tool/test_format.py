"""Tests for the format library."""

import io
import json

import yaml

from classweave.result import RunResult, Status
from classweave.tool.format import format_table, print_result, print_rows

ROWS = [
    {"name": "test.Example", "version": "52.0", "stamped": True},
    {"name": "test.Broken", "error": "Truncated class file"},
]


def test_format_table_no_keys() -> None:
    """Tests with no columns."""
    assert format_table([], ROWS) == []


def test_format_table_no_rows() -> None:
    """Tests with only a header."""
    assert format_table(["a", "b", "c"], []) == ["A    B    C    "]


def test_format_table_rows() -> None:
    """Tests missing keys leave the column blank."""
    assert format_table(["name", "stamped"], ROWS) == [
        "NAME            STAMPED    ",
        "test.Example    True       ",
        "test.Broken                ",
    ]


def test_print_rows_empty() -> None:
    """Tests no table is printed without rows."""
    out = io.StringIO()
    print_rows([], "text", ["name"], file=out)
    assert out.getvalue() == ""


def test_print_rows_yaml() -> None:
    """Yaml output of the rows."""
    out = io.StringIO()
    print_rows(ROWS[:1], "yaml", ["name"], file=out)
    assert out.getvalue() == (
        "---\n- name: test.Example\n  version: '52.0'\n  stamped: true\n"
    )


def test_print_rows_json() -> None:
    """Json output keeps all keys of the rows."""
    out = io.StringIO()
    print_rows(ROWS, "json", ["name"], file=out)
    assert json.loads(out.getvalue()) == ROWS


def run_result() -> RunResult:
    result = RunResult(input_directory="classes", output_directory="classes")
    result.add("test.A", "marker-field").update(Status.SKIPPED_BY_PREDICATE)
    failed = result.add("test.B", "marker-field")
    failed.update(Status.FAILED, "Class provided.Missing not found on classpath")
    return result


def test_print_result() -> None:
    """Text output of a run has a row per class and a summary."""
    out = io.StringIO()
    print_result(run_result(), "text", file=out)
    lines = out.getvalue().strip().split("\n")
    assert lines[0].split() == ["CLASS_NAME", "TRANSFORMER", "STATUS", "ERROR"]
    assert lines[1].split() == ["test.A", "marker-field", "SkippedByPredicate"]
    assert lines[2].startswith("test.B")
    assert lines[2].rstrip().endswith("Class provided.Missing not found on classpath")
    assert lines[3] == "0 transformed, 0 nested, 1 skipped, 1 failed"


def test_print_result_yaml() -> None:
    """Yaml output of a run."""
    out = io.StringIO()
    print_result(run_result(), "yaml", file=out)
    data = yaml.safe_load(out.getvalue())
    assert data["input_directory"] == "classes"
    assert [value["status"] for value in data["classes"]] == [
        "SkippedByPredicate",
        "Failed",
    ]
