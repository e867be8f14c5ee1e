"""Library for printing the classes and run results of the commands.

Each command prints a list of rows, one per class, either as a table of
aligned columns or as a yaml or json document.
"""

import json
import sys
from typing import Any, TextIO

import yaml

from classweave.result import RunResult

__all__ = [
    "format_table",
    "print_rows",
    "print_result",
]

PADDING = 4
RESULT_KEYS = ["class_name", "transformer", "status", "error"]


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def format_table(keys: list[str], rows: list[dict[str, Any]]) -> list[str]:
    """Return the rows as lines of aligned columns below a header of the keys.

    A key missing from a row leaves its column blank.
    """
    if not keys:
        return []
    table = [[key.upper() for key in keys]]
    table.extend([_cell(row.get(key)) for key in keys] for row in rows)
    widths = [max(len(line[i]) for line in table) + PADDING for i in range(len(keys))]
    return ["".join(value.ljust(width) for value, width in zip(line, widths)) for line in table]


def print_rows(
    rows: list[dict[str, Any]],
    output: str,
    keys: list[str],
    file: TextIO = sys.stdout,
) -> None:
    """Print the rows in the output format, `text`, `yaml` or `json`."""
    if output == "yaml":
        print(yaml.dump(rows, sort_keys=False, explicit_start=True), end="", file=file)
    elif output == "json":
        json.dump(rows, fp=file, indent=4, sort_keys=False)
        print(file=file)
    elif rows:
        for line in format_table(keys, rows):
            print(line, file=file)


def print_result(result: RunResult, output: str, file: TextIO = sys.stdout) -> None:
    """Print the status of each class of a run followed by a summary."""
    if output == "yaml":
        print(
            yaml.dump(result.to_dict(), sort_keys=False, explicit_start=True),
            end="",
            file=file,
        )
        return
    print_rows(
        [status.to_dict() for status in result.classes], output, RESULT_KEYS, file
    )
    summary = result.summary()
    skipped = summary["skipped_stamped"] + summary["skipped_by_predicate"]
    print(
        f"{summary['transformed']} transformed, {summary['nested_written']} nested, "
        f"{skipped} skipped, {summary['failed']} failed",
        file=file,
    )
