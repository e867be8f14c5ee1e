"""Test helpers for classweave tools."""

import pytest

from classweave.tool.classweave import main


def run_command(args: list[str], capsys: pytest.CaptureFixture[str]) -> str:
    """Run the command line tool and return its output."""
    main(args)
    return capsys.readouterr().out
