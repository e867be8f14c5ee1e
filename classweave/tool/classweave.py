"""Command line tool for transforming compiled Java classes."""

import argparse
import logging
import sys
import traceback

from classweave import transformers  # noqa: F401
from classweave.exceptions import ClassweaveException

from . import get, list_transformers, project, transform, unstamp

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="classweave",
        description="Command line utility for transforming compiled Java classes.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    transform.TransformAction.register(subparsers)
    project.ProjectAction.register(subparsers)
    get.GetAction.register(subparsers)
    unstamp.UnstampAction.register(subparsers)
    list_transformers.ListTransformersAction.register(subparsers)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Classweave command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        action.run(**vars(args))
    except ClassweaveException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("classweave error:", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
