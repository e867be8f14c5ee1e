"""Classweave transform action."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import pathlib
from typing import Any, cast

from classweave import executor

from . import selector
from .format import print_result

_LOGGER = logging.getLogger(__name__)


class TransformAction:
    """Classweave transform action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "transform",
                help="Transform the classes of a directory",
                description=(
                    "Apply the selected transformers to every class file below a "
                    "directory, writing and stamping each transformed class."
                ),
            ),
        )
        selector.add_input_flags(args)
        selector.add_output_flags(args)
        selector.add_transformer_flags(args)
        selector.add_classpath_flags(args)
        args.add_argument(
            "--output",
            "-o",
            choices=["text", "yaml"],
            default="text",
            help="Output format of the command",
        )
        args.set_defaults(cls=cls)
        return args

    def run(  # type: ignore[no-untyped-def]
        self,
        input_dir: pathlib.Path,
        output_dir: pathlib.Path | None,
        classpath: list[pathlib.Path],
        output: str,
        **kwargs: Any,
    ) -> None:
        """Action implementation."""
        transformers = selector.build_transformers(**kwargs)
        result = executor.execute(
            input_dir,
            output_dir,
            transformers=transformers,
            classpath=classpath,
        )
        print_result(result, output)
