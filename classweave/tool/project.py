"""Classweave project action."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import pathlib
from typing import Any, cast

from classweave.config import read_config
from classweave.project import run_project

from .format import print_result

_LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG = "classweave.yaml"


class ProjectAction:
    """Classweave project action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "project",
                help="Transform the classes of a project build",
                description=(
                    "Transform the classes and test classes of a build with the "
                    "transformers of a project configuration file."
                ),
            ),
        )
        args.add_argument(
            "--config",
            help="Project configuration file, relative paths are resolved against its directory",
            type=pathlib.Path,
            default=pathlib.Path(DEFAULT_CONFIG),
        )
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
        config: pathlib.Path,
        output: str,
        **kwargs: Any,  # pylint: disable=unused-argument
    ) -> None:
        """Action implementation."""
        project_config = read_config(config)
        base_dir = config.absolute().parent
        for result in run_project(project_config, base_dir):
            if output == "text":
                print(f"# {result.input_directory}")
            print_result(result, output)
