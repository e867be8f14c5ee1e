"""Classweave get action."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import pathlib
from typing import Any, cast

from classweave.exceptions import ClassFormatError, NotFoundException
from classweave.executor import TransformerExecutor
from classweave.locator import iterate_classnames
from classweave.stamp import has_stamp

from . import selector
from .format import print_rows

_LOGGER = logging.getLogger(__name__)


class GetAction:
    """Get details about the classes of a directory."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "get",
                help="Get the classes of a directory",
                description=(
                    "Print the classes below a directory and, when a transformer is "
                    "given, whether each carries its stamp."
                ),
            ),
        )
        selector.add_input_flags(args)
        selector.add_transformer_flags(args, multiple=False)
        selector.add_classpath_flags(args)
        args.add_argument(
            "--output",
            "-o",
            choices=["text", "yaml", "json"],
            default="text",
            help="Output format of the command",
        )
        args.set_defaults(cls=cls)
        return args

    def run(  # type: ignore[no-untyped-def]
        self,
        input_dir: pathlib.Path,
        classpath: list[pathlib.Path],
        output: str,
        **kwargs: Any,
    ) -> None:
        """Action implementation."""
        transformer = selector.build_transformer(**kwargs)
        keys = ["name", "version", "interface"]
        if transformer is not None:
            keys.append("stamped")
        class_names = iterate_classnames(input_dir)
        results: list[dict[str, Any]] = []
        executor = TransformerExecutor(classpath=classpath)
        with executor.build_context(input_dir) as context:
            for class_name in class_names:
                if class_name is None:
                    continue
                try:
                    artifact = context.get(class_name)
                except (ClassFormatError, NotFoundException) as err:
                    _LOGGER.warning("Unable to load class %s: %s", class_name, err)
                    results.append({"name": class_name, "error": str(err)})
                    continue
                class_file = artifact.class_file
                row: dict[str, Any] = {
                    "name": class_name,
                    "version": f"{class_file.major_version}.{class_file.minor_version}",
                    "interface": artifact.is_interface,
                }
                if transformer is not None:
                    row["stamped"] = has_stamp(artifact, transformer)
                results.append(row)

        print_rows(results, output, keys)
