"""Classweave unstamp action."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import pathlib
from typing import Any, cast

from classweave.exceptions import ClassweaveException
from classweave.executor import TransformerExecutor, evaluate_output_directory
from classweave.locator import iterate_classnames
from classweave.stamp import remove_stamp
from classweave.writer import write_file

from . import selector

_LOGGER = logging.getLogger(__name__)


class UnstampAction:
    """Remove the stamp of a transformer from the classes of a directory."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "unstamp",
                help="Remove the stamp of a transformer from classes",
                description=(
                    "Remove the stamp of a transformer from every class below a "
                    "directory so the next run transforms them again. The changes "
                    "made by the transformer are not reverted."
                ),
            ),
        )
        selector.add_input_flags(args)
        selector.add_output_flags(args)
        selector.add_transformer_flags(args, multiple=False, required=True)
        args.set_defaults(cls=cls)
        return args

    def run(  # type: ignore[no-untyped-def]
        self,
        input_dir: pathlib.Path,
        output_dir: pathlib.Path | None,
        **kwargs: Any,
    ) -> None:
        """Action implementation."""
        transformer = selector.build_transformer(**kwargs)
        out_dir = evaluate_output_directory(output_dir, input_dir)
        class_names = iterate_classnames(input_dir)
        counter = 0
        with TransformerExecutor().build_context(input_dir) as context:
            for class_name in class_names:
                if class_name is None:
                    continue
                try:
                    artifact = context.get(class_name)
                    if not remove_stamp(artifact, transformer):
                        continue
                    write_file(artifact, out_dir)
                except (ClassweaveException, OSError) as err:
                    _LOGGER.error("Unable to unstamp class %s: %s", class_name, err)
                    continue
                _LOGGER.debug("Removed stamp from class %s", class_name)
                counter += 1
        print(f"{counter} classes unstamped")
