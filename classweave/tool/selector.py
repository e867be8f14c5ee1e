"""Library for common command line flags."""

from argparse import (
    Action,
    ArgumentError,
    ArgumentParser,
    Namespace,
)
import logging
import pathlib
from typing import Any

from classweave.config import TransformerConfig
from classweave.exceptions import InputException
from classweave.transformer import REGISTRY, ClassTransformer

_LOGGER = logging.getLogger(__name__)


class PropertyAppendAction(Action):
    """Append a key=value pair to the argument dict."""

    def __call__(
        self,
        parser: ArgumentParser,
        namespace: Namespace,
        values: Any,
        option_string: str | None = None,
    ) -> None:
        if "=" not in values:
            raise ArgumentError(self, f"Expected key=value format from '{values}'")
        key, value = values.split("=", 1)
        if not key.strip():
            raise ArgumentError(self, f"Expected key=value format from '{values}'")
        result = dict(getattr(namespace, self.dest) or {})
        result[key.strip()] = value
        setattr(namespace, self.dest, result)


def add_input_flags(args: ArgumentParser) -> None:
    """Add the flags naming the class directory to read."""
    args.add_argument(
        "input_dir",
        help="Directory containing the compiled classes",
        type=pathlib.Path,
    )


def add_output_flags(args: ArgumentParser) -> None:
    """Add the flags naming the class directory to write."""
    args.add_argument(
        "--output-dir",
        help="Directory to write the classes to, defaults to the input directory",
        type=pathlib.Path,
        default=None,
    )


def add_classpath_flags(args: ArgumentParser) -> None:
    """Add the flags for additional classpath entries."""
    args.add_argument(
        "--classpath",
        help="Directory or jar used to resolve referenced classes (may be repeated)",
        type=pathlib.Path,
        action="append",
        default=[],
    )


def add_transformer_flags(
    args: ArgumentParser, multiple: bool = True, required: bool = False
) -> None:
    """Add the flags that select and configure transformers."""
    if multiple:
        args.add_argument(
            "--transformer",
            "-t",
            dest="transformers",
            help="Name of a registered transformer, applied in order (may be repeated)",
            action="append",
            required=required,
            default=None,
        )
    else:
        args.add_argument(
            "--transformer",
            "-t",
            help="Name of a registered transformer",
            required=required,
            default=None,
        )
    args.add_argument(
        "--property",
        "-p",
        dest="properties",
        help="Transformer property in key=value format (may be repeated)",
        action=PropertyAppendAction,
        default={},
    )


def build_transformers(
    transformers: list[str] | None = None,
    properties: dict[str, str] | None = None,
    **kwargs: Any,  # pylint: disable=unused-argument
) -> list[ClassTransformer]:
    """Create the transformers selected on the command line."""
    if not transformers:
        raise InputException("At least one --transformer is required")
    configs = [
        TransformerConfig(name=name, properties=properties or {})
        for name in transformers
    ]
    return REGISTRY.instantiate(configs)


def build_transformer(
    transformer: str | None = None,
    properties: dict[str, str] | None = None,
    **kwargs: Any,  # pylint: disable=unused-argument
) -> ClassTransformer | None:
    """Create the single transformer selected on the command line, if any."""
    if transformer is None:
        return None
    return REGISTRY.create(transformer, properties or {})
