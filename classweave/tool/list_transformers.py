"""Classweave list-transformers action."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import Any, cast

from classweave.transformer import REGISTRY


class ListTransformersAction:
    """Print the registered transformers."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "list-transformers",
                help="Print the names of the registered transformers",
            ),
        )
        args.set_defaults(cls=cls)
        return args

    def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs: Any,  # pylint: disable=unused-argument
    ) -> None:
        """Action implementation."""
        for name in REGISTRY.names():
            print(name)
