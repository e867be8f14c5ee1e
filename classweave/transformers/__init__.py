"""Transformers shipped with classweave.

Importing this package registers them in the default registry.
"""

from . import marker

__all__ = [
    "marker",
]
