"""Library for transforming the compiled classes of a project build.

A build has a directory of compiled classes and, optionally, a directory of
compiled test classes. Both are transformed in place. The test classes are
transformed with the main classes on their classpath since they reference
them.
"""

import logging
from pathlib import Path

from .classpath import ClassLoader
from .config import ProjectConfig
from .exceptions import ClassweaveException, ExecutionException, InputException
from .executor import TransformerExecutor
from .result import RunResult
from .transformer import REGISTRY, TransformerRegistry

__all__ = [
    "run_project",
]

_LOGGER = logging.getLogger(__name__)


def run_project(
    config: ProjectConfig,
    base_dir: Path,
    loader: ClassLoader | None = None,
    registry: TransformerRegistry = REGISTRY,
) -> list[RunResult]:
    """Transform the classes of the project with the configured transformers.

    Returns the result of each run, the main classes first.
    """
    if config.skip:
        _LOGGER.info("Skipping executing.")
        return []
    try:
        return _run_project(config, base_dir, loader, registry)
    except ClassweaveException:
        raise
    except Exception as err:
        raise ExecutionException(f"Unable to transform project {base_dir}: {err}") from err


def _run_project(
    config: ProjectConfig,
    base_dir: Path,
    loader: ClassLoader | None,
    registry: TransformerRegistry,
) -> list[RunResult]:
    transformers = registry.instantiate(config.transformers)
    classpath = [config.resolve_dir(path, base_dir) for path in config.classpath]
    build_dir = config.resolve_dir(config.build_dir, base_dir)
    if not build_dir.is_dir():
        raise InputException(f"Build directory {build_dir} does not exist")

    executor = TransformerExecutor(loader=loader, classpath=classpath)
    executor.set_transformers(*transformers)
    executor.input_directory = build_dir
    executor.output_directory = build_dir
    results = [executor.execute()]

    if not config.include_test_classes:
        return results
    test_build_dir = config.resolve_dir(config.test_build_dir, base_dir)
    if not test_build_dir.is_dir():
        _LOGGER.info("No test classes in %s, skipping", test_build_dir)
        return results
    executor.classpath = classpath + [build_dir]
    executor.input_directory = test_build_dir
    executor.output_directory = test_build_dir
    results.append(executor.execute())
    return results
