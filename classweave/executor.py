"""Library for applying transformers to the classes below a directory.

A run locates every class file below the input directory, loads each class
through a `ResolutionContext` and hands it to each transformer in turn. A
class that a transformer accepts is changed, stamped and written to the
output directory, together with any of its nested classes changed along the
way. A class that already carries the stamp of a transformer is skipped, so
running the same transformers over the same classes again changes nothing.

A failure on a single class, including any error raised by a transformer, is
logged and recorded in the `RunResult`, and the run continues with the next
class. Only a failure to set up the run itself raises.

Example usage:

```python
from classweave import executor

result = executor.execute(
    Path("target/classes"),
    transformers=[MyTransformer()],
)
print(f"Transformed {result.transformed_count} classes")
```
"""

from collections.abc import Generator, Iterable, Sequence
from contextlib import contextmanager
import logging
import os
from pathlib import Path

from .artifact import ClassArtifact
from .classpath import (
    ClassLoader,
    DirectoryClassPath,
    LoaderClassPath,
    class_path_entry,
)
from .context import active_context, trace_context
from .exceptions import (
    ClassNotFoundError,
    ClassweaveException,
    ExecutionException,
    TransformerException,
)
from .locator import iterate_classnames
from .resolver import ResolutionContext
from .result import ClassStatus, RunResult, Status
from .stamp import apply_stamp, has_stamp
from .transformer import ClassTransformer
from .writer import write_file

__all__ = [
    "TransformerExecutor",
    "execute",
    "evaluate_output_directory",
]

_LOGGER = logging.getLogger(__name__)

PathLike = str | os.PathLike[str]


def _is_blank(directory: PathLike | None) -> bool:
    return directory is None or not str(directory).strip()


def evaluate_output_directory(
    output_directory: PathLike | None, input_directory: PathLike
) -> Path:
    """Return the directory classes are written to.

    Classes are transformed in place unless an output directory is given.
    """
    if _is_blank(output_directory):
        return Path(str(input_directory).strip())
    return Path(str(output_directory).strip())


class TransformerExecutor:
    """Applies transformers to all classes below an input directory."""

    def __init__(
        self,
        loader: ClassLoader | None = None,
        classpath: Iterable[PathLike] | None = None,
    ) -> None:
        """Initialize TransformerExecutor.

        The loader and classpath are consulted, after the input directory, for
        classes referenced by the classes being transformed.
        """
        self.loader = loader
        self.classpath = [Path(path) for path in classpath or ()]
        self.input_directory: PathLike | None = None
        self.output_directory: PathLike | None = None
        self._transformers: list[ClassTransformer] = []

    def set_transformers(self, *transformers: ClassTransformer) -> None:
        """Set the transformers applied in order to every class."""
        self._transformers = list(transformers)

    @property
    def transformers(self) -> list[ClassTransformer]:
        return list(self._transformers)

    def build_context(self, input_directory: Path) -> ResolutionContext:
        """Return a new resolution context for a run over the input directory.

        The input directory is searched first, followed by the classpath, the
        loader and the system classpath.
        """
        context = ResolutionContext()
        try:
            context.append_class_path(DirectoryClassPath(input_directory))
            for path in self.classpath:
                context.append_class_path(class_path_entry(path))
            if self.loader is not None:
                context.append_class_path(LoaderClassPath(self.loader))
            context.append_system_path()
        except Exception:
            context.close()
            raise
        _LOGGER.debug("Built %s", context)
        return context

    def execute(self) -> RunResult:
        """Apply all transformers to the classes of the input directory."""
        if not self._transformers or _is_blank(self.input_directory):
            _LOGGER.debug("No transformers or input directory, nothing to do")
            return RunResult()
        assert self.input_directory is not None
        return self._run(
            Path(str(self.input_directory).strip()),
            self.output_directory,
            self._transformers,
        )

    def transform(
        self,
        transformer: ClassTransformer | None,
        input_directory: PathLike | None,
        output_directory: PathLike | None = None,
        class_names: Iterable[str | None] | None = None,
    ) -> RunResult:
        """Apply a single transformer to the named classes of the input directory.

        All classes below the input directory are transformed when no class
        names are given.
        """
        if transformer is None or _is_blank(input_directory):
            _LOGGER.debug("No transformer or input directory, nothing to do")
            return RunResult()
        assert input_directory is not None
        return self._run(
            Path(str(input_directory).strip()),
            output_directory,
            [transformer],
            class_names,
        )

    def _run(
        self,
        input_directory: Path,
        output_directory: PathLike | None,
        transformers: Sequence[ClassTransformer],
        class_names: Iterable[str | None] | None = None,
    ) -> RunResult:
        out_directory = evaluate_output_directory(output_directory, input_directory)
        result = RunResult(
            input_directory=str(input_directory),
            output_directory=str(out_directory),
        )
        try:
            context = self.build_context(input_directory)
        except Exception as err:
            raise ExecutionException(
                f"Unable to build resolution context for {input_directory}: {err}"
            ) from err
        try:
            with context, active_context(context), trace_context(
                f"Run {input_directory}"
            ):
                for transformer in transformers:
                    names = (
                        class_names
                        if class_names is not None
                        else iterate_classnames(input_directory)
                    )
                    self._transform_classes(
                        context, transformer, names, out_directory, result
                    )
        except ClassweaveException:
            raise
        except Exception as err:
            raise ExecutionException(
                f"Unable to transform classes in {input_directory}: {err}"
            ) from err
        _LOGGER.info(
            "#%d classes instrumented in %s (%d failed)",
            result.transformed_count,
            input_directory,
            len(result.failed),
        )
        return result

    def _transform_classes(
        self,
        context: ResolutionContext,
        transformer: ClassTransformer,
        class_names: Iterable[str | None],
        output_directory: Path,
        result: RunResult,
    ) -> None:
        counter = 0
        with trace_context(f"Transformer {transformer}"):
            for class_name in class_names:
                if class_name is None:
                    continue
                _LOGGER.debug("Got class name %s", class_name)
                status = result.add(class_name, transformer.transformer_id)
                if self._transform_class(
                    context, transformer, status, output_directory, result
                ):
                    counter += 1
        _LOGGER.info("#%d classes instrumented by %s", counter, transformer)

    def _transform_class(
        self,
        context: ResolutionContext,
        transformer: ClassTransformer,
        status: ClassStatus,
        output_directory: Path,
        result: RunResult,
    ) -> bool:
        """Transform a single class, returning true if it was written."""
        class_name = status.class_name
        with _contain_failure(context, status):
            candidate = context.get(class_name)
            context.initialize(candidate)
            status.update(Status.RESOLVED)
            if has_stamp(candidate, transformer):
                status.update(Status.SKIPPED_STAMPED)
                return False
            with _transformer_errors(transformer, class_name):
                accepted = transformer.should_transform(candidate)
            if not accepted:
                _LOGGER.debug("Class %s not accepted by %s", class_name, transformer)
                status.update(Status.SKIPPED_BY_PREDICATE)
                return False
            _defrost(context, candidate)
            with _transformer_errors(transformer, class_name):
                transformer.apply_transformations(candidate)
            status.update(Status.TRANSFORMED)
            apply_stamp(candidate, transformer)
            write_file(candidate, output_directory)
            status.update(Status.WRITTEN)
            _LOGGER.debug("Class %s instrumented by %s", class_name, transformer)
        if status.status != Status.WRITTEN:
            return False
        self._transform_nested(context, transformer, candidate, output_directory, result)
        return True

    def _transform_nested(
        self,
        context: ResolutionContext,
        transformer: ClassTransformer,
        candidate: ClassArtifact,
        output_directory: Path,
        result: RunResult,
    ) -> None:
        """Stamp and write the nested classes changed by the transformer.

        Only the classes directly nested in the candidate are considered.
        Nested classes are not passed to `should_transform` since the
        enclosing class was already accepted.
        """
        for nested_name in candidate.nested_class_names():
            try:
                nested = context.get(nested_name)
                skip = not nested.modified or has_stamp(nested, transformer)
            except ClassNotFoundError:
                _LOGGER.debug("Nested class %s not found, skipping", nested_name)
                continue
            except (ClassweaveException, OSError) as err:
                _LOGGER.error(
                    "Nested class %s of %s could not be loaded",
                    nested_name,
                    candidate.name,
                    exc_info=True,
                )
                context.discard(nested_name)
                status = result.add(nested_name, transformer.transformer_id, nested=True)
                status.update(Status.FAILED, str(err))
                continue
            if skip:
                _LOGGER.debug("Nested class %s unchanged or stamped", nested_name)
                continue
            status = result.add(nested_name, transformer.transformer_id, nested=True)
            with _contain_failure(context, status):
                context.initialize(nested)
                status.update(Status.RESOLVED)
                status.update(Status.TRANSFORMED)
                apply_stamp(nested, transformer)
                write_file(nested, output_directory)
                status.update(Status.WRITTEN)
                _LOGGER.debug(
                    "Nested class %s instrumented by %s", nested_name, transformer
                )


def _defrost(context: ResolutionContext, candidate: ClassArtifact) -> None:
    """Allow changes to a class and its nested classes written earlier in the run."""
    candidate.defrost()
    for nested_name in candidate.nested_class_names():
        if (nested := context.loaded(nested_name)) is not None:
            nested.defrost()


@contextmanager
def _transformer_errors(
    transformer: ClassTransformer, class_name: str
) -> Generator[None, None, None]:
    """Raise any error of a transformer as a `TransformerException` for the class."""
    try:
        yield
    except ClassweaveException:
        raise
    except Exception as err:
        raise TransformerException(
            f"Transformer {transformer} failed on class {class_name}: {err}"
        ) from err


@contextmanager
def _contain_failure(
    context: ResolutionContext, status: ClassStatus
) -> Generator[None, None, None]:
    """Record a failure on a single class and continue with the next class.

    Changes made to the failed class are discarded so they are never written
    by a later transformer of the same run.
    """
    class_name = status.class_name
    try:
        yield
    except ClassNotFoundError as err:
        _LOGGER.warning(
            "Class %s could not be resolved due to dependencies not found on "
            "current classpath (usually the class depends on compile only "
            "dependencies): %s",
            class_name,
            err,
        )
        context.discard(class_name)
        status.update(Status.FAILED, str(err))
    except (ClassweaveException, OSError) as err:
        _LOGGER.error(
            "Class %s could not be instrumented by %s",
            class_name,
            status.transformer,
            exc_info=True,
        )
        context.discard(class_name)
        status.update(Status.FAILED, str(err))


def execute(
    input_directory: PathLike | None,
    output_directory: PathLike | None = None,
    transformers: Sequence[ClassTransformer] = (),
    classpath: Iterable[PathLike] = (),
    loader: ClassLoader | None = None,
) -> RunResult:
    """Apply the transformers in order to all classes below the input directory."""
    executor = TransformerExecutor(loader=loader, classpath=classpath)
    executor.set_transformers(*transformers)
    executor.input_directory = input_directory
    executor.output_directory = output_directory
    return executor.execute()
