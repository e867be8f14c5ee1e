"""Configuration objects for classweave.

A project configuration names the class directories of a build and the
transformers to apply to them. It is typically stored as YAML next to the
build, for example:

```yaml
build_dir: target/classes
test_build_dir: target/test-classes
include_test_classes: true
classpath:
  - lib/annotations.jar
transformers:
  - name: marker-field
    properties:
      field_name: __instrumented__
      include: com.example
```
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import cast

from mashumaro import DataClassDictMixin
from mashumaro.codecs.yaml import yaml_decode, yaml_encode
from mashumaro.config import BaseConfig
from mashumaro.exceptions import MissingField, InvalidFieldValue
import yaml

from .exceptions import InputException

__all__ = [
    "TransformerConfig",
    "ProjectConfig",
    "read_config",
    "write_config",
]

_LOGGER = logging.getLogger(__name__)

DEFAULT_BUILD_DIR = "target/classes"
DEFAULT_TEST_BUILD_DIR = "target/test-classes"


@dataclass
class BaseSettings(DataClassDictMixin):
    """Base class for all configuration objects."""

    @classmethod
    def parse_yaml(cls, content: str) -> "BaseSettings":
        """Parse a serialized configuration."""
        return yaml_decode(content, cls)

    def yaml(self) -> str:
        """Return a YAML string representation of the configuration."""
        return yaml_encode(self, self.__class__)  # type: ignore[return-value]

    class Config(BaseConfig):
        omit_none = True


@dataclass
class TransformerConfig(BaseSettings):
    """Settings for a single transformer."""

    name: str
    """The registered name of the transformer e.g. `marker-field`."""

    properties: dict[str, str] = field(default_factory=dict)
    """Settings passed to the transformer once before any class is seen."""

    def __post_init__(self) -> None:
        """Validate the object."""
        if not self.name or not self.name.strip():
            raise InputException("Invalid transformer configuration missing name")
        self.properties = {str(k): str(v) for k, v in self.properties.items()}


@dataclass
class ProjectConfig(BaseSettings):
    """Settings for transforming the classes of a build."""

    build_dir: str = DEFAULT_BUILD_DIR
    """Directory of the compiled classes, relative to the base directory."""

    test_build_dir: str = DEFAULT_TEST_BUILD_DIR
    """Directory of the compiled test classes, relative to the base directory."""

    include_test_classes: bool = True
    """If true, the test classes are transformed after the classes."""

    skip: bool = False
    """If true, nothing is transformed."""

    classpath: list[str] = field(default_factory=list)
    """Additional directories or archives used to resolve dependencies."""

    transformers: list[TransformerConfig] = field(default_factory=list)
    """Transformers applied in order to every class."""

    def resolve_dir(self, directory: str, base_dir: Path) -> Path:
        """Return the directory as an absolute path relative to the base directory."""
        path = Path(directory)
        if path.is_absolute():
            return path
        return (base_dir / path).absolute()


def read_config(config_path: Path) -> ProjectConfig:
    """Return the contents of a project configuration file."""
    try:
        content = config_path.read_text()
    except OSError as err:
        raise InputException(f"Unable to read config file {config_path}: {err}") from err
    if not content.strip():
        raise InputException(f"Config file {config_path} is empty")
    _LOGGER.debug("Reading config file %s", config_path)
    try:
        return cast(ProjectConfig, ProjectConfig.parse_yaml(content))
    except InputException as err:
        raise InputException(f"Invalid config file {config_path}: {err}") from err
    except (
        yaml.YAMLError,
        MissingField,
        InvalidFieldValue,
        TypeError,
        ValueError,
    ) as err:
        raise InputException(f"Invalid config file {config_path}: {err}") from err


def write_config(config_path: Path, config: ProjectConfig) -> None:
    """Write the specified configuration to disk."""
    config_path.write_text(config.yaml())
