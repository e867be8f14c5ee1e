"""Tests for the configuration library."""

from pathlib import Path

import pytest

from classweave.config import (
    ProjectConfig,
    TransformerConfig,
    read_config,
    write_config,
)
from classweave.exceptions import InputException


def test_read_config(tmp_path: Path) -> None:
    """Test reading a project configuration file."""
    path = tmp_path / "classweave.yaml"
    path.write_text(
        """\
build_dir: build/classes
include_test_classes: false
classpath:
  - lib/annotations.jar
transformers:
  - name: marker-field
    properties:
      include: com.example
      value: true
  - name: other
"""
    )
    config = read_config(path)
    assert config.build_dir == "build/classes"
    assert config.test_build_dir == "target/test-classes"
    assert not config.include_test_classes
    assert not config.skip
    assert config.classpath == ["lib/annotations.jar"]
    assert config.transformers == [
        TransformerConfig(
            name="marker-field", properties={"include": "com.example", "value": "True"}
        ),
        TransformerConfig(name="other"),
    ]


def test_defaults() -> None:
    """Test the default project configuration."""
    config = ProjectConfig()
    assert config.build_dir == "target/classes"
    assert config.test_build_dir == "target/test-classes"
    assert config.include_test_classes
    assert config.transformers == []


def test_write_config(tmp_path: Path) -> None:
    """Test writing a configuration and reading it back."""
    config = ProjectConfig(
        skip=True,
        transformers=[TransformerConfig(name="marker-field", properties={"a": "b"})],
    )
    path = tmp_path / "classweave.yaml"
    write_config(path, config)
    assert read_config(path) == config


def test_resolve_dir(tmp_path: Path) -> None:
    """Test resolving directories relative to the base directory."""
    config = ProjectConfig()
    assert config.resolve_dir("target/classes", tmp_path) == tmp_path / "target" / "classes"
    assert config.resolve_dir(str(tmp_path / "abs"), Path("/other")) == tmp_path / "abs"


@pytest.mark.parametrize(
    ("content", "match"),
    [
        ("", "is empty"),
        ("  \n", "is empty"),
        ("build_dir: [unclosed", "Invalid config file"),
        ("transformers:\n  - properties: {}\n", "Invalid config file"),
        ("transformers:\n  - name: ''\n", "Invalid config file"),
    ],
    ids=["empty", "whitespace", "yaml", "missing-name", "blank-name"],
)
def test_invalid_config(tmp_path: Path, content: str, match: str) -> None:
    """Test configuration files that can not be parsed."""
    path = tmp_path / "classweave.yaml"
    path.write_text(content)
    with pytest.raises(InputException, match=match):
        read_config(path)


def test_missing_config(tmp_path: Path) -> None:
    """Test reading a configuration file that does not exist."""
    with pytest.raises(InputException, match="Unable to read config file"):
        read_config(tmp_path / "missing.yaml")
