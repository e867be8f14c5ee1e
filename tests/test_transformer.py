"""Tests for the transformer registry and the built-in transformers."""

from collections.abc import Mapping

import pytest

from classweave import transformers  # noqa: F401
from classweave.artifact import ClassArtifact
from classweave.classfile import AccessFlag, ClassFile
from classweave.config import TransformerConfig
from classweave.exceptions import InputException
from classweave.transformer import REGISTRY, ClassTransformer, TransformerRegistry
from classweave.transformers.marker import MarkerFieldTransformer


class ConfigurableTransformer(ClassTransformer):
    """Transformer that keeps its properties."""

    def __init__(self) -> None:
        self.properties: dict[str, str] | None = None

    def configure(self, properties: Mapping[str, str]) -> None:
        if "fail" in properties:
            raise ValueError("fail requested")
        self.properties = dict(properties)

    def should_transform(self, candidate: ClassArtifact) -> bool:
        return True

    def apply_transformations(self, candidate: ClassArtifact) -> None:
        pass


@pytest.fixture(name="registry")
def registry_fixture() -> TransformerRegistry:
    registry = TransformerRegistry()
    registry.register("configurable", ConfigurableTransformer)
    return registry


def test_create(registry: TransformerRegistry) -> None:
    """Test creating a transformer by name configures it."""
    transformer = registry.create("configurable", {"key": "value"})
    assert isinstance(transformer, ConfigurableTransformer)
    assert transformer.properties == {"key": "value"}
    assert "configurable" in registry
    assert registry.names() == ["configurable"]


def test_create_normalizes_name(registry: TransformerRegistry) -> None:
    """Test names are matched regardless of case and separators."""
    assert isinstance(registry.create("Configurable"), ConfigurableTransformer)
    assert "CONFIGURABLE" in registry


def test_create_unknown(registry: TransformerRegistry) -> None:
    """Test creating a transformer that is not registered."""
    with pytest.raises(InputException, match="Unknown transformer 'missing'"):
        registry.create("missing")


def test_create_invalid_name(registry: TransformerRegistry) -> None:
    """Test a name without any usable characters."""
    with pytest.raises(InputException, match="Invalid transformer name"):
        registry.create("!!!")


def test_configure_failure(registry: TransformerRegistry) -> None:
    """Test an error while configuring the transformer."""
    with pytest.raises(InputException, match="Unable to configure transformer 'configurable'"):
        registry.create("configurable", {"fail": "yes"})


def test_register_duplicate(registry: TransformerRegistry) -> None:
    """Test a name can only be registered once."""
    with pytest.raises(ValueError, match="already registered"):
        registry.register("Configurable", ConfigurableTransformer)


def test_instantiate(registry: TransformerRegistry) -> None:
    """Test creating transformers from configuration in order."""
    result = registry.instantiate(
        [
            TransformerConfig(name="configurable", properties={"order": "1"}),
            TransformerConfig(name="configurable", properties={"order": "2"}),
        ]
    )
    assert [transformer.properties for transformer in result] == [  # type: ignore[attr-defined]
        {"order": "1"},
        {"order": "2"},
    ]


def test_instantiate_empty(registry: TransformerRegistry) -> None:
    """Test that at least one transformer is required."""
    with pytest.raises(InputException, match="no transformers"):
        registry.instantiate([])


def test_transformer_id() -> None:
    """Test the default identity of a transformer."""
    transformer = ConfigurableTransformer()
    assert transformer.transformer_id == f"{__name__}.ConfigurableTransformer"
    assert str(transformer) == transformer.transformer_id


def test_builtin_registered() -> None:
    """Test the built-in transformers are available by name."""
    assert "marker-field" in REGISTRY
    assert isinstance(REGISTRY.create("marker-field"), MarkerFieldTransformer)


def test_marker_field() -> None:
    """Test the marker transformer adds its field."""
    transformer = REGISTRY.create("marker-field", {"field_name": "instrumented"})
    artifact = ClassArtifact(ClassFile.create("com.example.Service"))
    assert transformer.should_transform(artifact)
    assert not artifact.modified

    transformer.apply_transformations(artifact)
    field = artifact.get_declared_field("instrumented")
    assert field.access_flags == AccessFlag.PUBLIC | AccessFlag.STATIC | AccessFlag.FINAL
    assert field.constant_value == 1
    # Already marked
    assert not transformer.should_transform(artifact)


def test_marker_field_interface() -> None:
    """Test the marker transformer on an interface."""
    transformer = REGISTRY.create("marker-field", {"value": "false"})
    artifact = ClassArtifact(ClassFile.create("com.example.Api", interface=True))
    transformer.apply_transformations(artifact)
    assert artifact.get_declared_field("__marked__").constant_value == 0


@pytest.mark.parametrize(
    ("include", "class_name", "expected"),
    [
        ("", "any.Thing", True),
        ("com.example", "com.example.Service", True),
        ("com.example.", "com.example.sub.Service", True),
        ("com.example", "com.examples.Service", False),
        ("com.other, com.example.Service", "com.example.Service", True),
        ("com.example.Service", "com.example.Service$Inner", True),
        ("com.other", "com.example.Service", False),
    ],
)
def test_marker_field_include(include: str, class_name: str, expected: bool) -> None:
    """Test selecting the classes to mark by prefix."""
    transformer = REGISTRY.create("marker-field", {"include": include})
    artifact = ClassArtifact(ClassFile.create(class_name))
    assert transformer.should_transform(artifact) == expected


@pytest.mark.parametrize(
    ("properties", "match"),
    [
        ({"field_name": "not a name"}, "Invalid marker field name"),
        ({"value": "maybe"}, "Invalid marker value"),
    ],
)
def test_marker_field_invalid(properties: dict[str, str], match: str) -> None:
    """Test invalid marker transformer properties."""
    with pytest.raises(InputException, match=match):
        REGISTRY.create("marker-field", properties)
