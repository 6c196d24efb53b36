"""Tests for the component registry."""

import pytest

from kube_components import registry
from kube_components.components import ClusterAutoscaler, Contour, FlatcarLinuxUpdateOperator
from kube_components.exceptions import DuplicateComponentError, UnknownComponentError
from kube_components.registry import Registry


def test_register_lookup() -> None:
    """Test looking up a registered component."""
    reg = Registry()
    component = Contour()
    reg.register("contour", component)
    assert reg.lookup("contour") is component
    assert "contour" in reg
    assert "other" not in reg


def test_duplicate_registration() -> None:
    """Test that registering a name twice fails."""
    reg = Registry()
    reg.register("contour", Contour())
    with pytest.raises(DuplicateComponentError, match="'contour' is already registered"):
        reg.register("contour", Contour())


def test_unknown_component() -> None:
    """Test that looking up an unknown name lists the available components."""
    reg = Registry()
    reg.register("contour", Contour())
    reg.register("cluster-autoscaler", ClusterAutoscaler())
    with pytest.raises(UnknownComponentError) as exc_info:
        reg.lookup("contuor")
    assert exc_info.value.name == "contuor"
    assert exc_info.value.available == ["cluster-autoscaler", "contour"]
    assert str(exc_info.value) == (
        "Unknown component 'contuor', available components: cluster-autoscaler, contour"
    )


def test_default_registry() -> None:
    """Test that the built-in components are registered by default."""
    reg = registry.default_registry()
    assert reg.names() == [
        "cluster-autoscaler",
        "contour",
        "flatcar-linux-update-operator",
    ]
    assert isinstance(registry.lookup("cluster-autoscaler"), ClusterAutoscaler)
    assert isinstance(registry.lookup("contour"), Contour)
    assert isinstance(
        registry.lookup("flatcar-linux-update-operator"), FlatcarLinuxUpdateOperator
    )


def test_default_registry_rejects_builtin_name() -> None:
    """Test that a built-in component can't be replaced."""
    registry.default_registry()
    with pytest.raises(DuplicateComponentError):
        registry.register("contour", Contour())
