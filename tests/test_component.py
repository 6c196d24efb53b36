"""Tests for the component base classes."""

from dataclasses import dataclass
from typing import Any

import pytest

from kube_components.component import (
    ChartComponent,
    ConfigurableComponent,
    Metadata,
    Phase,
    render_phase,
)
from kube_components.exceptions import (
    ComponentNotLoadedError,
    InputException,
    RenderError,
    TemplateException,
)
from kube_components.loader import ConfigBlock, EvalContext
from kube_components.schema import Field, Kind, Schema

from .common import FakeChartRenderer


@dataclass
class GreeterConfig:
    greeting: str = "hello"
    name: str = ""


class Greeter(ConfigurableComponent[GreeterConfig]):
    """Component with one required field."""

    name = "greeter"
    schema = Schema(
        fields=(
            Field("greeting", Kind.STRING),
            Field("name", Kind.STRING, required=True),
        ),
        factory=GreeterConfig,
    )

    def render(self) -> dict[str, str]:
        return {"greeting.txt": f"{self.config.greeting} {self.config.name}\n"}

    def metadata(self) -> Metadata:
        return Metadata(name=self.name, namespace="default")


class BrokenChart(ChartComponent[GreeterConfig]):
    """Chart component whose values template references a missing variable."""

    name = "broken"
    schema = Greeter.schema
    chart_path = "components/contour"
    values_template = "greeting: {{ missing }}\n"

    def values_context(self) -> dict[str, Any]:
        return {"greeting": self.config.greeting}

    def metadata(self) -> Metadata:
        return Metadata(name=self.name, namespace="default")


class MissingChart(BrokenChart):
    """Chart component pointing at a chart that is not packaged."""

    name = "missing"
    chart_path = "components/missing"


def test_load_and_render() -> None:
    """Test the load then render flow."""
    component = Greeter()
    block = ConfigBlock.from_dict({"name": "${var.who}"})
    assert not component.load_config(block, EvalContext({"who": "world"}))
    assert component.render_manifests() == {"greeting.txt": "hello world\n"}


def test_failed_load_blocks_render() -> None:
    """Test that a load with errors leaves the component unrenderable."""
    component = Greeter()
    assert not component.load_config(ConfigBlock.from_dict({"name": "a"}), EvalContext())
    assert component.load_config(ConfigBlock.from_dict({}), EvalContext()).has_errors()
    with pytest.raises(ComponentNotLoadedError, match="'greeter'"):
        component.render_manifests()


def test_template_phase_failure(chart_renderer: FakeChartRenderer) -> None:
    """Test that a template failure names the phase."""
    component = BrokenChart(chart_renderer=chart_renderer)
    component.load_config(ConfigBlock.from_dict({"name": "a"}), EvalContext())
    with pytest.raises(RenderError) as exc_info:
        component.render_manifests()
    assert exc_info.value.phase == Phase.TEMPLATE.value
    assert isinstance(exc_info.value.__cause__, TemplateException)
    assert not chart_renderer.calls


def test_load_chart_phase_failure(chart_renderer: FakeChartRenderer) -> None:
    """Test that a missing chart names the phase."""
    component = MissingChart(chart_renderer=chart_renderer)
    component.load_config(ConfigBlock.from_dict({"name": "a"}), EvalContext())
    with pytest.raises(RenderError, match="failed to load chart"):
        component.render_manifests()


def test_render_phase() -> None:
    """Test wrapping failures and passing through render errors."""
    with pytest.raises(RenderError, match="Component 'x' failed to derive values: bad"):
        with render_phase("x", Phase.DERIVE_VALUES):
            raise InputException("bad")

    inner = RenderError("y", "render", "inner")
    with pytest.raises(RenderError) as exc_info:
        with render_phase("x", Phase.TEMPLATE):
            raise inner
    assert exc_info.value is inner

    with pytest.raises(KeyError):
        with render_phase("x", Phase.RENDER):
            raise KeyError("not wrapped")
