"""The contract every cluster component implements.

A component is registered once under a unique name and then driven through
three operations:

- `load_config` decodes and validates a configuration block, returning all
  diagnostics found. It is the only operation that changes the component state
  and it never talks to external systems.
- `render_manifests` turns the loaded configuration into a mapping of relative
  file path to manifest text. External lookups happen here. Failures are
  raised as `RenderError` naming the component and the phase that failed.
- `metadata` describes where the manifests are installed.

Most components are built on `ConfigurableComponent`, which implements
`load_config` on top of a declarative `Schema`, or `ChartComponent`, which
additionally renders a packaged Helm chart from a values template.
"""

from abc import ABC, abstractmethod
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any, ClassVar, Generic, TypeVar

from mashumaro import DataClassDictMixin
from mashumaro.config import BaseConfig

from .context import trace_context
from .diagnostics import Diagnostics, error
from .exceptions import ComponentException, ComponentNotLoadedError, RenderError
from .helm import ChartRenderer, HelmChartRenderer, load_chart
from .loader import ConfigBlock, EvalContext
from .manifests import asset_path
from .schema import DecodeResult, Schema, decode
from .template import render_template
from .validation import check_variant, parse_durations, validate_schema

__all__ = [
    "Component",
    "ConfigurableComponent",
    "ChartComponent",
    "Metadata",
    "HelmMetadata",
    "Phase",
    "render_phase",
    "NAMESPACE_NAME_LABEL",
]

_LOGGER = logging.getLogger(__name__)

NAMESPACE_NAME_LABEL = "kube-components.io/namespace"

ConfigT = TypeVar("ConfigT")


@dataclass
class HelmMetadata(DataClassDictMixin):
    """Hints for installing the manifests as a Helm release."""

    wait: bool = False
    """Wait for the release resources to become ready."""


@dataclass
class Metadata(DataClassDictMixin):
    """Describes where and how the manifests of a component are installed."""

    name: str
    namespace: str

    helm: HelmMetadata | None = None
    """Set when the manifests should be installed as a Helm release."""

    labels: dict[str, str] = field(default_factory=dict)
    """Extra labels for the component namespace."""

    @property
    def namespace_labels(self) -> dict[str, str]:
        """Labels to set on the component namespace."""
        return {NAMESPACE_NAME_LABEL: self.namespace, **self.labels}

    class Config(BaseConfig):
        omit_none = True


class Phase(str, Enum):
    """Phases of rendering a component, used to attribute failures."""

    LOAD_CHART = "load chart"
    DERIVE_VALUES = "derive values"
    TEMPLATE = "template"
    RENDER = "render"


@contextmanager
def render_phase(component: str, phase: Phase) -> Generator[None, None, None]:
    """Attribute any failure inside the block to the component and phase."""
    with trace_context(f"{component} {phase.value}"):
        try:
            yield
        except RenderError:
            raise
        except (ComponentException, OSError, ValueError) as err:
            raise RenderError(component, phase.value, str(err)) from err


class Component(ABC):
    """A pluggable cluster component."""

    name: ClassVar[str]

    @abstractmethod
    def load_config(
        self, config: ConfigBlock | None, eval_context: EvalContext
    ) -> Diagnostics:
        """Decode and validate the configuration block.

        A `None` block means the user provided no configuration.
        """

    @abstractmethod
    def render_manifests(self) -> dict[str, str]:
        """Return the manifests of the component keyed by relative path."""

    @abstractmethod
    def metadata(self) -> Metadata:
        """Return the component metadata."""


class ConfigurableComponent(Component, Generic[ConfigT]):
    """A component whose configuration is described by a `Schema`.

    Subclasses declare the `schema`, the names of duration fields converted
    after decoding and may add component specific checks in `validate`.
    """

    schema: ClassVar[Schema]

    durations: ClassVar[tuple[str, ...]] = ()
    """Fields parsed from their `<name>_raw` string after decoding."""

    def __init__(self) -> None:
        self.config: ConfigT = self.schema.factory()
        self._loaded = False

    def load_config(
        self, config: ConfigBlock | None, eval_context: EvalContext
    ) -> Diagnostics:
        """Decode and validate the configuration block."""
        self._loaded = False
        self.config = self.schema.factory()

        if config is None:
            if self.schema.has_required:
                return Diagnostics(
                    [
                        error(
                            "component requires configuration",
                            "component has required fields in its configuration, "
                            "so configuration block must be created",
                        )
                    ]
                )
            _LOGGER.debug("No configuration for %s, using defaults", self.name)
            self._loaded = True
            return Diagnostics()

        decoded = decode(config, self.schema, self.config, eval_context)
        diagnostics = Diagnostics(decoded.diagnostics)
        diagnostics.extend(parse_durations(self.config, self.durations, config))
        diagnostics.extend(
            check_variant(self.config, self.schema, decoded, block=config)
        )
        diagnostics.extend(
            validate_schema(self.config, self.schema, decoded, block=config)
        )
        diagnostics.extend(self.validate(decoded))

        self._loaded = not diagnostics.has_errors()
        return diagnostics

    def validate(self, decoded: DecodeResult) -> Diagnostics:
        """Component specific checks run after the generic validation."""
        return Diagnostics()

    def render_manifests(self) -> dict[str, str]:
        """Return the manifests, requires a successful `load_config`."""
        if not self._loaded:
            raise ComponentNotLoadedError(self.name)
        return self.render()

    @abstractmethod
    def render(self) -> dict[str, str]:
        """Render the manifests of the loaded configuration."""


class ChartComponent(ConfigurableComponent[ConfigT]):
    """A component rendered from a packaged Helm chart and a values template."""

    chart_path: ClassVar[str]
    """Chart location relative to the assets directory."""

    values_template: ClassVar[str]
    """Jinja2 template producing the chart values document."""

    def __init__(self, chart_renderer: ChartRenderer | None = None) -> None:
        super().__init__()
        self._chart_renderer = chart_renderer or HelmChartRenderer()

    @abstractmethod
    def values_context(self) -> dict[str, Any]:
        """Return the variables for the values template.

        This is where derived values and external lookups happen.
        """

    def render(self) -> dict[str, str]:
        """Render the chart with the values derived from the configuration."""
        with render_phase(self.name, Phase.LOAD_CHART):
            chart = load_chart(asset_path(self.chart_path))
        with render_phase(self.name, Phase.DERIVE_VALUES):
            context = self.values_context()
        with render_phase(self.name, Phase.TEMPLATE):
            values = render_template(self.values_template, context)
        with render_phase(self.name, Phase.RENDER):
            return self._chart_renderer.render(
                chart, self.name, self.metadata().namespace, values
            )
