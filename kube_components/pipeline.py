"""Orchestration of loading, validating and rendering the configured components.

The pipeline knows nothing about individual components. For every component
named in the configuration it looks the component up in the registry, loads
its configuration block and collects the diagnostics. Only when no component
reported an error are the manifests rendered:

```python
from pathlib import Path
from kube_components import loader
from kube_components.pipeline import Pipeline

config = loader.read_config(Path("cluster.yaml"))
result = Pipeline().run(config)
for path, content in result.merged_manifests().items():
    print(f"Rendered {path}")
```
"""

from dataclasses import dataclass, field
import logging

from .component import Component, Metadata
from .context import trace_context
from .diagnostics import Diagnostics
from .exceptions import ConfigurationError
from .loader import ClusterConfig
from .manifests import merge_manifests
from .registry import Registry, default_registry

__all__ = [
    "Pipeline",
    "PipelineResult",
]

_LOGGER = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """The outcome of running the pipeline."""

    diagnostics: dict[str, Diagnostics] = field(default_factory=dict)
    """Component name to the diagnostics of loading its configuration."""

    manifests: dict[str, dict[str, str]] = field(default_factory=dict)
    """Component name to its rendered manifests."""

    metadata: dict[str, Metadata] = field(default_factory=dict)
    """Component name to its metadata."""

    def merged_manifests(self) -> dict[str, str]:
        """Return all manifests keyed by `<component>/<path>`."""
        return merge_manifests(self.manifests)


class Pipeline:
    """Drives the configured components through load and render."""

    def __init__(self, registry: Registry | None = None) -> None:
        """Initialize Pipeline."""
        self._registry = registry or default_registry()

    def _components(self, names: list[str]) -> dict[str, Component]:
        return {name: self._registry.lookup(name) for name in names}

    def load(self, config: ClusterConfig) -> dict[str, Diagnostics]:
        """Load the configuration of every configured component.

        All components are loaded even if an earlier one reports errors, and
        `ConfigurationError` carries the diagnostics of all of them.
        """
        components = self._components(list(config.components))
        eval_context = config.eval_context
        results: dict[str, Diagnostics] = {}
        for name, component in components.items():
            with trace_context(f"{name} load config"):
                diagnostics = component.load_config(config.components[name], eval_context)
            diagnostics.log(name)
            results[name] = diagnostics

        failed = {name: diags for name, diags in results.items() if diags.has_errors()}
        if failed:
            raise ConfigurationError(failed)
        return results

    def render(self, names: list[str]) -> dict[str, dict[str, str]]:
        """Render the manifests of loaded components, stopping at the first failure."""
        manifests: dict[str, dict[str, str]] = {}
        for name, component in self._components(names).items():
            with trace_context(f"{name} render manifests"):
                manifests[name] = component.render_manifests()
            _LOGGER.info("Rendered %d manifests for %s", len(manifests[name]), name)
        return manifests

    def run(self, config: ClusterConfig) -> PipelineResult:
        """Load, validate and render all configured components."""
        diagnostics = self.load(config)
        names = list(config.components)
        manifests = self.render(names)
        metadata = {
            name: component.metadata()
            for name, component in self._components(names).items()
        }
        return PipelineResult(
            diagnostics=diagnostics, manifests=manifests, metadata=metadata
        )
