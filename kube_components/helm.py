"""Library for rendering packaged Helm charts into manifests.

Charts are packaged with the components under the assets directory. A chart
is rendered with `helm template` for a release name, a namespace and a values
document, and the output is split into one manifest per chart template:

```python
from kube_components.helm import HelmChartRenderer, load_chart

chart = load_chart(Path("assets/components/contour"))
manifests = HelmChartRenderer().render(chart, "contour", "projectcontour", values)
for path, content in manifests.items():
    print(f"Rendered {path}")
```
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
from pathlib import Path
import tempfile

import yaml

from . import command
from .config import HelmOptions
from .exceptions import HelmException

__all__ = [
    "Chart",
    "ChartRenderer",
    "HelmChartRenderer",
    "load_chart",
    "split_manifests",
]

_LOGGER = logging.getLogger(__name__)

CHART_FILE = "Chart.yaml"
SOURCE_PREFIX = "# Source: "
DOCUMENT_SEPARATOR = "---"


@dataclass(frozen=True)
class Chart:
    """A chart loaded from a local directory."""

    name: str
    """The name of the chart from Chart.yaml."""

    version: str
    """The version of the chart from Chart.yaml."""

    path: Path
    """The chart directory."""


def load_chart(path: Path) -> Chart:
    """Load the chart metadata from a chart directory."""
    chart_file = path / CHART_FILE
    try:
        doc = yaml.safe_load(chart_file.read_text())
    except OSError as err:
        raise HelmException(f"Unable to read chart {chart_file}: {err}") from err
    except yaml.YAMLError as err:
        raise HelmException(f"Invalid chart {chart_file}: {err}") from err
    if not isinstance(doc, dict):
        raise HelmException(f"Invalid chart {chart_file}: expected a mapping")
    if not (name := doc.get("name")):
        raise HelmException(f"Invalid chart {chart_file}: missing name")
    if not (version := doc.get("version")):
        raise HelmException(f"Invalid chart {chart_file}: missing version")
    return Chart(name=name, version=str(version), path=path)


def split_manifests(output: str) -> dict[str, str]:
    """Split `helm template` output into manifests keyed by template path.

    Documents rendered from the same template are joined back together.
    Templates that render to nothing are dropped.
    """
    manifests: dict[str, list[str]] = {}
    chunk: list[str] = []

    def flush() -> None:
        if not chunk:
            return
        source = None
        if chunk[0].startswith(SOURCE_PREFIX):
            source = chunk[0][len(SOURCE_PREFIX) :].strip()
            body = chunk[1:]
        else:
            body = chunk
        content = "\n".join(body).strip("\n")
        chunk.clear()
        if not content or all(
            not line.strip() or line.lstrip().startswith("#")
            for line in content.split("\n")
        ):
            return
        if source is None:
            raise HelmException("Unable to find template source in helm output")
        manifests.setdefault(source, []).append(content + "\n")

    for line in output.split("\n"):
        if line.rstrip() == DOCUMENT_SEPARATOR:
            flush()
            continue
        chunk.append(line)
    flush()

    return {
        source: f"{DOCUMENT_SEPARATOR}\n".join(docs)
        for source, docs in manifests.items()
    }


class ChartRenderer(ABC):
    """Renders a chart into manifests."""

    @abstractmethod
    def render(
        self, chart: Chart, release_name: str, namespace: str, values: str
    ) -> dict[str, str]:
        """Return the rendered manifests keyed by template path."""


class HelmChartRenderer(ChartRenderer):
    """Renders charts with the `helm template` command."""

    def __init__(self, options: HelmOptions | None = None) -> None:
        """Initialize HelmChartRenderer."""
        self._options = options or HelmOptions()

    def render(
        self, chart: Chart, release_name: str, namespace: str, values: str
    ) -> dict[str, str]:
        """Render the chart with the values document."""
        _LOGGER.debug(
            "Rendering chart %s-%s as %s/%s",
            chart.name,
            chart.version,
            namespace,
            release_name,
        )
        with tempfile.TemporaryDirectory() as tmp_dir:
            values_path = Path(tmp_dir) / f"{release_name}-values.yaml"
            values_path.write_text(values)
            args = [
                self._options.helm_bin,
                "template",
                release_name,
                str(chart.path),
                "--namespace",
                namespace,
                "--values",
                str(values_path),
            ]
            args.extend(self._options.template_args)
            output = command.run(command.Command(args, exc=HelmException))
        manifests = split_manifests(output)
        _LOGGER.debug("Rendered %d manifests from chart %s", len(manifests), chart.name)
        return manifests
