"""Fakes for the collaborators of components."""

from typing import Any

from kube_components.helm import Chart, ChartRenderer
from kube_components.inventory import Device, Facility, InventoryClient
from kube_components.loader import ConfigBlock, EvalContext, parse_config


class FakeChartRenderer(ChartRenderer):
    """Chart renderer recording its calls instead of running helm."""

    def __init__(self) -> None:
        self.calls: list[tuple[Chart, str, str, str]] = []

    def render(
        self, chart: Chart, release_name: str, namespace: str, values: str
    ) -> dict[str, str]:
        self.calls.append((chart, release_name, namespace, values))
        return {f"{chart.name}/templates/values.yaml": values}

    @property
    def values(self) -> str:
        """Values document of the last render."""
        assert self.calls
        return self.calls[-1][3]


class FakeInventory(InventoryClient):
    """Inventory returning a fixed device list."""

    def __init__(self, devices: list[Device]) -> None:
        self.devices = devices
        self.projects: list[str] = []

    def list_devices(self, project_id: str) -> list[Device]:
        self.projects.append(project_id)
        return list(self.devices)


def device(hostname: str, facility: str = "ams1", user_data: str = "") -> Device:
    """Build a device record."""
    return Device(hostname=hostname, facility=Facility(code=facility), user_data=user_data)


def component_block(
    content: str, name: str, variables: dict[str, Any] | None = None
) -> tuple[ConfigBlock | None, EvalContext]:
    """Parse a configuration file and return the block of one component."""
    config = parse_config(content, filename="test.yaml")
    if variables:
        config.variables.update(variables)
    return config.components[name], config.eval_context
