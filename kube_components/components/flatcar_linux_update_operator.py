"""Flatcar Linux update operator coordinating node reboots after OS updates.

The operator has no configuration and is rendered from plain manifests.
"""

from dataclasses import dataclass
import logging

from kube_components.component import (
    ConfigurableComponent,
    HelmMetadata,
    Metadata,
    Phase,
    render_phase,
)
from kube_components.manifests import asset_path, walk_manifests
from kube_components.schema import Schema

__all__ = [
    "FlatcarLinuxUpdateOperator",
]

_LOGGER = logging.getLogger(__name__)

NAME = "flatcar-linux-update-operator"
NAMESPACE = "reboot-coordinator"


@dataclass
class FlatcarLinuxUpdateOperatorConfig:
    """The operator takes no configuration."""


SCHEMA = Schema(fields=(), factory=FlatcarLinuxUpdateOperatorConfig)


class FlatcarLinuxUpdateOperator(ConfigurableComponent[FlatcarLinuxUpdateOperatorConfig]):
    """Flatcar Linux update operator component."""

    name = NAME
    schema = SCHEMA

    def render(self) -> dict[str, str]:
        with render_phase(self.name, Phase.RENDER):
            return walk_manifests(asset_path(f"components/{NAME}/manifests"))

    def metadata(self) -> Metadata:
        return Metadata(name=NAME, namespace=NAMESPACE, helm=HelmMetadata())
