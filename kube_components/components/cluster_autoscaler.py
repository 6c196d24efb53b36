"""Cluster autoscaler adding and removing workers of a worker pool.

Workers are created by the cloud provider from the boot payload of an existing
worker of the cluster, so rendering looks the cluster up in the provider
inventory.
"""

import base64
from dataclasses import dataclass, field
import datetime
import logging
from typing import Any

from kube_components.component import ChartComponent, Metadata
from kube_components.config import PacketSettings
from kube_components.diagnostics import Diagnostics, error
from kube_components.duration import format_duration
from kube_components.helm import ChartRenderer
from kube_components.inventory import (
    InventoryClient,
    PacketClient,
    find_worker_user_data,
)
from kube_components.schema import DecodeResult, Field, Kind, Schema, Variant

__all__ = [
    "ClusterAutoscaler",
    "ClusterAutoscalerConfig",
    "PacketConfig",
]

_LOGGER = logging.getLogger(__name__)

NAME = "cluster-autoscaler"
PROVIDER_PACKET = "packet"
OS_CHANNELS = ("stable", "beta", "alpha", "edge")

VALUES_TEMPLATE = """\
cloudProvider: {{ provider }}
image:
  tag: v1.17.0
nodeSelector:
  node.kubernetes.io/controller: "true"
tolerations:
- effect: NoSchedule
  key: node-role.kubernetes.io/master
  operator: Exists
rbac:
  create: true
cloudConfigPath: /config

packetClusterName: {{ cluster_name | tojson }}
packetAuthToken: {{ packet.auth_token | tojson }}
packetCloudInit: {{ packet.user_data | tojson }}
packetProjectID: {{ packet.project_id | tojson }}
packetFacility: {{ packet.facility | tojson }}
packetOSChannel: {{ packet.worker_channel | tojson }}
packetNodeType: {{ packet.worker_type | tojson }}
autoscalingGroups:
- name: {{ worker_pool | tojson }}
  maxSize: {{ max_workers }}
  minSize: {{ min_workers }}

extraArgs:
  scale-down-unneeded-time: {{ scale_down_unneeded_time }}
  scale-down-delay-after-add: {{ scale_down_delay_after_add }}
  scale-down-unready-time: {{ scale_down_unready_time }}

podDisruptionBudget: []
kubeTargetVersionOverride: v1.17.2
{% if service_monitor %}
serviceMonitor:
  enabled: true
  namespace: {{ namespace }}
  selector:
    release: prometheus-operator
{% endif %}
"""


@dataclass
class PacketConfig:
    """Packet specific settings."""

    project_id: str = ""
    facility: str = ""
    worker_type: str = "baremetal_0"
    worker_channel: str = "stable"


@dataclass
class ClusterAutoscalerConfig:
    """Configuration of the cluster autoscaler."""

    provider: str = PROVIDER_PACKET
    worker_pool: str = ""
    cluster_name: str = ""
    namespace: str = "kube-system"
    min_workers: int = 1
    max_workers: int = 4
    scale_down_unneeded_time: datetime.timedelta = datetime.timedelta(minutes=10)
    scale_down_unneeded_time_raw: str = ""
    scale_down_delay_after_add: datetime.timedelta = datetime.timedelta(minutes=10)
    scale_down_delay_after_add_raw: str = ""
    scale_down_unready_time: datetime.timedelta = datetime.timedelta(minutes=20)
    scale_down_unready_time_raw: str = ""
    service_monitor: bool = False
    """Create a ServiceMonitor for the Prometheus Operator."""

    packet: PacketConfig = field(default_factory=PacketConfig)


PACKET_SCHEMA = Schema(
    fields=(
        Field("project_id", Kind.STRING, required=True),
        Field("facility", Kind.STRING, required=True),
        Field("worker_type", Kind.STRING),
        Field("worker_channel", Kind.STRING, allowed=OS_CHANNELS),
    ),
    factory=PacketConfig,
)

SCHEMA = Schema(
    fields=(
        Field("provider", Kind.STRING),
        Field("worker_pool", Kind.STRING, required=True),
        Field("cluster_name", Kind.STRING, required=True),
        Field("namespace", Kind.STRING),
        Field("min_workers", Kind.INT),
        Field("max_workers", Kind.INT),
        Field(
            "scale_down_unneeded_time",
            Kind.STRING,
            attr="scale_down_unneeded_time_raw",
        ),
        Field(
            "scale_down_delay_after_add",
            Kind.STRING,
            attr="scale_down_delay_after_add_raw",
        ),
        Field(
            "scale_down_unready_time",
            Kind.STRING,
            attr="scale_down_unready_time_raw",
        ),
        Field("service_monitor", Kind.BOOL),
        Field("packet", Kind.BLOCK, schema=PACKET_SCHEMA),
    ),
    factory=ClusterAutoscalerConfig,
    variant=Variant(discriminator="provider", blocks={PROVIDER_PACKET: "packet"}),
)


class ClusterAutoscaler(ChartComponent[ClusterAutoscalerConfig]):
    """Cluster autoscaler component."""

    name = NAME
    schema = SCHEMA
    durations = (
        "scale_down_unneeded_time",
        "scale_down_delay_after_add",
        "scale_down_unready_time",
    )
    chart_path = f"components/{NAME}"
    values_template = VALUES_TEMPLATE

    def __init__(
        self,
        chart_renderer: ChartRenderer | None = None,
        inventory: InventoryClient | None = None,
        packet_settings: PacketSettings | None = None,
    ) -> None:
        super().__init__(chart_renderer)
        self._inventory = inventory
        self._packet_settings = packet_settings or PacketSettings()

    def validate(self, decoded: DecodeResult) -> Diagnostics:
        diagnostics = Diagnostics()
        config = self.config
        if "namespace" in decoded.present and not config.namespace:
            diagnostics.append(
                error("'namespace' must not be empty", "'namespace' must not be empty")
            )
        if decoded.failed & {"min_workers", "max_workers"}:
            return diagnostics
        if config.min_workers < 0:
            diagnostics.append(
                error(
                    "'min_workers' must not be negative",
                    f"'min_workers' is {config.min_workers}",
                )
            )
        if config.min_workers > config.max_workers:
            diagnostics.append(
                error(
                    "'min_workers' must not be greater than 'max_workers'",
                    f"'min_workers' is {config.min_workers} and 'max_workers' "
                    f"is {config.max_workers}",
                )
            )
        return diagnostics

    def _inventory_client(self) -> InventoryClient:
        if self._inventory is None:
            self._inventory = PacketClient(self._packet_settings)
        return self._inventory

    def _packet_values(self) -> dict[str, Any]:
        config = self.config
        packet = config.packet
        devices = self._inventory_client().list_devices(packet.project_id)
        user_data = find_worker_user_data(config.cluster_name, packet.facility, devices)
        auth_token = base64.b64encode(
            self._packet_settings.auth_token.encode("utf-8")
        ).decode("ascii")
        return {
            "project_id": packet.project_id,
            "facility": packet.facility,
            "worker_type": packet.worker_type,
            "worker_channel": packet.worker_channel,
            "user_data": user_data,
            "auth_token": auth_token,
        }

    def values_context(self) -> dict[str, Any]:
        config = self.config
        packet: dict[str, Any] = {}
        if config.provider == PROVIDER_PACKET:
            packet = self._packet_values()
        return {
            "provider": config.provider,
            "cluster_name": config.cluster_name,
            "worker_pool": config.worker_pool,
            "namespace": config.namespace,
            "min_workers": config.min_workers,
            "max_workers": config.max_workers,
            "scale_down_unneeded_time": format_duration(config.scale_down_unneeded_time),
            "scale_down_delay_after_add": format_duration(
                config.scale_down_delay_after_add
            ),
            "scale_down_unready_time": format_duration(config.scale_down_unready_time),
            "service_monitor": config.service_monitor,
            "packet": packet,
        }

    def metadata(self) -> Metadata:
        return Metadata(name=NAME, namespace=self.config.namespace)
