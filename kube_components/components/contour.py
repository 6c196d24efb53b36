"""Contour ingress controller with Envoy as the data plane."""

from dataclasses import dataclass, field
import logging
from typing import Any

from kube_components.component import ChartComponent, Metadata
from kube_components.manifests import (
    NODE_AFFINITY_SCHEMA,
    TOLERATION_SCHEMA,
    NodeAffinity,
    Toleration,
    render_node_affinity,
    render_tolerations,
)
from kube_components.schema import Field, Kind, Schema

__all__ = [
    "Contour",
    "ContourConfig",
]

_LOGGER = logging.getLogger(__name__)

NAME = "contour"
NAMESPACE = "projectcontour"
SERVICE_TYPE_NODE_PORT = "NodePort"
SERVICE_TYPE_LOAD_BALANCER = "LoadBalancer"

# The hostname annotation lets ExternalDNS create records for the Envoy service.
VALUES_TEMPLATE = """\
monitoring:
  enable: {{ enable_monitoring | tojson }}
envoy:
  serviceType: {{ service_type }}
{%- if ingress_hosts %}
  serviceAnnotations:
    external-dns.alpha.kubernetes.io/hostname: {{ ingress_hosts | tojson }}
{%- endif %}
nodeAffinity: {{ node_affinity | tojson }}
tolerations: {{ tolerations | tojson }}
"""


@dataclass
class ContourConfig:
    """Configuration of Contour."""

    enable_monitoring: bool = False
    ingress_hosts: list[str] = field(default_factory=list)
    """Hostnames ExternalDNS should point at the Envoy service."""

    node_affinity: list[NodeAffinity] = field(default_factory=list)
    service_type: str = SERVICE_TYPE_LOAD_BALANCER
    tolerations: list[Toleration] = field(default_factory=list)


SCHEMA = Schema(
    fields=(
        Field("enable_monitoring", Kind.BOOL),
        Field("ingress_hosts", Kind.STRING_LIST),
        Field("node_affinity", Kind.BLOCK_LIST, schema=NODE_AFFINITY_SCHEMA),
        Field(
            "service_type",
            Kind.STRING,
            allowed=(SERVICE_TYPE_LOAD_BALANCER, SERVICE_TYPE_NODE_PORT),
        ),
        Field("toleration", Kind.BLOCK_LIST, attr="tolerations", schema=TOLERATION_SCHEMA),
    ),
    factory=ContourConfig,
)


class Contour(ChartComponent[ContourConfig]):
    """Contour component."""

    name = NAME
    schema = SCHEMA
    chart_path = f"components/{NAME}"
    values_template = VALUES_TEMPLATE

    def values_context(self) -> dict[str, Any]:
        config = self.config
        return {
            "enable_monitoring": config.enable_monitoring,
            "ingress_hosts": ",".join(config.ingress_hosts),
            "service_type": config.service_type,
            "node_affinity": render_node_affinity(config.node_affinity),
            "tolerations": render_tolerations(config.tolerations),
        }

    def metadata(self) -> Metadata:
        return Metadata(name=NAME, namespace=NAMESPACE)
