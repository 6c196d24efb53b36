"""Built-in components.

Importing this package registers every built-in component in the default
registry, in a fixed order.
"""

from kube_components.registry import register

from .cluster_autoscaler import ClusterAutoscaler
from .contour import Contour
from .flatcar_linux_update_operator import FlatcarLinuxUpdateOperator

__all__ = [
    "ClusterAutoscaler",
    "Contour",
    "FlatcarLinuxUpdateOperator",
    "BUILTIN_COMPONENTS",
]

BUILTIN_COMPONENTS = (
    ClusterAutoscaler,
    Contour,
    FlatcarLinuxUpdateOperator,
)

for _component in BUILTIN_COMPONENTS:
    register(_component.name, _component())
