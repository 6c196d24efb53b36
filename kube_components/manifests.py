"""Helpers for building manifest sets.

A manifest set maps a relative file path to the YAML text of one manifest. The
paths are stable across runs so rendered output can be diffed.
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any

from mashumaro import DataClassDictMixin

from .exceptions import InputException
from .schema import Field, Kind, Schema

__all__ = [
    "ASSETS_DIR",
    "asset_path",
    "walk_manifests",
    "merge_manifests",
    "Toleration",
    "NodeAffinity",
    "TOLERATION_SCHEMA",
    "NODE_AFFINITY_SCHEMA",
    "render_tolerations",
    "render_node_affinity",
]

_LOGGER = logging.getLogger(__name__)

ASSETS_DIR = Path(__file__).parent / "assets"
MANIFEST_SUFFIX = ".yaml"


def asset_path(relative: str) -> Path:
    """Return the path of a packaged asset."""
    return ASSETS_DIR / relative


def walk_manifests(root: Path, suffix: str = MANIFEST_SUFFIX) -> dict[str, str]:
    """Read all manifest files below a directory keyed by relative path.

    Files are visited in sorted order and files without the suffix are ignored.
    """
    if not root.is_dir():
        raise InputException(f"Manifest directory {root} does not exist")
    manifests: dict[str, str] = {}
    for path in sorted(root.rglob(f"*{suffix}")):
        if not path.is_file():
            continue
        manifests[path.relative_to(root).as_posix()] = path.read_text()
    _LOGGER.debug("Read %d manifests from %s", len(manifests), root)
    return manifests


def merge_manifests(manifest_sets: dict[str, dict[str, str]]) -> dict[str, str]:
    """Merge the manifest sets of several components, prefixing each component name."""
    merged: dict[str, str] = {}
    for name in sorted(manifest_sets):
        for path in sorted(manifest_sets[name]):
            merged[f"{name}/{path}"] = manifest_sets[name][path]
    return merged


TOLERATION_EFFECTS = ("", "NoSchedule", "PreferNoSchedule", "NoExecute")
TOLERATION_OPERATORS = ("", "Exists", "Equal")
NODE_SELECTOR_OPERATORS = ("In", "NotIn", "Exists", "DoesNotExist", "Gt", "Lt")


@dataclass
class Toleration(DataClassDictMixin):
    """A pod toleration block."""

    key: str = ""
    effect: str = ""
    operator: str = ""
    value: str = ""
    toleration_seconds: int | None = None

    def to_manifest(self) -> dict[str, Any]:
        """Return the toleration as it appears in a pod spec."""
        out: dict[str, Any] = {}
        if self.key:
            out["key"] = self.key
        if self.effect:
            out["effect"] = self.effect
        if self.operator:
            out["operator"] = self.operator
        if self.value:
            out["value"] = self.value
        if self.toleration_seconds is not None:
            out["tolerationSeconds"] = self.toleration_seconds
        return out


@dataclass
class NodeAffinity(DataClassDictMixin):
    """A required node affinity match expression."""

    key: str = ""
    operator: str = ""
    values: list[str] = field(default_factory=list)


TOLERATION_SCHEMA = Schema(
    fields=(
        Field("key", Kind.STRING),
        Field("effect", Kind.STRING, allowed=TOLERATION_EFFECTS),
        Field("operator", Kind.STRING, allowed=TOLERATION_OPERATORS),
        Field("value", Kind.STRING),
        Field("toleration_seconds", Kind.INT),
    ),
    factory=Toleration,
)

NODE_AFFINITY_SCHEMA = Schema(
    fields=(
        Field("key", Kind.STRING, required=True),
        Field("operator", Kind.STRING, required=True, allowed=NODE_SELECTOR_OPERATORS),
        Field("values", Kind.STRING_LIST),
    ),
    factory=NodeAffinity,
)


def render_tolerations(tolerations: list[Toleration]) -> list[dict[str, Any]]:
    """Return the tolerations as they appear in a pod spec."""
    return [toleration.to_manifest() for toleration in tolerations]


def render_node_affinity(affinities: list[NodeAffinity]) -> dict[str, Any]:
    """Return the node affinity of a pod spec, empty when nothing is required."""
    if not affinities:
        return {}
    expressions = []
    for affinity in affinities:
        expression: dict[str, Any] = {
            "key": affinity.key,
            "operator": affinity.operator,
        }
        if affinity.values:
            expression["values"] = list(affinity.values)
        expressions.append(expression)
    return {
        "requiredDuringSchedulingIgnoredDuringExecution": {
            "nodeSelectorTerms": [{"matchExpressions": expressions}],
        }
    }
