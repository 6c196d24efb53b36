"""Tests for manifest helpers."""

from pathlib import Path

import pytest

from kube_components.exceptions import InputException
from kube_components.manifests import (
    NodeAffinity,
    Toleration,
    merge_manifests,
    render_node_affinity,
    render_tolerations,
    walk_manifests,
)


def test_walk_manifests(tmp_path: Path) -> None:
    """Test reading manifest files in a stable order."""
    (tmp_path / "b.yaml").write_text("kind: B\n")
    (tmp_path / "nested").mkdir()
    (tmp_path / "nested" / "a.yaml").write_text("kind: A\n")
    (tmp_path / "README.md").write_text("docs\n")

    manifests = walk_manifests(tmp_path)
    assert manifests == {"b.yaml": "kind: B\n", "nested/a.yaml": "kind: A\n"}
    assert list(manifests) == ["b.yaml", "nested/a.yaml"]


def test_walk_missing_directory(tmp_path: Path) -> None:
    """Test walking a directory that does not exist."""
    with pytest.raises(InputException, match="does not exist"):
        walk_manifests(tmp_path / "missing")


def test_merge_manifests() -> None:
    """Test merging manifest sets under their component names."""
    merged = merge_manifests(
        {
            "contour": {"z.yaml": "z", "a.yaml": "a"},
            "cluster-autoscaler": {"deployment.yaml": "d"},
        }
    )
    assert list(merged.items()) == [
        ("cluster-autoscaler/deployment.yaml", "d"),
        ("contour/a.yaml", "a"),
        ("contour/z.yaml", "z"),
    ]


def test_render_tolerations() -> None:
    """Test rendering tolerations with pod spec field names."""
    tolerations = [
        Toleration(key="node-role", effect="NoSchedule", operator="Exists"),
        Toleration(key="dedicated", operator="Equal", value="ingress", toleration_seconds=60),
        Toleration(),
    ]
    assert render_tolerations(tolerations) == [
        {"key": "node-role", "effect": "NoSchedule", "operator": "Exists"},
        {"key": "dedicated", "operator": "Equal", "value": "ingress", "tolerationSeconds": 60},
        {},
    ]


def test_render_node_affinity() -> None:
    """Test rendering required node affinity terms."""
    assert render_node_affinity([]) == {}
    assert render_node_affinity(
        [
            NodeAffinity(key="node-role", operator="In", values=["ingress"]),
            NodeAffinity(key="gpu", operator="DoesNotExist"),
        ]
    ) == {
        "requiredDuringSchedulingIgnoredDuringExecution": {
            "nodeSelectorTerms": [
                {
                    "matchExpressions": [
                        {"key": "node-role", "operator": "In", "values": ["ingress"]},
                        {"key": "gpu", "operator": "DoesNotExist"},
                    ]
                }
            ]
        }
    }
