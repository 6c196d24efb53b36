"""
kube-components manages the configuration of pluggable cluster components.

Every component decodes and validates its own configuration block and renders
it into Kubernetes manifests through a uniform contract, so the pipeline can
drive any registered component without knowing anything specific about it.
"""

__all__ = [
    "component",
    "components",
    "diagnostics",
    "dns",
    "exceptions",
    "helm",
    "inventory",
    "loader",
    "pipeline",
    "registry",
    "schema",
    "validation",
]
