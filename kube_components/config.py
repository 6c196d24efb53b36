"""Configuration objects for kube-components."""

from dataclasses import dataclass, field
import os

__all__ = [
    "HelmOptions",
    "PacketSettings",
]


@dataclass
class HelmOptions:
    """Options to use when rendering a Helm chart.

    Internally, these translate into `helm template` command line flags.
    """

    helm_bin: str = "helm"
    """Path or name of the helm binary."""

    skip_crds: bool = False
    """Omit CRDs from the rendered output."""

    skip_tests: bool = True
    """Omit chart test hooks from the rendered output."""

    kube_version: str | None = None
    """Value of the helm --kube-version flag."""

    api_versions: list[str] = field(default_factory=list)
    """Values of the helm --api-versions flag."""

    @property
    def template_args(self) -> list[str]:
        """Helm template CLI arguments built from the options."""
        args = []
        if self.skip_crds:
            args.append("--skip-crds")
        if self.skip_tests:
            args.append("--skip-tests")
        if self.kube_version:
            args.extend(["--kube-version", self.kube_version])
        for api_version in self.api_versions:
            args.extend(["--api-versions", api_version])
        return args


@dataclass
class PacketSettings:
    """Settings for talking to the Packet (Equinix Metal) API."""

    api_url: str = "https://api.equinix.com/metal/v1"
    token_env: str = "PACKET_AUTH_TOKEN"
    """Environment variable holding the API token."""

    per_page: int = 100
    timeout: float = 30.0

    @property
    def auth_token(self) -> str:
        """Return the API token from the environment, empty if unset."""
        return os.environ.get(self.token_env, "")
