"""Exceptions related to kube-components."""

__all__ = [
    "ComponentException",
    "InputException",
    "ConfigurationError",
    "UnknownComponentError",
    "DuplicateComponentError",
    "ComponentNotLoadedError",
    "RenderError",
    "CommandException",
    "HelmException",
    "TemplateException",
    "InventoryException",
    "DuplicateIdentityError",
    "NotFoundExternalError",
    "TerraformException",
    "DNSException",
]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .diagnostics import Diagnostics


class ComponentException(Exception):
    """Generic base exception used for this library."""


class InputException(ComponentException):
    """Raised when the input files or values are not formatted as expected."""


class ConfigurationError(ComponentException):
    """Raised when one or more components report error diagnostics.

    All diagnostics collected for every component are carried together so they
    can be reported in one pass.
    """

    def __init__(self, diagnostics: dict[str, "Diagnostics"]) -> None:
        self.diagnostics = diagnostics
        lines = []
        for name, diags in diagnostics.items():
            for diag in diags.errors():
                lines.append(f"{name}: {diag}")
        super().__init__(
            "Configuration has errors:\n" + "\n".join(f"  {line}" for line in lines)
        )


class UnknownComponentError(ComponentException):
    """Raised when a component name is not registered."""

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = available or []
        message = f"Unknown component {name!r}"
        if self.available:
            message += f", available components: {', '.join(self.available)}"
        super().__init__(message)


class DuplicateComponentError(ComponentException):
    """Raised when a component name is registered twice."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Component {name!r} is already registered")


class ComponentNotLoadedError(ComponentException):
    """Raised when rendering a component without a successful configuration load."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Component {name!r} must load a valid configuration before rendering"
        )


class RenderError(ComponentException):
    """Raised when rendering the manifests of a component fails in some phase."""

    def __init__(self, component: str, phase: str, message: str) -> None:
        self.component = component
        self.phase = phase
        super().__init__(f"Component {component!r} failed to {phase}: {message}")


class CommandException(ComponentException):
    """Raised when there is a failure running a subcommand."""


class HelmException(CommandException):
    """Raised when there is a failure running a helm command or loading a chart."""


class TemplateException(ComponentException):
    """Raised when a values template can't be rendered."""


class InventoryException(ComponentException):
    """Raised when the machine inventory can't be read or interpreted."""


class DuplicateIdentityError(InventoryException):
    """Raised when two machines share the same hostname in one facility."""

    def __init__(self, hostname: str, facility: str) -> None:
        self.hostname = hostname
        self.facility = facility
        super().__init__(
            f"having two devices with the same name ({hostname!r}) in the same "
            f"facility ({facility!r}) is not supported"
        )


class NotFoundExternalError(InventoryException):
    """Raised when no machine in the inventory matches the requested cluster."""

    def __init__(self, cluster_name: str) -> None:
        self.cluster_name = cluster_name
        super().__init__(
            f"cluster {cluster_name!r} must have at least one worker node but no "
            "worker was found"
        )


class TerraformException(CommandException):
    """Raised when there is a failure running a terraform command."""


class DNSException(ComponentException):
    """Raised when DNS entries can't be read or the DNS provider is invalid."""
