"""Process wide registry of components.

Components are registered once during initialization, before any
configuration is loaded, and are only looked up afterwards. The built-in
components register themselves in the default registry when
`kube_components.components` is imported, in this order:

1. cluster-autoscaler
2. contour
3. flatcar-linux-update-operator

Registering the same name twice is an error rather than a silent override, so
a typo or a conflicting plugin can't replace a component unnoticed.
"""

import importlib
import logging

from .component import Component
from .exceptions import DuplicateComponentError, UnknownComponentError

__all__ = [
    "Registry",
    "register",
    "lookup",
    "default_registry",
]

_LOGGER = logging.getLogger(__name__)


class Registry:
    """Mapping of component name to component instance."""

    def __init__(self) -> None:
        """Initialize Registry."""
        self._components: dict[str, Component] = {}

    def register(self, name: str, component: Component) -> None:
        """Register a component instance under a name."""
        if name in self._components:
            raise DuplicateComponentError(name)
        _LOGGER.debug("Registering component %s", name)
        self._components[name] = component

    def lookup(self, name: str) -> Component:
        """Return the component registered under a name."""
        if (component := self._components.get(name)) is None:
            raise UnknownComponentError(name, self.names())
        return component

    def names(self) -> list[str]:
        """Return the sorted names of the registered components."""
        return sorted(self._components)

    def __contains__(self, name: object) -> bool:
        return name in self._components


_DEFAULT_REGISTRY = Registry()


def register(name: str, component: Component) -> None:
    """Register a component in the default registry."""
    _DEFAULT_REGISTRY.register(name, component)


def lookup(name: str) -> Component:
    """Return a component from the default registry."""
    return default_registry().lookup(name)


def default_registry() -> Registry:
    """Return the default registry with the built-in components registered."""
    importlib.import_module("kube_components.components")
    return _DEFAULT_REGISTRY
