"""Loader for the user authored cluster configuration file.

The configuration is a YAML document with a `variables` section shared by all
components and a `components` section holding one configuration block per
component name:

```yaml
variables:
  cluster_name: mercury

components:
  cluster-autoscaler:
    cluster_name: ${var.cluster_name}
    worker_pool: pool-1
    packet:
      project_id: 1a2b
      facility: ams1
  flatcar-linux-update-operator:
```

A component listed with no value is enabled with no configuration block.
Every key of a block remembers where it was declared so diagnostics can point
back at the file.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
import logging
from pathlib import Path
import re
from typing import Any

import yaml
from yaml.constructor import SafeConstructor

from .diagnostics import SourceRange
from .exceptions import InputException

__all__ = [
    "ConfigBlock",
    "EvalContext",
    "ClusterConfig",
    "parse_config",
    "read_config",
]

_LOGGER = logging.getLogger(__name__)

VARIABLES_KEY = "variables"
COMPONENTS_KEY = "components"

_EXPRESSION = re.compile(r"(\$)?\$\{var\.([A-Za-z_][A-Za-z0-9_-]*)\}")


@dataclass
class ConfigBlock:
    """A generic configuration block of attributes and nested blocks.

    Nested mappings are themselves `ConfigBlock`s and repeated blocks are lists
    of `ConfigBlock`s.
    """

    attributes: dict[str, Any] = field(default_factory=dict)
    """Attribute name to raw value."""

    ranges: dict[str, SourceRange] = field(default_factory=dict)
    """Attribute name to the location it was declared at."""

    range: SourceRange | None = None
    """Location of the block itself."""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConfigBlock":
        """Build a block without source locations from plain python values."""
        return cls(attributes={key: _from_value(value) for key, value in data.items()})

    def to_dict(self) -> dict[str, Any]:
        """Return the block as plain python values."""
        return {key: _to_value(value) for key, value in self.attributes.items()}

    def range_of(self, key: str) -> SourceRange | None:
        """Return the location of an attribute, falling back to the block."""
        return self.ranges.get(key, self.range)

    def __contains__(self, key: object) -> bool:
        return key in self.attributes

    def __iter__(self) -> Iterator[str]:
        return iter(self.attributes)


def _from_value(value: Any) -> Any:
    if isinstance(value, dict):
        return ConfigBlock.from_dict(value)
    if isinstance(value, list):
        return [_from_value(item) for item in value]
    return value


def _to_value(value: Any) -> Any:
    if isinstance(value, ConfigBlock):
        return value.to_dict()
    if isinstance(value, list):
        return [_to_value(item) for item in value]
    return value


@dataclass
class EvalContext:
    """Variables available to expressions in configuration values.

    A string may reference variables as `${var.NAME}`. When the whole string is
    a single expression the variable value is used as is, keeping its type.
    Otherwise the variable is interpolated as text. `$${` produces a literal
    `${`.
    """

    variables: dict[str, Any] = field(default_factory=dict)

    def evaluate(self, value: str) -> Any:
        """Evaluate the expressions in a string value.

        Raises `InputException` when a referenced variable is not defined.
        """
        if "${" not in value:
            return value
        match = _EXPRESSION.fullmatch(value)
        if match and not match.group(1):
            return self._lookup(match.group(2))

        def replace(match: re.Match[str]) -> str:
            if match.group(1):
                return match.group(0)[1:]
            return str(self._lookup(match.group(2)))

        return _EXPRESSION.sub(replace, value)

    def _lookup(self, name: str) -> Any:
        if name not in self.variables:
            raise InputException(f"There is no variable named {name!r}")
        return self.variables[name]


@dataclass
class ClusterConfig:
    """The parsed configuration file."""

    variables: dict[str, Any] = field(default_factory=dict)
    components: dict[str, ConfigBlock | None] = field(default_factory=dict)
    """Component name to its configuration block, None when no block was given."""

    @property
    def eval_context(self) -> EvalContext:
        """Return the evaluation context shared by all components."""
        return EvalContext(variables=dict(self.variables))


def _source_range(node: yaml.Node, filename: str) -> SourceRange:
    mark = node.start_mark
    return SourceRange(filename=filename, line=mark.line + 1, column=mark.column + 1)


class _Converter:
    """Converts a composed YAML node graph into configuration blocks."""

    def __init__(self, filename: str) -> None:
        self._filename = filename
        self._constructor = SafeConstructor()

    def convert(self, node: yaml.Node) -> Any:
        if isinstance(node, yaml.MappingNode):
            block = ConfigBlock(range=_source_range(node, self._filename))
            for key_node, value_node in node.value:
                key = self._constructor.construct_object(key_node, deep=True)
                subject = _source_range(key_node, self._filename)
                if not isinstance(key, str):
                    raise InputException(f"{subject}: keys must be strings, got {key!r}")
                if key in block.attributes:
                    raise InputException(f"{subject}: duplicate key {key!r}")
                block.attributes[key] = self.convert(value_node)
                block.ranges[key] = subject
            return block
        if isinstance(node, yaml.SequenceNode):
            return [self.convert(item) for item in node.value]
        return self._constructor.construct_object(node, deep=True)


def parse_config(content: str, filename: str = "<config>") -> ClusterConfig:
    """Parse the content of a configuration file."""
    try:
        node = yaml.compose(content, Loader=yaml.SafeLoader)
    except yaml.YAMLError as err:
        raise InputException(f"Unable to parse configuration {filename}: {err}") from err
    if node is None:
        return ClusterConfig()
    root = _Converter(filename).convert(node)
    if not isinstance(root, ConfigBlock):
        raise InputException(f"Configuration {filename} must be a mapping")
    unknown = sorted(set(root.attributes) - {VARIABLES_KEY, COMPONENTS_KEY})
    if unknown:
        raise InputException(
            f"{root.range_of(unknown[0])}: unsupported top level keys: {', '.join(unknown)}"
        )

    variables = root.attributes.get(VARIABLES_KEY)
    if variables is None:
        variables = ConfigBlock()
    if not isinstance(variables, ConfigBlock):
        raise InputException(
            f"{root.range_of(VARIABLES_KEY)}: '{VARIABLES_KEY}' must be a mapping"
        )

    blocks = root.attributes.get(COMPONENTS_KEY)
    if blocks is None:
        blocks = ConfigBlock()
    if not isinstance(blocks, ConfigBlock):
        raise InputException(
            f"{root.range_of(COMPONENTS_KEY)}: '{COMPONENTS_KEY}' must be a mapping"
        )
    components: dict[str, ConfigBlock | None] = {}
    for name, block in blocks.attributes.items():
        if block is not None and not isinstance(block, ConfigBlock):
            raise InputException(
                f"{blocks.range_of(name)}: component {name!r} configuration must be a mapping"
            )
        components[name] = block

    _LOGGER.debug("Loaded %d components from %s", len(components), filename)
    return ClusterConfig(variables=variables.to_dict(), components=components)


def read_config(path: Path) -> ClusterConfig:
    """Read and parse a configuration file."""
    try:
        content = path.read_text()
    except OSError as err:
        raise InputException(f"Unable to read configuration {path}: {err}") from err
    return parse_config(content, filename=str(path))
