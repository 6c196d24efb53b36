"""Explicit schema descriptions and the generic decoder that binds them.

Each component describes its configuration as a `Schema`: an ordered list of
`Field`s naming the attribute, its kind, whether it is required and, for
nested blocks, the schema of the block. A single routine, `decode`, binds a
`ConfigBlock` onto a target object following that description, so every
component shares the same decoding behavior and diagnostics.

Decoding never stops at the first problem. Every attribute is checked and
every problem is reported as a `Diagnostic` naming the offending field.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any

from .diagnostics import Diagnostics, error
from .exceptions import InputException
from .loader import ConfigBlock, EvalContext

__all__ = [
    "Kind",
    "Field",
    "Variant",
    "Schema",
    "DecodeResult",
    "decode",
]

_LOGGER = logging.getLogger(__name__)


class Kind(Enum):
    """The kind of value a field holds."""

    STRING = "string"
    INT = "number"
    BOOL = "bool"
    STRING_LIST = "list of string"
    BLOCK = "block"
    BLOCK_LIST = "list of blocks"

    @property
    def is_block(self) -> bool:
        return self in (Kind.BLOCK, Kind.BLOCK_LIST)


@dataclass(frozen=True)
class Field:
    """Description of one attribute or nested block of a schema."""

    name: str
    """The attribute name as written in the configuration."""

    kind: Kind

    attr: str | None = None
    """The attribute of the target object to bind to, defaults to `name`."""

    required: bool = False
    """The field must be set to a non-empty value."""

    schema: "Schema | None" = None
    """The schema of a nested block, for block kinds."""

    allowed: tuple[str, ...] = ()
    """Allow-list of values for enum-like string fields."""

    @property
    def target(self) -> str:
        """Name of the target attribute."""
        return self.attr or self.name


@dataclass(frozen=True)
class Variant:
    """A tagged union of provider specific blocks.

    The `discriminator` field selects which of the `blocks` must be present,
    e.g. `provider = "packet"` selects the `packet` block.
    """

    discriminator: str
    """Name of the field holding the tag."""

    blocks: dict[str, str]
    """Tag value to the name of the block field it selects."""

    @property
    def supported(self) -> list[str]:
        """Supported tag values."""
        return list(self.blocks)


@dataclass(frozen=True)
class Schema:
    """Description of a configuration block."""

    fields: tuple[Field, ...]

    factory: Callable[[], Any]
    """Creates a target object holding the default values."""

    variant: Variant | None = None

    def get(self, name: str) -> Field | None:
        """Return the field with the given configuration name."""
        for item in self.fields:
            if item.name == name:
                return item
        return None

    @property
    def has_required(self) -> bool:
        """Return True if the block has mandatory fields."""
        return any(item.required for item in self.fields)


@dataclass
class DecodeResult:
    """The outcome of decoding a block."""

    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    failed: set[str] = field(default_factory=set)
    """Paths of fields that were present but could not be decoded."""

    present: set[str] = field(default_factory=set)
    """Paths of fields that were present in the input."""

    def merge(self, other: "DecodeResult") -> None:
        self.diagnostics.extend(other.diagnostics)
        self.failed |= other.failed
        self.present |= other.present


def join_path(prefix: str, name: str) -> str:
    """Return the dotted path of a field below a prefix."""
    return f"{prefix}.{name}" if prefix else name


def _type_error(path: str, kind: Kind, block: ConfigBlock, name: str) -> Any:
    return error(
        "Incorrect attribute value type",
        f"Inappropriate value for attribute {path!r}: {kind.value} required.",
        block.range_of(name),
    )


def _evaluate(value: Any, eval_context: EvalContext) -> Any:
    if isinstance(value, str):
        return eval_context.evaluate(value)
    return value


def _decode_scalar(item: Field, value: Any) -> tuple[bool, Any]:
    """Return whether the value matches the field kind and the bound value."""
    if item.kind == Kind.STRING:
        return isinstance(value, str), value
    if item.kind == Kind.INT:
        return isinstance(value, int) and not isinstance(value, bool), value
    if item.kind == Kind.BOOL:
        return isinstance(value, bool), value
    if item.kind == Kind.STRING_LIST:
        ok = isinstance(value, list) and all(isinstance(v, str) for v in value)
        return ok, list(value) if ok else value
    raise InputException(f"Field {item.name!r} has unsupported kind {item.kind}")


def decode(
    block: ConfigBlock,
    schema: Schema,
    target: Any,
    eval_context: EvalContext,
    path: str = "",
) -> DecodeResult:
    """Decode the block into the target object following the schema.

    Values that are not present in the block leave the target defaults in
    place. Nested blocks are created from their schema factory.
    """
    result = DecodeResult()

    for name in block:
        if schema.get(name) is None:
            result.diagnostics.append(
                error(
                    "Unsupported argument",
                    f"An argument named {join_path(path, name)!r} is not expected here.",
                    block.range_of(name),
                )
            )

    for item in schema.fields:
        if item.name not in block:
            continue
        item_path = join_path(path, item.name)
        value = block.attributes[item.name]
        if value is None:
            if not item.kind.is_block:
                # An attribute declared without a value keeps its default
                continue
            value = ConfigBlock() if item.kind == Kind.BLOCK else []
        result.present.add(item_path)

        if item.kind == Kind.BLOCK:
            if not isinstance(value, ConfigBlock):
                result.diagnostics.append(_type_error(item_path, item.kind, block, item.name))
                result.failed.add(item_path)
                continue
            result.merge(_decode_block(item, value, target, eval_context, item_path))
            continue

        if item.kind == Kind.BLOCK_LIST:
            if not isinstance(value, list) or not all(
                isinstance(v, ConfigBlock) for v in value
            ):
                result.diagnostics.append(_type_error(item_path, item.kind, block, item.name))
                result.failed.add(item_path)
                continue
            result.merge(_decode_block_list(item, value, target, eval_context, item_path))
            continue

        try:
            if isinstance(value, list):
                value = [_evaluate(v, eval_context) for v in value]
            else:
                value = _evaluate(value, eval_context)
        except InputException as err:
            result.diagnostics.append(
                error("Unknown variable", f"{item_path!r}: {err}", block.range_of(item.name))
            )
            result.failed.add(item_path)
            continue

        ok, bound = _decode_scalar(item, value)
        if not ok:
            result.diagnostics.append(_type_error(item_path, item.kind, block, item.name))
            result.failed.add(item_path)
            continue
        setattr(target, item.target, bound)

    return result


def _block_schema(item: Field) -> Schema:
    if item.schema is None:
        raise InputException(f"Block field {item.name!r} has no schema")
    return item.schema


def _decode_block(
    item: Field,
    block: ConfigBlock,
    target: Any,
    eval_context: EvalContext,
    path: str,
) -> DecodeResult:
    schema = _block_schema(item)
    nested = schema.factory()
    result = decode(block, schema, nested, eval_context, path)
    setattr(target, item.target, nested)
    return result


def _decode_block_list(
    item: Field,
    blocks: list[ConfigBlock],
    target: Any,
    eval_context: EvalContext,
    path: str,
) -> DecodeResult:
    schema = _block_schema(item)
    result = DecodeResult()
    values = []
    for index, block in enumerate(blocks):
        nested = schema.factory()
        result.merge(decode(block, schema, nested, eval_context, f"{path}[{index}]"))
        values.append(nested)
    setattr(target, item.target, values)
    return result
