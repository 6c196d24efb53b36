"""Validation stage run on a component configuration after decoding.

These checks run regardless of whether decoding reported errors, so a user
sees every problem at once. A check is only skipped for a field whose value
could not be decoded, since there is nothing meaningful to check.
"""

from collections.abc import Iterable
import logging
from typing import Any

from .diagnostics import Diagnostics, SourceRange, error
from .duration import parse_duration
from .loader import ConfigBlock
from .schema import DecodeResult, Kind, Schema, join_path

__all__ = [
    "validate_schema",
    "check_variant",
    "parse_durations",
    "RAW_SUFFIX",
]

_LOGGER = logging.getLogger(__name__)

RAW_SUFFIX = "_raw"


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


def _quoted(values: Iterable[str]) -> str:
    return "'" + "', '".join(values) + "'"


def _subject(block: ConfigBlock | None, name: str) -> SourceRange | None:
    return block.range_of(name) if block is not None else None


def _child(block: ConfigBlock | None, name: str) -> ConfigBlock | None:
    """Return a nested block, or an empty one located at its attribute."""
    if block is None:
        return None
    nested = block.attributes.get(name)
    if isinstance(nested, ConfigBlock):
        return nested
    return ConfigBlock(range=block.range_of(name))


def validate_schema(
    target: Any,
    schema: Schema,
    decoded: DecodeResult,
    path: str = "",
    context: str = "",
    block: ConfigBlock | None = None,
) -> Diagnostics:
    """Check required fields and allow-lists of a decoded block.

    Nested blocks and repeated blocks are checked recursively. Blocks selected
    by a variant are left to `check_variant`. When the source `block` is given
    each diagnostic points at the attribute, or at the block for an attribute
    that is missing.
    """
    diagnostics = Diagnostics()
    variant_blocks = set(schema.variant.blocks.values()) if schema.variant else set()
    prefix = f"{context}, " if context else ""

    for item in schema.fields:
        item_path = join_path(path, item.name)
        if item_path in decoded.failed:
            continue
        value = getattr(target, item.target)
        subject = _subject(block, item.name)

        if item.required and _is_empty(value):
            diagnostics.append(
                error(
                    f"{item_path!r} must be set",
                    f"{prefix}{item_path!r} must be set but it was not found",
                    subject,
                )
            )
            continue

        if item.allowed and not item.kind.is_block:
            values = value if item.kind == Kind.STRING_LIST else [value]
            for entry in values:
                if entry not in item.allowed:
                    diagnostics.append(
                        error(
                            f"Unknown {item.name} {entry!r}",
                            f"{prefix}{item_path!r} must be one of: {_quoted(item.allowed)}",
                            subject,
                        )
                    )

        if item.name in variant_blocks or item.schema is None:
            continue
        if item.kind == Kind.BLOCK and value is not None:
            diagnostics.extend(
                validate_schema(
                    value,
                    item.schema,
                    decoded,
                    item_path,
                    context,
                    _child(block, item.name),
                )
            )
        elif item.kind == Kind.BLOCK_LIST:
            nested = block.attributes.get(item.name) if block is not None else None
            sources = nested if isinstance(nested, list) else []
            for index, entry in enumerate(value or []):
                source = sources[index] if index < len(sources) else None
                diagnostics.extend(
                    validate_schema(
                        entry,
                        item.schema,
                        decoded,
                        f"{item_path}[{index}]",
                        context,
                        source if isinstance(source, ConfigBlock) else None,
                    )
                )

    return diagnostics


def check_variant(
    target: Any,
    schema: Schema,
    decoded: DecodeResult,
    path: str = "",
    block: ConfigBlock | None = None,
) -> Diagnostics:
    """Check the provider specific block selected by the discriminator.

    An unknown tag is reported with the supported set. When the selected block
    is missing an empty one is synthesized so its required fields are still
    reported individually. Blocks for other tags are rejected.
    """
    diagnostics = Diagnostics()
    variant = schema.variant
    if variant is None:
        return diagnostics
    tag_field = schema.get(variant.discriminator)
    if tag_field is None:
        raise ValueError(f"Variant discriminator {variant.discriminator!r} is not a field")
    if join_path(path, tag_field.name) in decoded.failed:
        return diagnostics

    tag = getattr(target, tag_field.target)
    if tag not in variant.blocks:
        diagnostics.append(
            error(
                f"Make sure to set {tag_field.name} to one of supported values",
                f"{tag_field.name} must be one of: {_quoted(variant.supported)}",
                _subject(block, tag_field.name),
            )
        )
        return diagnostics

    selected = variant.blocks[tag]
    for other in sorted(set(variant.blocks.values()) - {selected}):
        if join_path(path, other) in decoded.present:
            diagnostics.append(
                error(
                    f"{other!r} block is not valid for {tag_field.name} {tag!r}",
                    f"When using {tag!r} {tag_field.name}, only the {selected!r} "
                    "block may be set",
                    _subject(block, other),
                )
            )

    block_field = schema.get(selected)
    if block_field is None or block_field.schema is None:
        raise ValueError(f"Variant block {selected!r} is not a block field")
    block_path = join_path(path, selected)
    if block_path in decoded.failed:
        return diagnostics
    context = f"When using {tag!r} {tag_field.name}"
    if block_path not in decoded.present:
        setattr(target, block_field.target, block_field.schema.factory())
        diagnostics.append(
            error(
                f"{selected!r} block must exist",
                f"{context}, {selected!r} block must exist",
                _subject(block, selected),
            )
        )
    diagnostics.extend(
        validate_schema(
            getattr(target, block_field.target),
            block_field.schema,
            decoded,
            block_path,
            context,
            _child(block, selected),
        )
    )
    return diagnostics


def parse_durations(
    target: Any, names: Iterable[str], block: ConfigBlock | None = None
) -> Diagnostics:
    """Convert raw duration strings into timedelta values.

    For every name the raw string is read from `<name>_raw` and, when set, the
    parsed value is stored in `<name>`. Each failure is reported and the
    remaining durations are still converted.
    """
    diagnostics = Diagnostics()
    for name in names:
        raw = getattr(target, f"{name}{RAW_SUFFIX}")
        if not raw:
            continue
        try:
            setattr(target, name, parse_duration(raw))
        except ValueError as err:
            diagnostics.append(
                error(
                    f"error parsing {name!r}",
                    f"error parsing {name!r}: {err}",
                    block.range_of(name) if block else None,
                )
            )
    return diagnostics
