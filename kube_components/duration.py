"""Parsing of human readable durations such as `10m` or `1h30m`.

The accepted format is a possibly signed sequence of decimal numbers, each
with an optional fraction and a unit suffix. Valid units are `ns`, `us` (or
`µs`), `ms`, `s`, `m` and `h`. A bare `0` is also accepted.
"""

import datetime
import re

__all__ = [
    "parse_duration",
    "format_duration",
]

_UNIT_NANOS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

# Largest duration representable in int64 nanoseconds, about 2562047h.
_MAX_NANOS = (1 << 63) - 1

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: str) -> datetime.timedelta:
    """Parse a duration string into a timedelta.

    Raises `ValueError` for malformed input, e.g. `10 minutes`.
    """
    text = value
    sign = 1
    if text[:1] in ("+", "-"):
        if text[0] == "-":
            sign = -1
        text = text[1:]
    if text == "0":
        return datetime.timedelta(0)
    if not text:
        raise ValueError(f"invalid duration {value!r}")
    nanos = 0
    pos = 0
    while pos < len(text):
        match = _COMPONENT.match(text, pos)
        if match is None:
            if re.match(r"\d|\.", text[pos:]):
                raise ValueError(f"missing or unknown unit in duration {value!r}")
            raise ValueError(f"invalid duration {value!r}")
        number, unit = match.groups()
        whole, _, frac = number.partition(".")
        scale = _UNIT_NANOS[unit]
        nanos += int(whole or "0") * scale
        if frac:
            nanos += int(frac) * scale // (10 ** len(frac))
        if nanos > _MAX_NANOS:
            raise ValueError(f"invalid duration {value!r}")
        pos = match.end()
    return datetime.timedelta(microseconds=sign * (nanos // 1000))


def format_duration(value: datetime.timedelta) -> str:
    """Format a timedelta the way `parse_duration` reads it, e.g. `1h30m0s`."""
    micros = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    if micros < 1_000_000:
        if micros % 1000 == 0:
            return f"{sign}{micros // 1000}ms"
        return f"{sign}{micros}us"
    seconds, frac = divmod(micros, 1_000_000)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    secs = str(seconds)
    if frac:
        secs += "." + f"{frac:06d}".rstrip("0")
    out = sign
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    return f"{out}{secs}s"
