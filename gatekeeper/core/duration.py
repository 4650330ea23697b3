"""Shared duration parsing/formatting utilities.

Durations travel as Go-style strings (e.g. '30s', '5m0s', '1h30m', '500ms') both in
structured config files and in legacy flags, and are rendered back the same way in
error messages and dumps.
"""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Any

_UNIT_MICROS = {
    "ns": 0.001,
    "us": 1,
    "µs": 1,
    "μs": 1,
    "ms": 1_000,
    "s": 1_000_000,
    "m": 60 * 1_000_000,
    "h": 3600 * 1_000_000,
}

_COMPONENT_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(raw: str) -> timedelta:
    """
    Parse a duration string such as '30s', '5m0s', '2h30m' or '1.5s'.

    Accepts an optional leading sign and the bare string '0'. Sub-microsecond precision
    is truncated.
    """
    s = (raw or "").strip()
    if not s:
        raise ValueError("invalid duration: empty string")

    sign = 1
    body = s
    if body[0] in "+-":
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if body == "0":
        return timedelta(0)
    if not body:
        raise ValueError(f"invalid duration: {raw!r}")

    total = 0.0
    pos = 0
    while pos < len(body):
        m = _COMPONENT_RE.match(body, pos)
        if m is None:
            raise ValueError(f"invalid duration: {raw!r}")
        total += float(m.group(1)) * _UNIT_MICROS[m.group(2)]
        pos = m.end()

    try:
        return timedelta(microseconds=sign * int(round(total)))
    except OverflowError as e:
        raise ValueError(f"invalid duration: {raw!r} overflows") from e


def _frac(value: int, unit: int) -> str:
    whole, rem = divmod(value, unit)
    if not rem:
        return str(whole)
    width = len(str(unit)) - 1
    return f"{whole}." + f"{rem:0{width}d}".rstrip("0")


def format_duration(d: timedelta) -> str:
    """Render a timedelta the way Go's time.Duration.String() does ('5m0s', '30s', '1h0m0s')."""
    total_us = (d.days * 86400 + d.seconds) * 1_000_000 + d.microseconds
    if total_us == 0:
        return "0s"

    sign = "-" if total_us < 0 else ""
    us = abs(total_us)
    if us < 1_000:
        return f"{sign}{us}µs"
    if us < 1_000_000:
        return f"{sign}{_frac(us, 1_000)}ms"

    secs, rem_us = divmod(us, 1_000_000)
    hours, rem = divmod(secs, 3600)
    minutes, seconds = divmod(rem, 60)
    out = _frac(seconds * 1_000_000 + rem_us, 1_000_000) + "s"
    if hours:
        out = f"{hours}h{minutes}m{out}"
    elif minutes:
        out = f"{minutes}m{out}"
    return sign + out


def coerce_duration(v: Any) -> timedelta:
    """Accept a timedelta as-is or parse a duration string; reject bare numbers (unitless)."""
    if isinstance(v, timedelta):
        return v
    if isinstance(v, str):
        return parse_duration(v)
    raise ValueError(f"duration must be a string like '30s', got {type(v).__name__}")
