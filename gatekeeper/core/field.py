"""Structured field errors.

Validation never raises on bad configuration content; it accumulates `FieldError`s so a
single pass reports every defect. Callers join them with `AggregateError` before
surfacing them to an operator.
"""

from __future__ import annotations

import json
from datetime import timedelta
from enum import Enum
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from gatekeeper.core.duration import format_duration


class ErrorType(str, Enum):
    REQUIRED = "Required value"
    INVALID = "Invalid value"
    NOT_SUPPORTED = "Unsupported value"
    DUPLICATE = "Duplicate value"


# Kinds whose message omits the offending value.
_OMIT_VALUE = {ErrorType.REQUIRED}


class FieldPath:
    """Immutable dotted field path, e.g. `authorizers[0].webhook.timeout`."""

    __slots__ = ("_parts",)

    def __init__(self, *parts: Union[str, int]) -> None:
        self._parts: Tuple[Union[str, int], ...] = tuple(parts)

    def child(self, name: str, *more: str) -> "FieldPath":
        return FieldPath(*self._parts, name, *more)

    def index(self, i: int) -> "FieldPath":
        return FieldPath(*self._parts, int(i))

    def __str__(self) -> str:
        out = ""
        for p in self._parts:
            if isinstance(p, int):
                out += f"[{p}]"
            elif out:
                out += "." + p
            else:
                out = p
        return out

    def __repr__(self) -> str:
        return f"FieldPath({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FieldPath):
            return self._parts == other._parts
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._parts)


def _format_value(v: Any) -> str:
    if v is None:
        return "null"
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, timedelta):
        return json.dumps(format_duration(v), ensure_ascii=False)
    if isinstance(v, str):
        return json.dumps(v, ensure_ascii=False)
    return str(v)


class FieldError(ValueError):
    """A single validation defect attributed to a field path."""

    def __init__(self, type: ErrorType, field: Union[FieldPath, str], bad_value: Any = None, detail: str = "") -> None:
        self.type = type
        self.field = str(field)
        self.bad_value = bad_value
        self.detail = detail
        super().__init__(self.error())

    def error_body(self) -> str:
        body = self.type.value
        if self.type not in _OMIT_VALUE:
            body += ": " + _format_value(self.bad_value)
        if self.detail:
            body += ": " + self.detail
        return body

    def error(self) -> str:
        return f"{self.field}: {self.error_body()}" if self.field else self.error_body()

    def _key(self) -> Tuple[Any, ...]:
        return (self.type, self.field, repr(self.bad_value), self.detail)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FieldError):
            return self._key() == other._key()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return f"FieldError({self.error()!r})"


def required(field: Union[FieldPath, str], detail: str = "") -> FieldError:
    return FieldError(ErrorType.REQUIRED, field, "", detail)


def invalid(field: Union[FieldPath, str], value: Any, detail: str) -> FieldError:
    return FieldError(ErrorType.INVALID, field, value, detail)


def not_supported(field: Union[FieldPath, str], value: Any, valid_values: Iterable[str]) -> FieldError:
    quoted = ", ".join(json.dumps(v, ensure_ascii=False) for v in valid_values)
    detail = f"supported values: {quoted}" if quoted else ""
    return FieldError(ErrorType.NOT_SUPPORTED, field, value, detail)


def duplicate(field: Union[FieldPath, str], value: Any) -> FieldError:
    return FieldError(ErrorType.DUPLICATE, field, value)


class AggregateError(Exception):
    """Several errors reported together as one."""

    def __init__(self, errors: Sequence[BaseException]) -> None:
        self.errors: List[BaseException] = list(errors)
        super().__init__(self._message())

    def _message(self) -> str:
        msgs: List[str] = []
        for e in self.errors:
            m = str(e)
            if m not in msgs:
                msgs.append(m)
        if len(msgs) == 1:
            return msgs[0]
        return "[" + ", ".join(msgs) + "]"


def to_aggregate(errors: Sequence[BaseException]) -> Optional[AggregateError]:
    """Return None for an empty list, otherwise one AggregateError wrapping every item."""
    if not errors:
        return None
    return AggregateError(errors)
