"""
Filter builder and serializer for the Spinta query grammar.

AND binds tighter than OR, so the only place parentheses are emitted is an
OR node sitting directly under an AND node:

    a=1&(b=2|c=3)      and(a, or(b, c))
    a=1|b=2&c=3        or(a, and(b, c))
    a=1&b=2&c=3        chained and(), no parentheses
"""

from __future__ import annotations

import json
import math
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Iterable
from urllib.parse import quote

from .types import (
    And,
    ArrayOp,
    ArrayOperator,
    Comparison,
    ComparisonOperator,
    FilterExpression,
    Or,
    StringOp,
    StringOperator,
)

# Same unreserved set as JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "!*'()"

UNKNOWN_VALUE = quote('"unknown"', safe=_URI_COMPONENT_SAFE)


def encode_component(text: str) -> str:
    return quote(text, safe=_URI_COMPONENT_SAFE)


def _format_number(value: int | float | Decimal) -> str:
    """Plain decimal notation, never an exponent. NaN and infinities have no literal."""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return UNKNOWN_VALUE
        if value.is_integer():
            return str(int(value))
        # repr gives the shortest round-tripping digits
        value = Decimal(repr(value))
    if not value.is_finite():
        return UNKNOWN_VALUE
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def _format_datetime(value: date) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        text = value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
    else:
        text = value.isoformat()
    return encode_component(f'"{text}"')


def format_value(value: Any) -> str:
    """
    Format a Python value as a query token.

    Strings are quoted with internal quotes escaped, then percent-encoded so the
    token survives URL transport. Unsupported shapes render UNKNOWN_VALUE.
    """
    if value is None:
        return "null"
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return _format_number(value)
    if isinstance(value, str):
        escaped = value.replace('"', '\\"')
        return encode_component(f'"{escaped}"')
    if isinstance(value, date):
        return _format_datetime(value)
    if isinstance(value, (dict, list, tuple)):
        try:
            text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError):
            return UNKNOWN_VALUE
        return encode_component(text)
    return UNKNOWN_VALUE


def _needs_parens(child: FilterExpression, parent: type) -> bool:
    return parent is And and isinstance(child, Or)


def _operand(child: FilterExpression, parent: type) -> str:
    text = filter_to_string(child)
    return f"({text})" if _needs_parens(child, parent) else text


def filter_to_string(expr: FilterExpression) -> str:
    """Render a filter tree to its wire form."""
    if isinstance(expr, Comparison):
        return f"{expr.field}{expr.operator.symbol}{format_value(expr.value)}"
    if isinstance(expr, StringOp):
        return f"{expr.field}.{expr.operator.value}({format_value(expr.value)})"
    if isinstance(expr, ArrayOp):
        values = ",".join(format_value(v) for v in expr.values)
        return f"{expr.field}.{expr.operator.value}({values})"
    if isinstance(expr, And):
        return f"{_operand(expr.left, And)}&{_operand(expr.right, And)}"
    if isinstance(expr, Or):
        return f"{_operand(expr.left, Or)}|{_operand(expr.right, Or)}"
    raise TypeError(f"Not a filter expression: {expr!r}")


class Expression:
    """
    A filter expression that can be combined with others.

    Combining never mutates either side, so an expression can be reused in
    several larger filters:

        active = f.field("active").eq(True)
        q1 = active.and_(f.field("a").eq(1))
        q2 = active | f.field("b").eq(2)
    """
    __slots__ = ("node",)

    def __init__(self, node: FilterExpression):
        self.node = node

    def and_(self, other: Expression) -> Expression:
        return Expression(And(self.node, other.node))

    def or_(self, other: Expression) -> Expression:
        return Expression(Or(self.node, other.node))

    __and__ = and_
    __or__ = or_

    def __str__(self) -> str:
        return filter_to_string(self.node)

    def __repr__(self) -> str:
        return f"Expression({self.node!r})"


class FieldFilter:
    """Operators available on a single field."""

    def __init__(self, name: str):
        self.name = name

    def _compare(self, operator: ComparisonOperator, value: Any) -> Expression:
        return Expression(Comparison(self.name, operator, value))

    def eq(self, value: Any) -> Expression:
        return self._compare(ComparisonOperator.EQ, value)

    def ne(self, value: Any) -> Expression:
        return self._compare(ComparisonOperator.NE, value)

    def lt(self, value: Any) -> Expression:
        return self._compare(ComparisonOperator.LT, value)

    def le(self, value: Any) -> Expression:
        return self._compare(ComparisonOperator.LE, value)

    def gt(self, value: Any) -> Expression:
        return self._compare(ComparisonOperator.GT, value)

    def ge(self, value: Any) -> Expression:
        return self._compare(ComparisonOperator.GE, value)

    def contains(self, value: str) -> Expression:
        return Expression(StringOp(self.name, StringOperator.CONTAINS, value))

    def startswith(self, value: str) -> Expression:
        return Expression(StringOp(self.name, StringOperator.STARTSWITH, value))

    def endswith(self, value: str) -> Expression:
        return Expression(StringOp(self.name, StringOperator.ENDSWITH, value))

    def in_(self, values: Iterable[Any]) -> Expression:
        return Expression(ArrayOp(self.name, ArrayOperator.IN, tuple(values)))

    def notin(self, values: Iterable[Any]) -> Expression:
        return Expression(ArrayOp(self.name, ArrayOperator.NOTIN, tuple(values)))


class FilterBuilder:
    """Entry point handed to QueryBuilder.filter() callbacks."""

    def field(self, name: str) -> FieldFilter:
        return FieldFilter(str(name))
