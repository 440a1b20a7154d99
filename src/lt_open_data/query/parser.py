"""
Parser for human-typed filter expressions.

Grammar:
    filter     = comparison | string_op | array_op
    comparison = field ("=" | "!=" | "<" | "<=" | ">" | ">=") value
    string_op  = field "." ("contains" | "startswith" | "endswith") "(" quoted_string ")"
    array_op   = field "." ("in" | "notin") "(" value_list ")"
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable

from ..errors import UserError
from .builder import QueryBuilder
from .filters import Expression, FilterBuilder
from .types import SortDirection

# Longest operators first so "<=" is never read as "<" followed by "=..."
COMPARISON_PATTERN = re.compile(r"^([a-zA-Z_][a-zA-Z0-9_.]*)(<=|>=|!=|<|>|=)(.+)$")
METHOD_PATTERN = re.compile(
    r"^([a-zA-Z_][a-zA-Z0-9_.]*)\.(contains|startswith|endswith|in|notin)\((.+)\)$"
)
NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
ISO_DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(Z|[+-]\d{2}:\d{2})?$")
# 1/2/24, 01-02-2024 and friends: day/month order is anyone's guess
AMBIGUOUS_DATE_PATTERN = re.compile(r"^\d{1,2}[/-]\d{1,2}[/-]\d{2,4}$")

_COMPARISON_OPERATORS = {
    "=": "eq",
    "!=": "ne",
    "<": "lt",
    "<=": "le",
    ">": "gt",
    ">=": "ge",
}

_ISO_HINT = "Use ISO 8601: YYYY-MM-DD or YYYY-MM-DDTHH:MM:SS"


@dataclass
class ParsedFilter:
    """A single parsed filter. `values` is only set for in/notin."""
    field: str
    operator: str
    value: Any = None
    values: list[Any] | None = None


def parse_filter(filter_str: str) -> ParsedFilter:
    """
    Parse a filter expression string.

    Examples:
        metai=2025
        reg_data>=2025-01-01
        name.contains("Vilnius")
        status.in("active", 'pending')

    Raises:
        UserError: If the expression cannot be parsed
    """
    trimmed = filter_str.strip()

    match = COMPARISON_PATTERN.match(trimmed)
    if match:
        name, op, value_str = match.groups()
        return ParsedFilter(name, _COMPARISON_OPERATORS[op], parse_value(value_str))

    match = METHOD_PATTERN.match(trimmed)
    if match:
        name, method, args = match.groups()
        if method in ("in", "notin"):
            values = parse_value_list(args)
            return ParsedFilter(name, method, values[0] if values else None, values)

        value = parse_value(args)
        if not isinstance(value, str):
            raise UserError(
                f"Invalid filter: {method}() requires a string argument",
                f'Example: name.{method}("text")',
            )
        return ParsedFilter(name, method, value)

    raise UserError(
        f'Invalid filter syntax: "{filter_str}"',
        'Examples: field=value, field>100, field.contains("text")',
    )


def _unquote(inner: str, quote: str) -> str:
    return inner.replace("\\" + quote, quote).replace("\\\\", "\\")


def parse_value(value_str: str) -> Any:
    """Parse a single literal: null, booleans, quoted strings, numbers, bare words."""
    trimmed = value_str.strip()

    if trimmed == "null":
        return None
    if trimmed == "true":
        return True
    if trimmed == "false":
        return False

    for quote in ('"', "'"):
        if len(trimmed) >= 2 and trimmed.startswith(quote) and trimmed.endswith(quote):
            text = _unquote(trimmed[1:-1], quote)
            validate_date(text)
            return text

    if NUMBER_PATTERN.match(trimmed):
        if re.fullmatch(r"[+-]?\d+", trimmed):
            return int(trimmed)
        return float(trimmed)

    if AMBIGUOUS_DATE_PATTERN.match(trimmed):
        raise UserError(f"Invalid date format '{trimmed}'", _ISO_HINT)

    return trimmed


def parse_value_list(args: str) -> list[Any]:
    """
    Split a comma separated argument list.

    Commas inside quotes do not split; a backslash escapes the next character
    (the escape is kept so parse_value can unescape it).
    """
    values: list[Any] = []
    current: list[str] = []
    in_quote = False
    quote_char = ""
    escaped = False

    for char in args:
        if escaped:
            current.append(char)
            escaped = False
            continue

        if char == "\\":
            escaped = True
            current.append(char)
            continue

        if char in ('"', "'"):
            if not in_quote:
                in_quote = True
                quote_char = char
            elif char == quote_char:
                in_quote = False
                quote_char = ""
            current.append(char)
            continue

        if char == "," and not in_quote:
            values.append(parse_value("".join(current)))
            current = []
            continue

        current.append(char)

    tail = "".join(current)
    if tail.strip():
        values.append(parse_value(tail))

    return values


def validate_date(value: str) -> None:
    """Reject ambiguous dates and ISO-looking strings that are not real dates."""
    if AMBIGUOUS_DATE_PATTERN.match(value):
        raise UserError(f"Invalid date format '{value}'", _ISO_HINT)

    try:
        if ISO_DATE_PATTERN.match(value):
            date.fromisoformat(value)
        elif ISO_DATETIME_PATTERN.match(value):
            datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise UserError(f"Invalid date '{value}'", "Date must be a valid ISO 8601 date") from None


def to_expression(parsed: ParsedFilter, builder: FilterBuilder | None = None) -> Expression:
    """Turn a ParsedFilter into a filter expression."""
    f = (builder or FilterBuilder()).field(parsed.field)
    op = parsed.operator
    if op in ("in", "notin"):
        values = parsed.values or []
        return f.in_(values) if op == "in" else f.notin(values)
    if op == "contains":
        return f.contains(parsed.value)
    if op == "startswith":
        return f.startswith(parsed.value)
    if op == "endswith":
        return f.endswith(parsed.value)
    return getattr(f, op)(parsed.value)


def apply_filters(query: QueryBuilder, filters: Iterable[ParsedFilter]) -> QueryBuilder:
    """AND every parsed filter into the query."""
    for parsed in filters:
        query = query.filter(lambda fb, parsed=parsed: to_expression(parsed, fb))
    return query


def parse_sort(sort_str: str) -> tuple[str, SortDirection]:
    """Parse "field" or "-field"."""
    text = sort_str.strip()
    if not text or text == "-":
        raise UserError("Missing sort field", 'Example: "name" or "-date"')
    if text.startswith("-"):
        return text[1:], SortDirection.DESC
    return text, SortDirection.ASC


def parse_select(select_str: str) -> list[str]:
    """Split a comma separated field list, dropping blanks."""
    return [f.strip() for f in select_str.split(",") if f.strip()]
