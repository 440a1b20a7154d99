"""Query building: filter expressions, the query compiler and the filter parser."""

from .builder import QueryBuilder, append_clause, page_clause
from .filters import Expression, FieldFilter, FilterBuilder, filter_to_string, format_value
from .parser import ParsedFilter, apply_filters, parse_filter, parse_select, parse_sort
from .types import (
    And,
    ArrayOp,
    ArrayOperator,
    Comparison,
    ComparisonOperator,
    FilterExpression,
    Or,
    SortDirection,
    SortSpec,
    StringOp,
    StringOperator,
)

__all__ = [
    "QueryBuilder",
    "append_clause",
    "page_clause",
    "Expression",
    "FieldFilter",
    "FilterBuilder",
    "filter_to_string",
    "format_value",
    "ParsedFilter",
    "apply_filters",
    "parse_filter",
    "parse_select",
    "parse_sort",
    "And",
    "ArrayOp",
    "ArrayOperator",
    "Comparison",
    "ComparisonOperator",
    "FilterExpression",
    "Or",
    "SortDirection",
    "SortSpec",
    "StringOp",
    "StringOperator",
]
