"""Filter expression tree and sort types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ComparisonOperator(str, Enum):
    """Infix comparison operators and their wire symbols."""
    EQ = "eq"
    NE = "ne"
    LT = "lt"
    LE = "le"
    GT = "gt"
    GE = "ge"

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]


_SYMBOLS = {
    ComparisonOperator.EQ: "=",
    ComparisonOperator.NE: "!=",
    ComparisonOperator.LT: "<",
    ComparisonOperator.LE: "<=",
    ComparisonOperator.GT: ">",
    ComparisonOperator.GE: ">=",
}


class StringOperator(str, Enum):
    """Method-style string operators: field.contains("x")."""
    CONTAINS = "contains"
    STARTSWITH = "startswith"
    ENDSWITH = "endswith"


class ArrayOperator(str, Enum):
    """Method-style membership operators: field.in(1,2,3)."""
    IN = "in"
    NOTIN = "notin"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True, slots=True)
class SortSpec:
    field: str
    direction: SortDirection = SortDirection.ASC

    def __str__(self) -> str:
        return f"-{self.field}" if self.direction == SortDirection.DESC else self.field


@dataclass(frozen=True, slots=True)
class Comparison:
    """field <op> value"""
    field: str
    operator: ComparisonOperator
    value: Any


@dataclass(frozen=True, slots=True)
class StringOp:
    """field.<op>("value")"""
    field: str
    operator: StringOperator
    value: str


@dataclass(frozen=True, slots=True)
class ArrayOp:
    """field.<op>(v1,v2,...)"""
    field: str
    operator: ArrayOperator
    values: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class And:
    left: FilterExpression
    right: FilterExpression


@dataclass(frozen=True, slots=True)
class Or:
    left: FilterExpression
    right: FilterExpression


FilterExpression = Union[Comparison, StringOp, ArrayOp, And, Or]
