"""Snippets: generated expressions together with their inferred type."""

from dataclasses import dataclass
from typing import Any

from py2wgsl.types import UNKNOWN

# Binding strength of WGSL operators, higher binds tighter
OPERATOR_PRECEDENCE: dict[str, int] = {
    "||": 1,
    "&&": 2,
    "|": 3,
    "^": 3,
    "&": 3,
    "==": 4,
    "!=": 4,
    "<": 4,
    ">": 4,
    "<=": 4,
    ">=": 4,
    "<<": 5,
    ">>": 5,
    "+": 6,
    "-": 6,
    "*": 7,
    "/": 7,
    "%": 7,
    "unary": 8,
}

LOGICAL_OPERATORS = frozenset({"&&", "||"})
BITWISE_OPERATORS = frozenset({"&", "|", "^"})
SHIFT_OPERATORS = frozenset({"<<", ">>"})
COMPARISON_OPERATORS = frozenset({"==", "!=", "<", ">", "<=", ">="})


@dataclass(frozen=True)
class Snippet:
    """A piece of generated code, or a host value not yet turned into code.

    Attributes:
        value: WGSL text when ``is_code``, otherwise the host value an
            identifier or member access evaluated to (a schema, a function,
            a slot, a module...)
        data_type: Inferred schema of the expression, or UNKNOWN
        op: Outermost operator of the expression, None for atoms
        is_code: Whether ``value`` is WGSL text
    """

    value: Any
    data_type: Any = UNKNOWN
    op: str | None = None
    is_code: bool = True

    @classmethod
    def host(cls, value: Any) -> "Snippet":
        return cls(value, getattr(value, "data_type", UNKNOWN), None, False)


def needs_parentheses(child_op: str | None, parent_op: str, right: bool) -> bool:
    """Whether an operand must be wrapped to keep meaning and WGSL validity.

    WGSL forbids mixing logical operators, and bitwise and shift operators
    only take unary expressions as operands.
    """
    if child_op is None or child_op == "unary":
        return False
    if parent_op == "unary" or parent_op in SHIFT_OPERATORS:
        return True
    if parent_op in BITWISE_OPERATORS:
        return child_op != parent_op or right
    if parent_op in LOGICAL_OPERATORS:
        if child_op in LOGICAL_OPERATORS:
            return child_op != parent_op or right
        return child_op in BITWISE_OPERATORS
    child = OPERATOR_PRECEDENCE[child_op]
    parent = OPERATOR_PRECEDENCE[parent_op]
    if child != parent:
        return child < parent
    return right or parent_op in COMPARISON_OPERATORS


def operand(snippet: Snippet, parent_op: str, right: bool = False) -> str:
    if needs_parentheses(snippet.op, parent_op, right):
        return f"({snippet.value})"
    return snippet.value
