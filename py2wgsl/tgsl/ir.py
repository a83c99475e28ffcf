"""Intermediate Representation of shader function bodies.

The transpiler builds this tree from a Python function; the generator reads it
to produce WGSL statements. Nodes carry the source line they came from so
generation errors can point at it.
"""

from dataclasses import dataclass, field


@dataclass
class Node:
    """Base for all IR nodes."""

    lineno: int | None = field(default=None, kw_only=True, compare=False)


# Expressions


@dataclass
class Expression(Node):
    """Base for all expressions."""


@dataclass
class NumericLiteral(Expression):
    """Number as written in the source (``1``, ``1.5``, ``1e3``)."""

    text: str


@dataclass
class BoolLiteral(Expression):
    value: bool


@dataclass
class Identifier(Expression):
    """Reference to a parameter, a local, or an external value."""

    name: str


@dataclass
class BinaryExpr(Expression):
    """Arithmetic, bitwise or comparison operation."""

    op: str
    left: Expression
    right: Expression


@dataclass
class LogicalExpr(Expression):
    """``&&`` or ``||``."""

    op: str
    left: Expression
    right: Expression


@dataclass
class UnaryExpr(Expression):
    op: str
    operand: Expression


@dataclass
class AssignmentExpr(Expression):
    """Assignment, possibly compound (``+=``)."""

    op: str
    target: Expression
    value: Expression


@dataclass
class MemberAccess(Expression):
    obj: Expression
    prop: str


@dataclass
class IndexAccess(Expression):
    obj: Expression
    index: Expression


@dataclass
class Call(Expression):
    """Call with positional and keyword arguments."""

    callee: Expression
    args: list[Expression] = field(default_factory=list)
    kwargs: dict[str, Expression] = field(default_factory=dict)


@dataclass
class Conditional(Expression):
    """``a if cond else b``, emitted as ``select(b, a, cond)``."""

    condition: Expression
    if_true: Expression
    if_false: Expression


# Statements


@dataclass
class Statement(Node):
    """Base for all statements."""


@dataclass
class Block(Statement):
    statements: list[Statement] = field(default_factory=list)


@dataclass
class Return(Statement):
    value: Expression | None = None


@dataclass
class If(Statement):
    """If statement; ``elif`` chains are nested Ifs in ``orelse``."""

    condition: Expression
    body: Block
    orelse: "Block | If | None" = None


@dataclass
class For(Statement):
    """C-style loop: ``for (init; condition; update) { body }``."""

    init: Statement | None
    condition: Expression | None
    update: Expression | None
    body: Block


@dataclass
class While(Statement):
    condition: Expression
    body: Block


@dataclass
class Let(Statement):
    """Immutable local: a name assigned exactly once in the function."""

    name: str
    value: Expression
    annotation: Expression | None = None


@dataclass
class Var(Statement):
    """Mutable local."""

    name: str
    value: Expression | None = None
    annotation: Expression | None = None


@dataclass
class ExprStatement(Statement):
    expr: Expression


@dataclass
class Continue(Statement):
    pass


@dataclass
class Break(Statement):
    pass


@dataclass
class FunctionIR:
    """A transpiled function: parameter names, body and referenced names.

    Attributes:
        name: Name of the host function
        params: Parameter names, in order
        body: Function body
        external_names: Free identifiers of the body, resolved against the
            function's closure and globals during generation
    """

    name: str
    params: list[str]
    body: Block
    external_names: list[str] = field(default_factory=list)
