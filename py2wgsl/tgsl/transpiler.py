"""
Python function to IR transpiler.

Shader bodies are ordinary Python functions. Their source is parsed with the
standard ``ast`` module and lowered into the IR of :mod:`py2wgsl.tgsl.ir`.
Results are cached per function object, so a function is parsed at most once
per process no matter how many resolutions use it.
"""

import ast
import inspect
import textwrap
import weakref
from collections import Counter
from collections.abc import Callable
from typing import Any

from loguru import logger

from py2wgsl.errors import GenerationError
from py2wgsl.tgsl import ir

BINARY_OPERATORS: dict[type[ast.operator], str] = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.Div: "/",
    ast.Mod: "%",
    ast.Pow: "**",
    ast.BitAnd: "&",
    ast.BitOr: "|",
    ast.BitXor: "^",
    ast.LShift: "<<",
    ast.RShift: ">>",
}

COMPARE_OPERATORS: dict[type[ast.cmpop], str] = {
    ast.Lt: "<",
    ast.Gt: ">",
    ast.LtE: "<=",
    ast.GtE: ">=",
    ast.Eq: "==",
    ast.NotEq: "!=",
}

UNARY_OPERATORS: dict[type[ast.unaryop], str] = {
    ast.USub: "-",
    ast.Not: "!",
    ast.Invert: "~",
}

_cache: "weakref.WeakKeyDictionary[Callable[..., Any], ir.FunctionIR]" = (
    weakref.WeakKeyDictionary()
)


def _error(message: str, node: ast.AST) -> GenerationError:
    return GenerationError(message, node)


def _root_name(target: ast.expr) -> str | None:
    while isinstance(target, (ast.Attribute, ast.Subscript)):
        target = target.value
    return target.id if isinstance(target, ast.Name) else None


def _assigned_names(func: ast.FunctionDef) -> tuple[Counter[str], set[str]]:
    """Count plain assignments per local, and collect names that are mutated.

    Returns:
        Tuple containing:
        - Number of declaring assignments of each name
        - Names that are augmented-assigned, used as loop targets, or have
          one of their members or elements assigned
    """
    counts: Counter[str] = Counter()
    mutated: set[str] = set()
    for node in ast.walk(func):
        if isinstance(node, ast.Assign):
            for target in node.targets:
                if isinstance(target, ast.Name):
                    counts[target.id] += 1
                elif (root := _root_name(target)) is not None:
                    mutated.add(root)
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
            counts[node.target.id] += 1 if node.value is not None else 2
        elif isinstance(node, ast.AugAssign):
            if (root := _root_name(node.target)) is not None:
                mutated.add(root)
        elif isinstance(node, ast.For) and isinstance(node.target, ast.Name):
            mutated.add(node.target.id)
    return counts, mutated


class _Lowering:
    """Lowers one ``ast.FunctionDef`` into IR."""

    def __init__(self, func: ast.FunctionDef):
        self.func = func
        self.params = [arg.arg for arg in func.args.args]
        self.counts, self.mutated = _assigned_names(func)
        self.declared: set[str] = set()
        for name in self.params:
            if name in self.counts or name in self.mutated:
                raise _error(
                    f"Cannot assign to parameter '{name}', copy it into a local first",
                    func,
                )

    def function(self) -> ir.FunctionIR:
        body = self.block(self.func.body)
        locals_ = set(self.params) | set(self.counts) | self.declared
        external_names: list[str] = []
        for stmt in self.func.body:
            for node in ast.walk(stmt):
                if (
                    isinstance(node, ast.Name)
                    and isinstance(node.ctx, ast.Load)
                    and node.id not in locals_
                    and node.id not in external_names
                ):
                    external_names.append(node.id)
        return ir.FunctionIR(self.func.name, self.params, body, external_names)

    # Statements

    def block(self, statements: list[ast.stmt]) -> ir.Block:
        lowered = []
        for stmt in statements:
            result = self.statement(stmt)
            if result is not None:
                lowered.append(result)
        return ir.Block(lowered)

    def statement(self, node: ast.stmt) -> ir.Statement | None:
        lineno = node.lineno
        match node:
            case ast.Return(value=value):
                return ir.Return(
                    self.expr(value) if value is not None else None, lineno=lineno
                )
            case ast.If():
                return self.if_statement(node)
            case ast.For():
                return self.for_statement(node)
            case ast.While(test=test, body=body, orelse=orelse):
                if orelse:
                    raise _error("'while ... else' is not supported", node)
                return ir.While(self.expr(test), self.block(body), lineno=lineno)
            case ast.Assign(targets=[target], value=value):
                return self.assign(target, value, None, node)
            case ast.Assign():
                raise _error("Multiple assignment targets not supported", node)
            case ast.AnnAssign(target=target, value=value, annotation=annotation):
                return self.assign(target, value, annotation, node)
            case ast.AugAssign(target=target, op=op, value=value):
                symbol = BINARY_OPERATORS.get(type(op))
                if symbol is None or symbol == "**":
                    raise _error(f"Unsupported augmented op: {type(op).__name__}", node)
                return ir.ExprStatement(
                    ir.AssignmentExpr(
                        f"{symbol}=", self.expr(target), self.expr(value), lineno=lineno
                    ),
                    lineno=lineno,
                )
            case ast.Expr(value=ast.Constant(value=str())):
                return None  # docstring
            case ast.Expr(value=value):
                return ir.ExprStatement(self.expr(value), lineno=lineno)
            case ast.Pass():
                return None
            case ast.Break():
                return ir.Break(lineno=lineno)
            case ast.Continue():
                return ir.Continue(lineno=lineno)
        raise _error(f"Unsupported statement: {type(node).__name__}", node)

    def if_statement(self, node: ast.If) -> ir.If:
        orelse: ir.Block | ir.If | None = None
        if len(node.orelse) == 1 and isinstance(node.orelse[0], ast.If):
            orelse = self.if_statement(node.orelse[0])
        elif node.orelse:
            orelse = self.block(node.orelse)
        return ir.If(
            self.expr(node.test), self.block(node.body), orelse, lineno=node.lineno
        )

    def for_statement(self, node: ast.For) -> ir.For:
        if node.orelse:
            raise _error("'for ... else' is not supported", node)
        if not isinstance(node.target, ast.Name):
            raise _error("Loop target must be a single name", node)
        match node.iter:
            case ast.Call(func=ast.Name(id="range"), args=args, keywords=[]) if (
                1 <= len(args) <= 3
            ):
                pass
            case _:
                raise _error("Only 'for ... in range(...)' loops are supported", node)

        start: ir.Expression = ir.NumericLiteral("0", lineno=node.lineno)
        step = 1
        if len(args) == 1:
            stop = self.expr(args[0])
        else:
            start, stop = self.expr(args[0]), self.expr(args[1])
        if len(args) == 3:
            step = self._literal_step(args[2])

        name = node.target.id
        counter = ir.Identifier(name, lineno=node.lineno)
        self.declared.add(name)
        init = ir.Var(name, start, lineno=node.lineno)
        condition = ir.BinaryExpr("<" if step > 0 else ">", counter, stop)
        update = ir.AssignmentExpr(
            "+=" if step > 0 else "-=",
            counter,
            ir.NumericLiteral(str(abs(step))),
        )
        return ir.For(init, condition, update, self.block(node.body), lineno=node.lineno)

    def _literal_step(self, node: ast.expr) -> int:
        match node:
            case ast.Constant(value=int() as value) if value != 0:
                return value
            case ast.UnaryOp(op=ast.USub(), operand=ast.Constant(value=int() as value)):
                return -value
        raise _error("range() step must be a non-zero integer literal", node)

    def assign(
        self,
        target: ast.expr,
        value: ast.expr | None,
        annotation: ast.expr | None,
        node: ast.stmt,
    ) -> ir.Statement:
        lineno = node.lineno
        if isinstance(target, ast.Name) and target.id not in self.declared:
            name = target.id
            self.declared.add(name)
            type_expr = self.expr(annotation) if annotation is not None else None
            init = self.expr(value) if value is not None else None
            if init is not None and self.counts[name] == 1 and name not in self.mutated:
                return ir.Let(name, init, type_expr, lineno=lineno)
            return ir.Var(name, init, type_expr, lineno=lineno)
        if value is None:
            raise _error("Declaration without a value must be the first use", node)
        if not isinstance(target, (ast.Name, ast.Attribute, ast.Subscript)):
            raise _error(f"Unsupported assignment target: {type(target).__name__}", node)
        return ir.ExprStatement(
            ir.AssignmentExpr("=", self.expr(target), self.expr(value), lineno=lineno),
            lineno=lineno,
        )

    # Expressions

    def expr(self, node: ast.expr) -> ir.Expression:
        lineno = getattr(node, "lineno", None)
        match node:
            case ast.Constant(value=bool() as value):
                return ir.BoolLiteral(value, lineno=lineno)
            case ast.Constant(value=int() as value):
                return ir.NumericLiteral(str(value), lineno=lineno)
            case ast.Constant(value=float() as value):
                return ir.NumericLiteral(repr(value), lineno=lineno)
            case ast.Name(id=name):
                return ir.Identifier(name, lineno=lineno)
            case ast.BinOp(left=left, op=op, right=right):
                symbol = BINARY_OPERATORS.get(type(op))
                if symbol is None:
                    raise _error(f"Unsupported binary op: {type(op).__name__}", node)
                return ir.BinaryExpr(
                    symbol, self.expr(left), self.expr(right), lineno=lineno
                )
            case ast.Compare():
                return self.compare(node)
            case ast.BoolOp(op=op, values=values):
                symbol = "&&" if isinstance(op, ast.And) else "||"
                result = self.expr(values[0])
                for value in values[1:]:
                    result = ir.LogicalExpr(
                        symbol, result, self.expr(value), lineno=lineno
                    )
                return result
            case ast.UnaryOp(op=ast.UAdd(), operand=operand):
                return self.expr(operand)
            case ast.UnaryOp(op=op, operand=operand):
                return ir.UnaryExpr(
                    UNARY_OPERATORS[type(op)], self.expr(operand), lineno=lineno
                )
            case ast.Attribute(value=value, attr=attr):
                return ir.MemberAccess(self.expr(value), attr, lineno=lineno)
            case ast.Subscript(value=value, slice=index) if not isinstance(
                index, ast.Slice
            ):
                return ir.IndexAccess(self.expr(value), self.expr(index), lineno=lineno)
            case ast.Call(func=func, args=args, keywords=keywords):
                if any(isinstance(a, ast.Starred) for a in args) or any(
                    k.arg is None for k in keywords
                ):
                    raise _error("Star arguments are not supported", node)
                return ir.Call(
                    self.expr(func),
                    [self.expr(a) for a in args],
                    {k.arg: self.expr(k.value) for k in keywords if k.arg},
                    lineno=lineno,
                )
            case ast.IfExp(test=test, body=body, orelse=orelse):
                return ir.Conditional(
                    self.expr(test), self.expr(body), self.expr(orelse), lineno=lineno
                )
        raise _error(f"Unsupported expression: {type(node).__name__}", node)

    def compare(self, node: ast.Compare) -> ir.Expression:
        operands = [node.left, *node.comparators]
        parts = []
        for op, left, right in zip(node.ops, operands, operands[1:]):
            symbol = COMPARE_OPERATORS.get(type(op))
            if symbol is None:
                raise _error(f"Unsupported comparison op: {type(op).__name__}", node)
            parts.append(
                ir.BinaryExpr(
                    symbol, self.expr(left), self.expr(right), lineno=node.lineno
                )
            )
        result: ir.Expression = parts[0]
        for part in parts[1:]:
            result = ir.LogicalExpr("&&", result, part, lineno=node.lineno)
        return result


def transpile_source(source: str) -> ir.FunctionIR:
    """Transpile the first function defined in a piece of Python source."""
    tree = ast.parse(textwrap.dedent(source))
    func = next((n for n in tree.body if isinstance(n, ast.FunctionDef)), None)
    if func is None:
        raise GenerationError("No function definition found in source")
    return _Lowering(func).function()


def transpile(func: Callable[..., Any]) -> ir.FunctionIR:
    """Transpile a Python function into IR, caching the result per function.

    Raises:
        GenerationError: If the source is unavailable or uses constructs that
            have no WGSL counterpart
    """
    cached = _cache.get(func)
    if cached is not None:
        return cached

    try:
        lines, first_line = inspect.getsourcelines(func)
    except (OSError, TypeError) as e:
        raise GenerationError(f"Failed to get source for {func!r}: {e}") from e
    tree = ast.parse(textwrap.dedent("".join(lines)))
    ast.increment_lineno(tree, max(first_line - 1, 0))
    node = next((n for n in tree.body if isinstance(n, ast.FunctionDef)), None)
    if node is None:
        raise GenerationError(f"{func!r} is not defined with 'def'")

    result = _Lowering(node).function()
    _cache[func] = result
    logger.debug(f"Transpiled '{result.name}' with externals {result.external_names}")
    return result
