"""
WGSL code generation from function IR.

The generator walks the IR of one shader function and emits its body. Names
that are not parameters or locals are looked up on the host (the function's
``uses`` mapping, its closure, its module globals and the Python builtins)
and stay host values until code needs them, so module constants, schemas,
slots and compile-time helpers can be used naturally inside shader code.
"""

import builtins
import types
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from loguru import logger

from py2wgsl import std
from py2wgsl.data.array import WgslArray
from py2wgsl.data.decorated import Decorated, undecorate
from py2wgsl.data.loose import Disarray, Unstruct
from py2wgsl.data.matrix import Matrix
from py2wgsl.data.numeric import Scalar, abstract_float, abstract_int, bool_, u32
from py2wgsl.data.struct import WgslStruct
from py2wgsl.data.vector import Vector
from py2wgsl.errors import GenerationError, UnknownBuiltinError
from py2wgsl.slot import BoundDerived, Derived, Slot
from py2wgsl.tgsl import ir
from py2wgsl.tgsl.comptime import Comptime
from py2wgsl.tgsl.conversion import (
    binary_result_type,
    concretize,
    convert_to,
    host_value_type,
    index_kind,
    index_type,
    is_abstract,
    literal_type,
    member_type,
    unify,
)
from py2wgsl.tgsl.snippet import Snippet, operand
from py2wgsl.types import UNKNOWN, FnItem, Resolvable

if TYPE_CHECKING:
    from py2wgsl.resolution.context import ResolutionCtx

SCHEMA_TYPES = (Scalar, Vector, Matrix, WgslArray, WgslStruct, Decorated, Disarray, Unstruct)


def is_schema(value: Any) -> bool:
    return isinstance(value, SCHEMA_TYPES)


def host_lookup(
    func: Callable[..., Any] | None, uses: Mapping[str, Any] | None = None
) -> Callable[[str], Any]:
    """Build the external name lookup of a shader function.

    Names resolve against, in order: the explicit ``uses`` mapping, the
    function's closure, its module globals and the Python builtins.

    Raises (from the returned callable):
        KeyError: If the name is not defined anywhere
    """
    closure: dict[str, Any] = {}
    globals_: Mapping[str, Any] = {}
    if func is not None:
        code = getattr(func, "__code__", None)
        cells = getattr(func, "__closure__", None) or ()
        if code is not None:
            for name, cell in zip(code.co_freevars, cells):
                try:
                    closure[name] = cell.cell_contents
                except ValueError:
                    continue  # cell not filled yet
        globals_ = getattr(func, "__globals__", {})

    def lookup(name: str) -> Any:
        for source in (uses or {}, closure, globals_):
            if name in source:
                return source[name]
        if hasattr(builtins, name):
            return getattr(builtins, name)
        raise KeyError(name)

    return lookup


class FunctionGenerator:
    """Emits the WGSL body of a single function.

    Attributes:
        ctx: Active resolution context
        lookup_external: Resolves free identifiers to host values
        scopes: Stack of local scopes, mapping Python names to snippets
        return_type: Declared return schema, used to fix abstract returns
    """

    def __init__(self, ctx: "ResolutionCtx", lookup_external: Callable[[str], Any]):
        self.ctx = ctx
        self.lookup_external = lookup_external
        self.scopes: list[dict[str, Snippet]] = []
        self.return_type: Any = None
        self.depth = 0

    @property
    def indent(self) -> str:
        return self.ctx.options.indent * self.depth

    def generate_body(
        self, params: list[tuple[str, str, Any]], body: ir.Block, return_type: Any
    ) -> str:
        """Generate ``{ ... }`` for a function body.

        Args:
            params: ``(python name, wgsl name, schema)`` of each parameter
            body: Function body IR
            return_type: Declared return schema or None

        Returns:
            The braced body text, without a trailing newline
        """
        self.return_type = return_type
        self.scopes.append({py: Snippet(wgsl, t) for py, wgsl, t in params})
        try:
            return self.block(body)
        finally:
            self.scopes.pop()

    # Statements

    def block(self, block: ir.Block) -> str:
        self.scopes.append({})
        self.depth += 1
        try:
            lines = [self.statement(stmt) for stmt in block.statements]
        finally:
            self.depth -= 1
            self.scopes.pop()
        inner = "".join(f"{line}\n" for line in lines)
        return f"{{\n{inner}{self.indent}}}"

    def statement(self, stmt: ir.Statement) -> str:
        try:
            return self._statement(stmt)
        except GenerationError as err:
            if err.node is None and stmt.lineno is not None:
                raise err.with_node(stmt) from err
            raise

    def _statement(self, stmt: ir.Statement) -> str:
        pre = self.indent
        match stmt:
            case ir.Return(value=None):
                return f"{pre}return;"
            case ir.Return(value=value):
                result = self.code(self.expr(value))
                if self.return_type is not None:
                    result = convert_to(self.ctx, result, self.return_type)
                return f"{pre}return {result.value};"
            case ir.If():
                return f"{pre}{self._if(stmt)}"
            case ir.For():
                return f"{pre}{self._for(stmt)}"
            case ir.While(condition=condition, body=body):
                test = self.code(self.expr(condition))
                return f"{pre}while ({test.value}) {self.block(body)}"
            case ir.Let() | ir.Var():
                return f"{pre}{self._declaration(stmt)};"
            case ir.ExprStatement(expr=expr):
                return f"{pre}{self.code(self.expr(expr)).value};"
            case ir.Break():
                return f"{pre}break;"
            case ir.Continue():
                return f"{pre}continue;"
        raise GenerationError(f"Unsupported statement: {type(stmt).__name__}", stmt)

    def _if(self, stmt: ir.If) -> str:
        test = self.code(self.expr(stmt.condition))
        text = f"if ({test.value}) {self.block(stmt.body)}"
        if isinstance(stmt.orelse, ir.If):
            text += f" else {self._if(stmt.orelse)}"
        elif stmt.orelse is not None:
            text += f" else {self.block(stmt.orelse)}"
        return text

    def _for(self, stmt: ir.For) -> str:
        # Counters compared against u32/i32 values take their kind
        bound = hint = None
        if isinstance(stmt.condition, ir.BinaryExpr):
            bound = self.code(self.expr(stmt.condition.right))
            hint = index_kind(bound.data_type)

        self.scopes.append({})
        try:
            init = ""
            if isinstance(stmt.init, (ir.Let, ir.Var)):
                init = self._declaration(stmt.init, hint)
            condition = ""
            if bound is not None:
                condition = self._binary(stmt.condition, bound).value
            elif stmt.condition is not None:
                condition = self.code(self.expr(stmt.condition)).value
            update = self.code(self.expr(stmt.update)).value if stmt.update else ""
            body = self.block(stmt.body)
        finally:
            self.scopes.pop()
        return f"for ({init}; {condition}; {update}) {body}"

    def _declaration(self, stmt: ir.Let | ir.Var, hint: Any = None) -> str:
        keyword = "let" if isinstance(stmt, ir.Let) else "var"
        annotation = None
        if stmt.annotation is not None:
            annotation = self._host_schema(stmt.annotation)

        value = None
        if stmt.value is not None:
            value = self.code(self.expr(stmt.value))
            target = annotation if annotation is not None else hint
            if target is not None:
                value = convert_to(self.ctx, value, target)
            data_type = annotation if annotation is not None else concretize(value.data_type)
        elif annotation is None:
            raise GenerationError(f"'{stmt.name}' needs a type or an initial value", stmt)
        else:
            data_type = annotation

        name = self.ctx.names.make_valid(stmt.name)
        self.scopes[-1][stmt.name] = Snippet(name, data_type)
        text = f"{keyword} {name}"
        if annotation is not None:
            text += f": {self.ctx.resolve(annotation)}"
        if value is not None:
            text += f" = {value.value}"
        return text

    def _host_schema(self, node: ir.Expression) -> Any:
        snippet = self.expr(node)
        value = self.ctx.unwrap(snippet.value) if not snippet.is_code else None
        value = std.PYTHON_BUILTINS.get(value, value) if _hashable(value) else value
        if not is_schema(value):
            raise GenerationError("Type annotation must be a data schema", node)
        return value

    # Expressions

    def code(self, snippet: Snippet) -> Snippet:
        """Turn a host snippet into code; code snippets pass through."""
        if snippet.is_code:
            return snippet
        value = self.ctx.unwrap(snippet.value)
        if isinstance(value, (types.ModuleType, types.FunctionType, Comptime, std.Intrinsic)):
            raise GenerationError(f"Cannot use {value!r} as a value in shader code")
        if isinstance(value, FnItem):
            raise GenerationError(f"Shader function {value} must be called, not referenced")
        return Snippet(self.ctx.resolve(value), host_value_type(value))

    def expr(self, node: ir.Expression) -> Snippet:
        match node:
            case ir.NumericLiteral(text=text):
                return Snippet(text, literal_type(text))
            case ir.BoolLiteral(value=value):
                return Snippet("true" if value else "false", bool_)
            case ir.Identifier(name=name):
                return self._identifier(name, node)
            case ir.BinaryExpr():
                return self._binary(node)
            case ir.LogicalExpr(op=op, left=left, right=right):
                lhs, rhs = self.code(self.expr(left)), self.code(self.expr(right))
                text = f"{operand(lhs, op)} {op} {operand(rhs, op, right=True)}"
                return Snippet(text, bool_, op)
            case ir.UnaryExpr():
                return self._unary(node)
            case ir.AssignmentExpr():
                return self._assignment(node)
            case ir.MemberAccess():
                return self._member(node)
            case ir.IndexAccess():
                return self._index(node)
            case ir.Call():
                return self._call(node)
            case ir.Conditional():
                return self._conditional(node)
        raise GenerationError(f"Unsupported expression: {type(node).__name__}", node)

    def _identifier(self, name: str, node: ir.Identifier) -> Snippet:
        for scope in reversed(self.scopes):
            if name in scope:
                return scope[name]
        try:
            value = self.lookup_external(name)
        except KeyError:
            raise GenerationError(f"Unknown identifier '{name}'", node) from None
        return Snippet.host(value)

    def _binary(self, node: ir.BinaryExpr, rhs: Snippet | None = None) -> Snippet:
        lhs = self.code(self.expr(node.left))
        if rhs is None:
            rhs = self.code(self.expr(node.right))
        if node.op == "**":
            return std.pow.generate(self.ctx, [lhs, rhs])
        result_type = binary_result_type(node.op, lhs.data_type, rhs.data_type)
        text = f"{operand(lhs, node.op)} {node.op} {operand(rhs, node.op, right=True)}"
        return Snippet(text, result_type, node.op)

    def _unary(self, node: ir.UnaryExpr) -> Snippet:
        inner = self.code(self.expr(node.operand))
        text = operand(inner, "unary")
        if text.startswith(node.op):
            text = f"({text})"  # '--' and '!!' are not valid WGSL
        result_type = inner.data_type
        if node.op == "!" and not isinstance(undecorate(result_type), Vector):
            result_type = bool_
        return Snippet(f"{node.op}{text}", result_type, "unary")

    def _assignment(self, node: ir.AssignmentExpr) -> Snippet:
        target = self.code(self.expr(node.target))
        value = self.code(self.expr(node.value))
        if target.data_type is not UNKNOWN:
            value = convert_to(self.ctx, value, target.data_type)
        return Snippet(f"{target.value} {node.op} {value.value}", UNKNOWN, "=")

    def _member(self, node: ir.MemberAccess) -> Snippet:
        obj = self.expr(node.obj)
        prop = node.prop
        if not obj.is_code:
            value = obj.value
            if isinstance(value, (Slot, Derived, BoundDerived)):
                value = self.ctx.unwrap(value)
                if prop == "value":
                    return Snippet.host(value)
            if isinstance(value, Resolvable) and not is_schema(value):
                obj = self.code(Snippet.host(value))
                if prop == "value":
                    return obj
            elif isinstance(value, (bool, int, float)):
                raise GenerationError(f"Cannot access '{prop}' of {value!r}", node)
            elif isinstance(value, Mapping):
                if prop not in value:
                    raise GenerationError(f"'{prop}' is not defined in mapping", node)
                return Snippet.host(value[prop])
            else:
                try:
                    return Snippet.host(getattr(value, prop))
                except AttributeError:
                    raise GenerationError(
                        f"{value!r} has no attribute '{prop}'", node
                    ) from None

        result_type = member_type(obj.data_type, prop)
        if result_type is None:
            raise GenerationError(f"'{prop}' is not a member of {obj.data_type}", node)
        return Snippet(f"{operand(obj, 'unary')}.{prop}", result_type)

    def _index(self, node: ir.IndexAccess) -> Snippet:
        obj = self.expr(node.obj)
        if not obj.is_code:
            value = self.ctx.unwrap(obj.value)
            if isinstance(value, (list, tuple, Mapping)):
                key = self._host_value(node.index)
                try:
                    return Snippet.host(value[key])
                except (IndexError, KeyError, TypeError):
                    raise GenerationError(f"Invalid index {key!r}", node) from None
            obj = self.code(Snippet.host(value))
        index = self.code(self.expr(node.index))
        result_type = index_type(obj.data_type)
        return Snippet(f"{operand(obj, 'unary')}[{index.value}]", result_type)

    def _conditional(self, node: ir.Conditional) -> Snippet:
        condition = self.code(self.expr(node.condition))
        if_true = self.code(self.expr(node.if_true))
        if_false = self.code(self.expr(node.if_false))
        common = unify([if_true.data_type, if_false.data_type])
        if_true = convert_to(self.ctx, if_true, common)
        if_false = convert_to(self.ctx, if_false, common)
        result_type = if_true.data_type
        if result_type is UNKNOWN or is_abstract(result_type):
            result_type = if_false.data_type
        text = f"select({if_false.value}, {if_true.value}, {condition.value})"
        return Snippet(text, result_type)

    # Calls

    def _call(self, node: ir.Call) -> Snippet:
        callee = self.expr(node.callee)
        if callee.is_code:
            raise GenerationError("Only functions known on the host can be called", node)
        func = self.ctx.unwrap(callee.value)

        if isinstance(func, Comptime):
            return self._comptime_call(func, node)
        if _hashable(func):
            func = std.PYTHON_BUILTINS.get(func, func)
        if func is builtins.len:
            return self._len(node)
        if node.kwargs and not is_schema(func):
            raise GenerationError("Keyword arguments are only supported by struct constructors", node)

        args = [self.code(self.expr(arg)) for arg in node.args]
        if isinstance(func, FnItem):
            return self._fn_call(func, args, node)
        if is_schema(func):
            return self._construct(func, args, node)
        if isinstance(func, std.Intrinsic):
            return func.generate(self.ctx, args)

        name = getattr(func, "__name__", repr(func))
        if getattr(func, "__module__", None) in ("builtins", "math"):
            raise UnknownBuiltinError(name, node)
        raise GenerationError(
            f"'{name}' cannot be called from shader code. Wrap it with fn(...) "
            "to emit it as a shader function, or with @comptime to run it during "
            "generation",
            node,
        )

    def _fn_call(self, func: FnItem, args: list[Snippet], node: ir.Call) -> Snippet:
        arg_types = func.arg_types
        if len(args) != len(arg_types):
            raise GenerationError(
                f"{func} takes {len(arg_types)} arguments, {len(args)} given", node
            )
        name = self.ctx.resolve(func)
        converted = [convert_to(self.ctx, a, t) for a, t in zip(args, arg_types)]
        result_type = func.return_type if func.return_type is not None else UNKNOWN
        return Snippet(f"{name}({', '.join(a.value for a in converted)})", result_type)

    def _construct(self, schema: Any, args: list[Snippet], node: ir.Call) -> Snippet:
        inner = undecorate(schema)
        if node.kwargs:
            props = getattr(inner, "props", None)
            if props is None or args:
                raise GenerationError(
                    "Keyword arguments are only supported by struct constructors", node
                )
            unknown = set(node.kwargs) - set(props)
            missing = [p for p in props if p not in node.kwargs]
            if unknown or missing:
                raise GenerationError(
                    f"Constructor of {inner} got unknown {sorted(unknown)} "
                    f"and missing {missing} members",
                    node,
                )
            args = [self.code(self.expr(node.kwargs[p])) for p in props]
        name = self.ctx.resolve(schema)
        return Snippet(f"{name}({', '.join(a.value for a in args)})", inner)

    def _comptime_call(self, func: Comptime, node: ir.Call) -> Snippet:
        args = [self._host_value(arg) for arg in node.args]
        kwargs = {key: self._host_value(arg) for key, arg in node.kwargs.items()}
        result = func(*args, **kwargs)
        logger.debug(f"Evaluated {func!r} during generation: {result!r}")
        return Snippet.host(result)

    def _host_value(self, node: ir.Expression) -> Any:
        """Evaluate an expression that must be known during generation."""
        match node:
            case ir.NumericLiteral(text=text):
                return float(text) if literal_type(text) == abstract_float else int(text)
            case ir.BoolLiteral(value=value):
                return value
            case ir.UnaryExpr(op="-", operand=ir.NumericLiteral() as literal):
                return -self._host_value(literal)
        snippet = self.expr(node)
        if snippet.is_code:
            raise GenerationError(
                "Arguments of compile-time calls must be known during generation", node
            )
        return self.ctx.unwrap(snippet.value)

    def _len(self, node: ir.Call) -> Snippet:
        if len(node.args) != 1 or node.kwargs:
            raise GenerationError("len() takes exactly one argument", node)
        snippet = self.expr(node.args[0])
        if not snippet.is_code:
            value = self.ctx.unwrap(snippet.value)
            if isinstance(value, (list, tuple, Mapping)):
                return Snippet.host(len(value))
            snippet = self.code(Snippet.host(value))

        data_type = undecorate(snippet.data_type)
        if isinstance(data_type, Vector):
            return Snippet(str(data_type.count), abstract_int)
        if isinstance(data_type, (WgslArray, Disarray)):
            if data_type.count:
                return Snippet(str(data_type.count), abstract_int)
            return Snippet(f"arrayLength(&{snippet.value})", u32)
        raise GenerationError(f"len() is not defined for {data_type}", node)


def _hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True
