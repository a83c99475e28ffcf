"""
Shader functions.

A function is declared in two steps: a shell fixes the signature, and calling
the shell with an implementation produces the function value::

    @fn([f32, f32], f32)
    def add(a, b):
        return a + b

    scale = fn([f32], f32)("(x: f32) -> f32 { return x * FACTOR; }").uses(
        {"FACTOR": factor_const}
    )

Implementations are either Python functions, transpiled and generated on
resolution, or raw WGSL text starting at the parameter list.
"""

import re
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from loguru import logger

from py2wgsl.errors import GenerationError, NotInResolutionError
from py2wgsl.resolution.resolve import replace_externals
from py2wgsl.slot import Binding, Slot
from py2wgsl.tgsl.generator import FunctionGenerator, host_lookup
from py2wgsl.tgsl.transpiler import transpile
from py2wgsl.types import FnItem

if TYPE_CHECKING:
    from py2wgsl.resolution.context import ResolutionCtx

Implementation = Callable[..., Any] | str

RAW_HEADER = re.compile(r"^\s*\((?P<params>[^)]*)\)\s*(?:->\s*(?P<ret>[^{]+?))?\s*\{", re.S)


class WgslFn(FnItem):
    """A shader function with a fixed signature and an implementation.

    Attributes:
        implementation: Python function or raw WGSL text
        externals: Names made available to the implementation through
            ``uses``; for Python implementations they shadow closure and
            global variables
    """

    def __init__(
        self,
        arg_types: Sequence[Any],
        return_type: Any,
        implementation: Implementation,
        label: str | None = None,
    ):
        if label is None and callable(implementation):
            label = getattr(implementation, "__name__", None)
        super().__init__(label)
        self._arg_types = list(arg_types)
        self._return_type = return_type
        self.implementation = implementation
        self.externals: dict[str, Any] = {}

    @property
    def arg_types(self) -> list[Any]:
        return self._arg_types

    @property
    def return_type(self) -> Any:
        return self._return_type

    @property
    def data_type(self) -> Any:
        return self._return_type

    def __call__(self, *args: Any) -> Any:
        raise NotInResolutionError(f"Shader function {self}")

    def uses(self, externals: Mapping[str, Any]) -> "WgslFn":
        """Add externals available to the implementation. Returns self."""
        self.externals.update(externals)
        return self

    def with_(self, slot: Slot, value: Any) -> "BoundFn":
        """This function resolved with ``slot`` bound to ``value``."""
        return BoundFn(self, ((slot, value),))

    def resolve(self, ctx: "ResolutionCtx") -> str:
        return self._declare(ctx, self._arg_types, self._return_type, self.externals)

    def attributes(self, ctx: "ResolutionCtx") -> str:
        """Attributes written before ``fn``, e.g. an entry point stage."""
        return ""

    def param_text(self, ctx: "ResolutionCtx", name: str, schema: Any) -> str:
        return f"{name}: {ctx.resolve(schema)}"

    def return_text(self, ctx: "ResolutionCtx", return_type: Any) -> str:
        if return_type is None:
            return ""
        return f" -> {ctx.resolve(return_type)}"

    def _declare(
        self,
        ctx: "ResolutionCtx",
        arg_types: list[Any],
        return_type: Any,
        externals: dict[str, Any],
    ) -> str:
        name = ctx.names.make_unique(self.label, True)
        ctx.names.push_function_scope()
        try:
            if isinstance(self.implementation, str):
                signature, body = self._generate_raw(
                    ctx, arg_types, return_type, externals
                )
            else:
                signature, body = self._generate(ctx, arg_types, return_type, externals)
        finally:
            ctx.names.pop_function_scope()
        ctx.add_declaration(f"{self.attributes(ctx)}fn {name}{signature} {body}")
        logger.debug(f"Declared function {name}")
        return name

    def _generate(
        self,
        ctx: "ResolutionCtx",
        arg_types: list[Any],
        return_type: Any,
        externals: dict[str, Any],
    ) -> tuple[str, str]:
        func_ir = transpile(self.implementation)
        if len(func_ir.params) != len(arg_types):
            raise GenerationError(
                f"{self} declares {len(arg_types)} arguments but its "
                f"implementation takes {len(func_ir.params)}"
            )
        params = []
        for py_name, schema in zip(func_ir.params, arg_types):
            params.append((py_name, ctx.names.make_valid(py_name), schema))
        signature = "(" + ", ".join(
            self.param_text(ctx, wgsl, schema) for _, wgsl, schema in params
        ) + ")" + self.return_text(ctx, return_type)

        generator = FunctionGenerator(ctx, host_lookup(self.implementation, externals))
        body = generator.generate_body(params, func_ir.body, return_type)
        return signature, body

    def _generate_raw(
        self,
        ctx: "ResolutionCtx",
        arg_types: list[Any],
        return_type: Any,
        externals: dict[str, Any],
    ) -> tuple[str, str]:
        text = str(self.implementation).strip()
        match = RAW_HEADER.match(text)
        if match is None:
            raise GenerationError(
                f"Raw implementation of {self} must start with a parameter list"
            )
        params = [p.strip() for p in match["params"].split(",") if p.strip()]
        if len(params) != len(arg_types):
            raise GenerationError(
                f"{self} declares {len(arg_types)} arguments but its raw "
                f"implementation takes {len(params)}"
            )
        typed = [
            p if ":" in p else self.param_text(ctx, p, schema)
            for p, schema in zip(params, arg_types)
        ]
        if match["ret"]:
            ret = f" -> {match['ret'].strip()}"
        else:
            ret = self.return_text(ctx, return_type)

        names = {k: ctx.resolve(v) for k, v in externals.items()}
        signature = replace_externals(f"({', '.join(typed)}){ret}", names)
        body = replace_externals(text[match.end() - 1 :], names)
        return signature, body


class BoundFn(FnItem):
    """A function resolved under extra slot bindings.

    Equal bindings resolve to the same declaration, different ones to
    separately named declarations.
    """

    def __init__(self, inner: WgslFn, bindings: tuple[Binding, ...]):
        super().__init__(inner.label)
        self.inner = inner
        self.bindings = bindings

    @property
    def arg_types(self) -> list[Any]:
        return self.inner.arg_types

    @property
    def return_type(self) -> Any:
        return self.inner.return_type

    @property
    def data_type(self) -> Any:
        return self.inner.return_type

    def __call__(self, *args: Any) -> Any:
        raise NotInResolutionError(f"Shader function {self}")

    def with_(self, slot: Slot, value: Any) -> "BoundFn":
        return BoundFn(self.inner, (*self.bindings, (slot, value)))

    def resolve(self, ctx: "ResolutionCtx") -> str:
        with ctx.bindings(self.bindings):
            return ctx.resolve(self.inner)


class FnShell:
    """Signature of a shader function, waiting for its implementation."""

    def __init__(self, arg_types: Sequence[Any], return_type: Any = None):
        self.arg_types = list(arg_types)
        self.return_type = return_type

    def __call__(self, implementation: Implementation, label: str | None = None) -> WgslFn:
        return WgslFn(self.arg_types, self.return_type, implementation, label)


def fn(arg_types: Sequence[Any], return_type: Any = None) -> FnShell:
    """Create a function shell.

    Args:
        arg_types: Schemas of the parameters, in order
        return_type: Schema of the result, None for no result

    Returns:
        A shell; call it (or use it as a decorator) with a Python function
        or raw WGSL text to get the shader function.
    """
    return FnShell(arg_types, return_type)
