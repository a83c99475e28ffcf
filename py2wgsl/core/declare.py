"""Module-level declarations: constants, variables and raw WGSL."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import numpy as np

from py2wgsl.data.array import WgslArray
from py2wgsl.data.decorated import undecorate
from py2wgsl.data.matrix import Matrix
from py2wgsl.data.numeric import Scalar
from py2wgsl.data.struct import WgslStruct
from py2wgsl.data.vector import Vector
from py2wgsl.errors import GenerationError, NotInResolutionError, SchemaError
from py2wgsl.resolution.resolve import replace_externals
from py2wgsl.tgsl.conversion import convert_to, host_value_type
from py2wgsl.tgsl.snippet import Snippet
from py2wgsl.types import Resolvable

if TYPE_CHECKING:
    from py2wgsl.resolution.context import ResolutionCtx


def value_literal(ctx: "ResolutionCtx", schema: Any, value: Any) -> str:
    """WGSL expression constructing ``value`` as ``schema``.

    Host numbers get the suffix of their scalar type; vectors and matrices
    are given as sequences, arrays as lists and structs as mappings.
    Resolvables and strings are used as they resolve.
    """
    value = ctx.unwrap(value)
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, (Resolvable, str)):
        return ctx.resolve(value)
    inner = undecorate(schema)
    match inner:
        case Scalar():
            snippet = Snippet(ctx.resolve(value), host_value_type(value))
            return str(convert_to(ctx, snippet, inner).value)
        case Vector(primitive=primitive):
            parts = [value_literal(ctx, primitive, v) for v in _sequence(value, inner)]
        case Matrix():
            parts = [value_literal(ctx, inner.column_type, v) for v in _sequence(value, inner)]
        case WgslArray(element=element):
            parts = [value_literal(ctx, element, v) for v in _sequence(value, inner)]
        case WgslStruct(props=props):
            if not isinstance(value, Mapping) or set(value) != set(props):
                raise GenerationError(f"Value for {inner} must map exactly {list(props)}")
            parts = [value_literal(ctx, s, value[k]) for k, s in props.items()]
        case _:
            raise GenerationError(f"Cannot write a literal of {inner}")
    return f"{ctx.resolve(schema)}({', '.join(parts)})"


def _sequence(value: Any, schema: Any) -> list[Any]:
    try:
        return list(value)
    except TypeError:
        raise GenerationError(f"Value for {schema} must be a sequence, got {value!r}") from None


class ModuleConst(Resolvable):
    """``const name: T = value;``"""

    kind = "const"

    def __init__(self, schema: Any, value: Any, label: str | None = None):
        super().__init__(label)
        self.schema = schema
        self.init = value

    @property
    def data_type(self) -> Any:
        return self.schema

    @property
    def value(self) -> Any:
        raise NotInResolutionError(f"Value of {self}")

    def resolve(self, ctx: "ResolutionCtx") -> str:
        type_name = ctx.resolve(self.schema)
        init = value_literal(ctx, self.schema, self.init)
        name = ctx.names.make_unique(self.label, True)
        ctx.add_declaration(f"const {name}: {type_name} = {init};")
        return name


class ModuleVar(Resolvable):
    """``var<private>`` or ``var<workgroup>`` declaration."""

    kind = "var"

    def __init__(
        self, scope: str, schema: Any, init: Any = None, label: str | None = None
    ):
        if scope == "workgroup" and init is not None:
            raise SchemaError("Workgroup variables cannot have an initial value")
        super().__init__(label)
        self.scope = scope
        self.schema = schema
        self.init = init

    @property
    def data_type(self) -> Any:
        return self.schema

    @property
    def value(self) -> Any:
        raise NotInResolutionError(f"Value of {self}")

    def resolve(self, ctx: "ResolutionCtx") -> str:
        type_name = ctx.resolve(self.schema)
        init = ""
        if self.init is not None:
            init = f" = {value_literal(ctx, self.schema, self.init)}"
        name = ctx.names.make_unique(self.label, True)
        ctx.add_declaration(f"var<{self.scope}> {name}: {type_name}{init};")
        return name


class RawDeclaration(Resolvable):
    """Pre-authored WGSL added to the document as is.

    Identifiers matching keys of ``uses`` are replaced with the names their
    values resolve to. Resolves to an empty string.
    """

    kind = "declaration"

    def __init__(self, text: str, label: str | None = None):
        super().__init__(label)
        self.text = text
        self.externals: dict[str, Any] = {}

    def uses(self, externals: Mapping[str, Any]) -> "RawDeclaration":
        self.externals.update(externals)
        return self

    def resolve(self, ctx: "ResolutionCtx") -> str:
        names = {key: ctx.resolve(value) for key, value in self.externals.items()}
        ctx.add_declaration(replace_externals(self.text.strip(), names))
        return ""


def const(schema: Any, value: Any, label: str | None = None) -> ModuleConst:
    return ModuleConst(schema, value, label)


def private_var(schema: Any, init: Any = None, label: str | None = None) -> ModuleVar:
    return ModuleVar("private", schema, init, label)


def workgroup_var(schema: Any, label: str | None = None) -> ModuleVar:
    return ModuleVar("workgroup", schema, None, label)


def raw_declaration(text: str, label: str | None = None) -> RawDeclaration:
    """Declare raw WGSL, e.g. a helper written by hand.

    Examples:
        >>> helper = raw_declaration("fn twice(x: f32) -> f32 { return x * 2.0; }")
    """
    return RawDeclaration(text, label)
