"""
Literal typing and type inference for generated expressions.

Numeric literals start out abstract (``abstractInt``/``abstractFloat``) like
in WGSL itself. The first operation that needs a concrete kind fixes it:
binary operations adopt the concrete side's scalar, call arguments get an
explicit suffix (``1f``, ``1u``, ``1.5h``), and declarations default to
``i32``/``f32``.
"""

import re
from typing import TYPE_CHECKING, Any

from loguru import logger

from py2wgsl.data.decorated import undecorate
from py2wgsl.data.matrix import Matrix
from py2wgsl.data.numeric import (
    Scalar,
    abstract_float,
    abstract_int,
    bool_,
    f16,
    f32,
    i32,
    u32,
)
from py2wgsl.data.vector import Vector, swizzle_indices
from py2wgsl.data.vertex_format import VertexFormat
from py2wgsl.tgsl.snippet import COMPARISON_OPERATORS, LOGICAL_OPERATORS, Snippet
from py2wgsl.types import UNKNOWN

if TYPE_CHECKING:
    from py2wgsl.resolution.context import ResolutionCtx

NUMERIC_LITERAL = re.compile(r"^-?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

SUFFIXES = {"f32": "f", "f16": "h", "i32": "i", "u32": "u"}


def literal_type(text: str) -> Scalar:
    """Abstract kind of a numeric literal as written in the source."""
    if any(c in text for c in ".eE"):
        return abstract_float
    return abstract_int


def host_value_type(value: Any) -> Any:
    """Type of a host value inlined into generated code."""
    if isinstance(value, bool):
        return bool_
    if isinstance(value, int):
        return abstract_int
    if isinstance(value, float):
        return abstract_float
    return getattr(value, "data_type", UNKNOWN)


def is_abstract(data_type: Any) -> bool:
    return isinstance(data_type, Scalar) and data_type.is_abstract


def concretize(data_type: Any) -> Any:
    """Default concrete type of a possibly abstract type."""
    if data_type == abstract_int:
        return i32
    if data_type == abstract_float:
        return f32
    return data_type


def primitive_of(data_type: Any) -> Any:
    data_type = undecorate(data_type)
    if isinstance(data_type, Vector):
        return data_type.primitive
    if isinstance(data_type, Matrix):
        return f32
    return data_type


def convert_to(ctx: "ResolutionCtx", snippet: Snippet, target: Any) -> Snippet:
    """Fix an abstract snippet to a concrete scalar type.

    Plain literals get a type suffix. An abstract float used where an integer
    is required is cast explicitly, with a warning, as the conversion drops
    the fractional part.
    """
    target = undecorate(target)
    if not is_abstract(snippet.data_type) or not isinstance(target, Scalar):
        return snippet
    if target.is_abstract or target == bool_:
        return snippet

    text = str(snippet.value)
    if snippet.data_type == abstract_float and target.is_integer:
        logger.warning(f"Implicit lossy conversion of '{text}' to {target}")
        return Snippet(f"{ctx.resolve(target)}({text})", target)
    if NUMERIC_LITERAL.match(text) and target.type in SUFFIXES:
        if target == f16:
            ctx.require_extension("f16")
        return Snippet(f"{text}{SUFFIXES[target.type]}", target, snippet.op)
    return Snippet(snippet.value, target, snippet.op)


def unify(types: list[Any]) -> Any:
    """Common scalar kind of several operand types, preferring concrete ones."""
    concrete = [primitive_of(t) for t in types if t is not UNKNOWN and not is_abstract(t)]
    if concrete:
        return concrete[0]
    if abstract_float in types:
        return abstract_float
    if abstract_int in types:
        return abstract_int
    return UNKNOWN


def binary_result_type(op: str, left: Any, right: Any) -> Any:
    """Type of ``left op right``, following WGSL's operator overloads."""
    left, right = undecorate(left), undecorate(right)
    if op in LOGICAL_OPERATORS:
        return bool_
    if op in COMPARISON_OPERATORS:
        operand = left if left is not UNKNOWN else right
        if isinstance(operand, Vector):
            return Vector(bool_, operand.count)
        return bool_
    if left is UNKNOWN or right is UNKNOWN:
        return left if right is UNKNOWN else right

    if is_abstract(left) and is_abstract(right):
        return abstract_float if abstract_float in (left, right) else abstract_int
    if is_abstract(left):
        return right
    if is_abstract(right):
        return left

    if op == "*":
        if isinstance(left, Matrix) and isinstance(right, Vector):
            return right
        if isinstance(left, Vector) and isinstance(right, Matrix):
            return left
    if isinstance(right, (Vector, Matrix)) and isinstance(left, Scalar):
        return right
    return left


def shader_view(schema: Any) -> Any:
    """Schema as seen from shader code: vertex formats become their WGSL type."""
    schema = undecorate(schema)
    if isinstance(schema, VertexFormat):
        return schema.wgsl_type
    return schema


def member_type(data_type: Any, prop: str) -> Any:
    """Type of ``value.prop`` for structs and vector swizzles."""
    data_type = undecorate(data_type)
    props = getattr(data_type, "props", None)
    if props is not None:
        if prop not in props:
            return None
        return shader_view(props[prop])
    if isinstance(data_type, Vector):
        indices = swizzle_indices(prop, data_type.count)
        if indices is None:
            return None
        if len(indices) == 1:
            return data_type.primitive
        return Vector(data_type.primitive, len(indices))
    return UNKNOWN


def index_type(data_type: Any) -> Any:
    """Type of ``value[i]`` for arrays, vectors and matrices."""
    data_type = undecorate(data_type)
    if isinstance(data_type, Vector):
        return data_type.primitive
    if isinstance(data_type, Matrix):
        return data_type.column_type
    element = getattr(data_type, "element", None)
    if element is not None:
        return shader_view(element)
    return UNKNOWN


def index_kind(data_type: Any) -> Any:
    """Integer kind used for loop counters compared against ``data_type``."""
    data_type = primitive_of(data_type)
    return data_type if data_type in (i32, u32) else None
