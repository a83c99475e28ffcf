"""WGSL type names of non-declared schemas."""

from typing import TYPE_CHECKING, Any

from py2wgsl.data.array import Atomic, WgslArray
from py2wgsl.data.decorated import Decorated
from py2wgsl.data.loose import Disarray
from py2wgsl.data.matrix import Matrix
from py2wgsl.data.numeric import Scalar
from py2wgsl.data.vector import Vector
from py2wgsl.data.vertex_format import VertexFormat
from py2wgsl.errors import GenerationError

if TYPE_CHECKING:
    from py2wgsl.resolution.context import ResolutionCtx


def resolve_data(ctx: "ResolutionCtx", schema: Any) -> str:
    """Resolve a schema that is referenced by name rather than declared.

    Structs and unstructs are resolvables and are handled by the context
    itself. Loose arrays and vertex formats resolve to the types the shader
    sees them as.

    Raises:
        GenerationError: If the value is not a schema, or is an abstract
            literal kind
    """
    match schema:
        case Scalar(type="f16"):
            ctx.require_extension("f16")
            return "f16"
        case Scalar(type="u16"):
            # u16 only exists in host memory, shaders read it widened
            return "u32"
        case Scalar() if schema.is_abstract:
            raise GenerationError(f"Abstract type {schema} has no WGSL name")
        case Scalar():
            return schema.type
        case Vector(primitive=primitive):
            if primitive.type == "f16":
                ctx.require_extension("f16")
            return schema.type
        case Matrix():
            return schema.type
        case Decorated(inner=inner):
            return ctx.resolve(inner)
        case Atomic(inner=inner):
            return f"atomic<{ctx.resolve(inner)}>"
        case WgslArray(element=element, count=0) | Disarray(element=element, count=0):
            return f"array<{ctx.resolve(element)}>"
        case WgslArray(element=element, count=count) | Disarray(
            element=element, count=count
        ):
            return f"array<{ctx.resolve(element)}, {count}>"
        case VertexFormat(wgsl_type=wgsl_type):
            return ctx.resolve(wgsl_type)
    raise GenerationError(f"Cannot resolve {schema!r} to WGSL")
