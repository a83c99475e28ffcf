"""Schemas describing GPU-representable data, with their memory layout."""

from py2wgsl.data.array import Atomic, WgslArray, array_of, atomic, is_runtime_sized
from py2wgsl.data.attributes import (
    align,
    builtin,
    interpolate,
    invariant,
    is_builtin,
    location,
    size,
)
from py2wgsl.data.decorated import Decorated, undecorate
from py2wgsl.data.layout import (
    FieldOffset,
    MemoryLayout,
    alignment_of,
    field_offsets,
    is_contiguous,
    memory_layout_of,
    offsets_of,
    size_of,
)
from py2wgsl.data.loose import Disarray, Unstruct, disarray_of, is_loose, unstruct
from py2wgsl.data.matrix import Matrix, mat2x2f, mat3x3f, mat4x4f
from py2wgsl.data.numeric import (
    Scalar,
    abstract_float,
    abstract_int,
    bool_,
    f16,
    f32,
    i32,
    u16,
    u32,
)
from py2wgsl.data.serialization import dtype_of, from_bytes, to_bytes
from py2wgsl.data.struct import WgslStruct, struct
from py2wgsl.data.vector import (
    Vector,
    vec2b,
    vec2f,
    vec2h,
    vec2i,
    vec2u,
    vec3b,
    vec3f,
    vec3h,
    vec3i,
    vec3u,
    vec4b,
    vec4f,
    vec4h,
    vec4i,
    vec4u,
)
from py2wgsl.data import vertex_format

__all__ = [
    "Atomic",
    "Decorated",
    "Disarray",
    "FieldOffset",
    "Matrix",
    "MemoryLayout",
    "Scalar",
    "Unstruct",
    "Vector",
    "WgslArray",
    "WgslStruct",
    "abstract_float",
    "abstract_int",
    "align",
    "alignment_of",
    "array_of",
    "atomic",
    "bool_",
    "builtin",
    "disarray_of",
    "dtype_of",
    "f16",
    "f32",
    "field_offsets",
    "from_bytes",
    "i32",
    "interpolate",
    "invariant",
    "is_builtin",
    "is_contiguous",
    "is_loose",
    "is_runtime_sized",
    "location",
    "mat2x2f",
    "mat3x3f",
    "mat4x4f",
    "memory_layout_of",
    "offsets_of",
    "size",
    "size_of",
    "struct",
    "to_bytes",
    "u16",
    "u32",
    "undecorate",
    "unstruct",
    "vec2b",
    "vec2f",
    "vec2h",
    "vec2i",
    "vec2u",
    "vec3b",
    "vec3f",
    "vec3h",
    "vec3i",
    "vec3u",
    "vec4b",
    "vec4f",
    "vec4h",
    "vec4i",
    "vec4u",
    "vertex_format",
]
