"""Vector schemas (vec2f ... vec4u, vec2h ..., vec2<bool> ...)."""

from dataclasses import dataclass
from typing import Any

from py2wgsl.data.numeric import Scalar, bool_, f16, f32, i32, u32
from py2wgsl.errors import SchemaError

_SUFFIXES = {"f32": "f", "f16": "h", "i32": "i", "u32": "u"}

SWIZZLE_SETS = ("xyzw", "rgba")


@dataclass(frozen=True)
class Vector:
    """Vector of 2, 3 or 4 components over a scalar kind."""

    primitive: Scalar
    count: int

    def __post_init__(self) -> None:
        if self.count not in (2, 3, 4):
            raise SchemaError(f"Vectors have 2, 3 or 4 components, got {self.count}")
        if self.primitive.type not in ("f32", "f16", "i32", "u32", "bool"):
            raise SchemaError(f"Cannot build a vector of {self.primitive}")

    @property
    def type(self) -> str:
        if self.primitive == bool_:
            return f"vec{self.count}<bool>"
        return f"vec{self.count}{_SUFFIXES[self.primitive.type]}"

    def __call__(self, *components: Any) -> tuple[Any, ...]:
        """Build a host-side tuple, broadcasting a single scalar."""
        if len(components) == 1:
            components = components * self.count
        if len(components) != self.count:
            raise ValueError(
                f"{self.type} expects {self.count} components, got {len(components)}"
            )
        return tuple(self.primitive(c) for c in components)

    def __str__(self) -> str:
        return self.type

    __repr__ = __str__


def vector_of(primitive: Scalar, count: int) -> Vector:
    return Vector(primitive, count)


def swizzle_indices(prop: str, count: int) -> list[int] | None:
    """Component indices for a swizzle like ``xy`` or ``bgr``, or None."""
    if not 1 <= len(prop) <= 4:
        return None
    for components in SWIZZLE_SETS:
        if all(c in components[:count] for c in prop):
            return [components.index(c) for c in prop]
    return None


vec2f = Vector(f32, 2)
vec3f = Vector(f32, 3)
vec4f = Vector(f32, 4)
vec2h = Vector(f16, 2)
vec3h = Vector(f16, 3)
vec4h = Vector(f16, 4)
vec2i = Vector(i32, 2)
vec3i = Vector(i32, 3)
vec4i = Vector(i32, 4)
vec2u = Vector(u32, 2)
vec3u = Vector(u32, 3)
vec4u = Vector(u32, 4)
vec2b = Vector(bool_, 2)
vec3b = Vector(bool_, 3)
vec4b = Vector(bool_, 4)
