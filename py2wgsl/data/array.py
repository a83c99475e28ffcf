"""Fixed-size and runtime-sized arrays, and atomics."""

from dataclasses import dataclass
from typing import Any

from py2wgsl.data.decorated import undecorate
from py2wgsl.data.numeric import Scalar, i32, u32
from py2wgsl.errors import SchemaError


@dataclass(frozen=True)
class WgslArray:
    """Array of ``count`` elements; a count of 0 means runtime-sized."""

    element: Any
    count: int

    @property
    def is_runtime_sized(self) -> bool:
        return self.count == 0

    def __str__(self) -> str:
        if self.count == 0:
            return f"array<{self.element}>"
        return f"array<{self.element}, {self.count}>"

    __repr__ = __str__


@dataclass(frozen=True)
class Atomic:
    """Atomic wrapper over a 32-bit integer."""

    inner: Scalar

    def __str__(self) -> str:
        return f"atomic<{self.inner}>"

    __repr__ = __str__


def is_runtime_sized(schema: Any) -> bool:
    """Whether the size of the schema is only known once bound to a buffer."""
    from py2wgsl.data.loose import Disarray, Unstruct
    from py2wgsl.data.struct import WgslStruct

    schema = undecorate(schema)
    if isinstance(schema, (WgslArray, Disarray)):
        return schema.count == 0
    if isinstance(schema, (WgslStruct, Unstruct)):
        members = list(schema.props.values())
        return bool(members) and is_runtime_sized(members[-1])
    return False


def check_element(element: Any, count: int, container: str) -> None:
    if not isinstance(count, int) or count < 0:
        raise SchemaError(f"{container} element count must be a non-negative int")
    if is_runtime_sized(element):
        raise SchemaError(
            f"Cannot nest runtime-sized {element} inside {container}; "
            "only a single trailing runtime-sized array is allowed"
        )


def array_of(element: Any, count: int = 0) -> WgslArray:
    """Create an array schema. Pass ``count=0`` for a runtime-sized array.

    Args:
        element: Schema of every element
        count: Number of elements, 0 for a runtime-sized array

    Raises:
        SchemaError: If the element itself is runtime-sized
    """
    check_element(element, count, "array")
    return WgslArray(element, count)


def atomic(inner: Scalar) -> Atomic:
    if inner not in (i32, u32):
        raise SchemaError(f"Atomics wrap i32 or u32 only, got {inner}")
    return Atomic(inner)
