"""
Attribute decorations for schemas.

Each decorator validates eagerly against the layout of the wrapped schema, so
an invalid decoration fails when the schema is built, long before anything is
resolved.
"""

from typing import Any

from py2wgsl.data.decorated import (
    Align,
    Attribute,
    Builtin,
    Decorated,
    Interpolate,
    Invariant,
    Location,
    Size,
)
from py2wgsl.data.layout import alignment_of, size_of
from py2wgsl.data.loose import is_loose
from py2wgsl.errors import SchemaError

INTERPOLATION_TYPES = ("perspective", "linear", "flat")
INTERPOLATION_SAMPLINGS = ("center", "centroid", "sample", "first", "either")


def attribute(data: Any, attrib: Attribute) -> Decorated:
    """Attach an attribute to a schema, merging with existing decorations.

    A newer attribute of the same kind replaces the older one.
    """
    if isinstance(data, Decorated):
        kept = tuple(a for a in data.attribs if type(a) is not type(attrib))
        return Decorated(data.inner, (attrib, *kept))
    return Decorated(data, (attrib,))


def align(value: int, data: Any) -> Decorated:
    """Override the alignment of a struct member.

    Args:
        value: New alignment in bytes
        data: Schema to decorate

    Raises:
        SchemaError: If the value is not a power of two, or is not a multiple
            of the natural alignment of a non-loose schema
    """
    if not isinstance(value, int) or value <= 0 or value & (value - 1):
        raise SchemaError(f"Custom alignment must be a power of two, got {value}")
    if not is_loose(data):
        natural = alignment_of(data)
        if value % natural:
            raise SchemaError(
                f"Custom alignment {value} is not a multiple of the natural "
                f"alignment {natural} of {data}"
            )
    return attribute(data, Align(value))


def size(value: int, data: Any) -> Decorated:
    """Force a struct member to occupy exactly ``value`` bytes.

    Raises:
        SchemaError: If the value is smaller than the natural size, or the
            schema is runtime-sized
    """
    natural = size_of(data)
    if natural is None:
        raise SchemaError(f"Cannot set a custom size on runtime-sized {data}")
    if not isinstance(value, int) or value < natural:
        raise SchemaError(
            f"Custom size {value} is smaller than the natural size {natural} of {data}"
        )
    return attribute(data, Size(value))


def location(value: int, data: Any) -> Decorated:
    if not isinstance(value, int) or value < 0:
        raise SchemaError(f"Location must be a non-negative int, got {value}")
    return attribute(data, Location(value))


def interpolate(type_: str, data: Any, sampling: str | None = None) -> Decorated:
    if type_ not in INTERPOLATION_TYPES:
        raise SchemaError(f"Unknown interpolation type: {type_}")
    if sampling is not None and sampling not in INTERPOLATION_SAMPLINGS:
        raise SchemaError(f"Unknown interpolation sampling: {sampling}")
    return attribute(data, Interpolate(type_, sampling))


def builtin(name: str, data: Any) -> Decorated:
    return attribute(data, Builtin(name))


def invariant(data: Any) -> Decorated:
    """Mark a ``position`` builtin as invariant."""
    builtin_attr = data.find(Builtin) if isinstance(data, Decorated) else None
    if builtin_attr is None or builtin_attr.name != "position":
        raise SchemaError("Only the 'position' builtin can be invariant")
    return attribute(data, Invariant())


def is_builtin(data: Any) -> bool:
    return isinstance(data, Decorated) and data.find(Builtin) is not None
