"""Attribute records and the decorated wrapper schema.

Constructors that validate attributes against the layout of the wrapped
schema live in :mod:`py2wgsl.data.attributes`.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Align:
    value: int

    def __str__(self) -> str:
        return f"@align({self.value})"


@dataclass(frozen=True)
class Size:
    value: int

    def __str__(self) -> str:
        return f"@size({self.value})"


@dataclass(frozen=True)
class Location:
    value: int

    def __str__(self) -> str:
        return f"@location({self.value})"


@dataclass(frozen=True)
class Interpolate:
    type: str
    sampling: str | None = None

    def __str__(self) -> str:
        if self.sampling:
            return f"@interpolate({self.type}, {self.sampling})"
        return f"@interpolate({self.type})"


@dataclass(frozen=True)
class Builtin:
    name: str

    def __str__(self) -> str:
        return f"@builtin({self.name})"


@dataclass(frozen=True)
class Invariant:
    def __str__(self) -> str:
        return "@invariant"


Attribute = Align | Size | Location | Interpolate | Builtin | Invariant


@dataclass(frozen=True)
class Decorated:
    """A schema together with an ordered tuple of attributes.

    Attributes are kept outermost-first: decorating an already decorated
    schema prepends the new attribute.
    """

    inner: Any
    attribs: tuple[Attribute, ...]

    def find(self, kind: type) -> Any | None:
        """Return the first attribute of the given class, or None."""
        return next((a for a in self.attribs if isinstance(a, kind)), None)

    def __str__(self) -> str:
        attribs = " ".join(str(a) for a in self.attribs)
        return f"{attribs} {self.inner}"

    __repr__ = __str__


def undecorate(schema: Any) -> Any:
    """Strip every decoration layer from a schema."""
    while isinstance(schema, Decorated):
        schema = schema.inner
    return schema

