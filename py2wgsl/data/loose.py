"""Loose schemas: arrays and records without implicit padding.

Loose data describes tightly packed vertex buffers. Un-decorated members are
byte aligned; ``align`` and ``size`` decorations still apply.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from py2wgsl.data.array import check_element
from py2wgsl.data.decorated import undecorate
from py2wgsl.data.struct import check_props, member_attributes
from py2wgsl.data.vertex_format import VertexFormat
from py2wgsl.types import Resolvable

if TYPE_CHECKING:
    from py2wgsl.resolution.context import ResolutionCtx


@dataclass(frozen=True)
class Disarray:
    """Loose counterpart of an array."""

    element: Any
    count: int

    def __str__(self) -> str:
        return f"disarray<{self.element}, {self.count}>"

    __repr__ = __str__


class Unstruct(Resolvable):
    """Loose counterpart of a struct.

    When referenced from shader code it is declared as a regular WGSL struct
    of the types the shader sees, without layout attributes.
    """

    kind = "unstruct"

    def __init__(self, props: Mapping[str, Any], label: str | None = None):
        super().__init__(label)
        self.props = check_props(props, "unstruct")

    @property
    def data_type(self) -> "Unstruct":
        return self

    def resolve(self, ctx: "ResolutionCtx") -> str:
        name = ctx.names.make_unique(self.label, True)
        fields = "\n".join(
            f"  {member_attributes(schema, include_layout=False)}"
            f"{prop}: {ctx.resolve(schema)},"
            for prop, schema in self.props.items()
        )
        ctx.add_declaration(f"struct {name} {{\n{fields}\n}}")
        return name


def disarray_of(element: Any, count: int = 0) -> Disarray:
    """Create a loose array schema, with elements packed back to back."""
    check_element(element, count, "disarray")
    return Disarray(element, count)


def unstruct(props: Mapping[str, Any], label: str | None = None) -> Unstruct:
    """Create a loose record schema, with members packed back to back."""
    return Unstruct(props, label)


def is_loose(schema: Any) -> bool:
    return isinstance(undecorate(schema), (Disarray, Unstruct, VertexFormat))
