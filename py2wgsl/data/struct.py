"""Struct schemas."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from loguru import logger

from py2wgsl.data.array import is_runtime_sized
from py2wgsl.data.decorated import Align, Decorated, Size, undecorate
from py2wgsl.errors import SchemaError
from py2wgsl.types import Resolvable

if TYPE_CHECKING:
    from py2wgsl.resolution.context import ResolutionCtx


def check_props(props: Mapping[str, Any], container: str) -> dict[str, Any]:
    """Validate member schemas of a record and return them as a plain dict.

    Raises:
        SchemaError: If the record is empty or its runtime-sized data is
            anything but a trailing array
    """
    from py2wgsl.data.loose import Unstruct

    if not props:
        raise SchemaError(f"A {container} needs at least one member")
    members = dict(props)
    names = list(members)
    for i, name in enumerate(names):
        if not name.isidentifier():
            raise SchemaError(f"Invalid {container} member name: {name!r}")
        if is_runtime_sized(members[name]) and i != len(names) - 1:
            raise SchemaError(
                f"Runtime-sized member '{name}' must be the last member of the "
                f"{container}"
            )
        if is_runtime_sized(members[name]) and isinstance(
            undecorate(members[name]), (WgslStruct, Unstruct)
        ):
            raise SchemaError(
                f"Member '{name}' is a runtime-sized record, only a runtime-sized "
                f"array may end a {container}"
            )
    return members


def member_attributes(schema: Any, include_layout: bool = True) -> str:
    """Render the attribute prefix of a struct member or IO parameter."""
    if not isinstance(schema, Decorated):
        return ""
    attribs = [
        str(a)
        for a in schema.attribs
        if include_layout or not isinstance(a, (Align, Size))
    ]
    return "".join(f"{a} " for a in attribs)


class WgslStruct(Resolvable):
    """Record with an ordered mapping of member name to schema.

    Member declaration order is significant and preserved. Structs compare by
    identity: two structs with the same members are distinct types.
    """

    kind = "struct"

    def __init__(self, props: Mapping[str, Any], label: str | None = None):
        super().__init__(label)
        self.props = check_props(props, "struct")

    @property
    def data_type(self) -> "WgslStruct":
        return self

    def resolve(self, ctx: "ResolutionCtx") -> str:
        name = ctx.names.make_unique(self.label, True)
        fields = "\n".join(
            f"  {member_attributes(schema)}{prop}: {ctx.resolve(schema)},"
            for prop, schema in self.props.items()
        )
        ctx.add_declaration(f"struct {name} {{\n{fields}\n}}")
        logger.debug(f"Declared struct {name} with members {list(self.props)}")
        return name

    def __call__(self, **values: Any) -> dict[str, Any]:
        """Build a host-side value, checking that every member is present."""
        missing = [prop for prop in self.props if prop not in values]
        if missing:
            raise ValueError(f"Missing members for {self}: {', '.join(missing)}")
        return {prop: values[prop] for prop in self.props}


def struct(props: Mapping[str, Any], label: str | None = None) -> WgslStruct:
    """Create a struct schema.

    Args:
        props: Ordered mapping of member name to member schema
        label: Name primer used when the struct is declared in WGSL

    Raises:
        SchemaError: If a runtime-sized array is not the last member
    """
    return WgslStruct(props, label)
