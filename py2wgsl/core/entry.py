"""
Entry point functions for the vertex, fragment and compute stages.

Entry points take their inputs as one IO struct, and vertex/fragment entry
points return one IO struct. The records given to the shells become these
structs with ``@location`` assigned to every member that is not a builtin.
Inside a Python implementation the structs are available as ``In`` and
``Out``::

    @vertex_fn(in_={"idx": builtin.vertex_index}, out={"pos": builtin.position})
    def main_vert(input):
        return Out(pos=vec4f(0.0, 0.0, 0.0, 1.0))
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from loguru import logger

from py2wgsl.core.function import Implementation, WgslFn
from py2wgsl.data.attributes import attribute, is_builtin
from py2wgsl.data.decorated import Decorated, Location
from py2wgsl.data.struct import WgslStruct
from py2wgsl.errors import DuplicateLocationError, SchemaError

if TYPE_CHECKING:
    from py2wgsl.resolution.context import ResolutionCtx

IORecord = Mapping[str, Any]


def custom_location(schema: Any) -> int | None:
    """Location set explicitly with ``location(...)``, if any."""
    if isinstance(schema, Decorated):
        found = schema.find(Location)
        if found is not None:
            return found.value
    return None


def check_locations(record: IORecord) -> None:
    """Raise DuplicateLocationError when two members share a custom location."""
    seen: dict[int, list[str]] = {}
    for key, schema in record.items():
        value = custom_location(schema)
        if value is not None:
            seen.setdefault(value, []).append(key)
    for value, members in seen.items():
        if len(members) > 1:
            raise DuplicateLocationError(value, members)


def assign_locations(
    record: IORecord, locations: Mapping[str, int] | None = None
) -> dict[str, int]:
    """Location of every non-builtin member of an IO record.

    Custom locations are kept. The rest get the location from ``locations``
    when present, otherwise the lowest location not taken yet, in member
    order.

    Raises:
        DuplicateLocationError: If two members share a custom location
    """
    check_locations(record)
    preset = dict(locations or {})
    assigned: dict[str, int] = {}
    for key, schema in record.items():
        value = custom_location(schema)
        if value is not None:
            assigned[key] = value
        elif key in preset and not is_builtin(schema):
            assigned[key] = preset[key]

    used = set(assigned.values())
    next_location = 0
    for key, schema in record.items():
        if is_builtin(schema) or key in assigned:
            continue
        while next_location in used:
            next_location += 1
        assigned[key] = next_location
        used.add(next_location)
    return {key: assigned[key] for key in record if key in assigned}


def io_struct(
    record: IORecord, label: str, locations: Mapping[str, int] | None = None
) -> WgslStruct:
    """Build an entry point IO struct, adding ``@location`` where missing."""
    assigned = assign_locations(record, locations)
    members = {}
    for key, schema in record.items():
        if key in assigned and custom_location(schema) is None:
            schema = attribute(schema, Location(assigned[key]))
        members[key] = schema
    return WgslStruct(members, label)


def match_up_varying_locations(
    vertex_out: IORecord,
    fragment_in: IORecord | None,
    vertex_name: str = "<unnamed>",
    fragment_name: str = "<unnamed>",
) -> dict[str, int]:
    """Pair vertex outputs with fragment inputs of the same key.

    Custom locations are respected; when both stages set a different one for
    the same key, the vertex output's wins and a warning is logged. Remaining
    non-builtin outputs get the lowest free locations.

    Returns:
        Location of every non-builtin varying, by key
    """
    locations: dict[str, int] = {}
    for key, schema in vertex_out.items():
        value = custom_location(schema)
        if value is not None:
            locations[key] = value

    for key, schema in (fragment_in or {}).items():
        value = custom_location(schema)
        if value is None:
            continue
        if key not in locations:
            locations[key] = value
        elif locations[key] != value:
            logger.warning(
                f"Mismatched location between {vertex_name} output "
                f"({locations[key]}) and {fragment_name} input ({value}) for "
                f"'{key}', using the vertex output location"
            )

    used = set(locations.values())
    next_location = 0
    for key, schema in vertex_out.items():
        if is_builtin(schema) or key in locations:
            continue
        while next_location in used:
            next_location += 1
        locations[key] = next_location
        used.add(next_location)
    return locations


class EntryFn(WgslFn):
    """An entry point. Subclasses set the stage and its IO structs.

    Attributes:
        varying_locations: Locations of inter-stage members, set by
            ``link_stages``; members not listed are numbered automatically
    """

    stage = ""

    def __init__(
        self,
        in_: IORecord | None,
        out: Any,
        implementation: Implementation,
        label: str | None = None,
    ):
        super().__init__([], None, implementation, label)
        self.in_ = dict(in_ or {})
        self.out = out
        self.varying_locations: dict[str, int] = {}
        check_locations(self.in_)
        if isinstance(out, Mapping):
            check_locations(out)

    def io_types(self) -> tuple[Any, Any]:
        """Input struct (or None) and output schema (or None)."""
        stem = self.label or self.stage
        input_type = None
        if self.in_:
            input_type = io_struct(self.in_, f"{stem}_Input", self.input_locations)
        output_type = self.out
        if isinstance(self.out, Mapping):
            output_type = io_struct(self.out, f"{stem}_Output", self.output_locations)
        return input_type, output_type

    @property
    def input_locations(self) -> dict[str, int]:
        return {}

    @property
    def output_locations(self) -> dict[str, int]:
        return {}

    def attributes(self, ctx: "ResolutionCtx") -> str:
        return f"@{self.stage} "

    def resolve(self, ctx: "ResolutionCtx") -> str:
        input_type, output_type = self.io_types()
        arg_types = [input_type] if input_type is not None else []
        io = {"In": input_type, "Out": output_type}
        externals = {k: v for k, v in io.items() if isinstance(v, WgslStruct)}
        externals.update(self.externals)
        return self._declare(ctx, arg_types, output_type, externals)


class VertexFn(EntryFn):
    stage = "vertex"

    @property
    def output_locations(self) -> dict[str, int]:
        return self.varying_locations


class FragmentFn(EntryFn):
    stage = "fragment"

    @property
    def input_locations(self) -> dict[str, int]:
        return self.varying_locations

    def return_text(self, ctx: "ResolutionCtx", return_type: Any) -> str:
        if return_type is None or isinstance(return_type, WgslStruct):
            return super().return_text(ctx, return_type)
        if is_builtin(return_type) or custom_location(return_type) is not None:
            attribs = " ".join(str(a) for a in return_type.attribs)
            return f" -> {attribs} {ctx.resolve(return_type)}"
        return f" -> @location(0) {ctx.resolve(return_type)}"


class ComputeFn(EntryFn):
    stage = "compute"

    def __init__(
        self,
        in_: IORecord | None,
        workgroup_size: Sequence[int],
        implementation: Implementation,
        label: str | None = None,
    ):
        super().__init__(in_, None, implementation, label)
        non_builtins = [key for key, s in self.in_.items() if not is_builtin(s)]
        if non_builtins:
            raise SchemaError(
                f"Compute entry inputs must be builtins, got {', '.join(non_builtins)}"
            )
        size = list(workgroup_size)
        if not 1 <= len(size) <= 3 or any(v < 1 for v in size):
            raise SchemaError(f"Invalid workgroup size: {workgroup_size}")
        self.workgroup_size = tuple(size + [1] * (3 - len(size)))

    def attributes(self, ctx: "ResolutionCtx") -> str:
        x, y, z = self.workgroup_size
        return f"@compute @workgroup_size({x}, {y}, {z}) "


def link_stages(vertex: VertexFn, fragment: FragmentFn) -> dict[str, int]:
    """Give the varyings of a vertex/fragment pair matching locations."""
    out = vertex.out if isinstance(vertex.out, Mapping) else {}
    locations = match_up_varying_locations(
        out, fragment.in_, str(vertex), str(fragment)
    )
    vertex.varying_locations = locations
    fragment.varying_locations = locations
    return locations


class _EntryShell:
    def __init__(self, factory: Any, *args: Any):
        self.factory = factory
        self.args = args

    def __call__(self, implementation: Implementation, label: str | None = None) -> EntryFn:
        return self.factory(*self.args, implementation, label)


def vertex_fn(in_: IORecord | None = None, *, out: IORecord) -> _EntryShell:
    """Shell of a vertex entry point.

    Raises:
        SchemaError: If the output record is empty
    """
    if not out:
        raise SchemaError("A vertex entry point needs at least one output")
    return _EntryShell(VertexFn, in_, out)


def fragment_fn(in_: IORecord | None = None, *, out: Any) -> _EntryShell:
    """Shell of a fragment entry point; ``out`` is a record or a single schema."""
    return _EntryShell(FragmentFn, in_, out)


def compute_fn(
    in_: IORecord | None = None, *, workgroup_size: Sequence[int] = (1,)
) -> _EntryShell:
    return _EntryShell(ComputeFn, in_, workgroup_size)
