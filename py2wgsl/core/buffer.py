"""
Buffers and their usages in shader code.

A buffer here is metadata only: a schema and a label. Creating GPU objects
belongs to the application. Each usage resolves to a module-level binding
declaration and records what the bind group layout has to provide.
"""

from typing import TYPE_CHECKING, Any

from loguru import logger

from py2wgsl.core.vertex_layout import VertexLayout
from py2wgsl.data.array import is_runtime_sized
from py2wgsl.data.layout import size_of
from py2wgsl.data.serialization import to_bytes
from py2wgsl.errors import NotInResolutionError, SchemaError
from py2wgsl.types import Resolvable

if TYPE_CHECKING:
    from py2wgsl.resolution.context import ResolutionCtx

ADDRESS_SPACES = {
    "uniform": "uniform",
    "readonly": "storage, read",
    "mutable": "storage, read_write",
}


class Buffer:
    """Schema and label of a GPU buffer.

    Usages are created once per kind, so the same usage object, and thus the
    same binding, is returned on every call.
    """

    def __init__(self, schema: Any, label: str | None = None):
        self.schema = schema
        self.label = label
        self._usages: dict[str, Any] = {}

    @property
    def size(self) -> int | None:
        """Byte size of the schema, None when runtime-sized."""
        return size_of(self.schema)

    def serialize(self, value: Any) -> bytes:
        """Bytes to upload so the shader reads ``value``."""
        return to_bytes(self.schema, value)

    def _usage(self, usage: str) -> "BufferUsage":
        if usage not in self._usages:
            self._usages[usage] = BufferUsage(self, usage)
        return self._usages[usage]

    def as_uniform(self) -> "BufferUsage":
        return self._usage("uniform")

    def as_readonly(self) -> "BufferUsage":
        return self._usage("readonly")

    def as_mutable(self) -> "BufferUsage":
        return self._usage("mutable")

    def as_vertex(self, step_mode: str = "vertex") -> "VertexUsage":
        key = f"vertex:{step_mode}"
        if key not in self._usages:
            self._usages[key] = VertexUsage(self, step_mode)
        return self._usages[key]

    def __repr__(self) -> str:
        return f"Buffer({self.label or '<unnamed>'}, {self.schema})"


class BufferUsage(Resolvable):
    """A uniform or storage view of a buffer.

    Inside shader code, ``usage.value`` (or the usage itself) refers to the
    bound variable.
    """

    def __init__(self, buffer: Buffer, usage: str):
        if usage == "uniform" and is_runtime_sized(buffer.schema):
            raise SchemaError(
                f"Runtime-sized schema of {buffer} cannot be used as a uniform"
            )
        super().__init__(buffer.label)
        self.buffer = buffer
        self.usage = usage
        self.kind = usage

    @property
    def data_type(self) -> Any:
        return self.buffer.schema

    @property
    def value(self) -> Any:
        raise NotInResolutionError(f"Value of {self}")

    def resolve(self, ctx: "ResolutionCtx") -> str:
        type_name = ctx.resolve(self.buffer.schema)
        name = ctx.names.make_unique(self.label, True)
        info = ctx.reserve_binding(self.usage, self.buffer.schema, name)
        ctx.add_declaration(
            f"@group({info.group}) @binding({info.index}) "
            f"var<{ADDRESS_SPACES[self.usage]}> {name}: {type_name};"
        )
        logger.debug(f"Bound {self} at group {info.group}, binding {info.index}")
        return name


class VertexUsage(Resolvable):
    """A buffer read as vertex attributes.

    Resolving it only records its layout; vertex data reaches the shader
    through the entry point's inputs.
    """

    kind = "vertex"

    def __init__(self, buffer: Buffer, step_mode: str):
        super().__init__(buffer.label)
        self.buffer = buffer
        self.layout = VertexLayout(buffer.schema, step_mode, buffer.label)

    def resolve(self, ctx: "ResolutionCtx") -> str:
        ctx.register_vertex_layout(self.layout)
        return ctx.names.make_unique(self.label, True)


def buffer(schema: Any, label: str | None = None) -> Buffer:
    return Buffer(schema, label)
