"""
Vertex layouts and their connection to vertex shader inputs.

A vertex layout describes how one vertex buffer is read: its stride, step
mode and the format and offset of each attribute. Connecting attributes to a
vertex entry point's input record produces the buffer descriptors a render
pipeline needs, with shader locations matching the generated input struct.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from py2wgsl.core.entry import assign_locations
from py2wgsl.data.array import WgslArray, array_of
from py2wgsl.data.decorated import undecorate
from py2wgsl.data.layout import element_stride, offsets_of
from py2wgsl.data.loose import Disarray, Unstruct, disarray_of, is_loose
from py2wgsl.data.numeric import Scalar
from py2wgsl.data.struct import WgslStruct
from py2wgsl.data.vector import Vector
from py2wgsl.data.vertex_format import VertexFormat
from py2wgsl.errors import MissingVertexAttributeError, SchemaError

STEP_MODES = ("vertex", "instance")

FORMAT_KINDS = {"f32": "float32", "f16": "float16", "i32": "sint32", "u32": "uint32"}


def vertex_format_of(schema: Any) -> str:
    """WebGPU vertex format of an attribute schema.

    Raises:
        SchemaError: If the schema cannot be read as a vertex attribute
    """
    schema = undecorate(schema)
    if isinstance(schema, VertexFormat):
        return schema.type
    if isinstance(schema, Scalar) and schema.type in FORMAT_KINDS:
        return FORMAT_KINDS[schema.type]
    if isinstance(schema, Vector) and schema.primitive.type in FORMAT_KINDS:
        if schema.primitive.type == "f16" and schema.count == 3:
            raise SchemaError("vec3h has no vertex format, use vec4h or float16x4")
        return f"{FORMAT_KINDS[schema.primitive.type]}x{schema.count}"
    raise SchemaError(f"{schema} cannot be used as a vertex attribute")


@dataclass(frozen=True)
class VertexAttrib:
    """One attribute of a vertex layout.

    Attributes:
        format: WebGPU vertex format
        offset: Byte offset inside one vertex
        layout: Layout the attribute belongs to
    """

    format: str
    offset: int
    layout: "VertexLayout" = field(compare=False, repr=False)


@dataclass(frozen=True)
class VertexAttributeDefinition:
    format: str
    offset: int
    shader_location: int


@dataclass(frozen=True)
class VertexBufferDefinition:
    """Descriptor of one vertex buffer slot of a render pipeline."""

    array_stride: int
    step_mode: str
    attributes: tuple[VertexAttributeDefinition, ...]


class VertexLayout:
    """How the elements of an array schema are read as vertices.

    Attributes:
        element: Schema of one vertex
        step_mode: ``vertex`` or ``instance``
        stride: Bytes between consecutive vertices
        attrib: A VertexAttrib for a scalar/vector element, or a dict of them
            by member name for a record element
    """

    def __init__(self, schema: Any, step_mode: str = "vertex", label: str | None = None):
        if step_mode not in STEP_MODES:
            raise SchemaError(f"Unknown step mode '{step_mode}', expected one of {STEP_MODES}")
        self.label = label
        self.step_mode = step_mode
        inner = undecorate(schema)
        if isinstance(inner, (WgslArray, Disarray)):
            self.element = inner.element
            array = inner
        else:
            self.element = schema
            array = disarray_of(schema, 1) if is_loose(schema) else array_of(schema, 1)
        self.stride = element_stride(array)
        self.attrib = self._attributes()

    def _attributes(self) -> VertexAttrib | dict[str, VertexAttrib]:
        element = undecorate(self.element)
        if isinstance(element, (WgslStruct, Unstruct)):
            offsets = offsets_of(element)
            return {
                key: VertexAttrib(vertex_format_of(schema), offsets[key].offset, self)
                for key, schema in element.props.items()
            }
        return VertexAttrib(vertex_format_of(element), 0, self)

    def __repr__(self) -> str:
        return f"VertexLayout({self.label or self.element}, {self.step_mode}, stride={self.stride})"


def vertex_layout(schema: Any, step_mode: str = "vertex", label: str | None = None) -> VertexLayout:
    """Describe how a vertex buffer holding ``schema`` is read.

    Args:
        schema: Array (or loose array) of vertices, or the schema of one vertex
        step_mode: Advance per ``vertex`` or per ``instance``
        label: Name used in logs and errors
    """
    return VertexLayout(schema, step_mode, label)


def connect_attributes_to_shader(
    shader_in: Mapping[str, Any], attributes: Mapping[str, VertexAttrib]
) -> tuple[list[VertexBufferDefinition], list[VertexLayout]]:
    """Match vertex attributes to the inputs of a vertex entry point.

    Args:
        shader_in: Input record of the vertex entry point
        attributes: Attribute supplied for each input, by input key

    Returns:
        Tuple containing:
        - One buffer definition per layout, in order of first use
        - The layouts themselves, in the same order

    Raises:
        MissingVertexAttributeError: If an input has no matching attribute
    """
    locations = assign_locations(shader_in)
    missing = [key for key in locations if key not in attributes]
    if missing:
        raise MissingVertexAttributeError(missing)

    layouts: list[VertexLayout] = []
    per_layout: dict[int, list[VertexAttributeDefinition]] = {}
    for key, location in locations.items():
        attrib = attributes[key]
        if all(existing is not attrib.layout for existing in layouts):
            layouts.append(attrib.layout)
            per_layout[id(attrib.layout)] = []
        per_layout[id(attrib.layout)].append(
            VertexAttributeDefinition(attrib.format, attrib.offset, location)
        )

    definitions = [
        VertexBufferDefinition(
            layout.stride, layout.step_mode, tuple(per_layout[id(layout)])
        )
        for layout in layouts
    ]
    logger.debug(f"Connected {len(locations)} vertex attributes from {len(layouts)} layouts")
    return definitions, layouts
