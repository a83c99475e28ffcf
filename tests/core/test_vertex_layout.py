"""Tests for vertex layouts and their connection to vertex shader inputs."""

import pytest

from py2wgsl import buffer, builtin, connect_attributes_to_shader, resolve, vertex_layout
from py2wgsl.core.vertex_layout import (
    VertexAttrib,
    VertexAttributeDefinition,
    VertexBufferDefinition,
    vertex_format_of,
)
from py2wgsl.data import (
    array_of,
    bool_,
    disarray_of,
    f32,
    i32,
    location,
    unstruct,
    vec2f,
    vec3f,
    vec3h,
    vec4f,
    vec4u,
)
from py2wgsl.data.vertex_format import unorm8x4
from py2wgsl.errors import MissingVertexAttributeError, SchemaError

Vertex = unstruct({"position": vec3f, "color": unorm8x4}, label="Vertex")


class TestVertexFormats:
    """Tests for mapping schemas to vertex formats."""

    @pytest.mark.parametrize(
        "schema, expected",
        [
            (f32, "float32"),
            (i32, "sint32"),
            (vec2f, "float32x2"),
            (vec4u, "uint32x4"),
            (unorm8x4, "unorm8x4"),
            (location(2, vec3f), "float32x3"),
        ],
    )
    def test_vertex_format(self, schema, expected):
        """Test the vertex format of attribute schemas."""
        assert vertex_format_of(schema) == expected

    @pytest.mark.parametrize("schema", [vec3h, bool_])
    def test_invalid_vertex_format(self, schema):
        """Test schemas that cannot be read as vertex attributes."""
        with pytest.raises(SchemaError):
            vertex_format_of(schema)


class TestVertexLayout:
    """Tests for layouts of vertex buffers."""

    def test_scalar_element(self):
        """Test a buffer holding one attribute per vertex."""
        layout = vertex_layout(array_of(vec2f))

        assert layout.stride == 8
        assert layout.attrib == VertexAttrib("float32x2", 0, layout)

    def test_record_element(self):
        """Test a packed buffer holding several attributes per vertex."""
        layout = vertex_layout(disarray_of(Vertex))

        assert layout.stride == 16
        assert layout.attrib["position"].format == "float32x3"
        assert layout.attrib["color"].offset == 12

    def test_padded_element(self):
        """Test that non-loose arrays keep their padded stride."""
        layout = vertex_layout(array_of(vec3f), step_mode="instance")

        assert layout.stride == 16
        assert layout.step_mode == "instance"

    def test_unknown_step_mode(self):
        """Test step mode validation."""
        with pytest.raises(SchemaError):
            vertex_layout(array_of(vec2f), step_mode="primitive")


class TestConnectAttributes:
    """Tests for matching attributes to vertex shader inputs."""

    def test_buffers_in_order_of_first_use(self):
        """Test buffer definitions and shader locations."""
        mesh = vertex_layout(disarray_of(Vertex))
        instances = vertex_layout(array_of(vec2f), step_mode="instance")
        shader_in = {
            "idx": builtin.vertex_index,
            "pos": vec3f,
            "color": vec4f,
            "offset": vec2f,
        }

        definitions, layouts = connect_attributes_to_shader(
            shader_in,
            {
                "pos": mesh.attrib["position"],
                "color": mesh.attrib["color"],
                "offset": instances.attrib,
            },
        )

        assert definitions == [
            VertexBufferDefinition(
                16,
                "vertex",
                (
                    VertexAttributeDefinition("float32x3", 0, 0),
                    VertexAttributeDefinition("unorm8x4", 12, 1),
                ),
            ),
            VertexBufferDefinition(
                8, "instance", (VertexAttributeDefinition("float32x2", 0, 2),)
            ),
        ]
        assert layouts[0] is mesh
        assert layouts[1] is instances

    def test_custom_locations(self):
        """Test that custom input locations are passed to the pipeline."""
        layout = vertex_layout(array_of(vec2f))

        definitions, _ = connect_attributes_to_shader(
            {"uv": location(5, vec2f)}, {"uv": layout.attrib}
        )

        assert definitions[0].attributes[0].shader_location == 5

    def test_missing_attribute(self):
        """Test that every non-builtin input needs an attribute."""
        layout = vertex_layout(array_of(vec2f))

        with pytest.raises(MissingVertexAttributeError) as exc_info:
            connect_attributes_to_shader({"a": vec2f, "b": vec2f}, {"a": layout.attrib})

        assert exc_info.value.missing == ["b"]


class TestVertexUsage:
    """Tests for vertex buffer usages in resolution."""

    def test_layout_is_registered(self):
        """Test that resolving a vertex usage records its layout."""
        positions = buffer(array_of(vec2f), label="positions").as_vertex()

        result = resolve(externals={"positions": positions})

        assert result.vertex_layouts == [positions.layout]
        assert result.bindings == []
        assert positions.buffer.as_vertex() is positions
