"""Tests for buffers and their binding declarations."""

import numpy as np
import pytest

from py2wgsl import ResolutionOptions, buffer, fn, resolve
from py2wgsl.data import array_of, f32, mat4x4f, struct, u32, vec3f, vec4f
from py2wgsl.errors import NotInResolutionError, SchemaError
from py2wgsl.resolution.context import BindingInfo

Camera = struct({"view": mat4x4f, "position": vec3f}, label="Camera")


class TestBindings:
    """Tests for uniform and storage usages."""

    def test_binding_declarations(self):
        """Test that usages are declared with increasing binding indices."""
        camera = buffer(Camera, label="camera").as_uniform()
        values = buffer(array_of(f32), label="values").as_readonly()
        counters = buffer(array_of(u32, 4), label="counters").as_mutable()

        result = resolve(externals={"a": camera, "b": values, "c": counters})

        expected = """struct Camera {
  view: mat4x4f,
  position: vec3f,
}

@group(0) @binding(0) var<uniform> camera: Camera;

@group(0) @binding(1) var<storage, read> values: array<f32>;

@group(0) @binding(2) var<storage, read_write> counters: array<u32, 4>;
"""
        assert result.code == expected
        assert result.bindings == [
            BindingInfo(0, 0, "uniform", Camera, "camera"),
            BindingInfo(0, 1, "readonly", array_of(f32), "values"),
            BindingInfo(0, 2, "mutable", array_of(u32, 4), "counters"),
        ]

    def test_binding_group_option(self):
        """Test that the bind group index comes from the options."""
        values = buffer(array_of(f32), label="values").as_readonly()

        result = resolve(
            externals={"values": values}, options=ResolutionOptions(binding_group=2)
        )

        assert result.code.startswith("@group(2) @binding(0)")

    def test_usage_is_bound_once(self):
        """Test that the same usage referenced twice keeps one binding."""
        values = buffer(array_of(f32), label="values").as_readonly()

        assert values is values.buffer.as_readonly()
        result = resolve("A B", {"A": values, "B": values.buffer.as_readonly()})

        assert len(result.bindings) == 1
        assert result.code.endswith("values values\n")

    def test_runtime_sized_uniform(self):
        """Test that uniforms must have a fixed size."""
        with pytest.raises(SchemaError):
            buffer(array_of(f32), label="values").as_uniform()

    def test_usage_in_shader(self):
        """Test reading a uniform from a shader function."""
        camera = buffer(Camera, label="camera").as_uniform()

        @fn([vec4f], vec4f)
        def project(p):
            return camera.value.view * p

        code = resolve(externals={"project": project}).code

        assert "var<uniform> camera: Camera;" in code
        assert "return camera.view * p;" in code

    def test_value_outside_resolution(self):
        """Test that usages only have a value inside shader code."""
        usage = buffer(Camera, label="camera").as_uniform()

        with pytest.raises(NotInResolutionError):
            usage.value


class TestBufferData:
    """Tests for host-side buffer helpers."""

    def test_size(self):
        """Test the byte size of buffer schemas."""
        assert buffer(Camera).size == 80
        assert buffer(array_of(f32)).size is None

    def test_serialize(self):
        """Test that values are serialized with the schema layout."""
        data = buffer(array_of(vec3f, 2)).serialize([(1, 2, 3), (4, 5, 6)])

        values = np.frombuffer(data, dtype="<f4")
        assert values.tolist() == [1, 2, 3, 0, 4, 5, 6, 0]
