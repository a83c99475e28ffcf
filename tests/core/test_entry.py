"""Tests for entry points and IO location assignment."""

import pytest

from py2wgsl import builtin, buffer, compute_fn, fragment_fn, link_stages, resolve, vertex_fn
from py2wgsl.core.entry import assign_locations, match_up_varying_locations
from py2wgsl.data import array_of, f32, location, vec2f, vec3f, vec4f
from py2wgsl.errors import DuplicateLocationError, SchemaError

pytestmark = pytest.mark.codegen


class TestLocations:
    """Tests for numbering IO members."""

    def test_custom_locations_are_kept(self):
        """Test that automatic locations skip custom ones."""
        record = {
            "a": vec2f,
            "b": location(0, vec3f),
            "c": f32,
            "pos": builtin.position,
        }

        assert assign_locations(record) == {"a": 1, "b": 0, "c": 2}

    def test_duplicate_custom_locations(self):
        """Test that two members cannot share a custom location."""
        with pytest.raises(DuplicateLocationError) as exc_info:
            assign_locations({"a": location(1, f32), "b": location(1, vec2f)})

        assert exc_info.value.members == ["a", "b"]

    def test_varyings_follow_vertex_output(self):
        """Test pairing vertex outputs with fragment inputs."""
        vertex_out = {
            "pos": builtin.position,
            "normal": location(3, vec3f),
            "uv": vec2f,
        }
        fragment_in = {"uv": vec2f, "normal": vec3f}

        locations = match_up_varying_locations(vertex_out, fragment_in)

        assert locations == {"normal": 3, "uv": 0}

    def test_fragment_location_is_used_when_vertex_has_none(self):
        """Test that a custom fragment input location applies to both stages."""
        vertex_out = {"pos": builtin.position, "uv": vec2f, "color": vec4f}
        fragment_in = {"color": location(0, vec4f)}

        locations = match_up_varying_locations(vertex_out, fragment_in)

        assert locations == {"color": 0, "uv": 1}

    def test_mismatched_locations_warn(self, log_messages):
        """Test that the vertex location wins over a different fragment one."""
        vertex_out = {"pos": builtin.position, "normal": location(1, vec3f)}
        fragment_in = {"normal": location(2, vec3f)}

        locations = match_up_varying_locations(vertex_out, fragment_in)

        assert locations == {"normal": 1}
        assert any("Mismatched location" in m for m in log_messages)


class TestVertexFragment:
    """Tests for generated vertex and fragment entry points."""

    def test_vertex_entry(self):
        """Test IO structs and the Out constructor of a vertex entry point."""

        @vertex_fn(
            in_={"idx": builtin.vertex_index},
            out={"pos": builtin.position, "uv": vec2f},
        )
        def main_vert(input):
            uv = vec2f(0.0, 1.0)
            return Out(pos=vec4f(0.0, 0.0, 0.0, 1.0), uv=uv)  # noqa: F821

        result = resolve(externals={"main_vert": main_vert})

        expected = """struct main_vert_Input {
  @builtin(vertex_index) idx: u32,
}

struct main_vert_Output {
  @builtin(position) pos: vec4f,
  @location(0) uv: vec2f,
}

@vertex fn main_vert(input: main_vert_Input) -> main_vert_Output {
  let uv = vec2f(0.0, 1.0);
  return main_vert_Output(vec4f(0.0, 0.0, 0.0, 1.0), uv);
}
"""
        assert result.code == expected

    def test_fragment_single_output(self):
        """Test that a single fragment output gets location 0."""

        @fragment_fn(in_={"uv": vec2f}, out=vec4f)
        def main_frag(input):
            return vec4f(input.uv, 0.0, 1.0)

        result = resolve(externals={"main_frag": main_frag})

        expected = """struct main_frag_Input {
  @location(0) uv: vec2f,
}

@fragment fn main_frag(input: main_frag_Input) -> @location(0) vec4f {
  return vec4f(input.uv, 0.0, 1.0);
}
"""
        assert result.code == expected

    def test_resolution_leaves_entry_unchanged(self):
        """Test that resolving an entry point twice gives the same code."""

        @fragment_fn(in_={"uv": vec2f}, out=vec4f)
        def shade(input):
            return vec4f(input.uv, 0.0, 1.0)

        first = resolve(externals={"shade": shade}).code
        second = resolve(externals={"shade": shade}).code

        assert first == second
        assert shade.arg_types == []
        assert shade.return_type is None

    def test_linked_stages_share_locations(self):
        """Test that linked stages declare matching varying locations."""
        vertex = vertex_fn(
            out={"pos": builtin.position, "color": vec4f, "uv": vec2f}
        )("() -> Out { return Out(); }", label="vs")
        fragment = fragment_fn(in_={"uv": vec2f}, out=vec4f)(
            "(input: In) -> @location(0) vec4f { return vec4f(input.uv, 0.0, 1.0); }",
            label="fs",
        )

        locations = link_stages(vertex, fragment)
        code = resolve(externals={"vs": vertex, "fs": fragment}).code

        assert locations == {"color": 0, "uv": 1}
        assert "@location(1) uv: vec2f," in code
        assert code.count("@location(1) uv: vec2f,") == 2
        assert "@fragment fn fs(input: fs_Input) -> @location(0) vec4f {" in code

    def test_vertex_output_required(self):
        """Test that a vertex entry point needs outputs."""
        with pytest.raises(SchemaError):
            vertex_fn(out={})

    def test_duplicate_output_locations(self):
        """Test that invalid IO records fail when the entry point is created."""
        shell = vertex_fn(out={"a": location(0, vec4f), "b": location(0, vec4f)})

        with pytest.raises(DuplicateLocationError):
            shell("() -> Out { return Out(); }")


class TestCompute:
    """Tests for compute entry points."""

    def test_compute_entry(self):
        """Test workgroup size, builtin inputs and storage access."""
        values = buffer(array_of(f32), label="values").as_mutable()

        @compute_fn(in_={"gid": builtin.global_invocation_id}, workgroup_size=(64,))
        def main_comp(input):
            i = input.gid.x
            if i < len(values.value):
                values.value[i] = values.value[i] * 2.0

        result = resolve(externals={"main_comp": main_comp})

        expected = """struct main_comp_Input {
  @builtin(global_invocation_id) gid: vec3u,
}

@group(0) @binding(0) var<storage, read_write> values: array<f32>;

@compute @workgroup_size(64, 1, 1) fn main_comp(input: main_comp_Input) {
  let i = input.gid.x;
  if (i < arrayLength(&values)) {
    values[i] = values[i] * 2.0;
  }
}
"""
        assert result.code == expected

    def test_compute_inputs_must_be_builtins(self):
        """Test that compute entry points only take builtin inputs."""
        with pytest.raises(SchemaError):
            compute_fn(in_={"value": f32})("(input: In) {}")

    @pytest.mark.parametrize("size", [(), (0,), (1, 2, 3, 4)])
    def test_invalid_workgroup_size(self, size):
        """Test workgroup size validation."""
        with pytest.raises(SchemaError):
            compute_fn(workgroup_size=size)("() {}")
