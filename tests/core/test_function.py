"""Tests for shader function shells and implementations."""

import pytest

from py2wgsl import const, fn, resolve, slot
from py2wgsl.data import f32, vec2f, vec3f
from py2wgsl.errors import GenerationError

pytestmark = pytest.mark.codegen


class TestRawImplementation:
    """Tests for functions implemented in WGSL text."""

    def test_types_filled_from_shell(self):
        """Test that untyped parameters and the return type come from the shell."""
        factor = const(f32, 2.5, label="factor")
        scale = fn([f32], f32)("(x) { return x * FACTOR; }", label="scale").uses(
            {"FACTOR": factor}
        )

        result = resolve(externals={"scale": scale})

        expected = """const factor: f32 = 2.5f;

fn scale(x: f32) -> f32 { return x * factor; }
"""
        assert result.code == expected

    def test_explicit_signature_is_kept(self):
        """Test that a fully typed raw signature is used as written."""
        length2 = fn([vec2f], f32)(
            "(v: vec2f) -> f32 {\n  return dot(v, v);\n}", label="length2"
        )

        result = resolve(externals={"length2": length2})

        assert result.code == "fn length2(v: vec2f) -> f32 {\n  return dot(v, v);\n}\n"

    def test_parameter_count_mismatch(self):
        """Test that the raw parameter list must match the shell."""
        broken = fn([f32, f32], f32)("(x) { return x; }", label="broken")

        with pytest.raises(GenerationError):
            resolve(externals={"broken": broken})

    def test_missing_parameter_list(self):
        """Test that raw text must start at the parameter list."""
        broken = fn([], f32)("{ return 1.0; }", label="broken")

        with pytest.raises(GenerationError) as exc_info:
            resolve(externals={"broken": broken})

        assert "parameter list" in str(exc_info.value)

    def test_raw_template_usage(self):
        """Test calling a resolved function from a template."""
        scale = fn([f32], f32)("(x) { return x * 2.0; }", label="scale")

        result = resolve("let y = SCALE(1.0);", {"SCALE": scale})

        assert result.code.endswith("\n\nlet y = scale(1.0);\n")


class TestPythonImplementation:
    """Tests for functions implemented in Python."""

    def test_label_defaults_to_function_name(self):
        """Test that the Python name labels the declaration."""

        @fn([vec3f], vec3f)
        def brighten(color):
            return color * 1.5

        assert brighten.label == "brighten"
        assert resolve(externals={"f": brighten}).code.startswith("fn brighten(")

    def test_uses_shadows_globals(self):
        """Test that uses() mappings win over closure variables."""
        gain = 2.0

        @fn([f32], f32)
        def amplify(x):
            return x * gain

        amplify.uses({"gain": 3.0})

        assert "return x * 3.0;" in resolve(externals={"f": amplify}).code

    def test_argument_count_mismatch(self):
        """Test that the implementation must take the declared arguments."""

        @fn([f32], f32)
        def add(a, b):
            return a + b

        with pytest.raises(GenerationError) as exc_info:
            resolve(externals={"add": add})

        assert "declares 1 arguments" in str(exc_info.value)

    def test_without_return_type(self):
        """Test that functions without a return type have no arrow."""
        counter = slot(0, label="counter")

        @fn([])
        def noop():
            pass

        code = resolve(externals={"f": noop.with_(counter, 1)}).code

        assert code == "fn noop() {\n}\n"
