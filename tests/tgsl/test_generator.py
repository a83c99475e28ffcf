"""Tests for WGSL generated from Python function bodies."""

import math

import pytest

from py2wgsl import comptime, fn, resolve, std
from py2wgsl.data import array_of, f16, f32, i32, struct, u32, vec2f, vec3f, vec4f
from py2wgsl.errors import ExtensionNotEnabledError, GenerationError, UnknownBuiltinError

pytestmark = pytest.mark.codegen

Light = struct({"color": vec3f, "power": f32}, label="Light")


def resolve_code(item, **options):
    """Resolve a single item and return the WGSL document."""
    return resolve(externals={"item": item}, **options).code


class TestDeclarations:
    """Tests for let/var declarations and literal typing."""

    def test_let_and_var(self):
        """Test that reassigned locals become var and the rest let."""

        @fn([f32, f32], f32)
        def blend(a, b):
            t = a * 0.5
            result = t + b
            result += 1.0
            return result

        expected = """fn blend(a: f32, b: f32) -> f32 {
  let t = a * 0.5;
  var result = t + b;
  result += 1.0f;
  return result;
}
"""
        assert resolve_code(blend) == expected

    def test_annotated_declarations(self):
        """Test that annotations fix the type of literal initializers."""

        @fn([], f32)
        def constants():
            y: f32 = 1
            z: float = 2
            count = 0
            count = 3
            return y + z

        expected = """fn constants() -> f32 {
  let y: f32 = 1f;
  let z: f32 = 2f;
  var count = 0;
  count = 3i;
  return y + z;
}
"""
        assert resolve_code(constants) == expected

    def test_reserved_local_name(self):
        """Test that locals named like WGSL keywords are renamed."""

        @fn([f32], f32)
        def twice(x):
            loop = x * 2.0
            return loop

        expected = """fn twice(x: f32) -> f32 {
  let loop_1 = x * 2.0;
  return loop_1;
}
"""
        assert resolve_code(twice) == expected

    def test_returned_literal_gets_suffix(self):
        """Test that abstract literals take the declared return type."""

        @fn([], u32)
        def one():
            return 1

        assert "return 1u;" in resolve_code(one)

    def test_assigning_to_parameter(self):
        """Test that parameters are immutable."""

        @fn([f32], f32)
        def bump(x):
            x = x + 1.0
            return x

        with pytest.raises(GenerationError) as exc_info:
            resolve_code(bump)

        assert "Cannot assign to parameter 'x'" in str(exc_info.value)


class TestControlFlow:
    """Tests for if, for and while statements."""

    def test_if_elif_else(self):
        """Test chained conditions and conditional expressions."""

        @fn([f32], f32)
        def classify(x):
            if x < 0.0:
                return -1.0
            elif x > 1.0 and x < 2.0:
                return 1.0
            else:
                return 0.5 if x > 0.5 else 0.0

        expected = """fn classify(x: f32) -> f32 {
  if (x < 0.0) {
    return -1.0f;
  } else if (x > 1.0 && x < 2.0) {
    return 1.0f;
  } else {
    return select(0.0, 0.5, x > 0.5);
  }
}
"""
        assert resolve_code(classify) == expected

    def test_range_loop_takes_bound_type(self):
        """Test that the loop counter matches the kind of its bound."""

        @fn([u32], u32)
        def total(n):
            acc: u32 = 0
            for i in range(n):
                acc += i
            return acc

        expected = """fn total(n: u32) -> u32 {
  var acc: u32 = 0u;
  for (var i = 0u; i < n; i += 1u) {
    acc += i;
  }
  return acc;
}
"""
        assert resolve_code(total) == expected

    def test_range_bound_is_evaluated_once(self):
        """Test that a compile-time loop bound runs a single time."""
        calls = []

        @comptime
        def steps():
            calls.append(1)
            return 4

        @fn([], i32)
        def repeat():
            acc = 0
            for i in range(steps()):
                acc += i
            return acc

        code = resolve_code(repeat)

        assert "i < 4;" in code
        assert len(calls) == 1

    def test_range_with_negative_step(self):
        """Test counting down with a literal step."""

        @fn([], i32)
        def down():
            acc = 0
            for i in range(10, 0, -2):
                acc += i
            return acc

        assert "for (var i = 10; i > 0; i -= 2i) {" in resolve_code(down)

    def test_while_with_break(self):
        """Test while loops, break and nested blocks."""

        @fn([i32], i32)
        def countdown(n):
            i = n
            while i > 0:
                i -= 1
                if i == 5:
                    break
            return i

        expected = """fn countdown(n: i32) -> i32 {
  var i = n;
  while (i > 0) {
    i -= 1i;
    if (i == 5) {
      break;
    }
  }
  return i;
}
"""
        assert resolve_code(countdown) == expected

    def test_unsupported_loop(self):
        """Test that only range loops are accepted."""

        @fn([], f32)
        def loop_over_list():
            acc = 0.0
            for value in [1.0, 2.0]:
                acc += value
            return acc

        with pytest.raises(GenerationError) as exc_info:
            resolve_code(loop_over_list)

        assert "range" in str(exc_info.value)


class TestExpressions:
    """Tests for operators, members and constructors."""

    def test_parentheses_follow_precedence(self):
        """Test that only required parentheses are emitted."""

        @fn([u32, u32, u32], u32)
        def mix_bits(a, b, c):
            return (a + b) * c - (a - (b - c)) + (a & b | c)

        code = resolve_code(mix_bits)

        assert "return (a + b) * c - (a - (b - c)) + ((a & b) | c);" in code

    def test_struct_members(self):
        """Test member access on struct parameters."""

        @fn([Light], vec3f)
        def radiance(light):
            return light.color * light.power

        expected = """struct Light {
  color: vec3f,
  power: f32,
}

fn radiance(light: Light) -> vec3f {
  return light.color * light.power;
}
"""
        assert resolve_code(radiance) == expected

    def test_struct_constructor_keywords(self):
        """Test that keyword arguments are ordered like the struct members."""

        @fn([f32], Light)
        def white(power):
            return Light(power=power, color=vec3f(1.0, 1.0, 1.0))

        assert "return Light(vec3f(1.0, 1.0, 1.0), power);" in resolve_code(white)

    def test_swizzle(self):
        """Test vector swizzles and their types."""

        @fn([vec3f], vec2f)
        def flip(v):
            return v.zy

        assert "return v.zy;" in resolve_code(flip)

    def test_unknown_member(self):
        """Test that invalid swizzles are reported."""

        @fn([vec3f], f32)
        def bad(v):
            return v.q

        with pytest.raises(GenerationError) as exc_info:
            resolve_code(bad)

        assert "'q' is not a member of vec3f" in str(exc_info.value)

    def test_casts(self):
        """Test that Python casts become WGSL conversions."""

        @fn([u32], f32)
        def to_float(n):
            return float(n) + f32(n)

        assert "return f32(n) + f32(n);" in resolve_code(to_float)

    def test_fixed_array_length(self):
        """Test that len() of a fixed-size array is a constant."""

        @fn([array_of(f32, 4)], u32)
        def count(values):
            return len(values)

        assert "return 4u;" in resolve_code(count)

    def test_unknown_identifier(self):
        """Test that undefined names are reported with their line."""

        @fn([], f32)
        def missing():
            return undefined_value  # noqa: F821

        with pytest.raises(GenerationError) as exc_info:
            resolve_code(missing)

        assert "Unknown identifier 'undefined_value'" in str(exc_info.value)
        assert "at line" in str(exc_info.value)


class TestCalls:
    """Tests for calls to intrinsics, shader functions and host helpers."""

    def test_builtins_map_to_intrinsics(self):
        """Test Python builtins, math functions and std intrinsics."""

        @fn([f32], f32)
        def shape(x):
            return abs(x) + math.sqrt(x) + max(x, 0.0) + x**2.0 + std.inverse_sqrt(x)

        code = resolve_code(shape)

        assert (
            "return abs(x) + sqrt(x) + max(x, 0.0f) + pow(x, 2.0f) + inverseSqrt(x);"
            in code
        )

    def test_vector_intrinsics(self):
        """Test intrinsics returning scalar components of vectors."""

        @fn([vec3f, vec3f], f32)
        def facing(n, v):
            return std.dot(std.normalize(n), v)

        assert "return dot(normalize(n), v);" in resolve_code(facing)

    def test_unknown_builtin(self):
        """Test that host builtins without a WGSL counterpart are rejected."""

        @fn([f32], f32)
        def hypotenuse(x):
            return math.hypot(x, x)

        with pytest.raises(UnknownBuiltinError) as exc_info:
            resolve_code(hypotenuse)

        assert exc_info.value.name == "hypot"

    def test_plain_python_helper(self):
        """Test that undecorated host functions cannot be called."""

        def helper(x):
            return x * 2.0

        @fn([f32], f32)
        def caller(x):
            return helper(x)

        with pytest.raises(GenerationError) as exc_info:
            resolve_code(caller)

        assert "@comptime" in str(exc_info.value)

    def test_shader_function_dependency(self):
        """Test that called functions are declared before their callers."""

        @fn([f32], f32)
        def square(x):
            return x * x

        @fn([f32], f32)
        def quartic(x):
            return square(square(x))

        expected = """fn square(x: f32) -> f32 {
  return x * x;
}

fn quartic(x: f32) -> f32 {
  return square(square(x));
}
"""
        assert resolve_code(quartic) == expected

    def test_argument_count(self):
        """Test that calls must match the declared argument count."""

        @fn([f32], f32)
        def square(x):
            return x * x

        @fn([f32], f32)
        def wrong(x):
            return square(x, x)

        with pytest.raises(GenerationError) as exc_info:
            resolve_code(wrong)

        assert "takes 1 arguments, 2 given" in str(exc_info.value)

    def test_comptime_is_inlined(self):
        """Test that compile-time helpers run during generation."""

        @comptime
        def workgroup_count(n):
            return (n + 63) // 64

        @fn([], u32)
        def groups():
            return workgroup_count(1000)

        assert "return 16u;" in resolve_code(groups)

    def test_f16_argument(self):
        """Test that literals passed as f16 get the h suffix."""

        @fn([f16], f16)
        def halve(h):
            return h * 0.5

        @fn([], f16)
        def call_half():
            return halve(1.5)

        code = resolve_code(call_half, enable_extensions=["f16"])

        assert code.startswith("enable f16;\n\n")
        assert "return halve(1.5h);" in code
        with pytest.raises(ExtensionNotEnabledError):
            resolve_code(call_half)

    def test_lossy_conversion_warns(self, log_messages):
        """Test that passing a float literal as an integer is cast with a warning."""

        @fn([u32], u32)
        def identity(n):
            return n

        @fn([], u32)
        def truncated():
            return identity(2.5)

        code = resolve_code(truncated)

        assert "return identity(u32(2.5));" in code
        assert any("lossy conversion of '2.5' to u32" in m for m in log_messages)

    def test_vector_constructor_from_parts(self):
        """Test constructing vectors from swizzles and literals."""

        @fn([vec2f], vec4f)
        def extend(uv):
            return vec4f(uv.xy, 0.0, 1.0)

        assert "return vec4f(uv.xy, 0.0, 1.0);" in resolve_code(extend)
