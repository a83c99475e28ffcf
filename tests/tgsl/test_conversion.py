"""Tests for literal typing, type inference and operator precedence."""

import pytest

from py2wgsl.data import (
    abstract_float,
    abstract_int,
    bool_,
    f32,
    i32,
    mat4x4f,
    u32,
    vec3b,
    vec3f,
    vec4f,
)
from py2wgsl.tgsl.conversion import (
    binary_result_type,
    concretize,
    literal_type,
    unify,
)
from py2wgsl.tgsl.snippet import needs_parentheses


class TestLiteralTyping:
    """Tests for abstract literal kinds."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("1", abstract_int),
            ("1.0", abstract_float),
            ("1e3", abstract_float),
            (".5", abstract_float),
        ],
    )
    def test_literal_type(self, text, expected):
        """Test the abstract kind of written literals."""
        assert literal_type(text) == expected

    def test_abstract_arithmetic(self):
        """Test that abstract operands stay abstract."""
        assert binary_result_type("+", abstract_int, abstract_int) == abstract_int
        assert binary_result_type("+", abstract_float, abstract_int) == abstract_float

    def test_concrete_side_wins(self):
        """Test that a concrete operand fixes the kind of the result."""
        assert binary_result_type("*", abstract_float, f32) == f32
        assert binary_result_type("-", u32, abstract_int) == u32

    def test_declarations_default_to_32_bits(self):
        """Test the concrete defaults of abstract kinds."""
        assert concretize(abstract_int) == i32
        assert concretize(abstract_float) == f32
        assert concretize(u32) == u32

    def test_unify_prefers_concrete(self):
        """Test the common kind of call arguments."""
        assert unify([abstract_float, vec3f]) == f32
        assert unify([abstract_int, abstract_float]) == abstract_float


class TestOperatorTypes:
    """Tests for WGSL operator overloads."""

    def test_matrix_times_vector(self):
        """Test that a matrix times a vector is a vector."""
        assert binary_result_type("*", mat4x4f, vec4f) == vec4f

    def test_scalar_times_vector(self):
        """Test that a scalar times a vector is a vector."""
        assert binary_result_type("*", f32, vec3f) == vec3f

    def test_vector_comparison(self):
        """Test that comparing vectors yields a bool vector."""
        assert binary_result_type("<", vec3f, vec3f) == vec3b
        assert binary_result_type("==", f32, f32) == bool_


class TestParentheses:
    """Tests for deciding where parentheses are required."""

    @pytest.mark.parametrize(
        "child, parent, right, expected",
        [
            ("+", "*", False, True),
            ("*", "+", False, False),
            ("-", "-", True, True),
            ("-", "-", False, False),
            ("&&", "||", False, True),
            ("||", "||", False, False),
            ("&", "&&", False, True),
            ("==", "&&", False, False),
            ("&", "|", False, True),
            ("|", "|", False, False),
            ("+", "<<", False, True),
            ("<", "==", False, True),
            (None, "*", True, False),
            ("unary", "*", False, False),
            ("+", "unary", False, True),
        ],
    )
    def test_needs_parentheses(self, child, parent, right, expected):
        """Test parenthesization of a child operator under a parent operator."""
        assert needs_parentheses(child, parent, right) is expected
