"""Tests for lowering Python functions into IR."""

import pytest

from py2wgsl.errors import GenerationError
from py2wgsl.tgsl import ir
from py2wgsl.tgsl.transpiler import transpile, transpile_source


class TestFunctionIR:
    """Tests for the function-level result."""

    def test_params_and_externals(self):
        """Test parameter names and free identifiers of a function."""
        func_ir = transpile_source("""
        def shade(uv, t):
            d = length(uv)
            return sin(d * SCALE + t)
        """)

        assert func_ir.name == "shade"
        assert func_ir.params == ["uv", "t"]
        assert set(func_ir.external_names) == {"length", "sin", "SCALE"}

    def test_docstring_and_pass_are_dropped(self):
        """Test that docstrings and pass statements produce no IR."""
        func_ir = transpile_source('''
        def noop():
            """Does nothing."""
            pass
        ''')

        assert func_ir.body == ir.Block([])

    def test_transpile_is_cached(self):
        """Test that a function object is parsed once."""

        def square(x):
            return x * x

        assert transpile(square) is transpile(square)

    def test_no_function(self):
        """Test that source without a function definition is rejected."""
        with pytest.raises(GenerationError):
            transpile_source("x = 1")


class TestDeclarations:
    """Tests for choosing between let and var."""

    def test_single_assignment_is_let(self):
        """Test that a name assigned once becomes a let."""
        func_ir = transpile_source("""
        def f(x):
            y = x + 1
            return y
        """)

        assert func_ir.body.statements[0] == ir.Let(
            "y", ir.BinaryExpr("+", ir.Identifier("x"), ir.NumericLiteral("1"))
        )

    def test_reassigned_name_is_var(self):
        """Test that reassigned and augmented names become var."""
        func_ir = transpile_source("""
        def f(x):
            a = x
            a = a * 2
            b = x
            b += 1
            return a + b
        """)

        first, second, third, fourth, _ = func_ir.body.statements
        assert isinstance(first, ir.Var)
        assert second == ir.ExprStatement(
            ir.AssignmentExpr(
                "=",
                ir.Identifier("a"),
                ir.BinaryExpr("*", ir.Identifier("a"), ir.NumericLiteral("2")),
            )
        )
        assert isinstance(third, ir.Var)
        assert fourth.expr.op == "+="

    def test_member_assignment_makes_var(self):
        """Test that assigning a member of a local makes it mutable."""
        func_ir = transpile_source("""
        def f(x):
            out = make(x)
            out.pos = x
            return out
        """)

        assert isinstance(func_ir.body.statements[0], ir.Var)

    def test_annotation_without_value(self):
        """Test that a bare annotation declares a var."""
        func_ir = transpile_source("""
        def f():
            total: f32
            total = 1.0
            return total
        """)

        assert func_ir.body.statements[0] == ir.Var(
            "total", None, ir.Identifier("f32")
        )

    @pytest.mark.parametrize(
        "source, message",
        [
            ("def f(x):\n    x += 1\n    return x", "Cannot assign to parameter"),
            ("def f(v):\n    v.x = 1.0\n    return v", "Cannot assign to parameter"),
            ("def f():\n    a, b = 1, 2\n    return a", "Unsupported assignment target"),
            ("def f():\n    a = b = 1\n    return a", "Multiple assignment targets"),
        ],
    )
    def test_invalid_assignments(self, source, message):
        """Test assignments without a WGSL counterpart."""
        with pytest.raises(GenerationError) as exc_info:
            transpile_source(source)

        assert message in str(exc_info.value)


class TestStatements:
    """Tests for control flow lowering."""

    def test_range_loop(self):
        """Test that range loops become C-style loops."""
        func_ir = transpile_source("""
        def f(n):
            for i in range(2, n, 3):
                pass
        """)

        loop = func_ir.body.statements[0]
        assert loop.init == ir.Var("i", ir.NumericLiteral("2"))
        assert loop.condition == ir.BinaryExpr("<", ir.Identifier("i"), ir.Identifier("n"))
        assert loop.update == ir.AssignmentExpr(
            "+=", ir.Identifier("i"), ir.NumericLiteral("3")
        )

    def test_elif_chain(self):
        """Test that elif becomes a nested if in the else branch."""
        func_ir = transpile_source("""
        def f(x):
            if x < 0:
                return 0
            elif x < 1:
                return 1
            else:
                return 2
        """)

        outer = func_ir.body.statements[0]
        assert isinstance(outer.orelse, ir.If)
        assert isinstance(outer.orelse.orelse, ir.Block)

    def test_chained_comparison(self):
        """Test that a < b < c is split into two comparisons."""
        func_ir = transpile_source("""
        def f(a, b, c):
            return a < b < c
        """)

        assert func_ir.body.statements[0].value == ir.LogicalExpr(
            "&&",
            ir.BinaryExpr("<", ir.Identifier("a"), ir.Identifier("b")),
            ir.BinaryExpr("<", ir.Identifier("b"), ir.Identifier("c")),
        )

    @pytest.mark.parametrize(
        "source, message",
        [
            ("def f():\n    for i in range(4, 0, 0):\n        pass", "non-zero"),
            ("def f(n):\n    for i in range(0, 8, n):\n        pass", "non-zero"),
            ("def f():\n    while True:\n        break\n    else:\n        pass", "while"),
            ("def f(v):\n    return v[1:]", "Subscript"),
            ("def f():\n    return [x for x in range(3)]", "ListComp"),
            ("def f(a):\n    return a @ a", "MatMult"),
        ],
    )
    def test_unsupported_constructs(self, source, message):
        """Test that constructs without a WGSL counterpart are rejected."""
        with pytest.raises(GenerationError) as exc_info:
            transpile_source(source)

        assert message in str(exc_info.value)

    def test_error_reports_line(self):
        """Test that lowering errors carry the offending line."""
        with pytest.raises(GenerationError) as exc_info:
            transpile_source("def f():\n    x = 1\n    return [x]")

        assert "at line 3" in str(exc_info.value)
