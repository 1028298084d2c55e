import math

import pytest

from ExprEngine import error as E
from ExprEngine.LatexTranslator import isolate_group, latex_to_standard
from ExprEngine.MathEngine import evaluate
from ExprEngine.Solver import solve_equation


def test_superscript():
    assert latex_to_standard("x^{2}") == "x^(2)"


def test_fraction():
    assert latex_to_standard("\\frac{1}{2}") == "(1)/(2)"
    assert evaluate(latex_to_standard("\\frac{1}{2}")) == 0.5
    assert evaluate("\\dfrac{3}{4}") == 0.75


def test_nested_braces():
    assert latex_to_standard("\\frac{a+{b}}{c}") == "(a+(b))/(c)"


def test_roots():
    assert latex_to_standard("\\sqrt{16}") == "sqrt(16)"
    assert latex_to_standard("\\sqrt[3]{8}") == "(8)^(1/(3))"
    assert evaluate("\\sqrt[3]{27}") == pytest.approx(3.0)


def test_functions():
    assert latex_to_standard("\\sin{x}") == "sin(x)"
    assert latex_to_standard("\\sin x") == "sin(x)"
    assert latex_to_standard("\\arcsin(1)") == "asin(1)"
    assert latex_to_standard("\\cos\\theta") == "cos(theta)"
    assert evaluate("\\sin{\\frac{\\pi}{2}}") == pytest.approx(1.0)


def test_implicit_multiplication():
    assert latex_to_standard("2\\pi r") == "2*pi*r"
    assert latex_to_standard("2\\left(x\\right)") == "2*(x)"
    assert evaluate("2\\pi r", {"r": 1}) == pytest.approx(2 * math.pi)


def test_delimiters():
    assert latex_to_standard("\\left( x + 1 \\right)") == "( x + 1 )"
    assert latex_to_standard("\\left[x\\right]") == "(x)"
    assert latex_to_standard("\\left|x\\right|") == "abs(x)"
    assert evaluate("\\left|-3\\right|") == 3.0


def test_operators_and_symbols():
    assert latex_to_standard("2 \\cdot 3") == "2 * 3"
    assert latex_to_standard("6 \\div 2") == "6 / 2"
    assert latex_to_standard("\\infty") == "inf"
    assert evaluate("2 \\times 3") == 6.0


def test_subscripts_and_spacing():
    assert latex_to_standard("x_{1} + x_{2}") == "x_1 + x_2"
    assert latex_to_standard("1 +\\quad 2") == "1 + 2"
    assert latex_to_standard("1\\,+\\,2") == "1+2"


def test_unbalanced_braces():
    with pytest.raises(E.ParseError) as exc:
        latex_to_standard("\\frac{1}{2")
    assert exc.value.code == "3025"
    with pytest.raises(E.ParseError):
        latex_to_standard("x}")


def test_isolate_group():
    assert isolate_group("{a{b}c}d", 0) == ("a{b}c", 7)
    assert isolate_group("[3]{x}", 0, "[", "]") == ("3", 3)


def test_latex_equation():
    assert solve_equation("\\frac{x}{2} = 3") == {"x": 6.0}
