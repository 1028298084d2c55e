import math

import numpy as np
import pytest

from ExprEngine import error as E
from ExprEngine.MathEngine import (calculate, evaluate, evaluate_ast, evaluate_value,
                                   parse_expression)


def test_arithmetic():
    assert evaluate("1 + 2 * 3") == 7.0
    assert evaluate("(1 + 2) * 3") == 9.0
    assert evaluate("7 / 2") == 3.5


def test_precedence():
    assert evaluate("-2^2") == -4.0
    assert evaluate("2^3^2") == 512.0
    assert evaluate("2^-1") == 0.5


def test_complex_conjugate_product_collapses():
    ergebnis = evaluate_value("(3+4i)*(3-4i)")
    assert ergebnis == 25.0
    assert isinstance(ergebnis, float)


def test_principal_branch():
    assert evaluate_value("sqrt(-4)") == 2j
    assert evaluate_value("log(-1)") == complex(0, math.pi)
    cube_root = evaluate_value("(-8)^(1/3)")
    assert isinstance(cube_root, complex)
    assert cube_root.real == pytest.approx(1.0)
    assert cube_root.imag == pytest.approx(math.sqrt(3))


def test_complex_result_rejected_by_evaluate():
    with pytest.raises(E.EvalError) as exc:
        evaluate("sqrt(-4)")
    assert exc.value.code == "3103"


def test_ieee_division():
    assert evaluate("1/0") == math.inf
    assert evaluate("-1/0") == -math.inf
    assert math.isnan(evaluate("0/0"))


def test_power_overflow():
    assert evaluate("10^400") == math.inf
    assert evaluate("(-10)^401") == -math.inf
    assert evaluate("0^-1") == math.inf


def test_logarithms():
    assert evaluate("log(0)") == -math.inf
    assert evaluate("log(8, 2)") == pytest.approx(3.0)
    assert evaluate("ln(e)") == pytest.approx(1.0)
    assert evaluate("log10(1000)") == pytest.approx(3.0)


def test_function_table():
    assert evaluate("min(3, 1, 2)") == 1.0
    assert evaluate("max(4)") == 4.0
    assert evaluate("min(5)") == 5.0
    assert evaluate("round(2.5)") == 3.0
    assert evaluate("round(-2.5)") == -2.0
    assert evaluate("clamp(5, 0, 3)") == 3.0
    assert evaluate("lerp(0, 10, 0.25)") == 2.5
    assert evaluate("sign(-3)") == -1.0
    assert math.isnan(evaluate("sign(nan)"))
    assert evaluate("deg(pi)") == pytest.approx(180.0)
    assert evaluate("2 * sin(pi / 2)") == pytest.approx(2.0)


def test_complex_helpers():
    assert evaluate("abs(3+4i)") == 5.0
    assert evaluate("re(3+4i)") == 3.0
    assert evaluate("im(3+4i)") == 4.0
    assert evaluate_value("conj(3+4i)") == 3 - 4j
    assert evaluate("arg(-1)") == pytest.approx(math.pi)


def test_undefined_variable():
    with pytest.raises(E.UndefinedVariable) as exc:
        evaluate("x + 1", {})
    assert exc.value.name == "x"


def test_unknown_function():
    with pytest.raises(E.UnknownFunction) as exc:
        evaluate("foo(1)")
    assert exc.value.name == "foo"


def test_arity_mismatch():
    with pytest.raises(E.ArityMismatch) as exc:
        evaluate("sin()")
    assert exc.value.got == 0


def test_real_only_function_rejects_complex():
    with pytest.raises(E.DomainError):
        evaluate("floor(2i)")


def test_bindings():
    assert evaluate("x * y", {"x": 2, "y": 4}) == 8.0
    assert evaluate("x + 1", {"x": np.int64(2)}) == 3.0
    assert evaluate("i", {"i": 2}) == 2.0


def test_expression_bindings_are_lazy():
    assert evaluate("x * y", {"x": 2, "y": "x + 1"}) == 6.0


def test_circular_binding():
    with pytest.raises(E.CircularDefinition):
        evaluate("a", {"a": "b", "b": "a + 1"})


def test_constants_shadow_bindings():
    assert evaluate("pi") == math.pi
    assert evaluate("e", {"e": 5}) == math.e


def test_bindings_are_not_mutated():
    bindings = {"x": 2, "y": "x * 3"}
    evaluate("x * y", bindings)
    assert bindings == {"x": 2, "y": "x * 3"}


def test_evaluate_ast():
    assert evaluate_ast(parse_expression("x^2"), {"x": 3}) == 9.0


def test_error_carries_source_text():
    with pytest.raises(E.ParseError) as exc:
        evaluate_value("1 +")
    assert exc.value.equation == "1 +"


def test_latex_input_is_translated():
    assert evaluate("\\frac{1}{2}") == 0.5


def test_calculate_dispatch():
    assert calculate("1 + 1") == 2.0
    assert calculate("2*x + 5 = 15") == {"x": 5.0}
    loesung = calculate(["x + y = 3", "x - y = 1"])
    assert loesung["x"] == pytest.approx(2.0)
    assert loesung["y"] == pytest.approx(1.0)
