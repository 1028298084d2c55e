import pytest

from ExprEngine import error as E
from ExprEngine.MathEngine import (BinaryOp, Imaginary, Number, UnaryMinus, Variable,
                                   evaluate_ast, evaluate_value, parse_expression)
from ExprEngine.Serializer import find_variables, substitute, to_string

ROUND_TRIP = [
    "1 + 2 * 3",
    "(1 + 2) * 3",
    "a - (b - c)",
    "a - b - c",
    "a / (b * c)",
    "a / b * c",
    "2^3^2",
    "(2^3)^2",
    "-2^2",
    "(-2)^2",
    "-(a + b) * c",
    "a * -b",
    "2^-x",
    "-a^-b",
    "--a",
    "max(a, b * 2, 3)",
    "sin(a)^2 + cos(b)^2",
    "2.5 * a + 4i",
]

ENV = {"a": 1.5, "b": -2.0, "c": 3.0, "x": 0.5}


def test_minimal_parentheses():
    assert to_string(parse_expression("1 + (2 * 3)")) == "1 + 2 * 3"
    assert to_string(parse_expression("(1 + 2) * 3")) == "(1 + 2) * 3"
    assert to_string(parse_expression("((a))")) == "a"
    assert to_string(parse_expression("a - (b + c)")) == "a - (b + c)"
    assert to_string(parse_expression("(a - b) + c")) == "a - b + c"


def test_power_printing():
    assert to_string(parse_expression("2 ^ 3 ^ 2")) == "2^3^2"
    assert to_string(parse_expression("(2^3)^2")) == "(2^3)^2"
    assert to_string(parse_expression("(-2)^2")) == "(-2)^2"
    assert to_string(parse_expression("-2^2")) == "-2^2"


def test_numbers():
    assert to_string(Number(5.0)) == "5"
    assert to_string(Number(2.5)) == "2.5"
    assert to_string(Number(1e20)) == "1e+20"
    assert to_string(Imaginary(4)) == "4i"
    assert to_string(parse_expression("max(1, 2)")) == "max(1, 2)"


def test_round_trip_reproduces_the_tree():
    for text in ROUND_TRIP:
        baum = parse_expression(text)
        wieder = parse_expression(to_string(baum))
        assert wieder == baum, text
        assert evaluate_ast(wieder, ENV) == evaluate_ast(baum, ENV), text


def test_round_trip_of_built_trees():
    baum = BinaryOp('^', BinaryOp('-', Variable("x"), Number(1)), Number(-2))
    text = to_string(baum)
    assert text == "(x - 1)^-2"
    assert evaluate_value(text, ENV) == evaluate_ast(baum, ENV)


def test_infinite_imaginary_literal_reads_back():
    baum = parse_expression("1e400i")
    assert to_string(baum) == "1e999i"
    assert parse_expression(to_string(baum)) == baum


def test_negative_zero_keeps_its_sign():
    assert to_string(Number(-0.0)) == "-0"
    baum = BinaryOp('/', Number(1), Number(-0.0))
    text = to_string(baum)
    assert text == "1 / -0"
    assert evaluate_ast(baum, {}) == float("-inf")
    assert evaluate_value(text) == float("-inf")


def test_substitute_values_and_expressions():
    baum = substitute(parse_expression("x * y"), {"x": 2, "y": "a + b"})
    assert to_string(baum) == "2 * (a + b)"


def test_substitute_negative_value():
    baum = substitute(parse_expression("x^2"), {"x": -3})
    assert baum == BinaryOp('^', UnaryMinus(Number(3)), Number(2))
    assert to_string(baum) == "(-3)^2"
    assert evaluate_ast(baum) == 9.0


def test_substitute_complex_value():
    baum = substitute("x", {"x": 3 + 4j})
    assert to_string(baum) == "3 + 4i"
    assert evaluate_ast(baum) == 3 + 4j


def test_substitute_leaves_unbound_variables():
    original = parse_expression("x + y")
    baum = substitute(original, {"x": 1})
    assert to_string(baum) == "1 + y"
    assert to_string(original) == "x + y"


def test_substitute_ast_node():
    baum = substitute(parse_expression("f * 2"), {"f": parse_expression("sin(t)")})
    assert to_string(baum) == "sin(t) * 2"


def test_substitute_rejects_invalid_binding():
    with pytest.raises(E.EvalError):
        substitute(parse_expression("x"), {"x": object()})


def test_find_variables():
    assert find_variables(parse_expression("b * a + b + pi")) == ["b", "a"]
    assert find_variables(parse_expression("3 + 4")) == []


def test_str_of_node():
    assert str(parse_expression("2*(x+1)")) == "2 * (x + 1)"
