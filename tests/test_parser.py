import pytest

from ExprEngine import error as E
from ExprEngine.Lexer import tokenize
from ExprEngine.MathEngine import (BinaryOp, Call, Constant, Imaginary, Number, UnaryMinus,
                                   Variable, parse, parse_equation, parse_expression)


def test_precedence_of_product_over_sum():
    assert parse_expression("1 + 2 * 3") == \
        BinaryOp('+', Number(1), BinaryOp('*', Number(2), Number(3)))


def test_left_associative_subtraction():
    assert parse_expression("a - b - c") == \
        BinaryOp('-', BinaryOp('-', Variable("a"), Variable("b")), Variable("c"))


def test_power_is_right_associative():
    assert parse_expression("2^3^2") == \
        BinaryOp('^', Number(2), BinaryOp('^', Number(3), Number(2)))


def test_unary_minus_binds_looser_than_power():
    assert parse_expression("-2^2") == UnaryMinus(BinaryOp('^', Number(2), Number(2)))


def test_unary_minus_binds_tighter_than_product():
    assert parse_expression("-2*3") == BinaryOp('*', UnaryMinus(Number(2)), Number(3))


def test_signed_exponent():
    assert parse_expression("2^-3") == BinaryOp('^', Number(2), UnaryMinus(Number(3)))


def test_unary_plus_is_dropped():
    assert parse_expression("+5") == Number(5)


def test_calls():
    assert parse_expression("max()") == Call("max", [])
    assert parse_expression("atan2(y, 1)") == Call("atan2", [Variable("y"), Number(1)])


def test_unknown_name_with_parentheses_is_a_call():
    assert parse_expression("foo(1)") == Call("foo", [Number(1)])


def test_literals():
    assert parse_expression("3 + 4i") == BinaryOp('+', Number(3), Imaginary(4))
    assert parse_expression("pi") == Constant("pi")


def test_parse_accepts_tokens_without_eof():
    tokens = tokenize("1 + x")[:-1]
    assert parse(tokens) == BinaryOp('+', Number(1), Variable("x"))


def test_missing_closing_parenthesis():
    with pytest.raises(E.ParseError) as exc:
        parse_expression("(1 + 2")
    assert exc.value.code == "3009"
    assert exc.value.position == 6


def test_unmatched_closing_parenthesis():
    with pytest.raises(E.ParseError) as exc:
        parse_expression("1 + 2)")
    assert exc.value.code == "3009"
    assert exc.value.position == 5


def test_function_without_parenthesis():
    with pytest.raises(E.ParseError) as exc:
        parse_expression("sin 2")
    assert exc.value.code == "3010"


def test_dangling_operator_and_empty_input():
    with pytest.raises(E.ParseError):
        parse_expression("1 +")
    with pytest.raises(E.ParseError) as exc:
        parse_expression("")
    assert exc.value.code == "3027"


def test_trailing_tokens():
    with pytest.raises(E.ParseError) as exc:
        parse_expression("1 2")
    assert exc.value.code == "3016"
    assert exc.value.position == 2


def test_unexpected_operator():
    with pytest.raises(E.ParseError) as exc:
        parse_expression("* 3")
    assert exc.value.code == "3011"


def test_parse_equation():
    gleichung = parse_equation("2*x = 4")
    assert gleichung.lhs == BinaryOp('*', Number(2), Variable("x"))
    assert gleichung.rhs == Number(4)
    assert gleichung.residual() == BinaryOp('-', gleichung.lhs, gleichung.rhs)


def test_equation_splits_on_first_top_level_equals():
    with pytest.raises(E.LexError) as exc:
        # the second '=' ends up in the right side, where it is no token
        parse_equation("x = 1 = 2")
    assert exc.value.position == 6


def test_equation_errors():
    with pytest.raises(E.ParseError) as exc:
        parse_equation("x + 1")
    assert exc.value.code == "3012"
    with pytest.raises(E.ParseError) as exc:
        parse_equation("x = ")
    assert exc.value.code == "3022"


def test_error_position_on_right_side():
    with pytest.raises(E.ParseError) as exc:
        parse_equation("x = 1 +")
    assert exc.value.position == 7
