import pytest

from ExprEngine import error as E
from ExprEngine.Lexer import TokenKind, tokenize


def _kinds(text):
    return [token.kind for token in tokenize(text)]


def test_simple_expression_positions():
    tokens = tokenize("3.5 + x")
    assert [t.kind for t in tokens] == [TokenKind.NUMBER, TokenKind.OPERATOR,
                                        TokenKind.VARIABLE, TokenKind.EOF]
    assert [t.position for t in tokens] == [0, 4, 6, 7]
    assert tokens[0].value == 3.5


def test_empty_input_is_only_eof():
    tokens = tokenize("")
    assert len(tokens) == 1
    assert tokens[0].kind == TokenKind.EOF


def test_exponent_literal():
    tokens = tokenize("1.5e-3")
    assert tokens[0].kind == TokenKind.NUMBER
    assert tokens[0].value == pytest.approx(0.0015)
    assert len(tokens) == 2


def test_e_without_digits_is_the_constant():
    tokens = tokenize("2e")
    assert tokens[0].value == 2.0
    assert tokens[1].kind == TokenKind.CONSTANT
    assert tokens[1].value == "e"


def test_imaginary_literal():
    tokens = tokenize("4i")
    assert tokens[0].kind == TokenKind.IMAGINARY
    assert tokens[0].value == 4.0


def test_i_starting_an_identifier_is_not_imaginary():
    tokens = tokenize("2in")
    assert tokens[0].kind == TokenKind.NUMBER
    assert tokens[1].kind == TokenKind.VARIABLE
    assert tokens[1].value == "in"


def test_identifier_classification():
    assert _kinds("sin(pi)") == [TokenKind.FUNCTION, TokenKind.LPAREN, TokenKind.CONSTANT,
                                 TokenKind.RPAREN, TokenKind.EOF]
    # maximal munch: sinx is one variable
    tokens = tokenize("sinx")
    assert tokens[0].kind == TokenKind.VARIABLE
    assert tokens[0].value == "sinx"


def test_underscore_identifiers():
    tokens = tokenize("x_1 + _tmp")
    assert tokens[0].value == "x_1"
    assert tokens[2].value == "_tmp"


def test_calculator_symbols():
    tokens = tokenize("3 × 4 ÷ 2")
    assert [t.value for t in tokens if t.kind == TokenKind.OPERATOR] == ["*", "/"]
    tokens = tokenize("2π")
    assert tokens[1].kind == TokenKind.CONSTANT
    assert tokens[1].value == "pi"


def test_comma_and_parentheses():
    assert _kinds("max(1, 2)") == [TokenKind.FUNCTION, TokenKind.LPAREN, TokenKind.NUMBER,
                                   TokenKind.COMMA, TokenKind.NUMBER, TokenKind.RPAREN,
                                   TokenKind.EOF]


def test_malformed_number():
    with pytest.raises(E.LexError) as exc:
        tokenize("1.2.3")
    assert exc.value.code == "3008"
    assert exc.value.position == 0


def test_unexpected_character():
    with pytest.raises(E.LexError) as exc:
        tokenize("2 $ 3")
    assert exc.value.position == 2
    assert exc.value.character == "$"
    assert exc.value.code == "3001"


def test_slice_keeps_absolute_positions():
    tokens = tokenize("x = 10", 4)
    assert tokens[0].value == 10.0
    assert tokens[0].position == 4
    assert tokens[-1].position == 6
