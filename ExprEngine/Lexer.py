# Lexer.py
"""Tokenizer: converts a raw expression string into a flat list of tokens.

Single left-to-right scan with one character of lookahead. Identifiers are
classified against the function table, then the constant table, and fall
back to variables. The token list always ends with an EOF token.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from . import error as E
from .ScientificEngine import FUNCTION_NAMES, CONSTANT_NAMES

logger = logging.getLogger(__name__)

Operations = ["+", "-", "*", "/", "^"]

# Alternative spellings accepted from calculator-style input
_ALIASES = {"×": "*", "÷": "/"}


class TokenKind(Enum):
    NUMBER = "number"
    IMAGINARY = "imaginary"
    OPERATOR = "operator"
    FUNCTION = "function"
    VARIABLE = "variable"
    CONSTANT = "constant"
    LPAREN = "lparen"
    RPAREN = "rparen"
    COMMA = "comma"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: Union[float, str, None]
    position: int

    def __repr__(self):
        if self.value is None:
            return f"Token({self.kind.name}@{self.position})"
        return f"Token({self.kind.name}, {self.value!r}@{self.position})"


def _is_identifier_char(char):
    return char.isalnum() or char == "_"


def _read_number(problem, b, end):
    """Read a numeric literal starting at b (scanning stops at end).

    Returns (token, position_after_literal).
    """
    start = b
    hat_schon_komma = False
    while b < end and (problem[b].isdigit() or problem[b] == "."):
        if problem[b] == ".":
            if hat_schon_komma:
                raise E.LexError(f"More than one '.' in number: {problem[start:b + 1]}",
                                 code="3008", equation=problem, position=start,
                                 character=".")
            hat_schon_komma = True
        b += 1

    # Exponent only when digits follow ("2e" is the number 2 followed by the constant e)
    if b < end and problem[b] in "eE":
        exponent_end = b + 1
        if exponent_end < end and problem[exponent_end] in "+-":
            exponent_end += 1
        if exponent_end < end and problem[exponent_end].isdigit():
            b = exponent_end
            while b < end and problem[b].isdigit():
                b += 1

    literal = problem[start:b]
    try:
        value = float(literal)
    except ValueError:
        raise E.LexError(f"Invalid number literal: {literal}", code="3008",
                         equation=problem, position=start, character=problem[start])

    # Trailing 'i' marks an imaginary literal unless it starts an identifier ("2in")
    if b < end and problem[b] == "i" and \
            not (b + 1 < end and _is_identifier_char(problem[b + 1])):
        return Token(TokenKind.IMAGINARY, value, start), b + 1

    return Token(TokenKind.NUMBER, value, start), b


def _classify(identifier, position):
    if identifier in FUNCTION_NAMES:
        return Token(TokenKind.FUNCTION, identifier, position)
    if identifier in CONSTANT_NAMES:
        return Token(TokenKind.CONSTANT, identifier, position)
    return Token(TokenKind.VARIABLE, identifier, position)


def tokenize(problem: str, start: int = 0, end: Optional[int] = None) -> List[Token]:
    """Convert problem into a token list terminated by an EOF token.

    start/end restrict the scan to a slice of problem while keeping token
    positions relative to the whole string (used for the two sides of an
    equation). Raises LexError on any character that cannot start a token.
    """
    if end is None:
        end = len(problem)
    full_problem = []
    b = start

    while b < end:
        current_char = problem[b]

        # --- Whitespace (ignored) ---
        if current_char.isspace():
            b += 1

        # --- Numbers: digits, decimal point, exponent, imaginary suffix ---
        elif current_char.isdigit() or current_char == ".":
            token, b = _read_number(problem, b, end)
            full_problem.append(token)

        # --- Operators ---
        elif current_char in Operations or current_char in _ALIASES:
            full_problem.append(Token(TokenKind.OPERATOR, _ALIASES.get(current_char, current_char), b))
            b += 1

        # --- Parentheses and argument separator ---
        elif current_char == "(":
            full_problem.append(Token(TokenKind.LPAREN, None, b))
            b += 1
        elif current_char == ")":
            full_problem.append(Token(TokenKind.RPAREN, None, b))
            b += 1
        elif current_char == ",":
            full_problem.append(Token(TokenKind.COMMA, None, b))
            b += 1

        # --- Constant π ---
        elif current_char == "π":
            full_problem.append(Token(TokenKind.CONSTANT, "pi", b))
            b += 1

        # --- Identifiers: functions, constants, variables (maximal munch) ---
        elif current_char.isalpha() or current_char == "_":
            anfang = b
            while b < end and _is_identifier_char(problem[b]):
                b += 1
            full_problem.append(_classify(problem[anfang:b], anfang))

        else:
            raise E.LexError(f"Unexpected character '{current_char}'", code="3001",
                             equation=problem, position=b, character=current_char)

    full_problem.append(Token(TokenKind.EOF, None, end))
    logger.debug("tokens: %s", full_problem)
    return full_problem
