# Serializer.py
"""
Structural AST rewriting and AST -> infix text.

to_string() inserts parentheses only where the parser would otherwise build a
different tree, so parse(tokenize(to_string(t))) evaluates exactly like t.
"""
import math

from . import error as E
from .MathEngine import (BinaryOp, Call, Constant, Imaginary, Node, Number, UnaryMinus,
                         Variable, parse_expression, walk)
from .ScientificEngine import CONSTANTS, to_value

# Printing precedence, loosest first. Unary minus binds tighter than '*' '/'
# but looser than '^'.
PRECEDENCE = {
    '+': 1,
    '-': 1,
    '*': 2,
    '/': 2,
    '^': 4,
}
UNARY_PRECEDENCE = 3
ATOM_PRECEDENCE = 5

RIGHT_ASSOCIATIVE = frozenset(['^'])


# -----------------------------
# Substitution
# -----------------------------

def literal(value):
    """AST for a numeric value: negatives become UnaryMinus, complex re + im*i."""
    value = to_value(value)
    if value is None:
        raise E.EvalError("Only numbers can be turned into literals.", code="3102")

    if isinstance(value, complex):
        realteil = literal(value.real)
        imaginaerteil = Imaginary(abs(value.imag))
        op = '-' if math.copysign(1.0, value.imag) < 0 else '+'
        return BinaryOp(op, realteil, imaginaerteil)

    if value < 0 or (value == 0 and math.copysign(1.0, value) < 0):
        return UnaryMinus(Number(-value))
    return Number(value)


def _replacement(name, raw):
    if isinstance(raw, Node):
        return raw
    if isinstance(raw, str):
        return parse_expression(raw)
    if to_value(raw) is not None:
        return literal(raw)
    raise E.EvalError(f"Invalid binding for variable '{name}': {raw!r}", code="3102")


def substitute(ast, bindings):
    """Return a copy of ast with every bound Variable replaced.

    Bindings map a name to an AST node, an expression string or a number.
    Variables without a binding are left untouched; ast itself is not changed.
    """
    if isinstance(ast, str):
        ast = parse_expression(ast)
    ersatz = {name: _replacement(name, raw) for name, raw in bindings.items()}

    def rewrite(node):
        if isinstance(node, Variable):
            return ersatz.get(node.name, node)
        if isinstance(node, UnaryMinus):
            return UnaryMinus(rewrite(node.operand))
        if isinstance(node, BinaryOp):
            return BinaryOp(node.op, rewrite(node.left), rewrite(node.right))
        if isinstance(node, Call):
            return Call(node.name, [rewrite(arg) for arg in node.args])
        return node

    return rewrite(ast)


def find_variables(ast):
    """Free variable names in order of first appearance."""
    gefunden = []
    for node in walk(ast):
        if isinstance(node, Variable) and node.name not in CONSTANTS and node.name not in gefunden:
            gefunden.append(node.name)
    return gefunden


# -----------------------------
# Serializer
# -----------------------------

def format_number(value):
    """Integral floats print without a decimal point; everything else via repr."""
    if math.isnan(value):
        return "nan"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value == 0 and math.copysign(1.0, value) < 0:
        return "-0"
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def _is_negative_literal(node):
    return isinstance(node, (Number, Imaginary)) and math.copysign(1.0, node.value) < 0


def precedence(node):
    if isinstance(node, BinaryOp):
        return PRECEDENCE[node.op]
    if isinstance(node, UnaryMinus) or _is_negative_literal(node):
        return UNARY_PRECEDENCE
    return ATOM_PRECEDENCE


def _wrap(text):
    return "(" + text + ")"


def to_string(ast):
    """Render ast as infix text with minimal parentheses."""
    if isinstance(ast, Number):
        return format_number(ast.value)

    if isinstance(ast, Imaginary):
        if math.isinf(ast.value):
            # "infi" would read back as a variable
            return ("1e999" if ast.value > 0 else "-1e999") + "i"
        return format_number(ast.value) + "i"

    if isinstance(ast, (Constant, Variable)):
        return ast.name

    if isinstance(ast, Call):
        return f"{ast.name}({', '.join(to_string(arg) for arg in ast.args)})"

    if isinstance(ast, UnaryMinus):
        operand = to_string(ast.operand)
        if isinstance(ast.operand, BinaryOp) and ast.operand.op != '^':
            operand = _wrap(operand)
        return "-" + operand

    if isinstance(ast, BinaryOp):
        eigene = PRECEDENCE[ast.op]

        links = to_string(ast.left)
        links_prec = precedence(ast.left)
        # '^' binds tighter than unary minus and is right-associative, so any
        # power or signed value on its left needs parentheses
        if links_prec < eigene or (ast.op == '^' and links_prec <= eigene):
            links = _wrap(links)

        rechts = to_string(ast.right)
        rechts_prec = precedence(ast.right)
        if rechts_prec < eigene and not isinstance(ast.right, UnaryMinus) \
                and not _is_negative_literal(ast.right):
            rechts = _wrap(rechts)
        elif rechts_prec == eigene and ast.op not in RIGHT_ASSOCIATIVE:
            rechts = _wrap(rechts)

        if ast.op == '^':
            return f"{links}^{rechts}"
        return f"{links} {ast.op} {rechts}"

    raise E.ParseError(f"Invalid AST: cannot serialize {ast!r}", code="3030")
