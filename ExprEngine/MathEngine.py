# MathEngine.py
"""
Core calculation engine.

Pipeline
--------
1) LaTeX translator (optional): rewrites LaTeX markup into plain infix text.
2) Tokenizer (Lexer.py): converts the input string into a flat list of tokens.
3) Parser: builds an Abstract Syntax Tree by precedence climbing.
4) Evaluator: reduces the AST against a variable scope to a float or complex.
5) Solver (Solver.py): linear, Newton-Raphson and system solving on top of 3) and 4).
"""
import logging
from dataclasses import dataclass
from typing import Tuple

from . import error as E
from .Lexer import Token, TokenKind, tokenize
from .LatexTranslator import latex_to_standard
from .ScientificEngine import CONSTANTS, apply_operator, call_function, collapse, to_value

logger = logging.getLogger(__name__)


# -----------------------------
# AST node types
# -----------------------------

class Node:
    """Base class of all AST nodes. Nodes are immutable values."""

    def children(self):
        return ()

    def evaluate(self, scope, tracer=None):
        raise NotImplementedError

    def collect_term(self, var_name, scope):
        """Return (factor_of_var, constant) for linear collection."""
        raise NotImplementedError

    def __str__(self):
        from .Serializer import to_string
        return to_string(self)


@dataclass(frozen=True, repr=False)
class Number(Node):
    value: float

    def __post_init__(self):
        object.__setattr__(self, "value", float(self.value))

    def evaluate(self, scope, tracer=None):
        return self.value

    def collect_term(self, var_name, scope):
        return (0.0, self.value)

    def __repr__(self):
        return f"Number({self.value!r})"


@dataclass(frozen=True, repr=False)
class Imaginary(Node):
    """Literal b*i, e.g. the 4i in 3+4i."""
    value: float

    def __post_init__(self):
        object.__setattr__(self, "value", float(self.value))

    def evaluate(self, scope, tracer=None):
        return collapse(complex(0.0, self.value))

    def collect_term(self, var_name, scope):
        return (0.0, self.evaluate(scope))

    def __repr__(self):
        return f"Imaginary({self.value!r})"


@dataclass(frozen=True, repr=False)
class Constant(Node):
    name: str

    def evaluate(self, scope, tracer=None):
        return CONSTANTS[self.name]

    def collect_term(self, var_name, scope):
        return (0.0, CONSTANTS[self.name])

    def __repr__(self):
        return f"Constant('{self.name}')"


@dataclass(frozen=True, repr=False)
class Variable(Node):
    name: str

    def evaluate(self, scope, tracer=None):
        # Constants shadow bindings of the same name
        if self.name in CONSTANTS:
            return CONSTANTS[self.name]
        return scope.lookup(self.name)

    def collect_term(self, var_name, scope):
        """Return (1, 0) if this variable is the unknown; else its bound value."""
        if self.name == var_name:
            return (1.0, 0.0)
        return (0.0, self.evaluate(scope))

    def __repr__(self):
        return f"Variable('{self.name}')"


@dataclass(frozen=True, repr=False)
class UnaryMinus(Node):
    operand: Node

    def children(self):
        return (self.operand,)

    def evaluate(self, scope, tracer=None):
        return -self.operand.evaluate(scope, tracer)

    def collect_term(self, var_name, scope):
        (faktor, konstante) = self.operand.collect_term(var_name, scope)
        return (-faktor, -konstante)

    def __repr__(self):
        return f"UnaryMinus({self.operand!r})"


@dataclass(frozen=True, repr=False)
class BinaryOp(Node):
    """AST node for a binary operation: left <op> right."""
    op: str
    left: Node
    right: Node

    def children(self):
        return (self.left, self.right)

    def evaluate(self, scope, tracer=None):
        left_value = self.left.evaluate(scope, tracer)
        right_value = self.right.evaluate(scope, tracer)
        ergebnis = apply_operator(self.op, left_value, right_value)
        if tracer is not None:
            tracer.record_operation(self.op, left_value, right_value, ergebnis)
        return ergebnis

    def collect_term(self, var_name, scope):
        """Collect linear terms on this subtree into (factor_of_var, constant).

        Only linear combinations are allowed; anything else raises NonLinear.
        """
        if self.op == '^':
            # Powers of the unknown (x^2, 2^x) are non-linear
            if mentions(self, var_name):
                raise E.NonLinear("Powers are not supported by the linear solver.")
            return (0.0, self.evaluate(scope))

        (left_faktor, left_konstante) = self.left.collect_term(var_name, scope)
        (right_faktor, right_konstante) = self.right.collect_term(var_name, scope)

        if self.op == '+':
            return (apply_operator('+', left_faktor, right_faktor),
                    apply_operator('+', left_konstante, right_konstante))

        elif self.op == '-':
            return (apply_operator('-', left_faktor, right_faktor),
                    apply_operator('-', left_konstante, right_konstante))

        elif self.op == '*':
            # Only constant * (A*x + B) is allowed. (A*x + B)*(C*x + D) would be non-linear.
            if left_faktor != 0 and right_faktor != 0:
                raise E.NonLinear("Non-linear term in multiplication.")
            elif left_faktor == 0:
                # B * (C*x + D) = (B*C)*x + (B*D)
                return (apply_operator('*', left_konstante, right_faktor),
                        apply_operator('*', left_konstante, right_konstante))
            else:
                # (A*x + B) * D = (A*D)*x + (B*D)
                return (apply_operator('*', left_faktor, right_konstante),
                        apply_operator('*', left_konstante, right_konstante))

        elif self.op == '/':
            # (A*x + B) / D is allowed; division by (C*x + D) is non-linear
            if right_faktor != 0:
                raise E.NonLinear("Non-linear equation. (Division by the unknown)")
            return (apply_operator('/', left_faktor, right_konstante),
                    apply_operator('/', left_konstante, right_konstante))

        raise E.EvalError(f"Unknown operator: {self.op}", code="3011")

    def __repr__(self):
        return f"BinaryOp({self.op!r}, left={self.left!r}, right={self.right!r})"


@dataclass(frozen=True, repr=False)
class Call(Node):
    name: str
    args: Tuple[Node, ...]

    def __post_init__(self):
        object.__setattr__(self, "args", tuple(self.args))

    def children(self):
        return self.args

    def evaluate(self, scope, tracer=None):
        argument_werte = [arg.evaluate(scope, tracer) for arg in self.args]
        ergebnis = call_function(self.name, argument_werte)
        if tracer is not None:
            tracer.record_call(self.name, argument_werte, ergebnis)
        return ergebnis

    def collect_term(self, var_name, scope):
        if mentions(self, var_name):
            raise E.NonLinear(f"Unknown inside function '{self.name}' is non-linear.")
        return (0.0, self.evaluate(scope))

    def __repr__(self):
        args = ", ".join(repr(arg) for arg in self.args)
        return f"Call('{self.name}', [{args}])"


@dataclass(frozen=True)
class Equation:
    lhs: Node
    rhs: Node
    text: str = ""

    def residual(self):
        """lhs - rhs as a single tree; the equation holds where it evaluates to 0."""
        return BinaryOp('-', self.lhs, self.rhs)


def walk(node):
    """Yield node and all of its descendants (pre-order)."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children()))


def mentions(node, var_name):
    return any(isinstance(n, Variable) and n.name == var_name for n in walk(node))


# -----------------------------
# Variable scope
# -----------------------------

class Scope:
    """Read-only view of the caller's bindings for one evaluation.

    Numeric bindings are converted on lookup. Expression-valued bindings
    (strings or AST nodes) are evaluated lazily against the same bindings
    and cached for the lifetime of the scope.
    """
    __slots__ = ("_bindings", "_resolved", "_pending")

    def __init__(self, bindings=None):
        self._bindings = bindings if bindings is not None else {}
        self._resolved = None
        self._pending = None

    def lookup(self, name):
        try:
            raw = self._bindings[name]
        except KeyError:
            raise E.UndefinedVariable(name) from None

        if type(raw) is float:
            return raw
        value = to_value(raw)
        if value is not None:
            return value
        return self._resolve(name, raw)

    def _resolve(self, name, raw):
        if self._resolved is None:
            self._resolved = {}
            self._pending = set()
        if name in self._resolved:
            return self._resolved[name]
        if name in self._pending:
            raise E.CircularDefinition(name)

        if isinstance(raw, str):
            baum = parse_expression(raw)
        elif isinstance(raw, Node):
            baum = raw
        else:
            raise E.EvalError(f"Invalid binding for variable '{name}': {raw!r}", code="3102")

        self._pending.add(name)
        try:
            value = baum.evaluate(self)
        finally:
            self._pending.discard(name)
        self._resolved[name] = value
        return value

    def __contains__(self, name):
        return name in self._bindings

    def names(self):
        return list(self._bindings)


def as_scope(env):
    if isinstance(env, Scope):
        return env
    return Scope(env)


# -----------------------------
# Parser (precedence climbing)
# -----------------------------

# (left binding power, right binding power); higher binds tighter.
# '^' has a lower right power than left power, which makes it right-associative.
BINDING_POWER = {
    '+': (10, 11),
    '-': (10, 11),
    '*': (20, 21),
    '/': (20, 21),
    '^': (41, 40),
}

# Unary minus sits between '*' '/' and '^': -2^2 == -(2^2), -2*3 == (-2)*3
UNARY_BINDING_POWER = 30


def parse(tokens, equation=None):
    """Parse a token list into an AST.

    Raises ParseError (with the offending token's position) on unexpected
    tokens, unmatched parentheses and trailing input.
    """
    tokens = list(tokens)
    if not tokens or tokens[-1].kind != TokenKind.EOF:
        end = tokens[-1].position + 1 if tokens else 0
        tokens.append(Token(TokenKind.EOF, None, end))
    index = 0

    def peek():
        return tokens[index]

    def advance():
        nonlocal index
        token = tokens[index]
        if token.kind != TokenKind.EOF:
            index += 1
        return token

    def fail(message, code, token):
        raise E.ParseError(message, code=code, equation=equation, position=token.position)

    def expect_rparen(opening):
        token = advance()
        if token.kind != TokenKind.RPAREN:
            fail(f"Missing closing parenthesis ')' for '(' at position {opening.position}",
                 "3009", token)

    def parse_call(function_token):
        opening = advance()
        if opening.kind != TokenKind.LPAREN:
            fail(f"Missing opening parenthesis after function {function_token.value}",
                 "3010", opening)
        args = []
        if peek().kind == TokenKind.RPAREN:
            advance()
            return Call(function_token.value, args)
        while True:
            args.append(parse_expression(0))
            token = advance()
            if token.kind == TokenKind.COMMA:
                continue
            if token.kind == TokenKind.RPAREN:
                return Call(function_token.value, args)
            fail(f"Missing closing parenthesis after arguments of '{function_token.value}'",
                 "3009", token)

    def parse_prefix():
        """Numbers, constants, variables, calls, '(' groups and unary signs."""
        token = advance()
        kind = token.kind

        if kind == TokenKind.NUMBER:
            return Number(token.value)
        elif kind == TokenKind.IMAGINARY:
            return Imaginary(token.value)
        elif kind == TokenKind.CONSTANT:
            return Constant(token.value)
        elif kind == TokenKind.VARIABLE:
            # name(...) is a call even when the name is not a known function;
            # UnknownFunction is raised on evaluation
            if peek().kind == TokenKind.LPAREN:
                return parse_call(token)
            return Variable(token.value)
        elif kind == TokenKind.FUNCTION:
            return parse_call(token)
        elif kind == TokenKind.LPAREN:
            baum_in_der_klammer = parse_expression(0)
            expect_rparen(token)
            return baum_in_der_klammer
        elif kind == TokenKind.OPERATOR and token.value == '-':
            return UnaryMinus(parse_expression(UNARY_BINDING_POWER))
        elif kind == TokenKind.OPERATOR and token.value == '+':
            return parse_expression(UNARY_BINDING_POWER)
        elif kind == TokenKind.RPAREN:
            fail("Unmatched closing parenthesis ')'", "3009", token)
        elif kind == TokenKind.EOF:
            fail("Missing Number.", "3027", token)
        fail(f"Unexpected token: {token.value if token.value is not None else kind.value}",
             "3011", token)

    def parse_expression(min_power):
        aktueller_baum = parse_prefix()
        while True:
            token = peek()
            if token.kind != TokenKind.OPERATOR:
                break
            left_power, right_power = BINDING_POWER[token.value]
            if left_power < min_power:
                break
            advance()
            rechtes_teil = parse_expression(right_power)
            aktueller_baum = BinaryOp(token.value, aktueller_baum, rechtes_teil)
        return aktueller_baum

    finaler_baum = parse_expression(0)

    rest = peek()
    if rest.kind == TokenKind.RPAREN:
        fail("Unmatched closing parenthesis ')'", "3009", rest)
    elif rest.kind != TokenKind.EOF:
        fail(f"Unexpected input after expression: {rest.value if rest.value is not None else rest.kind.value}",
             "3016", rest)

    logger.debug("Final AST: %r", finaler_baum)
    return finaler_baum


# -----------------------------
# Text entry points
# -----------------------------

def is_latex(problem):
    # braces never occur in plain infix input
    return "\\" in problem or "{" in problem


def prepare(problem):
    """Translate LaTeX input to plain infix; plain input passes through."""
    if is_latex(problem):
        translated = latex_to_standard(problem)
        logger.debug("LaTeX %r -> %r", problem, translated)
        return translated
    return problem


def parse_expression(problem):
    """Tokenize and parse a single expression (LaTeX is translated first)."""
    text = prepare(problem)
    return parse(tokenize(text), equation=text)


def _split_position(text):
    """Index of the first '=' outside any parentheses, or -1."""
    depth = 0
    for b, current_char in enumerate(text):
        if current_char in "({[":
            depth += 1
        elif current_char in ")}]":
            depth -= 1
        elif current_char == "=" and depth <= 0:
            return b
    return -1


def parse_equation(problem):
    """Parse 'lhs = rhs' into an Equation (split on the first top-level '=')."""
    if isinstance(problem, Equation):
        return problem
    text = prepare(problem)
    split = _split_position(text)
    if split == -1:
        raise E.ParseError("Not an equation (no '=' found).", code="3012",
                           equation=text, position=0)
    if not text[:split].strip() or not text[split + 1:].strip():
        raise E.ParseError("One of the equation sides is empty.", code="3022",
                           equation=text, position=split)

    linke_seite = parse(tokenize(text, 0, split), equation=text)
    rechte_seite = parse(tokenize(text, split + 1), equation=text)
    return Equation(linke_seite, rechte_seite, text)


def evaluate_ast(ast, env=None, tracer=None):
    """Evaluate an AST against env (mapping name -> value or expression)."""
    return ast.evaluate(as_scope(env), tracer)


def evaluate_value(problem, bindings=None, tracer=None):
    """Evaluate expression text or an AST; returns a float or complex."""
    try:
        baum = problem if isinstance(problem, Node) else parse_expression(problem)
        return evaluate_ast(baum, bindings, tracer)
    except E.MathError as e:
        if e.equation is None and isinstance(problem, str):
            e.equation = problem
        raise


def evaluate(problem, bindings=None):
    """Evaluate expression text to a real number.

    Complex results whose imaginary part is not negligible raise EvalError.
    """
    ergebnis = evaluate_value(problem, bindings)
    if isinstance(ergebnis, complex):
        raise E.EvalError(f"Complex result {ergebnis} where a real number was expected",
                          code="3103", equation=problem if isinstance(problem, str) else None)
    return ergebnis


def calculate(problem, variables=None, options=None, show_steps=False, significant_digits=None):
    """Main API: evaluate an expression, solve an equation or a list of equations.

    Returns a Value for expressions, a Solution for equations and, when
    show_steps is set, the list of Steps instead.
    """
    from . import Solver
    from .StepTracer import StepTracer

    tracer = None
    if show_steps:
        tracer = StepTracer(significant_digits=significant_digits)
        if isinstance(problem, (list, tuple)):
            tracer.begin("; ".join(str(equation) for equation in problem))
        else:
            tracer.begin(problem)

    if isinstance(problem, (list, tuple)):
        ergebnis = Solver.solve_system(problem, variables, options, tracer)
    elif isinstance(problem, Equation) or \
            (isinstance(problem, str) and _split_position(prepare(problem)) != -1):
        ergebnis = Solver.solve_equation(problem, variables, options, tracer)
    else:
        ergebnis = evaluate_value(problem, variables, tracer)

    if tracer is None:
        return ergebnis
    tracer.finish(ergebnis)
    return tracer.steps
