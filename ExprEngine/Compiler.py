# Compiler.py
"""
Compiles an AST once into a reusable callable.

codegen=True builds a tree of closures specialised to the AST, folding every
subtree without free variables at compile time. codegen=False wraps the tree
walking evaluator. Both paths use the same operator and function table and
the same variable scope, so they return identical values.
"""
import logging
from collections.abc import Mapping

from . import config_manager
from . import error as E
from .Lexer import Token
from .MathEngine import (BinaryOp, Call, Constant, Imaginary, Node, Number, Scope, UnaryMinus,
                         Variable, as_scope, parse, parse_expression)
from .ScientificEngine import (CONSTANTS, OPERATORS, call_function, check_arity, collapse,
                               lookup_function, to_value)
from .Serializer import find_variables

logger = logging.getLogger(__name__)


# -----------------------------
# AST validation
# -----------------------------

def _invalid(detail):
    raise E.ParseError(f"Invalid AST: {detail}", code="3030")


def validate(node):
    """Reject trees the parser could never have produced."""
    if not isinstance(node, Node):
        _invalid(f"not an AST node: {node!r}")

    if isinstance(node, BinaryOp):
        if node.op not in OPERATORS:
            _invalid(f"unknown operator {node.op!r}")
    elif isinstance(node, Constant):
        if node.name not in CONSTANTS:
            _invalid(f"unknown constant {node.name!r}")
    elif isinstance(node, (Variable, Call)):
        if not isinstance(node.name, str) or not node.name:
            _invalid(f"invalid name {node.name!r}")
    elif not isinstance(node, (Number, Imaginary, UnaryMinus)):
        _invalid(f"unsupported node type {type(node).__name__}")

    for child in node.children():
        validate(child)


# -----------------------------
# Closure generation
# -----------------------------

def _has_free_variables(node):
    if isinstance(node, Variable):
        return node.name not in CONSTANTS
    return any(_has_free_variables(child) for child in node.children())


def _generate(node):
    """Return a closure scope -> value computing node."""
    if not _has_free_variables(node):
        try:
            wert = node.evaluate(Scope())
        except E.EvalError:
            # left unfolded so the error surfaces on every call
            pass
        else:
            return lambda scope: wert

    if isinstance(node, Variable):
        name = node.name
        return lambda scope: scope.lookup(name)

    if isinstance(node, UnaryMinus):
        operand = _generate(node.operand)
        return lambda scope: -operand(scope)

    if isinstance(node, BinaryOp):
        operator = OPERATORS[node.op]
        links = _generate(node.left)
        rechts = _generate(node.right)
        return lambda scope: operator(links(scope), rechts(scope))

    if isinstance(node, Call):
        name = node.name
        argumente = tuple(_generate(arg) for arg in node.args)
        try:
            function = lookup_function(name)
            check_arity(function, len(argumente))
        except E.EvalError:
            # raises UnknownFunction / ArityMismatch after the arguments, like the evaluator
            return lambda scope: call_function(name, [arg(scope) for arg in argumente])
        impl = function.impl
        return lambda scope: collapse(impl(*[arg(scope) for arg in argumente]))

    # Literals always fold; anything else failed validation already
    _invalid(f"unsupported node type {type(node).__name__}")


# -----------------------------
# Compiled expression
# -----------------------------

class CompiledExpression:
    """Immutable callable produced by compile_expression().

    call() takes a mapping of bindings, or a bare number for expressions with
    at most one free variable.
    """
    __slots__ = ("ast", "variables", "codegen", "_program")

    def __init__(self, ast, codegen):
        object.__setattr__(self, "ast", ast)
        object.__setattr__(self, "variables", tuple(find_variables(ast)))
        object.__setattr__(self, "codegen", codegen)
        if codegen:
            program = _generate(ast)
        else:
            program = ast.evaluate
        object.__setattr__(self, "_program", program)

    def __setattr__(self, name, value):
        raise AttributeError("CompiledExpression is immutable")

    def _scalar_bindings(self, value):
        if len(self.variables) > 1:
            raise E.EvalError(
                f"Scalar argument needs a single-variable expression, "
                f"found: {', '.join(self.variables)}", code="3104")
        name = self.variables[0] if self.variables else "x"
        return {name: value}

    def call(self, bindings=None):
        if bindings is None:
            bindings = {}
        elif not isinstance(bindings, (Mapping, Scope)):
            wert = to_value(bindings)
            if wert is None:
                raise E.EvalError(f"Invalid bindings: {bindings!r}", code="3102")
            bindings = self._scalar_bindings(wert)
        return self._program(as_scope(bindings))

    def __call__(self, bindings=None):
        return self.call(bindings)

    def __repr__(self):
        return f"CompiledExpression({self.ast}, codegen={self.codegen})"


def compile_expression(source, codegen=None):
    """Compile text, a token list or an AST into a CompiledExpression.

    codegen=None takes the "codegen" setting from config.json.
    """
    if codegen is None:
        codegen = bool(config_manager.load_setting_value("codegen"))

    if isinstance(source, str):
        ast = parse_expression(source)
    elif isinstance(source, (list, tuple)) and all(isinstance(token, Token) for token in source):
        ast = parse(source)
    else:
        ast = source

    validate(ast)
    compiled = CompiledExpression(ast, codegen)
    logger.debug("compiled %r (variables: %s)", compiled, compiled.variables)
    return compiled
