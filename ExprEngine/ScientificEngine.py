# ScientificEngine.py
"""Scalar arithmetic, constants and the function table used by the evaluator.

Values are plain floats (real) or complex numbers. Every operation promotes
to complex when one operand is complex and collapses the result back to a
float once the imaginary part is below SIMPLIFY_THRESHOLD. Multi-valued
functions follow the principal branch (cmath).
"""
import cmath
import math
import numbers
from collections import namedtuple
from types import MappingProxyType

from . import error as E

# Imaginary parts smaller than this are treated as exact zero.
SIMPLIFY_THRESHOLD = 1e-14

CONSTANTS = MappingProxyType({
    "pi": math.pi,
    "e": math.e,
    "inf": math.inf,
    "nan": math.nan,
})


# -----------------------------
# Value helpers
# -----------------------------

def collapse(value):
    """Return value as float, or as complex if the imaginary part matters."""
    if isinstance(value, complex):
        if abs(value.imag) < SIMPLIFY_THRESHOLD:
            return float(value.real)
        return value
    return float(value)


def to_value(raw):
    """Convert a caller supplied number (int, float, complex, numpy scalar) to a Value.

    Returns None when raw is not a number.
    """
    if isinstance(raw, numbers.Real):
        return float(raw)
    if isinstance(raw, numbers.Complex):
        return collapse(complex(raw))
    return None


# -----------------------------
# Operators
# -----------------------------

def _real_divide(a, b):
    """IEEE division: x/0 gives +-inf, 0/0 and nan/0 give nan."""
    try:
        return a / b
    except ZeroDivisionError:
        if a != a or a == 0:
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def add(a, b):
    return collapse(a + b)


def subtract(a, b):
    return collapse(a - b)


def multiply(a, b):
    return collapse(a * b)


def divide(a, b):
    if isinstance(a, complex) or isinstance(b, complex):
        try:
            return collapse(a / b)
        except ZeroDivisionError:
            zaehler = complex(a)
            nenner = complex(b).real
            return collapse(complex(_real_divide(zaehler.real, nenner),
                                    _real_divide(zaehler.imag, nenner)))
    return _real_divide(a, b)


def power(a, b):
    try:
        return collapse(a ** b)
    except ZeroDivisionError:
        # 0 raised to a negative power
        return math.inf
    except OverflowError:
        if not isinstance(a, complex) and not isinstance(b, complex) and a < 0 \
                and float(b).is_integer() and int(b) % 2 == 1:
            return -math.inf
        return math.inf


OPERATORS = MappingProxyType({
    "+": add,
    "-": subtract,
    "*": multiply,
    "/": divide,
    "^": power,
})


def apply_operator(operator, left_value, right_value):
    return OPERATORS[operator](left_value, right_value)


# -----------------------------
# Function table
# -----------------------------

Function = namedtuple("Function", ["name", "min_args", "max_args", "impl"])


def _analytic(real_fn, complex_fn, singular=None, odd=False):
    """Real implementation with a principal-branch complex fallback."""
    def apply(x):
        if isinstance(x, complex):
            try:
                return complex_fn(x)
            except OverflowError:
                return complex(math.inf, 0)
        try:
            return real_fn(x)
        except OverflowError:
            return math.copysign(math.inf, x) if odd else math.inf
        except ValueError:
            pass
        try:
            return complex_fn(x)
        except ValueError:
            # pole of the function (log(0), atanh(1))
            return singular(x) if singular else math.nan
    return apply


def _real_only(name, fn):
    def apply(*args):
        for arg in args:
            if isinstance(arg, complex):
                raise E.DomainError(f"Function '{name}' does not accept complex arguments",
                                    code="2006")
        return fn(*args)
    return apply


def _integral(fn):
    # floor/ceil on inf or nan would raise; those values pass through unchanged
    def apply(x):
        if not math.isfinite(x):
            return x
        return float(fn(x))
    return apply


def _log(x, base=None):
    ergebnis = _natural_log(x)
    if base is None:
        return ergebnis
    return divide(ergebnis, _natural_log(base))


def _sign(x):
    if x != x:
        return x
    if x > 0:
        return 1.0
    if x < 0:
        return -1.0
    return 0.0


def _cbrt_complex(x):
    return cmath.exp(cmath.log(x) / 3)


def _complex_log2(x):
    return cmath.log(x) / math.log(2)


_natural_log = _analytic(math.log, cmath.log, singular=lambda x: -math.inf)

_TABLE = [
    # Trigonometric
    Function("sin", 1, 1, _analytic(math.sin, cmath.sin)),
    Function("cos", 1, 1, _analytic(math.cos, cmath.cos)),
    Function("tan", 1, 1, _analytic(math.tan, cmath.tan)),
    Function("asin", 1, 1, _analytic(math.asin, cmath.asin)),
    Function("acos", 1, 1, _analytic(math.acos, cmath.acos)),
    Function("atan", 1, 1, _analytic(math.atan, cmath.atan)),
    Function("atan2", 2, 2, _real_only("atan2", math.atan2)),
    # Hyperbolic
    Function("sinh", 1, 1, _analytic(math.sinh, cmath.sinh, odd=True)),
    Function("cosh", 1, 1, _analytic(math.cosh, cmath.cosh)),
    Function("tanh", 1, 1, _analytic(math.tanh, cmath.tanh)),
    Function("asinh", 1, 1, _analytic(math.asinh, cmath.asinh)),
    Function("acosh", 1, 1, _analytic(math.acosh, cmath.acosh)),
    Function("atanh", 1, 1, _analytic(math.atanh, cmath.atanh,
                                      singular=lambda x: math.copysign(math.inf, x))),
    # Exponential and logarithmic
    Function("exp", 1, 1, _analytic(math.exp, cmath.exp)),
    Function("log", 1, 2, _log),
    Function("ln", 1, 1, _natural_log),
    Function("log10", 1, 1, _analytic(math.log10, cmath.log10, singular=lambda x: -math.inf)),
    Function("log2", 1, 1, _analytic(math.log2, _complex_log2, singular=lambda x: -math.inf)),
    # Power and roots
    Function("sqrt", 1, 1, _analytic(math.sqrt, cmath.sqrt)),
    Function("cbrt", 1, 1, _analytic(math.cbrt, _cbrt_complex)),
    Function("pow", 2, 2, power),
    # Absolute value, sign and rounding
    Function("abs", 1, 1, abs),
    Function("sign", 1, 1, _real_only("sign", _sign)),
    Function("floor", 1, 1, _real_only("floor", _integral(math.floor))),
    Function("ceil", 1, 1, _real_only("ceil", _integral(math.ceil))),
    Function("round", 1, 1, _real_only("round", _integral(lambda x: math.floor(x + 0.5)))),
    Function("trunc", 1, 1, _real_only("trunc", _integral(math.trunc))),
    # Min/max and interpolation
    Function("min", 1, None, _real_only("min", lambda *args: min(args))),
    Function("max", 1, None, _real_only("max", lambda *args: max(args))),
    Function("clamp", 3, 3, _real_only("clamp", lambda x, lo, hi: min(max(x, lo), hi))),
    Function("lerp", 3, 3, lambda a, b, t: add(a, multiply(subtract(b, a), t))),
    # Angle conversion
    Function("rad", 1, 1, lambda x: multiply(x, math.pi / 180.0)),
    Function("deg", 1, 1, lambda x: multiply(x, 180.0 / math.pi)),
    # Complex helpers
    Function("re", 1, 1, lambda x: x.real),
    Function("im", 1, 1, lambda x: x.imag),
    Function("conj", 1, 1, lambda x: x.conjugate()),
    Function("arg", 1, 1, cmath.phase),
]

FUNCTIONS = MappingProxyType({function.name: function for function in _TABLE})

FUNCTION_NAMES = frozenset(FUNCTIONS)
CONSTANT_NAMES = frozenset(CONSTANTS)


def expected_arity(function):
    if function.max_args is None:
        return f"at least {function.min_args}"
    if function.min_args == function.max_args:
        return str(function.min_args)
    return f"{function.min_args}-{function.max_args}"


def lookup_function(name):
    """Return the table entry for name or raise UnknownFunction."""
    function = FUNCTIONS.get(name)
    if function is None:
        raise E.UnknownFunction(name)
    return function


def check_arity(function, count):
    if count < function.min_args or (function.max_args is not None and count > function.max_args):
        raise E.ArityMismatch(function.name, expected_arity(function), count)


def call_function(name, args):
    """Apply the named function to already evaluated arguments."""
    function = lookup_function(name)
    check_arity(function, len(args))
    return collapse(function.impl(*args))
