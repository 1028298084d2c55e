# error.py
"""Error types raised by the expression engine.

Every error derives from MathError and carries a four digit code (the first
digit selects the category in Error_Dictionary), the equation/expression
text it belongs to and, for syntax errors, the character position inside
that text.
"""


class MathError(Exception):
    def __init__(self, message, code="9999", equation=None, position=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.equation = equation
        self.position = position

    def __str__(self):
        if self.position is not None:
            return f"{self.message} (position {self.position})"
        return self.message


# -----------------------------
# Syntax errors
# -----------------------------

class LexError(MathError):
    """Unrecognized character or malformed literal in the source text."""
    def __init__(self, message, code="3001", equation=None, position=None, character=None):
        super().__init__(message, code=code, equation=equation, position=position)
        self.character = character


class ParseError(MathError):
    pass


# -----------------------------
# Evaluation errors
# -----------------------------

class EvalError(MathError):
    pass


class UndefinedVariable(EvalError):
    def __init__(self, name, equation=None):
        super().__init__(f"Undefined variable: {name}", code="3100", equation=equation)
        self.name = name


class UnknownFunction(EvalError):
    def __init__(self, name, equation=None):
        super().__init__(f"Unknown function: {name}", code="2004", equation=equation)
        self.name = name


class ArityMismatch(EvalError):
    def __init__(self, name, expected, got, equation=None):
        super().__init__(f"Function '{name}' expects {expected} argument(s), got {got}",
                         code="2005", equation=equation)
        self.name = name
        self.expected = expected
        self.got = got


class DomainError(EvalError):
    pass


class CircularDefinition(EvalError):
    def __init__(self, name, equation=None):
        super().__init__(f"Circular variable definition: {name}", code="3101", equation=equation)
        self.name = name


# -----------------------------
# Solver errors
# -----------------------------

class SolveError(MathError):
    pass


class AmbiguousUnknowns(SolveError):
    def __init__(self, unknowns, equation=None):
        names = ", ".join(unknowns)
        super().__init__(f"Multiple unknowns: {names}. Specify solve_for or provide values "
                         f"for all but one.", code="3002", equation=equation)
        self.unknowns = list(unknowns)


class NonLinear(SolveError):
    """Raised by coefficient collection; the solver falls back to Newton."""
    def __init__(self, message, equation=None):
        super().__init__(message, code="3005", equation=equation)


class InfiniteSolutions(SolveError):
    def __init__(self, equation=None):
        super().__init__("Infinite solutions (identity).", code="3013", equation=equation)


class NoSolution(SolveError):
    def __init__(self, equation=None):
        super().__init__("No solution (contradiction).", code="3014", equation=equation)


class ZeroDerivative(SolveError):
    def __init__(self, x, equation=None):
        super().__init__(f"Derivative is zero at x = {x}", code="3017", equation=equation)
        self.x = x


class MaxIterationsExceeded(SolveError):
    def __init__(self, x, iterations, equation=None):
        super().__init__(f"No convergence after {iterations} iterations (last estimate {x})",
                         code="3018", equation=equation)
        self.x = x
        self.iterations = iterations


class NoConvergence(SolveError):
    def __init__(self, message, equation=None):
        super().__init__(message, code="3019", equation=equation)


class SingularJacobian(SolveError):
    def __init__(self, equation=None):
        super().__init__("Jacobian is singular; the system has no unique correction step.",
                         code="3021", equation=equation)


Error_Dictionary = {

    "2" : "Scientific Function Error",
    "3" : "Calculator Error",
    "5" : "Configuration Error",
    "9" : "Runtime Error"

}

#Error Messages are structured in:
# 1. Digit: Main Error
# 2. Digit: Subcategory
# 3. and 4. Digit: Error Number

