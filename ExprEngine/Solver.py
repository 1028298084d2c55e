# Solver.py
"""
Equation and system solving on top of the evaluator and compiler.

Scalar equations first try the analytic linear path: lhs - rhs is collected
into a*x + b (MathEngine collect_term) and accepted when the residual
reproduces that slope at two sample points. Everything else goes to
Newton-Raphson. Systems use multivariable Newton with a finite difference
Jacobian; each correction step is solved by Gaussian elimination with
partial pivoting.
"""
import cmath
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, fields, replace
from typing import Optional, Union

import numpy as np

from . import config_manager
from . import error as E
from .Compiler import compile_expression
from .MathEngine import Equation, Node, Scope, parse_equation, parse_expression
from .Serializer import find_variables
from .StepTracer import format_value

logger = logging.getLogger(__name__)

# Relative step of the central difference quotient
DIFFERENCE_STEP = 1e-6
# Pivots below this (relative to the largest matrix entry) count as zero
SINGULAR_TOLERANCE = 1e-12
# Sample points of the linearity check
LINEAR_CHECK_POINTS = (1.0, 2.0)


# -----------------------------
# Options and results
# -----------------------------

@dataclass(frozen=True)
class SolveOptions:
    solve_for: Union[str, Sequence, None] = None
    # a number for every unknown, or per unknown as a mapping or a sequence
    initial_guess: Union[float, Mapping, Sequence, None] = None
    tolerance: Optional[float] = None
    max_iterations: Optional[int] = None
    xtol: Optional[float] = None
    max_nfev: Optional[int] = None
    fprime: Union[str, Node, None] = None

    @classmethod
    def build(cls, options=None, **overrides):
        """Merge options (None, dict or SolveOptions) with keyword overrides and config defaults."""
        if options is None:
            options = cls()
        elif isinstance(options, dict):
            bekannte = {field.name for field in fields(cls)}
            unbekannte = sorted(set(options) - bekannte)
            if unbekannte:
                raise E.SolveError(f"Unknown solve option(s): {', '.join(unbekannte)}", code="3031")
            options = cls(**options)

        gesetzt = {key: value for key, value in overrides.items() if value is not None}
        if gesetzt:
            options = replace(options, **gesetzt)
        return options.with_defaults()

    def with_defaults(self):
        settings = config_manager.load_setting_value("all")
        tolerance = float(self.tolerance if self.tolerance is not None else settings["tolerance"])
        return replace(
            self,
            initial_guess=self.initial_guess if self.initial_guess is not None
            else float(settings["initial_guess"]),
            tolerance=tolerance,
            max_iterations=int(self.max_iterations if self.max_iterations is not None
                               else settings["max_iterations"]),
            xtol=float(self.xtol) if self.xtol is not None else tolerance,
        )


class Solution(dict):
    """Mapping unknown -> value, plus how it was found.

    method is "linear", "newton", "newton-system" or "check" (no unknowns;
    then satisfied tells whether the equation holds).
    """

    def __init__(self, values=(), method=None, iterations=0, residual=0.0, satisfied=None):
        super().__init__(values)
        self.method = method
        self.iterations = iterations
        self.residual = residual
        self.satisfied = satisfied

    def __repr__(self):
        return f"Solution({dict.__repr__(self)}, method={self.method!r}, iterations={self.iterations})"


def _is_finite(value):
    return cmath.isfinite(value)


def _close(a, b):
    return abs(a - b) <= 1e-9 * max(1.0, abs(a), abs(b))


def _start_values(guess, names):
    """Starting point of each unknown in names."""
    if isinstance(guess, Mapping):
        standard = float(config_manager.load_setting_value("initial_guess"))
        return [float(guess.get(name, standard)) for name in names]
    if isinstance(guess, (Sequence, np.ndarray)) and not isinstance(guess, str):
        if len(guess) != len(names):
            raise E.SolveError(f"Expected {len(names)} initial guess(es), got {len(guess)}",
                               code="3032")
        return [float(wert) for wert in guess]
    return [guess] * len(names)


# -----------------------------
# Scalar equations
# -----------------------------

def _solve_linear(residual, var_name, bindings, f, options, tracer):
    """x = -b/a from residual = a*x + b; raises NonLinear when that form does not hold."""
    (faktor, konstante) = residual.collect_term(var_name, Scope(bindings))

    # The collected coefficients must reproduce the residual at two points
    x1, x2 = LINEAR_CHECK_POINTS
    f1 = f(x1)
    f2 = f(x2)
    if not (_close((f2 - f1) / (x2 - x1), faktor) and _close(f1, faktor * x1 + konstante)):
        raise E.NonLinear("Coefficients do not match the residual.")

    logger.debug("linear form: %r*%s + %r", faktor, var_name, konstante)
    if faktor == 0:
        if abs(konstante) < options.tolerance:
            raise E.InfiniteSolutions()
        raise E.NoSolution()

    ergebnis = -konstante / faktor
    if isinstance(ergebnis, complex) and abs(ergebnis.imag) < 1e-14:
        ergebnis = ergebnis.real

    if tracer is not None:
        tracer.record("linear",
                      f"{tracer.format(faktor)}·{var_name} + {tracer.format(konstante)} = 0 → "
                      f"{var_name} = {tracer.format(ergebnis)}",
                      (faktor, konstante), ergebnis, f"{var_name} = -b / a")
    return Solution({var_name: ergebnis}, method="linear", iterations=0,
                    residual=abs(f(ergebnis)))


def _derivative(f, fprime):
    if fprime is not None:
        return fprime, 1

    def central_difference(x):
        h = DIFFERENCE_STEP * max(1.0, abs(x))
        return (f(x + h) - f(x - h)) / (2 * h)

    return central_difference, 2


def _newton(f, var_name, options, fprime, tracer):
    ableitung, kosten = _derivative(f, fprime)
    x = _start_values(options.initial_guess, [var_name])[0]
    iterations = 0
    nfev = 0

    while True:
        fx = f(x)
        nfev += 1
        if not _is_finite(fx):
            raise E.NoConvergence(f"Residual is not finite at {var_name} = {x}")
        if abs(fx) < options.tolerance:
            return Solution({var_name: x}, method="newton", iterations=iterations, residual=abs(fx))

        if iterations >= options.max_iterations or \
                (options.max_nfev is not None and nfev + kosten > options.max_nfev):
            raise E.MaxIterationsExceeded(x, iterations)

        dfx = ableitung(x)
        nfev += kosten
        if dfx == 0:
            raise E.ZeroDerivative(x)
        if not _is_finite(dfx):
            raise E.NoConvergence(f"Derivative is not finite at {var_name} = {x}")

        schritt = fx / dfx
        x_neu = x - schritt
        iterations += 1
        logger.debug("newton %d: %s = %r (f = %r, f' = %r)", iterations, var_name, x_neu, fx, dfx)
        if tracer is not None:
            tracer.record("newton",
                          f"Iteration {iterations}: {var_name} = {tracer.format(x)} - "
                          f"{tracer.format(fx)} ÷ {tracer.format(dfx)} = {tracer.format(x_neu)}",
                          (x, fx, dfx), x_neu, f"{var_name} - f({var_name}) / f'({var_name})")

        if not _is_finite(x_neu):
            raise E.NoConvergence(f"Newton iterate diverged after {iterations} iterations")
        x = x_neu

        if abs(schritt) < options.xtol:
            fx = f(x)
            nfev += 1
            if _is_finite(fx):
                return Solution({var_name: x}, method="newton", iterations=iterations,
                                residual=abs(fx))


def _unknown_of(residual, known, options):
    """Pick the variable to solve for, or None when nothing is unknown."""
    vorkommende = find_variables(residual)
    if options.solve_for is not None:
        if options.solve_for not in vorkommende:
            raise E.SolveError(f"Variable not found in equation: {options.solve_for}", code="3020")
        return options.solve_for

    unbekannte = [name for name in vorkommende if name not in known]
    if len(unbekannte) > 1:
        raise E.AmbiguousUnknowns(unbekannte)
    return unbekannte[0] if unbekannte else None


def _check(residuals, known, options):
    scope = Scope(known)
    werte = [residual.evaluate(scope) for residual in residuals]
    norm = float(np.sqrt(sum(abs(wert) ** 2 for wert in werte)))
    return Solution({}, method="check", residual=norm, satisfied=bool(norm < options.tolerance))


def _solve_parsed(gleichung, known, options, tracer):
    residual = gleichung.residual()
    var_name = _unknown_of(residual, known, options)
    if var_name is None:
        return _check([residual], known, options)

    bindings = {name: value for name, value in known.items() if name != var_name}
    programm = compile_expression(residual)

    def f(x):
        werte = dict(bindings)
        werte[var_name] = x
        return programm(werte)

    try:
        return _solve_linear(residual, var_name, bindings, f, options, tracer)
    except E.NonLinear as e:
        logger.debug("linear solve rejected (%s); using Newton", e.message)

    fprime = None
    if options.fprime is not None:
        ableitung = options.fprime
        if isinstance(ableitung, str):
            ableitung = parse_expression(ableitung)
        fprime_programm = compile_expression(ableitung)

        def fprime(x):
            werte = dict(bindings)
            werte[var_name] = x
            return fprime_programm(werte)

    return _newton(f, var_name, options, fprime, tracer)


def solve_equation(equation, known_vars=None, options=None, tracer=None, **overrides):
    """Solve one equation ("lhs = rhs" text or an Equation) for its unknown.

    Keyword overrides (solve_for, initial_guess, tolerance, ...) take
    precedence over options, which take precedence over config.json.
    """
    options = SolveOptions.build(options, **overrides)
    known = dict(known_vars or {})
    try:
        gleichung = parse_equation(equation)
        return _solve_parsed(gleichung, known, options, tracer)
    except E.MathError as e:
        if e.equation is None:
            e.equation = equation.text if isinstance(equation, Equation) else equation
        raise


# -----------------------------
# Systems
# -----------------------------

def gaussian_elimination(matrix, rhs):
    """Solve matrix @ x = rhs with partial pivoting; raises SingularJacobian."""
    a = np.array(matrix, dtype=float)
    b = np.array(rhs, dtype=float)
    n = b.size
    skala = float(np.max(np.abs(a))) if a.size else 0.0

    for spalte in range(n):
        pivot_zeile = spalte + int(np.argmax(np.abs(a[spalte:, spalte])))
        if abs(a[pivot_zeile, spalte]) <= SINGULAR_TOLERANCE * skala or skala == 0.0:
            raise E.SingularJacobian()
        if pivot_zeile != spalte:
            a[[spalte, pivot_zeile]] = a[[pivot_zeile, spalte]]
            b[[spalte, pivot_zeile]] = b[[pivot_zeile, spalte]]

        for zeile in range(spalte + 1, n):
            faktor = a[zeile, spalte] / a[spalte, spalte]
            a[zeile, spalte:] -= faktor * a[spalte, spalte:]
            b[zeile] -= faktor * b[spalte]

    x = np.zeros(n)
    for zeile in reversed(range(n)):
        x[zeile] = (b[zeile] - a[zeile, zeile + 1:] @ x[zeile + 1:]) / a[zeile, zeile]
    return x


def _jacobian(F, x, fx):
    J = np.empty((fx.size, x.size))
    for spalte in range(x.size):
        h = DIFFERENCE_STEP * max(1.0, abs(x[spalte]))
        vorwaerts = x.copy()
        vorwaerts[spalte] += h
        rueckwaerts = x.copy()
        rueckwaerts[spalte] -= h
        J[:, spalte] = (F(vorwaerts) - F(rueckwaerts)) / (2 * h)
    return J


def _system_unknowns(residuals, known, options):
    vorkommende = []
    for residual in residuals:
        for name in find_variables(residual):
            if name not in vorkommende:
                vorkommende.append(name)

    if options.solve_for is None:
        return [name for name in vorkommende if name not in known]

    gewuenscht = [options.solve_for] if isinstance(options.solve_for, str) else list(options.solve_for)
    for name in gewuenscht:
        if name not in vorkommende:
            raise E.SolveError(f"Variable not found in equation: {name}", code="3020")
    return gewuenscht


def solve_system(equations, known_vars=None, options=None, tracer=None, **overrides):
    """Solve a list of equations simultaneously with multivariable Newton.

    Converged when the Euclidean norm of the residual vector is below the
    tolerance. More equations than unknowns use Gauss-Newton steps.
    """
    options = SolveOptions.build(options, **overrides)
    known = dict(known_vars or {})
    gleichungen = [parse_equation(equation) for equation in equations]
    if not gleichungen:
        raise E.SolveError("Empty system of equations.", code="3012")
    if len(gleichungen) == 1:
        if options.solve_for is not None and not isinstance(options.solve_for, str):
            gewuenscht = list(options.solve_for)
            if len(gewuenscht) > 1:
                raise E.AmbiguousUnknowns(gewuenscht)
            options = replace(options, solve_for=gewuenscht[0] if gewuenscht else None)
        return solve_equation(gleichungen[0], known, options, tracer)

    residuals = [gleichung.residual() for gleichung in gleichungen]
    unbekannte = _system_unknowns(residuals, known, options)
    if not unbekannte:
        return _check(residuals, known, options)
    if len(unbekannte) > len(residuals):
        raise E.AmbiguousUnknowns(unbekannte)

    programme = [compile_expression(residual) for residual in residuals]
    bindings = {name: value for name, value in known.items() if name not in unbekannte}

    def F(vektor):
        werte = dict(bindings)
        werte.update(zip(unbekannte, vektor.tolist()))
        ergebnisse = [programm(werte) for programm in programme]
        if any(isinstance(wert, complex) for wert in ergebnisse):
            raise E.NoConvergence("System residual became complex.")
        return np.array(ergebnisse, dtype=float)

    x = np.array(_start_values(options.initial_guess, unbekannte), dtype=float)
    norm = float("inf")
    for iteration in range(options.max_iterations + 1):
        fx = F(x)
        if not np.all(np.isfinite(fx)):
            raise E.NoConvergence(f"Residual is not finite after {iteration} iterations.")
        norm = float(np.linalg.norm(fx))
        if norm < options.tolerance:
            return Solution(dict(zip(unbekannte, x.tolist())), method="newton-system",
                            iterations=iteration, residual=norm)
        if iteration == options.max_iterations:
            break

        J = _jacobian(F, x, fx)
        if len(residuals) > len(unbekannte):
            # Gauss-Newton: least squares step through the normal equations
            schritt = gaussian_elimination(J.T @ J, -(J.T @ fx))
        else:
            schritt = gaussian_elimination(J, -fx)
        x = x + schritt

        logger.debug("newton-system %d: %s (|F| = %g)", iteration + 1,
                     dict(zip(unbekannte, x.tolist())), norm)
        if tracer is not None:
            belegung = ", ".join(f"{name} = {format_value(wert, tracer.significant_digits)}"
                                 for name, wert in zip(unbekannte, x.tolist()))
            tracer.record("newton-system", f"Iteration {iteration + 1}: {belegung}",
                          tuple(fx.tolist()), tuple(x.tolist()), f"|F| = {norm:g}")

    raise E.NoConvergence(
        f"No convergence after {options.max_iterations} iterations (residual norm {norm:g}).")
