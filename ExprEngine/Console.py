# Console.py
"""
Console front-end.

    exprengine "2*x + 5 = 15"          -> x = 5
    exprengine "1/3"                   -> ≈ 0.3333333333
    exprengine --steps "2*(3+4)"
    exprengine                         -> interactive prompt, empty line quits
"""
import argparse
import logging
import math
import sys

from . import config_manager
from . import error as E
from .LatexTranslator import latex_to_standard
from .MathEngine import calculate
from .Solver import Solution
from .StepTracer import Step

logger = logging.getLogger(__name__)

PROMPT = ">>> "


def configure_logging(debug=False):
    """Attach one stream handler to the package logger."""
    package_logger = logging.getLogger("ExprEngine")
    package_logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    package_logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)
    return package_logger


# -----------------------------
# Result formatting
# -----------------------------

def cleanup(ergebnis, decimal_places=None):
    """Round a value to decimal_places for display.

    Returns:
        (rendered_value, rounding_flag)
    where rounding_flag tells whether digits were cut off.
    """
    if decimal_places is None:
        decimal_places = int(config_manager.load_setting_value("decimal_places"))

    if isinstance(ergebnis, complex):
        realteil, rundung_real = cleanup(ergebnis.real, decimal_places)
        imaginaerteil, rundung_imag = cleanup(abs(ergebnis.imag), decimal_places)
        vorzeichen = "-" if ergebnis.imag < 0 else "+"
        rounding = rundung_real or rundung_imag
        if realteil == "0":
            return ("-" if vorzeichen == "-" else "") + imaginaerteil + "i", rounding
        return f"{realteil}{vorzeichen}{imaginaerteil}i", rounding

    ergebnis = float(ergebnis)
    if not math.isfinite(ergebnis) or abs(ergebnis) >= 1e16:
        return repr(ergebnis), False

    if ergebnis.is_integer():
        # Integer result: returned as-is without rounding
        return str(int(ergebnis)), False

    gerundet = round(ergebnis, decimal_places)
    rounding = gerundet != ergebnis
    text = f"{gerundet:.{decimal_places}f}".rstrip("0").rstrip(".")
    if text in ("", "-0", "-"):
        text = "0"
    return text, rounding


def format_result(result, decimal_places=None):
    """Text for anything calculate() returns."""
    if isinstance(result, Solution):
        if result.method == "check":
            return "true" if result.satisfied else "false"
        zeilen = []
        for name, wert in result.items():
            text, rounding = cleanup(wert, decimal_places)
            zeilen.append(f"{name} {'≈' if rounding else '='} {text}")
        return "\n".join(zeilen)

    if isinstance(result, list) and all(isinstance(step, Step) for step in result):
        return "\n".join(step.description for step in result)

    text, rounding = cleanup(result, decimal_places)
    return f"{'≈' if rounding else '='} {text}"


# -----------------------------
# Command line
# -----------------------------

def _binding(text):
    name, sep, wert = text.partition("=")
    if not sep or not name.strip() or not wert.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {text!r}")
    return name.strip(), wert.strip()


def build_parser():
    parser = argparse.ArgumentParser(
        prog="exprengine",
        description="Evaluate expressions and solve equations.")
    parser.add_argument("problems", nargs="*",
                        help="expressions or equations; starts a prompt when omitted")
    parser.add_argument("--latex", action="store_true",
                        help="translate the input from LaTeX first")
    parser.add_argument("--steps", action="store_true",
                        help="print every reduction step")
    parser.add_argument("--digits", type=int, default=None,
                        help="significant digits of the step display")
    parser.add_argument("--var", type=_binding, action="append", default=[],
                        metavar="NAME=VALUE", help="bind a variable (value may be an expression)")
    parser.add_argument("--debug", action="store_true", help="log at DEBUG level")
    return parser


def run_problem(problem, variables, args, out=None, err=None):
    """Solve or evaluate one problem and print the result. Returns an exit code."""
    out = out or sys.stdout
    err = err or sys.stderr
    try:
        if args.latex:
            problem = latex_to_standard(problem)
        digits = args.digits
        if digits is None:
            digits = config_manager.load_setting_value("significant_digits")
        ergebnis = calculate(problem, variables, show_steps=args.steps,
                             significant_digits=digits or None)
    except E.MathError as e:
        logger.debug("error %s in %r", e.code, problem, exc_info=True)
        kategorie = E.Error_Dictionary.get(str(e.code)[:1], "Runtime Error")
        print(f"Error {e.code} ({kategorie}): {e}", file=err)
        return 1

    print(format_result(ergebnis), file=out)
    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)
    debug = args.debug or bool(config_manager.load_setting_value("debug"))
    configure_logging(debug)

    variables = dict(args.var)
    if args.problems:
        exit_codes = [run_problem(problem, variables, args) for problem in args.problems]
        return max(exit_codes)

    while True:
        try:
            line = input(PROMPT)
        except EOFError:
            break
        if not line.strip():
            break
        run_problem(line, variables, args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
