# StepTracer.py
"""Records human readable reduction steps while an expression is evaluated."""
import math
from dataclasses import asdict, dataclass
from typing import Any, Tuple

# Display symbols for the step description; the subexpression keeps ASCII
DISPLAY_SYMBOLS = {
    '+': '+',
    '-': '-',
    '*': '×',
    '/': '÷',
    '^': '^',
}

OPERATION_NAMES = {
    '+': "addition",
    '-': "subtraction",
    '*': "multiplication",
    '/': "division",
    '^': "power",
}


@dataclass(frozen=True)
class Step:
    operation: str
    description: str
    operands: Tuple[Any, ...] = ()
    result: Any = None
    subexpression: str = ""


def format_value(value, digits=None):
    """Render a value for display.

    With digits the value is rounded to that many significant digits.
    Otherwise integral values print without a decimal point and the rest
    with up to ten decimals.
    """
    if value is None:
        return ""
    if isinstance(value, complex):
        imaginaerteil = format_value(abs(value.imag), digits) + "i"
        vorzeichen = "-" if value.imag < 0 else "+"
        if value.real == 0:
            return imaginaerteil if vorzeichen == "+" else "-" + imaginaerteil
        return f"{format_value(value.real, digits)}{vorzeichen}{imaginaerteil}"

    value = float(value)
    if not math.isfinite(value):
        return repr(value)
    if digits:
        return f"{value:.{int(digits)}g}"
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))

    text = f"{value:.10f}".rstrip("0").rstrip(".")
    if text in ("0", "-0"):
        # too small for ten decimals
        return repr(value)
    return text


class StepTracer:
    """Observer handed to the evaluator (and solver).

    Tracing is a pure side channel: it only reads the operands and results
    the evaluator has already computed.
    """

    def __init__(self, significant_digits=None):
        self.significant_digits = significant_digits
        self._steps = []

    def format(self, value):
        return format_value(value, self.significant_digits)

    def record(self, operation, description, operands=(), result=None, subexpression=""):
        step = Step(operation, description, tuple(operands), result, subexpression)
        self._steps.append(step)
        return step

    def record_operation(self, op, left_value, right_value, result):
        links = self.format(left_value)
        rechts = self.format(right_value)
        self.record(
            OPERATION_NAMES[op],
            f"{links} {DISPLAY_SYMBOLS[op]} {rechts} = {self.format(result)}",
            (left_value, right_value),
            result,
            f"{links} {op} {rechts}",
        )

    def record_call(self, name, args, result):
        argumente = ", ".join(self.format(arg) for arg in args)
        self.record(
            "function",
            f"{name}({argumente}) = {self.format(result)}",
            args,
            result,
            f"{name}({argumente})",
        )

    def begin(self, problem):
        text = problem if isinstance(problem, str) else str(problem)
        self.record("initial", f"Evaluate {text}", subexpression=text)

    def finish(self, result):
        if isinstance(result, dict):
            # Solution of an equation or system
            if result:
                text = ", ".join(f"{name} = {self.format(wert)}" for name, wert in result.items())
            else:
                text = "satisfied" if getattr(result, "satisfied", False) else "not satisfied"
        else:
            text = self.format(result)
        self.record("result", f"Result: {text}", result=result)

    @property
    def steps(self):
        return list(self._steps)

    def to_dicts(self):
        return [asdict(step) for step in self._steps]

    def __len__(self):
        return len(self._steps)

    def __iter__(self):
        return iter(self._steps)
