# LatexTranslator.py
"""
LaTeX to infix translation.

The translator only rewrites text: its output goes through the normal
tokenizer and parser, so it never depends on the grammar. Braces are matched
with an explicit balanced scan and every group is translated recursively,
which keeps nested input such as \\frac{a+{b}}{c} intact.

Examples
--------
    \\frac{1}{2}          -> (1)/(2)
    \\sqrt[3]{x}          -> (x)^(1/(3))
    x^{2}                -> x^(2)
    2\\pi r               -> 2*pi*r
    \\left|x\\right|       -> abs(x)
"""
from . import error as E
from .ScientificEngine import FUNCTION_NAMES

GREEK_LETTERS = frozenset([
    "alpha", "beta", "gamma", "delta", "epsilon", "varepsilon", "zeta", "eta",
    "theta", "vartheta", "iota", "kappa", "lambda", "mu", "nu", "xi", "pi",
    "varpi", "rho", "varrho", "sigma", "varsigma", "tau", "upsilon", "phi",
    "varphi", "chi", "psi", "omega",
    "Gamma", "Delta", "Theta", "Lambda", "Xi", "Pi", "Sigma", "Upsilon",
    "Phi", "Psi", "Omega",
])

# LaTeX spellings that differ from the engine's function names
FUNCTION_ALIASES = {
    "arcsin": "asin",
    "arccos": "acos",
    "arctan": "atan",
    "arcsinh": "asinh",
    "arccosh": "acosh",
    "arctanh": "atanh",
}

FRACTION_COMMANDS = frozenset(["frac", "dfrac", "tfrac"])
SPACING_COMMANDS = frozenset([",", ";", ":", "!", " ", "quad", "qquad"])
OPERATOR_COMMANDS = {"cdot": "*", "times": "*", "div": "/"}
TEXT_COMMANDS = frozenset(["mathrm", "mathit", "mathbf", "text", "textrm"])
SYMBOL_COMMANDS = {"infty": "inf"}

_LEFT_DELIMITERS = {"(": "(", "[": "(", "\\{": "(", "|": "abs(", ".": ""}
_RIGHT_DELIMITERS = {")": ")", "]": ")", "\\}": ")", "|": ")", ".": ""}


def _unbalanced(position):
    raise E.ParseError("Unbalanced braces in LaTeX input.", code="3025", position=position)


def _skip_spaces(latex, pos):
    while pos < len(latex) and latex[pos].isspace():
        pos += 1
    return pos


def isolate_group(latex, pos, opening="{", closing="}"):
    """Return (content, position_after_group) for the balanced group starting at pos.

    Leading whitespace is skipped. Escaped delimiters (\\{ and \\}) do not count.
    """
    pos = _skip_spaces(latex, pos)
    if pos >= len(latex) or latex[pos] != opening:
        raise E.ParseError(f"Expected '{opening}' in LaTeX input.", code="3025", position=pos)
    b = pos + 1
    bracket_count = 1
    while b < len(latex):
        current_char = latex[b]
        if current_char == "\\":
            b += 2
            continue
        if current_char == opening:
            bracket_count += 1
        elif current_char == closing:
            bracket_count -= 1
            if bracket_count == 0:
                return latex[pos + 1:b], b + 1
        b += 1
    _unbalanced(pos)


def _read_command(latex, pos):
    """Read the command name after the backslash at pos; returns (name, end)."""
    b = pos + 1
    if b < len(latex) and latex[b].isalpha():
        while b < len(latex) and latex[b].isalpha():
            b += 1
        return latex[pos + 1:b], b
    return latex[pos + 1:b + 1], b + 1


class _Translator:
    """Translates one brace level; nested groups get their own translator."""

    def __init__(self, latex, offset=0):
        self.latex = latex
        # start of this text inside the enclosing group
        self.offset = offset
        self.pos = 0
        self.pieces = []
        # the last piece ends an operand (number, name, closing parenthesis)
        self.operand_end = False
        # that operand came from a command or group, so juxtaposition means '*'
        self.command_end = False
        # the last piece is a function name waiting for its '('
        self.after_function = False

    # --- output helpers ---

    def _multiply(self):
        while self.pieces and self.pieces[-1].isspace():
            self.pieces.pop()
        self.pieces.append("*")

    def emit_operand(self, text, from_command=True):
        implicit = self.operand_end and not self.after_function and \
            (from_command or self.command_end)
        if implicit:
            self._multiply()
        self.pieces.append(text)
        self.operand_end = True
        self.command_end = from_command
        self.after_function = False

    def emit_closing(self, text):
        self.pieces.append(text)
        self.operand_end = True
        self.command_end = True
        self.after_function = False

    def emit_operator(self, text):
        self.pieces.append(text)
        self.operand_end = False
        self.command_end = False
        self.after_function = False

    def translate_group(self, opening="{", closing="}"):
        start = _skip_spaces(self.latex, self.pos)
        content, self.pos = isolate_group(self.latex, self.pos, opening, closing)
        return _Translator(content, start + 1).run()

    # --- main loop ---

    def run(self):
        try:
            while self.pos < len(self.latex):
                current_char = self.latex[self.pos]

                if current_char == "\\":
                    self._command()
                elif current_char == "{":
                    self.emit_operand("(" + self.translate_group() + ")")
                elif current_char == "}":
                    _unbalanced(self.pos)
                elif current_char == "^":
                    self._superscript()
                elif current_char == "_":
                    self._subscript()
                elif current_char.isspace():
                    self.pieces.append(current_char)
                    self.pos += 1
                elif current_char.isalnum() or current_char == ".":
                    self._plain_run()
                elif current_char in "([":
                    if self.after_function:
                        self.emit_operator("(")
                    else:
                        self.emit_operand("(", from_command=False)
                        self.operand_end = False
                    self.pos += 1
                elif current_char in ")]":
                    self.emit_closing(")")
                    self.pos += 1
                else:
                    self.emit_operator(current_char)
                    self.pos += 1
        except E.ParseError as e:
            if e.position is not None and e.equation is None:
                e.position += self.offset
            raise
        return "".join(self.pieces)

    def _plain_run(self):
        b = self.pos
        while b < len(self.latex) and (self.latex[b].isalnum() or self.latex[b] == "."):
            b += 1
        self.emit_operand(self.latex[self.pos:b], from_command=False)
        self.pos = b

    def _superscript(self):
        self.pos += 1
        nach = _skip_spaces(self.latex, self.pos)
        if nach < len(self.latex) and self.latex[nach] == "{":
            self.pieces.append("^(" + self.translate_group() + ")")
            self.operand_end = True
            self.command_end = True
            self.after_function = False
        else:
            self.emit_operator("^")

    def _subscript(self):
        self.pos += 1
        if self.pos < len(self.latex) and self.latex[self.pos] == "{":
            # x_{i} -> x_i: the subscript becomes part of the variable name
            self.pieces.append("_" + "".join(self.translate_group().split()))
        else:
            self.pieces.append("_")

    def _command(self):
        start = self.pos
        name, self.pos = _read_command(self.latex, self.pos)

        if name in SPACING_COMMANDS:
            return
        if name in FRACTION_COMMANDS:
            zaehler = self.translate_group()
            nenner = self.translate_group()
            self.emit_operand(f"({zaehler})/({nenner})")
        elif name == "sqrt":
            nach = _skip_spaces(self.latex, self.pos)
            if nach < len(self.latex) and self.latex[nach] == "[":
                index = self.translate_group("[", "]")
                radikand = self.translate_group()
                self.emit_operand(f"({radikand})^(1/({index}))")
            else:
                self.emit_operand(f"sqrt({self.translate_group()})")
        elif name in ("left", "right"):
            self._delimiter(name, start)
        elif name in OPERATOR_COMMANDS:
            self.emit_operator(OPERATOR_COMMANDS[name])
        elif name == "{":
            self.emit_operand("(")
            self.operand_end = False
        elif name == "}":
            self.emit_closing(")")
        elif name == "operatorname":
            self._function("".join(self.translate_group().split()))
        elif name in TEXT_COMMANDS:
            self.emit_operand(self.translate_group())
        elif name in FUNCTION_ALIASES or name in FUNCTION_NAMES:
            self._function(FUNCTION_ALIASES.get(name, name))
        elif name in SYMBOL_COMMANDS:
            self.emit_operand(SYMBOL_COMMANDS[name])
        else:
            # Greek letters and unknown commands pass through as identifiers
            self.emit_operand(name)

    def _function(self, function_name):
        self.emit_operand(function_name)
        nach = _skip_spaces(self.latex, self.pos)
        naechstes = self.latex[nach] if nach < len(self.latex) else ""

        if naechstes == "{":
            self.pieces.append("(" + self.translate_group() + ")")
        elif naechstes.isalnum():
            # \sin x -> sin(x): a bare argument is a single name or number
            b = nach
            while b < len(self.latex) and (self.latex[b].isalnum() or self.latex[b] == "."):
                b += 1
            self.pieces.append("(" + self.latex[nach:b] + ")")
            self.pos = b
        elif naechstes == "\\" and not self.latex.startswith("\\left", nach):
            name, end = _read_command(self.latex, nach)
            if name in GREEK_LETTERS or name in SYMBOL_COMMANDS:
                self.pieces.append("(" + SYMBOL_COMMANDS.get(name, name) + ")")
                self.pos = end
            else:
                self.after_function = True
        else:
            self.after_function = True

    def _delimiter(self, name, start):
        nach = _skip_spaces(self.latex, self.pos)
        if self.latex.startswith("\\{", nach) or self.latex.startswith("\\}", nach):
            delimiter = self.latex[nach:nach + 2]
        else:
            delimiter = self.latex[nach:nach + 1]

        table = _LEFT_DELIMITERS if name == "left" else _RIGHT_DELIMITERS
        if delimiter not in table:
            raise E.ParseError(f"Unknown delimiter after \\{name}", code="3025", position=start)
        self.pos = nach + len(delimiter)
        replacement = table[delimiter]

        if name == "right":
            if replacement:
                self.emit_closing(replacement)
        elif replacement:
            if self.after_function:
                self.emit_operator(replacement)
            else:
                self.emit_operand(replacement)
                self.operand_end = False


def latex_to_standard(latex: str) -> str:
    """Rewrite LaTeX markup into the engine's infix syntax."""
    return _Translator(latex).run()
