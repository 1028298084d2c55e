from .error import (MathError, LexError, ParseError, EvalError, UndefinedVariable,
                    UnknownFunction, ArityMismatch, DomainError, CircularDefinition,
                    SolveError, AmbiguousUnknowns, NonLinear, InfiniteSolutions, NoSolution,
                    ZeroDerivative, MaxIterationsExceeded, NoConvergence, SingularJacobian)
from .Lexer import Token, TokenKind, tokenize
from .LatexTranslator import latex_to_standard
from .MathEngine import (Node, Number, Imaginary, Constant, Variable, UnaryMinus, BinaryOp,
                         Call, Equation, parse, parse_expression, parse_equation,
                         evaluate_ast, evaluate_value, evaluate, calculate)
from .Serializer import substitute, to_string, find_variables
from .Compiler import CompiledExpression, compile_expression
from .Solver import SolveOptions, Solution, solve_equation, solve_system
from .StepTracer import Step, StepTracer
