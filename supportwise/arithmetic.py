"""
Arithmetic shortcut for messages like "12 + 5" or "7*6=".

Only a single binary operation between two numbers is understood. The
expression is parsed with a fixed pattern and applied through an operator
table; nothing is ever evaluated as code.
"""
import operator
import re
from decimal import Decimal, DivisionByZero, InvalidOperation
from typing import Callable, Dict, Tuple

from .exceptions import MathEvaluationError

NUMBER = r"-?\d+(?:\.\d+)?"
MATH_QUERY_RE = re.compile(rf"^\s*({NUMBER})\s*([+\-*/])\s*({NUMBER})\s*=?\s*$")

OPERATORS: Dict[str, Callable[[Decimal, Decimal], Decimal]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
}

DISPLAY_PRECISION = Decimal("0.0000000001")

CALCULATION_ERROR_TEXT = "I couldn't process the calculation. Please ensure the format is correct."


def is_math_query(message: str) -> bool:
    return bool(MATH_QUERY_RE.match(message or ""))


def parse_binary_expression(message: str) -> Tuple[Decimal, str, Decimal]:
    match = MATH_QUERY_RE.match(message or "")
    if not match:
        raise MathEvaluationError(details=f"Not a binary expression: {message!r}")
    left, op, right = match.groups()
    return Decimal(left), op, Decimal(right)


def _format_number(value: Decimal) -> str:
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return format(value.quantize(DISPLAY_PRECISION).normalize(), "f")


def evaluate_binary_expression(message: str) -> Tuple[str, str]:
    """Return (expression, result) as display strings, e.g. ("12 + 5", "17")."""
    left, op, right = parse_binary_expression(message)
    if op == "/" and right == 0:
        raise MathEvaluationError("Division by zero", details=message)
    try:
        result = OPERATORS[op](left, right)
        expression = f"{_format_number(left)} {op} {_format_number(right)}"
        return expression, _format_number(result)
    except (InvalidOperation, DivisionByZero, ArithmeticError) as e:
        raise MathEvaluationError(details=str(e)) from e


def format_math_response(message: str) -> str:
    """Answer text for a math query; the calculation-error text if it cannot be computed."""
    try:
        expression, result = evaluate_binary_expression(message)
    except MathEvaluationError:
        return CALCULATION_ERROR_TEXT
    return f"{expression} = {result}"
