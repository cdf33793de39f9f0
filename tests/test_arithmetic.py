import pytest

from supportwise.arithmetic import (
    CALCULATION_ERROR_TEXT, evaluate_binary_expression, format_math_response, is_math_query,
)
from supportwise.exceptions import MathEvaluationError

@pytest.mark.parametrize("text", ["12 + 5", "7*6", " 10 / 4 = ", "3-9", "1.5 * 2", "-2 + 3"])
def test_math_queries_are_recognized(text):
    assert is_math_query(text)

@pytest.mark.parametrize("text", ["", "12 +", "what is 2 + 2", "2 + 2 + 2", "__import__('os')", "2 ** 3", "12 + 5 please"])
def test_other_text_is_not_math(text):
    assert not is_math_query(text)

def test_addition_response_contains_result():
    assert format_math_response("12 + 5") == "12 + 5 = 17"
    assert "17" in format_math_response("12+5=")

@pytest.mark.parametrize("text,expected", [
    ("7*6", "42"),
    ("10 / 4", "2.5"),
    ("3 - 9", "-6"),
    ("1 / 3", "0.3333333333"),
    ("1.5 * 2", "3"),
])
def test_evaluate_binary_expression(text, expected):
    _, result = evaluate_binary_expression(text)
    assert result == expected

def test_division_by_zero_degrades_to_error_text():
    assert format_math_response("9 / 0") == CALCULATION_ERROR_TEXT
    with pytest.raises(MathEvaluationError):
        evaluate_binary_expression("9 / 0")

def test_malformed_expression_raises():
    with pytest.raises(MathEvaluationError):
        evaluate_binary_expression("nine divided by zero")
