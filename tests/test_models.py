"""Test the token, Step and EvaluationResult models."""
from pydantic import ValidationError
import pytest

from bodmas_stepper.common.models import (
    EvaluationResult,
    NumberToken,
    OperatorToken,
    OrderRule,
    ParenToken,
    Step,
    StepScope,
)


def make_step(**overrides) -> Step:
    fields = {
        "id": "step-1",
        "rule": "multiplicationDivision",
        "depth": 0,
        "before": "2 + 2 * 4",
        "after": "2 + 8",
        "operation": "2 * 4",
        "result": 8,
        "description": "Do the multiplication 2 * 4.",
        "scope": "global",
        "operator": "*",
    }
    fields.update(overrides)
    return Step(**fields)


def test_step_valid() -> None:
    """Test that a valid Step can be created from raw tag values."""
    step = make_step()
    assert step.rule is OrderRule.MULTIPLICATION_DIVISION
    assert step.scope is StepScope.GLOBAL
    assert step.children == ()


def test_step_is_immutable() -> None:
    """Steps cannot be mutated once created."""
    step = make_step()
    with pytest.raises(ValidationError):
        step.after = "10"


@pytest.mark.parametrize("field,value", [
    ("rule", "brackets"),
    ("scope", "local"),
    ("depth", -1),
    ("operator", "%"),
])
def test_step_invalid_fields(field, value) -> None:
    """Unknown tags and negative depths raise a validation error."""
    with pytest.raises(ValidationError):
        make_step(**{field: value})


def test_step_owns_children() -> None:
    """A grouping step nests its interior steps."""
    child = make_step(scope="group", depth=1)
    parent = make_step(
        id="step-2", rule="grouping", operator=None, operation="( 2 * 4 )", children=[child]
    )
    assert parent.children == (child,)
    assert parent.model_dump()["children"][0]["operator"] == "*"


def test_step_result_keeps_int() -> None:
    """Integral results stay int, fractional results stay float."""
    assert isinstance(make_step(result=8).result, int)
    assert isinstance(make_step(result=1.5).result, float)


def test_tokens_are_tagged() -> None:
    """Each token variant carries its own kind tag."""
    assert NumberToken(value=1.5).kind == "number"
    assert OperatorToken(symbol="^").kind == "operator"
    assert ParenToken(symbol="(").is_open
    assert not ParenToken(symbol=")").is_open


def test_operator_token_rejects_unknown_symbol() -> None:
    """Only the five supported operators are valid."""
    with pytest.raises(ValidationError):
        OperatorToken(symbol="%")


def test_evaluation_result_invalid_value_type() -> None:
    """Test that a non-numeric value raises a validation error."""
    with pytest.raises(ValidationError):
        EvaluationResult(value="not a number", steps=[])
