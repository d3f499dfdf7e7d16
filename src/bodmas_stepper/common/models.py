"""Pydantic models for tokens, reduction steps and evaluation results."""
from enum import Enum
from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

# Numbers are kept as int whenever the rounded value is integral
Number = Union[int, float]

OperatorSymbol = Literal["^", "*", "/", "+", "-"]


class OrderRule(str, Enum):
    """Precedence tiers, resolved in declaration order."""

    GROUPING = "grouping"
    EXPONENTS = "exponents"
    MULTIPLICATION_DIVISION = "multiplicationDivision"
    ADDITION_SUBTRACTION = "additionSubtraction"


class StepScope(str, Enum):
    """Where a reduction happened: the outermost stream or inside a group."""

    GLOBAL = "global"
    GROUP = "group"


class NumberToken(BaseModel):
    """Numeric literal, including a merged leading sign."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["number"] = "number"
    value: Number = Field(..., description="Numeric value of the literal")


class OperatorToken(BaseModel):
    """Binary operator."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["operator"] = "operator"
    symbol: OperatorSymbol = Field(..., description="Operator symbol")


class ParenToken(BaseModel):
    """Opening or closing parenthesis."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["paren"] = "paren"
    symbol: Literal["(", ")"] = Field(..., description="Parenthesis character")

    @property
    def is_open(self) -> bool:
        return self.symbol == "("


Token = Annotated[Union[NumberToken, OperatorToken, ParenToken], Field(discriminator="kind")]


class Step(BaseModel):
    """
    One resolved reduction.

    Grouping steps own the steps that resolved their interior in ``children``;
    the ``before``/``after`` snapshots of those children show the whole
    surrounding expression, not just the group's interior.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Identifier, unique within one evaluation")
    rule: OrderRule = Field(..., description="Precedence tier that fired")
    depth: int = Field(..., ge=0, description="Enclosing open parentheses at this step")
    before: str = Field(..., description="Full expression before the reduction")
    after: str = Field(..., description="Full expression after the reduction")
    operation: str = Field(..., description="Sub-expression that was reduced")
    result: Number = Field(..., description="Value of the reduced sub-expression")
    description: str = Field(..., description="Why this rule fired here")
    scope: StepScope = Field(..., description="Outermost stream or inside a group")
    operator: Optional[OperatorSymbol] = Field(
        default=None, description="Operator symbol, absent for grouping steps"
    )
    children: Tuple["Step", ...] = Field(
        default=(), description="Steps that resolved a group's interior"
    )


class EvaluationResult(BaseModel):
    """Final value of an expression and the ordered trace that produced it."""

    value: Number = Field(..., description="Evaluated value of the expression")
    steps: List[Step] = Field(default_factory=list, description="Top-level reduction steps")
