"""Evaluate arithmetic expressions by precedence while recording every reduction."""
from itertools import count
import math
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from bodmas_stepper.common.config import get_settings
from bodmas_stepper.common.errors import EvaluationError
from bodmas_stepper.common.logger import logger
from bodmas_stepper.common.models import (
    EvaluationResult,
    Number,
    NumberToken,
    OperatorToken,
    OrderRule,
    ParenToken,
    Step,
    StepScope,
    Token,
)
from bodmas_stepper.common.tokenizer import format_number, render_tokens, tokenize

OPERATION_NAMES = {
    "^": "exponentiation",
    "*": "multiplication",
    "/": "division",
    "+": "addition",
    "-": "subtraction",
}

MULTIPLICATION_DIVISION = ("*", "/")
ADDITION_SUBTRACTION = ("+", "-")


def combine(left: float, symbol: str, right: float) -> Number:
    """
    Apply a binary operator and round the result.

    :param float left: Left operand
    :param str symbol: One of ``^ * / + -``
    :param float right: Right operand

    :return: Rounded result, as int when integral
    :rtype: Number
    :raises EvaluationError: On division by zero or a non-finite result
    """
    left, right = float(left), float(right)
    if symbol == "^":
        try:
            value = math.pow(left, right)
        except (OverflowError, ValueError) as exc:
            raise EvaluationError(
                f"{format_number(left)} ^ {format_number(right)} is not a finite real number.",
                code="non-finite",
            ) from exc
    elif symbol == "*":
        value = left * right
    elif symbol == "/":
        if right == 0:
            raise EvaluationError("Division by zero is not allowed.", code="div-by-zero")
        value = left / right
    elif symbol == "+":
        value = left + right
    elif symbol == "-":
        value = left - right
    else:
        raise EvaluationError(f"Unsupported operator: {symbol}")

    if not math.isfinite(value):
        raise EvaluationError("Result is too large to represent.", code="non-finite")
    return format_number(value)


def describe_step(
    rule: OrderRule, scope: StepScope, operation: str, symbol: Optional[str] = None
) -> str:
    """
    Explain why a rule fired at this point of the evaluation.

    Grouping steps distinguish a group resolved directly in the expression from one
    nested inside another group; operator steps name the operation and cite the
    higher tiers that no longer appear where it happened.
    """
    where = "in this group" if scope is StepScope.GROUP else "in the expression"

    if rule is OrderRule.GROUPING:
        if scope is StepScope.GROUP:
            return (
                f"Work out {operation} first: it sits inside another group, "
                "so the innermost brackets are resolved before the ones around them."
            )
        return f"Work out {operation} first: grouping symbols come before every other rule."

    name = OPERATION_NAMES[symbol]
    if rule is OrderRule.EXPONENTS:
        return (
            f"Apply the {name} {operation}: no grouping symbols remain {where}, "
            "and powers are resolved from right to left."
        )
    if rule is OrderRule.MULTIPLICATION_DIVISION:
        return (
            f"Do the {name} {operation}: no grouping symbols or exponents remain {where}, "
            "so multiplication and division are worked from left to right."
        )
    return (
        f"Do the {name} {operation}: no grouping symbols, exponents, multiplication "
        f"or division remain {where}, so addition and subtraction finish from left to right."
    )


def _wrap(prefix: Sequence[Token], text: str, suffix: Sequence[Token]) -> str:
    return " ".join(part for part in (render_tokens(prefix), text, render_tokens(suffix)) if part)


def _in_context(step: Step, prefix: Sequence[Token], suffix: Sequence[Token]) -> Step:
    """Rewrite a group-interior step so its snapshots show the whole surrounding expression."""
    return step.model_copy(
        update={
            "before": _wrap(prefix, step.before, suffix),
            "after": _wrap(prefix, step.after, suffix),
            "children": tuple(_in_context(child, prefix, suffix) for child in step.children),
        }
    )


class _Reducer:
    """
    Reduce one token stream to a single number, pass by pass.

    Passes run in a fixed order over the same owned buffer: grouping, exponents,
    multiplication/division, addition/subtraction. Interiors of groups are handed
    to a nested reducer.
    """

    def __init__(self, tokens: Iterable[Token], depth: int, scope: StepScope, ids: Iterator[int]) -> None:
        self.tokens: List[Token] = list(tokens)
        self.depth = depth
        self.scope = scope
        self.steps: List[Step] = []
        self._ids = ids

    def run(self) -> Tuple[Number, List[Step]]:
        self._resolve_groups()
        self._resolve_exponents()
        self._resolve_left_to_right(MULTIPLICATION_DIVISION, OrderRule.MULTIPLICATION_DIVISION)
        self._resolve_left_to_right(ADDITION_SUBTRACTION, OrderRule.ADDITION_SUBTRACTION)

        if len(self.tokens) != 1 or not isinstance(self.tokens[0], NumberToken):
            raise EvaluationError("Could not fully evaluate expression.", code="incomplete")
        return format_number(self.tokens[0].value), self.steps

    def _next_id(self) -> str:
        return f"step-{next(self._ids)}"

    def _find_paren(self, symbol: str) -> Optional[int]:
        for index, token in enumerate(self.tokens):
            if isinstance(token, ParenToken) and token.symbol == symbol:
                return index
        return None

    def _find_operator(self, symbols: Sequence[str]) -> Optional[int]:
        for index, token in enumerate(self.tokens):
            if isinstance(token, OperatorToken) and token.symbol in symbols:
                return index
        return None

    def _nesting_depth(self, open_index: int) -> int:
        """Count net open parentheses up to and including ``open_index``, offset by this depth."""
        depth = self.depth
        for token in self.tokens[: open_index + 1]:
            if isinstance(token, ParenToken):
                depth += 1 if token.is_open else -1
        return depth

    def _resolve_groups(self) -> None:
        # The first ")" always closes the innermost unresolved group
        close_index = self._find_paren(")")
        while close_index is not None:
            open_index = close_index - 1
            while open_index >= 0 and not (
                isinstance(self.tokens[open_index], ParenToken) and self.tokens[open_index].is_open
            ):
                open_index -= 1
            if open_index < 0:
                raise EvaluationError("Mismatched parentheses detected.", code="mismatched")

            interior = self.tokens[open_index + 1 : close_index]
            if not interior:
                raise EvaluationError("Empty parentheses are not allowed.", code="empty-group")

            nesting_depth = self._nesting_depth(open_index)
            prefix = self.tokens[: open_index + 1]
            suffix = self.tokens[close_index:]
            value, interior_steps = _Reducer(interior, nesting_depth, StepScope.GROUP, self._ids).run()

            before = render_tokens(self.tokens)
            operation = render_tokens(self.tokens[open_index : close_index + 1])
            self.tokens[open_index : close_index + 1] = [NumberToken(value=value)]
            after = render_tokens(self.tokens)

            scope = StepScope.GROUP if nesting_depth > 1 or self.scope is StepScope.GROUP else StepScope.GLOBAL
            self._record(
                Step(
                    id=self._next_id(),
                    rule=OrderRule.GROUPING,
                    depth=nesting_depth,
                    before=before,
                    after=after,
                    operation=operation,
                    result=value,
                    description=describe_step(OrderRule.GROUPING, scope, operation),
                    scope=scope,
                    children=tuple(_in_context(step, prefix, suffix) for step in interior_steps),
                )
            )
            close_index = self._find_paren(")")

        if self._find_paren("(") is not None:
            raise EvaluationError("Mismatched parentheses detected.", code="mismatched")

    def _resolve_exponents(self) -> None:
        # Right to left, so 2 ^ 3 ^ 2 is 2 ^ 9
        index = len(self.tokens) - 1
        while index >= 0:
            token = self.tokens[index]
            if isinstance(token, OperatorToken) and token.symbol == "^":
                self._apply(index, OrderRule.EXPONENTS)
                # The result now sits at index - 1; the next operator can only be left of it
                index -= 2
                continue
            index -= 1

    def _resolve_left_to_right(self, symbols: Sequence[str], rule: OrderRule) -> None:
        index = self._find_operator(symbols)
        while index is not None:
            self._apply(index, rule)
            index = self._find_operator(symbols)

    def _apply(self, index: int, rule: OrderRule) -> None:
        """Collapse ``left op right`` around the operator at ``index`` into one number."""
        operator_token = self.tokens[index]
        left = self.tokens[index - 1] if index > 0 else None
        right = self.tokens[index + 1] if index + 1 < len(self.tokens) else None
        if not isinstance(left, NumberToken) or not isinstance(right, NumberToken):
            raise EvaluationError(
                f"Operator {operator_token.symbol} is missing a numeric operand.", code="missing-operand"
            )

        before = render_tokens(self.tokens)
        operation = render_tokens(self.tokens[index - 1 : index + 2])
        value = combine(left.value, operator_token.symbol, right.value)
        self.tokens[index - 1 : index + 2] = [NumberToken(value=value)]
        after = render_tokens(self.tokens)

        self._record(
            Step(
                id=self._next_id(),
                rule=rule,
                depth=self.depth,
                before=before,
                after=after,
                operation=operation,
                result=value,
                description=describe_step(rule, self.scope, operation, operator_token.symbol),
                scope=self.scope,
                operator=operator_token.symbol,
            )
        )

    def _record(self, step: Step) -> None:
        logger.debug(f"🧮 {step.rule.value} [{step.scope.value}, depth {step.depth}]: {step.before} -> {step.after}")
        self.steps.append(step)


class ExpressionEvaluator(BaseModel):
    """
    Evaluate arithmetic expressions and trace every reduction.

    Algorithm:
        1. Tokenize (whitespace-insensitive, unary minus merged into numbers)
        2. Repeatedly resolve the innermost group, recursing into its interior
        3. Fold the remaining flat stream by ``^`` (right to left), then ``* /``,
           then ``+ -`` (both left to right)

    Each reduction produces a :class:`Step`; grouping steps own the steps that
    resolved their interior.

    Examples:
        - ``2 + 2 * 4`` -> ``2 + 8`` -> ``10``
        - ``12 / (2 + 1) + 3`` -> ``12 / 3 + 3`` -> ``4 + 3`` -> ``7``
    """

    model_config = ConfigDict(frozen=True)

    max_expression_length: int = Field(
        default_factory=lambda: get_settings().max_expression_length,
        ge=1,
        description="Longest expression accepted, in characters",
    )
    max_nesting_depth: int = Field(
        default_factory=lambda: get_settings().max_nesting_depth,
        ge=1,
        description="Deepest parenthesis nesting accepted",
    )

    def _check_length(self, expression: str) -> None:
        if len(expression) > self.max_expression_length:
            raise EvaluationError(
                f"Expression exceeds {self.max_expression_length} characters.", code="too-long"
            )

    def _check_nesting(self, tokens: Sequence[Token]) -> None:
        """
        Reject parentheses nested too deeply to evaluate comfortably.

        :raises EvaluationError: If the nesting exceeds ``max_nesting_depth``
        """
        depth = 0
        for token in tokens:
            if isinstance(token, ParenToken):
                depth += 1 if token.is_open else -1
                if depth > self.max_nesting_depth:
                    raise EvaluationError(
                        f"Parentheses are nested more than {self.max_nesting_depth} levels deep.",
                        code="too-deep",
                    )

    def evaluate(self, expression: str) -> EvaluationResult:
        """
        Evaluate an arithmetic expression.

        :param str expression: Expression such as ``"2 * (3 + (4 - 1))"``

        :return: Final value and the ordered tree of reduction steps
        :rtype: EvaluationResult
        :raises EvaluationError: If the expression is empty, malformed or not computable
        """
        cleaned = expression.strip()
        if not cleaned:
            raise EvaluationError("Enter an expression to evaluate.", code="empty")

        try:
            self._check_length(cleaned)
            tokens = tokenize(cleaned)
            self._check_nesting(tokens)
            value, steps = _Reducer(tokens, 0, StepScope.GLOBAL, count(1)).run()
        except EvaluationError as exc:
            logger.warning(f"❌ Could not evaluate {expression!r}: {exc}")
            raise

        logger.debug(f"✅ {cleaned} = {value} in {len(steps)} top-level steps")
        return EvaluationResult(value=value, steps=steps)


def evaluate(expression: str) -> EvaluationResult:
    """Evaluate ``expression`` with the configured limits."""
    return ExpressionEvaluator().evaluate(expression)


def iter_steps(steps: Iterable[Step]) -> Iterator[Step]:
    """
    Walk a step tree depth-first, each grouping step before its children.

    :param Iterable[Step] steps: Top-level steps of an :class:`EvaluationResult`

    :return: Iterator over every step in the tree
    :rtype: Iterator[Step]
    """
    for step in steps:
        yield step
        yield from iter_steps(step.children)
