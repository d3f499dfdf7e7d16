"""Generate multiple-choice order-of-operations questions."""
from enum import Enum
import math
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from bodmas_stepper.common.config import get_settings
from bodmas_stepper.common.errors import EvaluationError
from bodmas_stepper.common.evaluator import evaluate
from bodmas_stepper.common.logger import logger
from bodmas_stepper.common.models import Step

T = TypeVar("T")

# Random source returning floats in [0, 1), e.g. random.Random(seed).random
Rng = Callable[[], float]

OPTION_COUNT = 4
DISTRACTOR_OFFSETS = [offset for offset in range(-6, 7) if offset != 0]

ALL_OPERATORS = ["+", "-", "*", "/"]
CONNECTORS = ["+", "-", "*"]


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    INSANE = "insane"


class QuizGenerationError(RuntimeError):
    """Raised when no expression with an integer answer was found in the allowed attempts."""


class QuizQuestion(BaseModel):
    """A generated question with its answer, shuffled options and worked steps."""

    model_config = ConfigDict(frozen=True)

    expression: str = Field(..., description="Expression the student evaluates")
    answer: int = Field(..., description="Evaluated value of the expression")
    options: List[int] = Field(..., description="Answer plus distractors, in display order")
    steps: List[Step] = Field(..., description="Worked solution")
    difficulty: Difficulty = Field(..., description="Difficulty tier the expression was built for")

    @model_validator(mode="after")
    def options_must_be_distinct_and_contain_answer(self) -> "QuizQuestion":
        """Ensure the options are pairwise distinct and include the answer."""
        if len(set(self.options)) != len(self.options):
            raise ValueError("Options must be distinct")
        if self.answer not in self.options:
            raise ValueError("Options must include the answer")
        return self


def random_int(low: int, high: int, rng: Rng) -> int:
    """Return an integer in ``[low, high]``."""
    return math.floor(rng() * (high - low + 1)) + low


def pick(values: Sequence[T], rng: Rng) -> T:
    return values[math.floor(rng() * len(values))]


def shuffle(values: Sequence[T], rng: Rng) -> List[T]:
    """
    Return a shuffled copy of ``values`` (Fisher-Yates).

    :param Sequence values: Values to shuffle
    :param Rng rng: Random source

    :return: New list in random order
    :rtype: List
    """
    shuffled = list(values)
    for i in range(len(shuffled) - 1, 0, -1):
        j = math.floor(rng() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def _group(low: int, high: int, operators: Sequence[str], rng: Rng) -> str:
    return f"({random_int(low, high, rng)} {pick(operators, rng)} {random_int(low, high, rng)})"


def build_easy_expression(rng: Rng) -> str:
    """``a o b o c`` without division, e.g. ``4 + 7 * 3``."""
    operators = ["+", "-", "*"]
    a, b, c = (random_int(2, 15, rng) for _ in range(3))
    return f"{a} {pick(operators, rng)} {b} {pick(operators, rng)} {c}"


def build_medium_expression(rng: Rng) -> str:
    """Two groups joined by a connector, e.g. ``(6 / 3) * (2 + 9)``."""
    first = _group(2, 15, ALL_OPERATORS, rng)
    second = _group(2, 15, ALL_OPERATORS, rng)
    return f"{first} {pick(CONNECTORS, rng)} {second}"


def build_hard_expression(rng: Rng) -> str:
    """A squared or cubed group followed by another group, e.g. ``(3 + 2) ^ 2 - (8 / 4)``."""
    base = _group(2, 12, ALL_OPERATORS, rng)
    exponent = random_int(2, 3, rng)
    trailing = _group(2, 12, ALL_OPERATORS, rng)
    return f"{base} ^ {exponent} {pick(CONNECTORS, rng)} {trailing}"


def build_insane_expression(rng: Rng) -> str:
    """Two power segments and a mixed product or quotient of groups, all nested."""

    def power_segment() -> str:
        base = _group(2, 12, ALL_OPERATORS, rng)
        exponent = random_int(2, 3, rng)
        adjuster = _group(2, 12, ALL_OPERATORS, rng)
        return f"({base} ^ {exponent} {pick(CONNECTORS, rng)} {adjuster})"

    def mixed_group() -> str:
        first = _group(3, 15, ALL_OPERATORS, rng)
        second = _group(3, 15, ALL_OPERATORS, rng)
        return f"({first} {pick(['*', '/'], rng)} {second})"

    def joined(left: str, right: str) -> str:
        return f"{left} {pick(CONNECTORS, rng)} {right}"

    return joined(joined(power_segment(), power_segment()), mixed_group())


EXPRESSION_BUILDERS: Dict[Difficulty, Callable[[Rng], str]] = {
    Difficulty.EASY: build_easy_expression,
    Difficulty.MEDIUM: build_medium_expression,
    Difficulty.HARD: build_hard_expression,
    Difficulty.INSANE: build_insane_expression,
}


def build_distractors(answer: int, rng: Rng) -> List[int]:
    """Return three distinct wrong answers within six of ``answer``."""
    return [answer + offset for offset in shuffle(DISTRACTOR_OFFSETS, rng)[: OPTION_COUNT - 1]]


def generate_question(
    difficulty: Difficulty, rng: Rng, max_attempts: Optional[int] = None
) -> QuizQuestion:
    """
    Build a question whose answer is an integer.

    Expressions that fail to evaluate (e.g. division by zero) or evaluate to a
    non-integer are discarded and a new one is synthesized.

    :param Difficulty difficulty: Difficulty tier
    :param Rng rng: Random source returning floats in ``[0, 1)``
    :param int max_attempts: Synthesis attempts before giving up; defaults to the configured value

    :return: Question with shuffled options
    :rtype: QuizQuestion
    :raises QuizGenerationError: If every attempt was discarded
    """
    difficulty = Difficulty(difficulty)
    attempts = max_attempts if max_attempts is not None else get_settings().quiz_max_attempts
    build_expression = EXPRESSION_BUILDERS[difficulty]

    for attempt in range(1, attempts + 1):
        expression = build_expression(rng)
        try:
            evaluation = evaluate(expression)
        except EvaluationError as exc:
            logger.debug(f"🎲 Attempt {attempt} discarded, {expression!r} failed: {exc}")
            continue

        if not isinstance(evaluation.value, int):
            logger.debug(f"🎲 Attempt {attempt} discarded, {expression!r} = {evaluation.value} is not an integer")
            continue

        answer = evaluation.value
        options = shuffle([answer, *build_distractors(answer, rng)], rng)
        return QuizQuestion(
            expression=expression,
            answer=answer,
            options=options,
            steps=evaluation.steps,
            difficulty=difficulty,
        )

    logger.error(f"🎲❌ No {difficulty.value} question with an integer answer after {attempts} attempts")
    raise QuizGenerationError(
        f"Could not generate a {difficulty.value} question after {attempts} attempts"
    )
