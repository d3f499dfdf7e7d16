"""Test the quiz question generator."""
import random
from typing import Callable

import pytest

from bodmas_stepper.common.evaluator import evaluate, iter_steps
from bodmas_stepper.common.models import OrderRule
from bodmas_stepper.quiz.generator import (
    Difficulty,
    EXPRESSION_BUILDERS,
    QuizGenerationError,
    QuizQuestion,
    build_distractors,
    generate_question,
    random_int,
    shuffle,
)


def deterministic_rng(seed: int = 1) -> Callable[[], float]:
    """Park-Miller generator returning floats in (0, 1)."""
    state = seed

    def rng() -> float:
        nonlocal state
        state = (state * 48271) % 0x7FFFFFFF
        return state / 0x7FFFFFFF

    return rng


@pytest.mark.parametrize("difficulty", ["easy", "medium", "hard"])
def test_generate_question_is_accurate(difficulty):
    """The answer matches a fresh evaluation and the options are well formed."""
    question = generate_question(difficulty, deterministic_rng())
    evaluation = evaluate(question.expression)
    assert question.answer == evaluation.value
    assert isinstance(question.answer, int)
    assert question.answer in question.options
    assert len(set(question.options)) == len(question.options) == 4
    assert len(question.steps) > 0
    assert question.difficulty == Difficulty(difficulty)


@pytest.mark.parametrize("difficulty", [Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD])
def test_generate_question_over_many_seeds(difficulty):
    """For 1000 seeds the answer is an integer equal to the evaluated value."""
    for seed in range(1000):
        question = generate_question(difficulty, random.Random(seed).random)
        assert isinstance(question.answer, int)
        assert question.answer == evaluate(question.expression).value
        assert question.answer in question.options
        assert len(set(question.options)) == 4


def test_generate_insane_question():
    """Insane questions nest power segments and still have integer answers."""
    rng = random.Random(7).random
    for _ in range(10):
        question = generate_question(Difficulty.INSANE, rng)
        assert isinstance(question.answer, int)
        assert question.answer == evaluate(question.expression).value
        assert any(step.rule == OrderRule.EXPONENTS for step in iter_steps(question.steps))


def test_generate_question_is_reproducible():
    """The same seed produces the same question."""
    first = generate_question("medium", random.Random(42).random)
    second = generate_question("medium", random.Random(42).random)
    assert first == second


def test_randomises_expressions_across_calls():
    rng = deterministic_rng()
    first = generate_question("medium", rng)
    second = generate_question("medium", rng)
    assert first.expression != second.expression


def test_shuffles_answer_positions():
    """The answer does not always land in the same slot."""
    rng = deterministic_rng()
    positions = {
        question.options.index(question.answer)
        for question in (generate_question("medium", rng) for _ in range(10))
    }
    assert len(positions) > 1


def test_gives_up_after_max_attempts(monkeypatch):
    """Expressions that never evaluate exhaust the attempts."""
    monkeypatch.setitem(EXPRESSION_BUILDERS, Difficulty.HARD, lambda rng: "5 / 0")
    with pytest.raises(QuizGenerationError):
        generate_question("hard", deterministic_rng(), max_attempts=5)


def test_non_integer_answers_are_discarded(monkeypatch):
    """Attempts with fractional answers are discarded and retried."""
    expressions = iter(["1 / 3", "7 / 2", "(8 - 2) ^ 2"])
    monkeypatch.setitem(EXPRESSION_BUILDERS, Difficulty.HARD, lambda rng: next(expressions))
    question = generate_question("hard", deterministic_rng(), max_attempts=3)
    assert question.expression == "(8 - 2) ^ 2"
    assert question.answer == 36


def test_zero_attempts():
    with pytest.raises(QuizGenerationError):
        generate_question("easy", deterministic_rng(), max_attempts=0)


def test_unknown_difficulty():
    with pytest.raises(ValueError):
        generate_question("impossible", deterministic_rng())


def test_random_int_bounds():
    """random_int covers both ends of the range."""
    assert random_int(2, 15, lambda: 0.0) == 2
    assert random_int(2, 15, lambda: 0.999999) == 15


def test_shuffle_keeps_values():
    values = [1, 2, 3, 4]
    shuffled = shuffle(values, random.Random(3).random)
    assert sorted(shuffled) == values
    assert values == [1, 2, 3, 4]


def test_build_distractors():
    """Distractors are distinct, near the answer and never the answer itself."""
    distractors = build_distractors(10, random.Random(0).random)
    assert len(set(distractors)) == 3
    assert 10 not in distractors
    assert all(abs(value - 10) <= 6 for value in distractors)


def test_quiz_question_rejects_duplicate_options():
    with pytest.raises(ValueError):
        QuizQuestion(expression="1 + 1", answer=2, options=[2, 2, 3, 4], steps=[], difficulty="easy")


def test_quiz_question_requires_answer_in_options():
    with pytest.raises(ValueError):
        QuizQuestion(expression="1 + 1", answer=2, options=[1, 3, 4, 5], steps=[], difficulty="easy")
