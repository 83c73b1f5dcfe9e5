"""Outcome evaluation: graded answers to state transitions.

- grade: 2=correct, 1=partial, 0=wrong（partial も想起成功として扱う）
- 遷移は `TRANSITIONS` の (状態, 正誤) 表で決まり、suspended には遷移が存在しない
- 遷移関数はコピー上で新しい Pair を組み立てて返すだけで、元の Pair には触れない
"""

from __future__ import annotations

from collections.abc import Callable
from enum import IntEnum
from typing import Any

from .errors import InvalidStateError
from .models import LearningState, Pair, SchedulingPolicy


class Grade(IntEnum):
    wrong = 0
    partial = 1
    correct = 2


def grade_to_outcome(grade: int) -> bool:
    """Map a 0..2 confidence grade to the boolean recall outcome."""

    # partial も想起成功。2 を超える値も correct として扱う
    return grade >= Grade.partial


def assess_answer(pair: Pair, answer: str, *, case_sensitive: bool = True) -> bool:
    """Check a typed answer against the pair's value.

    前後の空白のみ無視し、それ以外は完全一致で判定する。
    """

    expected = pair.value.strip()
    given = (answer or "").strip()
    if not case_sensitive:
        return given.casefold() == expected.casefold()
    return given == expected


Rule = Callable[[Pair, int, SchedulingPolicy], dict[str, Any]]


def _due_in(tick: int, interval_units: int) -> dict[str, Any]:
    return {"interval_units": interval_units, "due_at": tick + interval_units}


def _lapse(pair: Pair, tick: int, policy: SchedulingPolicy, state: LearningState) -> dict[str, Any]:
    return {
        "learning_state": state,
        "strength": max(0, pair.strength - policy.lapse_penalty),
        "consecutive_correct": 0,
        "consecutive_incorrect": 0,
        **_due_in(tick, policy.learning_interval),
    }


def _learning_correct(pair: Pair, tick: int, policy: SchedulingPolicy) -> dict[str, Any]:
    streak = pair.consecutive_correct + 1
    if streak >= policy.learning_threshold:
        return {
            "learning_state": LearningState.review,
            "consecutive_correct": 0,
            "consecutive_incorrect": 0,
            **_due_in(tick, policy.initial_review_interval),
        }
    return {
        "learning_state": LearningState.learning,
        "consecutive_correct": streak,
        "consecutive_incorrect": 0,
        **_due_in(tick, policy.learning_interval),
    }


def _learning_incorrect(pair: Pair, tick: int, policy: SchedulingPolicy) -> dict[str, Any]:
    return {
        "learning_state": LearningState.learning,
        "consecutive_correct": 0,
        "consecutive_incorrect": pair.consecutive_incorrect + 1,
        **_due_in(tick, policy.learning_interval),
    }


def _review_correct(pair: Pair, tick: int, policy: SchedulingPolicy) -> dict[str, Any]:
    strength = pair.strength + 1
    update: dict[str, Any] = {
        "learning_state": pair.learning_state,
        "strength": strength,
        "consecutive_correct": pair.consecutive_correct + 1,
        "consecutive_incorrect": 0,
        **_due_in(tick, policy.grow_interval(pair.interval_units)),
    }
    if pair.learning_state is LearningState.review and strength >= policy.mastery_threshold:
        update.update(learning_state=LearningState.mastered, consecutive_correct=0)
    return update


def _review_incorrect(pair: Pair, tick: int, policy: SchedulingPolicy) -> dict[str, Any]:
    return _lapse(pair, tick, policy, LearningState.learning)


def _mastered_incorrect(pair: Pair, tick: int, policy: SchedulingPolicy) -> dict[str, Any]:
    return _lapse(pair, tick, policy, LearningState.review)


# (state, correct) -> rule. New is scored like Learning so its first outcome counts.
TRANSITIONS: dict[tuple[LearningState, bool], Rule] = {
    (LearningState.new, True): _learning_correct,
    (LearningState.new, False): _learning_incorrect,
    (LearningState.learning, True): _learning_correct,
    (LearningState.learning, False): _learning_incorrect,
    (LearningState.review, True): _review_correct,
    (LearningState.review, False): _review_incorrect,
    (LearningState.mastered, True): _review_correct,
    (LearningState.mastered, False): _mastered_incorrect,
}


def apply_outcome(pair: Pair, correct: bool, tick: int, policy: SchedulingPolicy) -> Pair:
    """Return the pair as it looks after one reported outcome at ``tick``."""

    try:
        rule = TRANSITIONS[(pair.learning_state, bool(correct))]
    except KeyError:
        raise InvalidStateError(
            pair.id, pair.learning_state, f"pair {pair.id!r} is {pair.learning_state.value}; reactivate it first"
        ) from None
    update = rule(pair, tick, policy)
    update["last_reviewed_at"] = tick
    return pair.model_copy(update=update)
