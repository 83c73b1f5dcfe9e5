from __future__ import annotations

from .deck import Deck
from .errors import ValidationError
from .evaluator import apply_outcome, grade_to_outcome
from .logging import logger
from .models import Pair, SchedulingPolicy


def _due_order(pair: Pair) -> tuple[int, int]:
    return (pair.due_at, pair.id)


class Scheduler:
    """Selection policy and outcome application for a deck.

    Scheduler 自体は状態を持たず、渡されたデッキだけを読み書きする。

    - next_due: suspended と未到来（due_at > current_tick）を除外し、
      due_at 昇順・id 昇順で最初の 1 件を返す。変更は行わないため冪等。
    - report_outcome: 正誤を遷移表に通し、検証済みの新しい Pair で置き換える。
      失敗時はフィールドを一切変更しない。
    - デッキ内部へのアクセスは Deck の `_due_now` / `_transition` に限り、ロックはデッキ側で取る。
    """

    def __init__(self, policy: SchedulingPolicy | None = None) -> None:
        self.policy = policy or SchedulingPolicy.from_settings()

    def due_pairs(self, deck: Deck, limit: int | None = None) -> list[Pair]:
        """Return every due pair in presentation order, optionally truncated."""

        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 1):
            raise ValidationError(f"limit must be an integer >= 1, got {limit!r}")
        due = sorted(deck._due_now(), key=_due_order)
        return due if limit is None else due[:limit]

    def next_due(self, deck: Deck) -> Pair | None:
        """Return the earliest-due pair, or None when nothing is due."""

        return min(deck._due_now(), key=_due_order, default=None)

    def report_outcome(self, deck: Deck, pair_id: int, correct: bool) -> Pair:
        """Apply a recall outcome to one pair and return its updated copy."""

        if not isinstance(correct, bool):
            raise ValidationError(f"correct must be a bool, got {correct!r}")
        before, after = deck._transition(
            pair_id, lambda pair, tick: apply_outcome(pair, correct, tick, self.policy)
        )
        logger.info(
            "outcome_reported",
            pair_id=pair_id,
            correct=correct,
            from_state=before.learning_state.value,
            to_state=after.learning_state.value,
            strength=after.strength,
            interval_units=after.interval_units,
            due_at=after.due_at,
        )
        return after

    def report_grade(self, deck: Deck, pair_id: int, grade: int) -> Pair:
        """Like `report_outcome`, taking a 0..2 grade instead of a bool."""

        return self.report_outcome(deck, pair_id, grade_to_outcome(grade))
