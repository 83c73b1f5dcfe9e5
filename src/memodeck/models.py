from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import config
from .config import (
    DEFAULT_INITIAL_REVIEW_INTERVAL,
    DEFAULT_INTERVAL_GROWTH_FACTOR,
    DEFAULT_LAPSE_PENALTY,
    DEFAULT_LEARNING_INTERVAL,
    DEFAULT_LEARNING_THRESHOLD,
    DEFAULT_MASTERY_THRESHOLD,
    DEFAULT_MAX_INTERVAL,
)


class LearningState(str, Enum):
    """Closed set of learning states a pair can be in."""

    new = "new"
    learning = "learning"
    review = "review"
    mastered = "mastered"
    suspended = "suspended"


class Pair(BaseModel):
    """One learnable key/value unit and its scheduling state.

    key/value はスケジューラから見て不透明な文字列で、内容は解釈しない。
    suspended の間は `resume_state` に停止前の状態を保持し、学習進捗を失わない。
    """

    model_config = ConfigDict(extra="forbid")

    id: int = Field(ge=1)
    key: str = Field(min_length=1)
    value: str = Field(min_length=1)
    learning_state: LearningState = LearningState.new
    resume_state: LearningState | None = None
    strength: int = Field(default=0, ge=0)
    interval_units: int = Field(default=0, ge=0)
    due_at: int = Field(default=0, ge=0)
    last_reviewed_at: int | None = Field(default=None, ge=0)
    consecutive_correct: int = Field(default=0, ge=0)
    consecutive_incorrect: int = Field(default=0, ge=0)

    @field_validator("key", "value")
    @classmethod
    def _reject_blank(cls, text: str) -> str:
        if not text.strip():
            raise ValueError("must not be blank")
        return text

    @model_validator(mode="after")
    def _check_suspension(self) -> "Pair":
        """`resume_state` is set exactly while the pair is suspended."""

        if self.learning_state is LearningState.suspended:
            if self.resume_state is None or self.resume_state is LearningState.suspended:
                raise ValueError("suspended pair must remember a non-suspended resume_state")
        elif self.resume_state is not None:
            raise ValueError("resume_state is only allowed on suspended pairs")
        return self

    @property
    def is_suspended(self) -> bool:
        return self.learning_state is LearningState.suspended

    def is_due(self, tick: int) -> bool:
        return not self.is_suspended and self.due_at <= tick


class DeckSnapshot(BaseModel):
    """Read-only view of a whole deck, as handed to the persistence layer.

    永続化の担当（外部）はこのスナップショットを保存し、読み込み時に
    `Deck.from_snapshot()` へ渡して同等のデッキを再構築する。
    `next_id` を含めることで、削除済み ID が再利用されないことを保証する。
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    current_tick: int = Field(default=0, ge=0)
    next_id: int | None = Field(default=None, ge=1)
    pairs: tuple[Pair, ...] = ()

    @model_validator(mode="after")
    def _check_pairs(self) -> "DeckSnapshot":
        seen: set[int] = set()
        for pair in self.pairs:
            if pair.id in seen:
                raise ValueError(f"duplicate pair id {pair.id}")
            seen.add(pair.id)
            if pair.last_reviewed_at is not None and pair.last_reviewed_at > self.current_tick:
                raise ValueError(f"pair {pair.id} was reviewed after current_tick")
        if self.next_id is not None and seen and self.next_id <= max(seen):
            raise ValueError("next_id must be greater than every pair id")
        return self


class SchedulingPolicy(BaseModel):
    """Calibration constants for the transition rules.

    既定値は `memodeck.config` の設定値に合わせてある。状態機械を変えずに
    調整できるよう、リテラルではなくこのモデル経由で参照する。
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    learning_threshold: int = Field(default=DEFAULT_LEARNING_THRESHOLD, ge=1)
    learning_interval: int = Field(default=DEFAULT_LEARNING_INTERVAL, ge=1)
    initial_review_interval: int = Field(default=DEFAULT_INITIAL_REVIEW_INTERVAL, ge=1)
    interval_growth_factor: float = Field(default=DEFAULT_INTERVAL_GROWTH_FACTOR, gt=1.0)
    max_interval: int = Field(default=DEFAULT_MAX_INTERVAL, ge=1)
    mastery_threshold: int = Field(default=DEFAULT_MASTERY_THRESHOLD, ge=1)
    lapse_penalty: int = Field(default=DEFAULT_LAPSE_PENALTY, ge=0)

    @model_validator(mode="after")
    def _check_interval_bounds(self) -> "SchedulingPolicy":
        if self.initial_review_interval > self.max_interval:
            raise ValueError("initial_review_interval must not exceed max_interval")
        if self.learning_interval > self.max_interval:
            raise ValueError("learning_interval must not exceed max_interval")
        return self

    @classmethod
    def from_settings(cls, source: config.Settings | None = None) -> "SchedulingPolicy":
        source = source or config.settings
        return cls(
            learning_threshold=source.learning_threshold,
            learning_interval=source.learning_interval,
            initial_review_interval=source.initial_review_interval,
            interval_growth_factor=source.interval_growth_factor,
            max_interval=source.max_interval,
            mastery_threshold=source.mastery_threshold,
            lapse_penalty=source.lapse_penalty,
        )

    def grow_interval(self, interval_units: int) -> int:
        """Next review interval: multiplied, at least +1, capped at ``max_interval``."""

        grown = max(interval_units + 1, int(round(interval_units * self.interval_growth_factor)))
        return min(self.max_interval, grown)
