from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .errors import InvalidStateError, NotFoundError, ValidationError
from .logging import logger
from .models import DeckSnapshot, LearningState, Pair


def _require_text(name: str, text: object) -> str:
    if not isinstance(text, str) or not text.strip():
        raise ValidationError(f"{name} must be a non-empty string")
    return text


class Deck:
    """In-memory collection of pairs plus the deck's logical clock.

    - 各デッキが自身の pair と `current_tick` を所有する（プロセス全体の共有状態は持たない）
    - `current_tick` は呼び出し側が `advance_tick()` で進める。スケジューラは進めない
    - 変更操作はすべて `lock` の下で行い、共有ホストでも 1 デッキ 1 ロックで整合させる
    - 取得系は常にコピーを返すため、呼び出し側が `due_at` などを直接書き換えられない
    """

    def __init__(self) -> None:
        self._pairs: dict[int, Pair] = {}
        self._current_tick = 0
        self._next_id = 1
        self.lock = threading.RLock()

    # --- read-only access ---
    @property
    def current_tick(self) -> int:
        return self._current_tick

    def __len__(self) -> int:
        return len(self._pairs)

    def __contains__(self, pair_id: object) -> bool:
        return not isinstance(pair_id, bool) and pair_id in self._pairs

    def pairs(self) -> list[Pair]:
        """Return copies of every pair in ascending id order."""

        with self.lock:
            return [self._pairs[pid].model_copy() for pid in sorted(self._pairs)]

    def get_pair(self, pair_id: int) -> Pair:
        with self.lock:
            return self._lookup(pair_id).model_copy()

    def _lookup(self, pair_id: int) -> Pair:
        if isinstance(pair_id, bool):
            raise NotFoundError(pair_id)
        try:
            return self._pairs[pair_id]
        except (KeyError, TypeError):
            raise NotFoundError(pair_id) from None

    def _replace(self, pair: Pair) -> None:
        # 検証済みの新しい Pair を丸ごと差し替える（部分的な更新は行わない）。
        self._pairs[pair.id] = pair

    # --- package-internal hooks for Scheduler ---
    def _due_now(self) -> list[Pair]:
        """Copies of every pair due at the current tick, in no particular order."""

        with self.lock:
            tick = self._current_tick
            return [p.model_copy() for p in self._pairs.values() if p.is_due(tick)]

    def _transition(self, pair_id: int, rule: Callable[[Pair, int], Pair]) -> tuple[Pair, Pair]:
        """Run ``rule(pair, current_tick)`` and store its result atomically.

        rule が例外を送出した場合は何も書き換えない。戻り値は (変更前, 変更後) のコピー。
        """

        with self.lock:
            before = self._lookup(pair_id)
            after = rule(before, self._current_tick)
            self._replace(after)
        return before.model_copy(), after.model_copy()

    # --- mutations ---
    def add_pair(self, key: str, value: str) -> int:
        """Create a New pair due at the current tick and return its id."""

        key = _require_text("key", key)
        value = _require_text("value", value)
        with self.lock:
            pair_id = self._next_id
            self._pairs[pair_id] = Pair(id=pair_id, key=key, value=value, due_at=self._current_tick)
            self._next_id += 1
            due_at = self._current_tick
        logger.debug("pair_added", pair_id=pair_id, due_at=due_at)
        return pair_id

    def remove_pair(self, pair_id: int) -> None:
        with self.lock:
            self._lookup(pair_id)
            del self._pairs[pair_id]
        logger.debug("pair_removed", pair_id=pair_id)

    def advance_tick(self, n: int = 1) -> int:
        """Move the logical clock forward by ``n`` ticks and return the new tick."""

        if isinstance(n, bool) or not isinstance(n, int) or n < 1:
            raise ValidationError(f"tick advance must be an integer >= 1, got {n!r}")
        with self.lock:
            self._current_tick += n
            tick = self._current_tick
        logger.debug("tick_advanced", current_tick=tick, step=n)
        return tick

    def suspend(self, pair_id: int) -> Pair:
        """Hide a pair from selection, keeping its progress underneath."""

        with self.lock:
            pair = self._lookup(pair_id)
            if pair.is_suspended:
                raise InvalidStateError(pair_id, pair.learning_state, f"pair {pair_id!r} is already suspended")
            suspended = pair.model_copy(
                update={"learning_state": LearningState.suspended, "resume_state": pair.learning_state}
            )
            self._replace(suspended)
        logger.debug("pair_suspended", pair_id=pair_id, resume_state=suspended.resume_state.value)
        return suspended.model_copy()

    def reactivate(self, pair_id: int) -> Pair:
        """Restore a suspended pair to its previous state, due right now."""

        with self.lock:
            pair = self._lookup(pair_id)
            if not pair.is_suspended:
                raise InvalidStateError(pair_id, pair.learning_state, f"pair {pair_id!r} is not suspended")
            restored = pair.model_copy(
                update={
                    "learning_state": pair.resume_state,
                    "resume_state": None,
                    "due_at": self._current_tick,
                }
            )
            self._replace(restored)
        logger.debug("pair_reactivated", pair_id=pair_id, learning_state=restored.learning_state.value)
        return restored.model_copy()

    # --- persistence boundary ---
    def snapshot(self) -> DeckSnapshot:
        """Return a read-only view of every pair plus the clock."""

        with self.lock:
            return DeckSnapshot(
                current_tick=self._current_tick,
                next_id=self._next_id,
                pairs=tuple(self._pairs[pid].model_copy() for pid in sorted(self._pairs)),
            )

    @classmethod
    def from_snapshot(cls, snapshot: DeckSnapshot | Mapping[str, Any]) -> "Deck":
        """Rebuild a deck from a snapshot, validating its invariants.

        dict などのマッピングも受け付け、pydantic の検証エラーは
        `memodeck.errors.ValidationError` に変換して返す（重複 ID など）。
        """

        try:
            if isinstance(snapshot, DeckSnapshot):
                # 外部で組み立てられたインスタンスも含め、必ず検証をやり直す。
                data = DeckSnapshot.model_validate(snapshot.model_dump())
            else:
                data = DeckSnapshot.model_validate(snapshot)
        except PydanticValidationError as exc:
            raise ValidationError(f"invalid deck snapshot: {exc}") from exc

        deck = cls()
        deck._current_tick = data.current_tick
        deck._pairs = {pair.id: pair.model_copy() for pair in data.pairs}
        highest = max(deck._pairs, default=0)
        deck._next_id = data.next_id if data.next_id is not None else highest + 1
        logger.debug("deck_loaded", pairs=len(deck._pairs), current_tick=deck._current_tick)
        return deck

    def to_json(self) -> str:
        return self.snapshot().model_dump_json()

    @classmethod
    def from_json(cls, text: str | bytes) -> "Deck":
        try:
            data = DeckSnapshot.model_validate_json(text)
        except PydanticValidationError as exc:
            raise ValidationError(f"invalid deck snapshot: {exc}") from exc
        return cls.from_snapshot(data)
