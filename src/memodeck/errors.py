"""Error kinds raised by the deck and scheduler.

呼び出し側（CLI/UI）がエラーを利用者へ提示できるよう、種類ごとに例外クラスを分ける。
コアは I/O を行わないため、リトライ対象となる一時的なエラーは存在しない。
"""

from __future__ import annotations


class DeckError(Exception):
    """Base class for every error raised by memodeck."""


class ValidationError(DeckError, ValueError):
    """Malformed input: empty key/value, bad tick advance, broken snapshot."""


class NotFoundError(DeckError, LookupError):
    """An operation referenced a pair id that is not in the deck."""

    def __init__(self, pair_id: int) -> None:
        super().__init__(f"pair {pair_id!r} not found")
        self.pair_id = pair_id


class InvalidStateError(DeckError, RuntimeError):
    """The operation is not allowed in the pair's current learning state."""

    def __init__(self, pair_id: int, state: object, message: str | None = None) -> None:
        super().__init__(message or f"pair {pair_id!r} is {state}")
        self.pair_id = pair_id
        self.state = state
