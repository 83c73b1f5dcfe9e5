import io
import json
import logging
from contextlib import contextmanager, redirect_stderr
from typing import Iterator

import pytest
import structlog

from memodeck import Deck, Scheduler, SchedulingPolicy, ValidationError


@contextmanager
def _captured_stderr() -> Iterator[io.StringIO]:
    """Capture log output and restore the default logging setup afterwards.

    なぜ: configure_logging() は root ロガーを force=True で差し替えるため、
    テスト終了後に既定へ戻さないと後続テストの出力先が StringIO のまま残る。
    """

    buf = io.StringIO()
    try:
        with redirect_stderr(buf):
            yield buf
    finally:
        structlog.reset_defaults()
        logging.basicConfig(level=logging.WARNING, force=True)


def _events(buf: io.StringIO) -> list[dict]:
    lines = [ln for ln in buf.getvalue().splitlines() if ln.strip()]
    return [json.loads(ln) for ln in lines]


def test_outcome_is_logged_as_pure_json():
    with _captured_stderr() as buf:
        from memodeck.logging import configure_logging

        configure_logging("INFO")
        deck = Deck()
        pair_id = deck.add_pair("converge", "to come together")
        Scheduler(SchedulingPolicy()).report_outcome(deck, pair_id, True)

    raw = buf.getvalue().strip()
    assert raw, "no log output captured"
    assert not raw.startswith("INFO:"), raw

    events = _events(buf)
    # debug レベルのイベント（pair_added）は INFO 設定では出力されない
    assert [e["event"] for e in events] == ["outcome_reported"]
    data = events[0]
    assert data["level"] == "info"
    assert data["pair_id"] == pair_id
    assert data["from_state"] == "new"
    assert data["to_state"] == "learning"
    assert data["due_at"] == 1
    assert "timestamp" in data


def test_pair_text_never_appears_in_logs(monkeypatch: pytest.MonkeyPatch):
    import memodeck.logging as memodeck_logging

    monkeypatch.setattr(memodeck_logging.settings, "log_level", "DEBUG")

    with _captured_stderr() as buf:
        memodeck_logging.configure_logging()
        deck = Deck()
        pair_id = deck.add_pair("secret-term", "hidden-definition")
        deck.advance_tick(2)
        deck.suspend(pair_id)
        deck.reactivate(pair_id)
        Scheduler(SchedulingPolicy()).report_outcome(deck, pair_id, False)
        deck.remove_pair(pair_id)

    events = [e["event"] for e in _events(buf)]
    assert events == [
        "pair_added",
        "tick_advanced",
        "pair_suspended",
        "pair_reactivated",
        "outcome_reported",
        "pair_removed",
    ]
    assert "secret-term" not in buf.getvalue()
    assert "hidden-definition" not in buf.getvalue()


def test_errors_are_raised_not_logged():
    with _captured_stderr() as buf:
        from memodeck.logging import configure_logging

        configure_logging("DEBUG")
        deck = Deck()
        with pytest.raises(ValidationError):
            deck.add_pair("", "x")
        with pytest.raises(ValidationError):
            deck.advance_tick(0)

    assert buf.getvalue().strip() == ""


def test_pair_added_logs_the_tick_it_became_due():
    with _captured_stderr() as buf:
        from memodeck.logging import configure_logging

        configure_logging("DEBUG")
        deck = Deck()
        deck.advance_tick(4)
        pair_id = deck.add_pair("a", "1")

    added = [e for e in _events(buf) if e["event"] == "pair_added"]
    assert added == [
        {**added[0], "pair_id": pair_id, "due_at": 4},
    ]
    assert deck.get_pair(pair_id).due_at == 4
