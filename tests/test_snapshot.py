import json

import pytest

from memodeck import Deck, DeckSnapshot, LearningState, Scheduler, ValidationError


def _played_deck(scheduler: Scheduler) -> Deck:
    deck = Deck()
    ids = [deck.add_pair(k, v) for k, v in (("converge", "to come together"), ("via", "by way of"), ("yield", "produce"))]
    scheduler.report_outcome(deck, ids[0], True)
    scheduler.report_outcome(deck, ids[0], True)
    scheduler.report_outcome(deck, ids[1], False)
    deck.suspend(ids[1])
    deck.remove_pair(ids[2])
    deck.advance_tick(3)
    return deck


def test_snapshot_round_trip_is_observationally_equal(scheduler: Scheduler):
    deck = _played_deck(scheduler)

    loaded = Deck.from_snapshot(deck.snapshot())

    assert loaded.snapshot() == deck.snapshot()
    assert loaded.current_tick == 3
    assert loaded.pairs() == deck.pairs()
    assert scheduler.next_due(loaded) == scheduler.next_due(deck)
    # 削除済み ID (3) は読み込み後も再利用されない
    assert loaded.add_pair("new", "one") == 4


def test_json_round_trip(scheduler: Scheduler):
    deck = _played_deck(scheduler)

    text = deck.to_json()
    payload = json.loads(text)
    loaded = Deck.from_json(text)

    assert payload["current_tick"] == 3
    assert {p["learning_state"] for p in payload["pairs"]} == {"review", "suspended"}
    assert loaded.snapshot() == deck.snapshot()


def test_snapshot_is_read_only(deck: Deck):
    deck.add_pair("a", "1")
    snap = deck.snapshot()

    with pytest.raises(Exception):
        snap.current_tick = 10  # type: ignore[misc]

    snap.pairs[0].due_at = 50
    assert deck.get_pair(1).due_at == 0


def test_load_without_next_id_continues_after_highest_id():
    deck = Deck.from_snapshot(
        {"current_tick": 2, "pairs": [{"id": 5, "key": "a", "value": "1", "due_at": 1}]}
    )

    assert deck.add_pair("b", "2") == 6


@pytest.mark.parametrize(
    "payload",
    [
        {"pairs": [{"id": 1, "key": "a", "value": "1"}, {"id": 1, "key": "b", "value": "2"}]},
        {"pairs": [{"id": 1, "key": "", "value": "1"}]},
        {"pairs": [{"id": 1, "key": "a", "value": "1", "strength": -1}]},
        {"pairs": [{"id": 1, "key": "a", "value": "1", "interval_units": -2}]},
        {"pairs": [{"id": 0, "key": "a", "value": "1"}]},
        {"pairs": [{"id": 1, "key": "a", "value": "1", "learning_state": "forgotten"}]},
        {"pairs": [{"id": 1, "key": "a", "value": "1", "learning_state": "suspended"}]},
        {"pairs": [{"id": 1, "key": "a", "value": "1", "resume_state": "review"}]},
        {"current_tick": 1, "pairs": [{"id": 1, "key": "a", "value": "1", "last_reviewed_at": 4}]},
        {"next_id": 2, "pairs": [{"id": 3, "key": "a", "value": "1"}]},
        {"current_tick": -1},
        {"pairs": [], "unexpected": True},
    ],
)
def test_load_rejects_invalid_snapshots(payload):
    with pytest.raises(ValidationError):
        Deck.from_snapshot(payload)


def test_load_revalidates_snapshot_instances():
    broken = DeckSnapshot.model_construct(current_tick=-5, next_id=None, pairs=())

    with pytest.raises(ValidationError):
        Deck.from_snapshot(broken)


def test_from_json_rejects_malformed_text():
    with pytest.raises(ValidationError):
        Deck.from_json("{not json")


def test_suspended_state_survives_round_trip(deck: Deck):
    pair_id = deck.add_pair("a", "1")
    deck.suspend(pair_id)

    loaded = Deck.from_json(deck.to_json())
    restored = loaded.reactivate(pair_id)

    assert restored.learning_state is LearningState.new
