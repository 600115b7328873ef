"""Tests for Stream Deck discovery and the round front-end."""

from unittest.mock import MagicMock, patch

import pytest

from sumrush.config import AppConfig, PlayerConfig
from sumrush.scores import ScoreStore
from sumrush.timers import ManualScheduler


def test_find_deck_returns_first_visual_deck():
    """find_deck should return the first visual StreamDeck device."""
    plain = MagicMock()
    plain.is_visual.return_value = False
    mock_deck = MagicMock()
    mock_deck.is_visual.return_value = True
    mock_deck.key_count.return_value = 32

    with patch("sumrush.daemon.DeviceManager") as MockDM:
        MockDM.return_value.enumerate.return_value = [plain, mock_deck]
        from sumrush.daemon import find_deck

        deck = find_deck()
        assert deck is mock_deck


def test_find_deck_returns_none_when_no_devices():
    with patch("sumrush.daemon.DeviceManager") as MockDM:
        MockDM.return_value.enumerate.return_value = []
        from sumrush.daemon import find_deck

        assert find_deck() is None


@pytest.fixture
def app(tmp_path):
    from sumrush.daemon import RoundDeck

    config = AppConfig(player=PlayerConfig(name="Aina"))
    with patch("sumrush.daemon.PILHelper"):
        yield RoundDeck(
            MagicMock(),
            config,
            sound=MagicMock(),
            scores=ScoreStore(str(tmp_path / "scores.json")),
            scheduler=ManualScheduler(),
        )


def _press_answer(app, correct: bool):
    from sumrush.daemon import ANSWER_KEYS

    q = app.engine.snapshot().question
    idx = next(i for i, o in enumerate(q.options) if (o == q.answer) == correct)
    app.on_key(app.deck, ANSWER_KEYS[idx], True)


def test_answer_keys_ignored_before_start(app):
    from sumrush.daemon import ANSWER_KEYS

    app.show_idle()
    app.on_key(app.deck, ANSWER_KEYS[0], True)
    assert app.engine is None


def test_start_key_starts_round(app):
    from sumrush.daemon import START_KEY

    app.on_key(app.deck, START_KEY, True)
    assert app.running
    assert app.engine.state.question_index == 1
    app.on_key(app.deck, START_KEY, True)
    assert app.engine.state.question_index == 1


def test_key_release_is_ignored(app):
    from sumrush.daemon import START_KEY

    app.on_key(app.deck, START_KEY, False)
    assert app.engine is None


def test_correct_key_scores_and_feedback_clears(app):
    from sumrush.daemon import FEEDBACK_KEY, START_KEY

    app.on_key(app.deck, START_KEY, True)
    app.scheduler.advance(1)
    _press_answer(app, correct=True)
    assert app.engine.state.score == 15
    assert app._feedback_handle is not None

    app.deck.set_key_image.reset_mock()
    app.scheduler.advance(0.8)
    assert app._feedback_handle is None
    keys = [c.args[0] for c in app.deck.set_key_image.call_args_list]
    assert FEEDBACK_KEY in keys


def test_round_end_records_best(app, tmp_path):
    from sumrush.daemon import START_KEY

    app.on_key(app.deck, START_KEY, True)
    app.scheduler.advance(1)
    _press_answer(app, correct=True)
    for _ in range(3):
        _press_answer(app, correct=False)

    assert not app.running
    assert app.last_result == (15, 1)
    assert app.best == 15
    assert ScoreStore(str(tmp_path / "scores.json")).load_best("Aina") == 15

    app.on_key(app.deck, START_KEY, True)
    assert app.running
    assert app.engine.state.score == 0


def test_round_end_without_saving(tmp_path):
    from sumrush.daemon import START_KEY, RoundDeck

    config = AppConfig(player=PlayerConfig(name="Guest", save_score=False))
    store = ScoreStore(str(tmp_path / "scores.json"))
    with patch("sumrush.daemon.PILHelper"):
        app = RoundDeck(MagicMock(), config, sound=MagicMock(), scores=store,
                        scheduler=ManualScheduler())
        app.on_key(app.deck, START_KEY, True)
        app.scheduler.advance(1)
        _press_answer(app, correct=True)
        app.scheduler.advance(60)

    assert app.last_result == (15, 1)
    assert app.best == 0
    assert store.load_best("Guest") == 0


def test_stop_cancels_round(app):
    from sumrush.daemon import START_KEY

    app.on_key(app.deck, START_KEY, True)
    app.stop()
    app.scheduler.advance(100)
    assert app.last_result is None
    assert not app.running


def test_late_update_does_not_draw_question_over_results(app):
    from dataclasses import replace

    from sumrush.daemon import EQ_KEYS, START_KEY

    app.on_key(app.deck, START_KEY, True)
    stale = app.engine.snapshot()
    for _ in range(3):
        _press_answer(app, correct=False)
    assert not app.running

    app.deck.set_key_image.reset_mock()
    app._on_update(replace(stale, question_index=99))
    keys = [c.args[0] for c in app.deck.set_key_image.call_args_list]
    assert not set(keys) & set(EQ_KEYS)


def test_results_wait_for_question_draw(app):
    import threading

    from sumrush.daemon import START_KEY

    app.on_key(app.deck, START_KEY, True)
    app.deck.set_key_image.reset_mock()

    with app._lock:
        worker = threading.Thread(target=app._on_round_end, args=(10, 1))
        worker.start()
        worker.join(0.2)
        assert worker.is_alive()
        assert app.deck.set_key_image.call_count == 0
    worker.join(2.0)
    assert not worker.is_alive()
    assert app.deck.set_key_image.call_count > 0
