# sumrush/daemon.py
"""SumRush: timed addition round on a Stream Deck.

Layout (8x4 = 32 keys):
  Row 1 (0-7):   HUD: title, player, score, lives, time, question no., feedback
  Row 2 (8-15):  Equation, centered
  Row 3 (16-23): START button at key 20, results after the round
  Row 4 (24-31): 4 answer options on keys 26-29

Usage:
    sumrush --config config.yaml
"""

import argparse
import logging
import sys
import threading
from pathlib import Path

from StreamDeck.DeviceManager import DeviceManager
from StreamDeck.ImageHelpers import PILHelper

from sumrush import renderer
from sumrush.config import AppConfig, load_config
from sumrush.engine import Feedback, RoundEngine, RoundSnapshot
from sumrush.scores import ScoreStore
from sumrush.sound import SoundService
from sumrush.timers import ThreadingScheduler

HUD_KEYS = list(range(0, 8))
EQ_KEYS = list(range(8, 16))
MID_KEYS = list(range(16, 24))
OPT_KEYS = list(range(24, 32))
ANSWER_KEYS = [26, 27, 28, 29]

START_KEY = 20
TIME_KEY = 4
FEEDBACK_KEY = 6


def find_deck():
    """Find first visual Stream Deck device."""
    decks = DeviceManager().enumerate()
    for deck in decks:
        if deck.is_visual():
            return deck
    return None


class RoundDeck:
    """Binds one RoundEngine at a time to the deck's keys."""

    def __init__(self, deck, config: AppConfig, sound=None, scores: ScoreStore | None = None,
                 scheduler=None, verbose: bool = False):
        self.deck = deck
        self.config = config
        self.sound = sound
        self.scores = scores or ScoreStore(config.scores_path)
        self.scheduler = scheduler or ThreadingScheduler()
        self.verbose = verbose
        self.engine: RoundEngine | None = None
        self.best = self.scores.load_best(config.player.name)
        self.last_result: tuple[int, int] | None = None
        self._shown_question = 0
        self._feedback_handle = None
        self._lock = threading.RLock()

        self.img_empty = renderer.render_empty()
        self.img_hud_empty = renderer.render_empty(renderer.BG_HUD)

    @property
    def running(self) -> bool:
        return self.engine is not None and not self.engine.ended

    def set_key(self, pos: int, img):
        native = PILHelper.to_native_key_format(self.deck, img)
        with self.deck:
            self.deck.set_key_image(pos, native)

    # ── screens ───────────────────────────────────────────────────

    def _draw_hud(self, score: int, lives: int, time_left: int, index: int):
        self.set_key(0, renderer.render_title())
        self.set_key(1, renderer.render_player(self.config.player.name))
        self.set_key(2, renderer.render_score(score))
        self.set_key(3, renderer.render_lives(lives, self.config.round.starting_lives))
        self.set_key(TIME_KEY, renderer.render_time(time_left, self.config.round.duration))
        self.set_key(5, renderer.render_question_number(index) if index else self.img_hud_empty)
        self.set_key(FEEDBACK_KEY, self.img_hud_empty)
        self.set_key(7, self.img_hud_empty)

    def show_idle(self):
        """Start screen."""
        rc = self.config.round
        self._draw_hud(0, rc.starting_lives, rc.duration, 0)
        for k in EQ_KEYS + MID_KEYS + OPT_KEYS:
            self.set_key(k, renderer.render_start() if k == START_KEY else self.img_empty)

    def _show_question(self, snap: RoundSnapshot):
        q = snap.question
        parts = [str(q.num1), "+", str(q.num2), "=", "?"]
        start = EQ_KEYS[0] + (len(EQ_KEYS) - len(parts)) // 2
        for k in EQ_KEYS:
            self.set_key(k, self.img_empty)
        for i, part in enumerate(parts):
            self.set_key(start + i, renderer.render_term(part, is_operator=part in ("+", "=")))
        for k in OPT_KEYS:
            if k in ANSWER_KEYS:
                self.set_key(k, renderer.render_option(q.options[ANSWER_KEYS.index(k)]))
            else:
                self.set_key(k, self.img_empty)
        self._shown_question = snap.question_index

    def _show_results(self, score: int, correct: int, is_new_best: bool):
        for k in EQ_KEYS + OPT_KEYS:
            self.set_key(k, self.img_empty)
        for k in MID_KEYS:
            if k == START_KEY:
                self.set_key(k, renderer.render_start())
            elif k in (18, 19):
                self.set_key(k, renderer.render_game_over())
            elif k == 21:
                self.set_key(k, renderer.render_final_score(score, correct))
            elif k == 22:
                self.set_key(k, renderer.render_best_score(
                    self.best, is_new_best, self.config.player.save_score))
            else:
                self.set_key(k, self.img_empty)

    # ── engine listeners ──────────────────────────────────────────

    def _on_update(self, snap: RoundSnapshot):
        # the ended check and the draw share the lock with the results screen
        with self._lock:
            if snap.question and snap.question_index != self._shown_question and not self.engine.ended:
                self._draw_hud(snap.score, snap.lives, snap.time_left, snap.question_index)
                self._show_question(snap)
                if snap.feedback:
                    self.set_key(FEEDBACK_KEY, renderer.render_feedback(snap.feedback))
                return
        self.set_key(2, renderer.render_score(snap.score))
        self.set_key(3, renderer.render_lives(snap.lives, self.config.round.starting_lives))
        self.set_key(TIME_KEY, renderer.render_time(snap.time_left, self.config.round.duration))

    def _on_feedback(self, feedback: Feedback):
        with self._lock:
            if self._feedback_handle:
                self._feedback_handle.cancel()
            self._feedback_handle = self.scheduler.call_later(
                self.config.round.feedback_duration, self._clear_feedback, feedback)
        self.set_key(FEEDBACK_KEY, renderer.render_feedback(feedback))
        if self.verbose:
            print(f"{feedback.text}")

    def _clear_feedback(self, feedback: Feedback):
        with self._lock:
            self._feedback_handle = None
        self.set_key(FEEDBACK_KEY, self.img_hud_empty)

    def _on_round_end(self, score: int, correct: int):
        self.last_result = (score, correct)
        is_new_best = self.scores.record(self.config.player, score)
        if is_new_best:
            self.best = score
        print(f"Round over: {score} points, {correct} correct"
              + (" (new best!)" if is_new_best else ""))
        with self._lock:
            self._show_results(score, correct, is_new_best)

    # ── game flow ─────────────────────────────────────────────────

    def start_round(self):
        self._shown_question = 0
        self.last_result = None
        self.engine = RoundEngine(
            on_round_end=self._on_round_end,
            sound=self.sound,
            scheduler=self.scheduler,
            settings=self.config.round,
            scoring=self.config.scoring,
            player=self.config.player,
            on_feedback=self._on_feedback,
            on_update=self._on_update,
        )
        for k in MID_KEYS:
            self.set_key(k, self.img_empty)
        self.engine.start()

    def stop(self):
        if self.engine:
            self.engine.cancel()

    def on_key(self, _deck, key: int, pressed: bool):
        if not pressed:
            return

        if key == START_KEY and not self.running:
            self.start_round()
            return

        if not self.running or key not in ANSWER_KEYS:
            return

        question = self.engine.snapshot().question
        if question is None:
            return
        value = question.options[ANSWER_KEYS.index(key)]
        if self.verbose:
            print(f"Key {key}: answered {value} to {question.text}")
        self.engine.submit_answer(value)


def main():
    parser = argparse.ArgumentParser(description="SumRush: timed addition on a Stream Deck")
    parser.add_argument("--config", default="config.yaml", help="Config file path")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    config_path = Path(args.config)
    if config_path.exists():
        config = load_config(config_path)
    else:
        print(f"Config not found: {config_path}, using defaults")
        config = AppConfig()

    deck = find_deck()
    if deck is None:
        print("No Stream Deck found. Is it plugged in?")
        sys.exit(1)

    sound = SoundService(enabled=config.sound.enabled, volume=config.sound.volume)
    print("Sound effects: " + ("ON" if sound.prepare() else "OFF"))

    deck.open()
    deck.reset()
    deck.set_brightness(config.deck.brightness)
    print(f"Connected: {deck.deck_type()} ({deck.key_count()} keys)")
    print(f"SUM RUSH! {config.player.name}, press START to begin.")

    app = RoundDeck(deck, config, sound=sound, verbose=args.verbose)
    app.show_idle()
    deck.set_key_callback(app.on_key)

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        print(f"\nBye! Best score: {app.best}")
    finally:
        app.stop()
        deck.reset()
        deck.close()
        sound.cleanup()


if __name__ == "__main__":
    main()
