"""Round engine: timing, scoring and lives for one timed addition round.

The engine owns two timer handles: a repeating one-second round clock and a
one-shot per-question timeout. Every question transition cancels the old
timeout before arming a new one, and ending the round cancels both.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum

from sumrush.config import PlayerConfig, RoundConfig, ScoringConfig
from sumrush.questions import Question, QuestionGenerator
from sumrush.timers import ThreadingScheduler, TimerHandle

logger = logging.getLogger(__name__)


class Phase(Enum):
    READY = "ready"
    ACTIVE = "active"
    ENDED = "ended"


class FeedbackKind(Enum):
    FAST = "fast"
    NORMAL = "normal"
    COMBO = "combo"
    INCORRECT = "incorrect"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class Feedback:
    text: str
    kind: FeedbackKind
    points: int = 0


@dataclass
class RoundState:
    score: int = 0
    lives: int = 2
    combo: int = 0
    correct_count: int = 0
    question_index: int = 0
    time_left: int = 60
    current_question: Question | None = None
    question_started_at: float = 0.0


@dataclass(frozen=True)
class RoundSnapshot:
    phase: Phase
    score: int
    lives: int
    combo: int
    correct_count: int
    question_index: int
    time_left: int
    question: Question | None
    feedback: Feedback | None
    player: PlayerConfig | None


class RoundEngine:
    """Runs a single round from start() to the completion callback.

    on_round_end(score, correct_count) fires exactly once, when the clock runs
    out or a miss drops lives below zero. Ticks, answers and timeouts that
    arrive after that are ignored.
    """

    def __init__(
        self,
        on_round_end: Callable[[int, int], None],
        sound=None,
        generator: QuestionGenerator | None = None,
        scheduler=None,
        settings: RoundConfig | None = None,
        scoring: ScoringConfig | None = None,
        player: PlayerConfig | None = None,
        on_feedback: Callable[[Feedback], None] | None = None,
        on_update: Callable[[RoundSnapshot], None] | None = None,
    ):
        self.on_round_end = on_round_end
        self.sound = sound
        self.generator = generator or QuestionGenerator()
        self.scheduler = scheduler or ThreadingScheduler()
        self.settings = settings or RoundConfig()
        self.scoring = scoring or ScoringConfig()
        self.player = player
        self.on_feedback = on_feedback
        self.on_update = on_update

        self.state = RoundState(lives=self.settings.starting_lives,
                                time_left=self.settings.duration)
        self.phase = Phase.READY
        self.feedback: Feedback | None = None
        self.lock = threading.RLock()

        self._tick_handle: TimerHandle | None = None
        self._timeout_handle: TimerHandle | None = None

    @property
    def ended(self) -> bool:
        return self.phase is Phase.ENDED

    # ── timers ────────────────────────────────────────────────────

    def _arm_question_timeout(self):
        self._cancel_question_timeout()
        self._timeout_handle = self.scheduler.call_later(
            self.settings.question_time_limit,
            self.on_question_timeout,
            self.state.question_index,
        )

    def _cancel_question_timeout(self):
        if self._timeout_handle:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def _cancel_timers(self):
        self._cancel_question_timeout()
        if self._tick_handle:
            self._tick_handle.cancel()
            self._tick_handle = None

    # ── helpers ───────────────────────────────────────────────────

    def _next_question(self):
        """Generate the next question and restart its timeout."""
        self.state.question_index += 1
        self.state.current_question = self.generator.generate(self.state.question_index)
        self.state.question_started_at = self.scheduler.now()
        self._arm_question_timeout()
        logger.debug("question %d: %s", self.state.question_index,
                     self.state.current_question.text)

    def _end(self):
        """Move to ENDED. Caller fires the completion callback after unlocking."""
        self.phase = Phase.ENDED
        self._cancel_timers()
        logger.info("round over: score=%d correct=%d",
                    self.state.score, self.state.correct_count)

    def _play(self, cue: str):
        if self.sound is None:
            return
        getattr(self.sound, f"play_{cue}")()

    def _lose_life(self) -> bool:
        """Reset the combo and take a life. True when the round is over."""
        self.state.combo = 0
        self.state.lives -= 1
        if self.state.lives < 0:
            self._end()
            return True
        return False

    def _notify(self, feedback: Feedback | None = None, finished: bool = False):
        # listeners run outside the lock; a failing listener must not stop the clock
        if feedback and self.on_feedback:
            self._call_listener(self.on_feedback, feedback)
        if self.on_update:
            self._call_listener(self.on_update, self.snapshot())
        if finished:
            self._call_listener(self.on_round_end, self.state.score, self.state.correct_count)

    def _call_listener(self, listener: Callable, *args):
        try:
            listener(*args)
        except Exception:
            logger.exception("listener %r failed", listener)

    # ── events ────────────────────────────────────────────────────

    def start(self):
        """Start the round: first question, round clock, question timeout."""
        with self.lock:
            if self.phase is not Phase.READY:
                raise RuntimeError("round already started")
            self.phase = Phase.ACTIVE
            self._tick_handle = self.scheduler.call_every(1.0, self.on_tick)
            self._next_question()
            logger.info("round started: %ds, %d lives",
                        self.settings.duration, self.state.lives)
        self._notify()

    def on_tick(self):
        """One second of round clock."""
        with self.lock:
            if self.phase is not Phase.ACTIVE:
                logger.debug("tick ignored, round %s", self.phase.value)
                return
            previous = self.state.time_left
            self.state.time_left = max(0, previous - 1)
            finished = self.state.time_left == 0
            if finished:
                self._end()
            elif previous <= self.settings.tick_warning:
                self._play("tick")
        self._notify(finished=finished)

    def submit_answer(self, value):
        """Resolve the current question with the player's pick."""
        with self.lock:
            question = self.state.current_question
            if self.phase is not Phase.ACTIVE or question is None:
                logger.debug("answer %r ignored, round %s", value, self.phase.value)
                return
            time_taken = self.scheduler.now() - self.state.question_started_at

            finished = False
            if question.is_correct(value):
                self._play("correct")
                feedback = self._score_correct(time_taken)
            else:
                self._play("wrong")
                feedback = Feedback("WRONG!", FeedbackKind.INCORRECT)
                finished = self._lose_life()

            if not finished:
                self._next_question()
            self.feedback = feedback
        self._notify(feedback, finished)

    on_answer = submit_answer

    def _score_correct(self, time_taken: float) -> Feedback:
        scoring = self.scoring
        points = scoring.base_points
        if time_taken < self.settings.fast_answer_window:
            points += scoring.fast_bonus
            kind, label = FeedbackKind.FAST, "FAST!"
        else:
            kind, label = FeedbackKind.NORMAL, "CORRECT!"

        self.state.combo += 1
        if self.state.combo > 0 and self.state.combo % scoring.combo_every == 0:
            points += scoring.combo_bonus
            kind, label = FeedbackKind.COMBO, "COMBO!"

        self.state.score += points
        self.state.correct_count += 1
        logger.debug("correct in %.2fs: +%d (combo %d)",
                     time_taken, points, self.state.combo)
        return Feedback(f"{label} +{points}", kind, points)

    def on_question_timeout(self, question_index: int | None = None):
        """The current question ran out of time.

        question_index is the question the timeout was armed for; a timeout
        for any other question is stale and ignored.
        """
        with self.lock:
            if self.phase is not Phase.ACTIVE or self.state.current_question is None:
                logger.debug("timeout ignored, round %s", self.phase.value)
                return
            if question_index is not None and question_index != self.state.question_index:
                logger.debug("stale timeout for question %d ignored", question_index)
                return
            self._play("wrong")
            feedback = Feedback("TIME'S UP!", FeedbackKind.TIMEOUT)
            finished = self._lose_life()
            if not finished:
                self._next_question()
            self.feedback = feedback
        self._notify(feedback, finished)

    def cancel(self):
        """Abort the round without firing the completion callback."""
        with self.lock:
            if self.phase is Phase.ENDED:
                return
            self.phase = Phase.ENDED
            self._cancel_timers()
            logger.info("round cancelled")

    # ── presentation ──────────────────────────────────────────────

    def snapshot(self) -> RoundSnapshot:
        with self.lock:
            s = self.state
            return RoundSnapshot(
                phase=self.phase,
                score=s.score,
                lives=s.lives,
                combo=s.combo,
                correct_count=s.correct_count,
                question_index=s.question_index,
                time_left=s.time_left,
                question=s.current_question,
                feedback=self.feedback,
                player=replace(self.player) if self.player else None,
            )
