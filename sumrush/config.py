"""Config loader: YAML to dataclasses."""

from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class RoundConfig:
    duration: int = 60                  # seconds on the round clock
    question_time_limit: float = 10.0   # seconds before a question times out
    fast_answer_window: float = 5.0     # answers quicker than this earn the bonus
    starting_lives: int = 2
    tick_warning: int = 11              # tick cue once time_left was at or below this
    feedback_duration: float = 0.8

    def __post_init__(self):
        if self.duration < 1:
            raise ValueError("round.duration must be at least 1 second")
        if self.question_time_limit <= 0:
            raise ValueError("round.question_time_limit must be positive")
        if self.fast_answer_window < 0:
            raise ValueError("round.fast_answer_window must not be negative")
        if self.starting_lives < 0:
            raise ValueError("round.starting_lives must not be negative")


@dataclass
class ScoringConfig:
    base_points: int = 10
    fast_bonus: int = 5
    combo_every: int = 3
    combo_bonus: int = 20

    def __post_init__(self):
        if self.combo_every < 1:
            raise ValueError("scoring.combo_every must be at least 1")
        if min(self.base_points, self.fast_bonus, self.combo_bonus) < 0:
            raise ValueError("scoring points must not be negative")


@dataclass
class SoundConfig:
    enabled: bool = True
    volume: float = 0.3


@dataclass
class PlayerConfig:
    name: str = "Player"
    save_score: bool = True


@dataclass
class DeckConfig:
    brightness: int = 80


@dataclass
class AppConfig:
    round: RoundConfig = field(default_factory=RoundConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    sound: SoundConfig = field(default_factory=SoundConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    deck: DeckConfig = field(default_factory=DeckConfig)
    scores_path: str = "~/.sumrush/scores.json"


def load_config(path: Path) -> AppConfig:
    """Load config from YAML file."""
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    return AppConfig(
        round=RoundConfig(**(raw.get("round") or {})),
        scoring=ScoringConfig(**(raw.get("scoring") or {})),
        sound=SoundConfig(**(raw.get("sound") or {})),
        player=PlayerConfig(**(raw.get("player") or {})),
        deck=DeckConfig(**(raw.get("deck") or {})),
        scores_path=raw.get("scores_path") or AppConfig.scores_path,
    )
