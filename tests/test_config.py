"""Tests for config loader: YAML to dataclasses."""

import tempfile
from pathlib import Path

import pytest
import yaml


def _write(raw) -> Path:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(raw, f)
        return Path(f.name)


def test_load_config_parses_sections():
    """load_config should parse every YAML section into its dataclass."""
    raw = {
        "round": {"duration": 90, "question_time_limit": 8, "starting_lives": 3},
        "scoring": {"combo_bonus": 25},
        "sound": {"enabled": False},
        "player": {"name": "Aina", "save_score": False},
        "deck": {"brightness": 40},
        "scores_path": "/tmp/sumrush-scores.json",
    }
    from sumrush.config import load_config

    cfg = load_config(_write(raw))
    assert cfg.round.duration == 90
    assert cfg.round.question_time_limit == 8
    assert cfg.round.starting_lives == 3
    assert cfg.scoring.combo_bonus == 25
    assert cfg.scoring.base_points == 10
    assert cfg.sound.enabled is False
    assert cfg.player.name == "Aina"
    assert cfg.player.save_score is False
    assert cfg.deck.brightness == 40
    assert cfg.scores_path == "/tmp/sumrush-scores.json"


def test_load_config_defaults():
    """Missing sections and keys should get defaults."""
    from sumrush.config import load_config

    cfg = load_config(_write({"round": {}}))
    assert cfg.round.duration == 60
    assert cfg.round.question_time_limit == 10
    assert cfg.round.fast_answer_window == 5
    assert cfg.round.starting_lives == 2
    assert cfg.round.tick_warning == 11
    assert cfg.round.feedback_duration == 0.8
    assert cfg.scoring.combo_every == 3
    assert cfg.sound.volume == 0.3
    assert cfg.player.save_score is True
    assert cfg.scores_path == "~/.sumrush/scores.json"


def test_load_config_empty_file(tmp_path):
    from sumrush.config import load_config

    path = tmp_path / "config.yaml"
    path.write_text("")
    cfg = load_config(path)
    assert cfg.round.duration == 60


def test_invalid_values_raise():
    from sumrush.config import RoundConfig, ScoringConfig, load_config

    with pytest.raises(ValueError):
        RoundConfig(duration=0)
    with pytest.raises(ValueError):
        RoundConfig(starting_lives=-1)
    with pytest.raises(ValueError):
        ScoringConfig(combo_every=0)
    with pytest.raises(ValueError):
        load_config(_write({"round": {"question_time_limit": 0}}))


def test_unknown_key_raises():
    from sumrush.config import load_config

    with pytest.raises(TypeError):
        load_config(_write({"round": {"lifes": 3}}))


def test_shipped_config_matches_defaults():
    from sumrush.config import AppConfig, load_config

    cfg = load_config(Path(__file__).parent.parent / "config.yaml")
    assert cfg == AppConfig()
