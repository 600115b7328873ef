"""Best score per player, kept in a small JSON file."""

import json
import os
import threading

from sumrush.config import PlayerConfig

DEFAULT_PATH = os.path.expanduser("~/.sumrush/scores.json")


class ScoreStore:
    def __init__(self, path: str = DEFAULT_PATH):
        self.path = os.path.expanduser(path)
        self._lock = threading.Lock()

    def _load_all(self) -> dict:
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError):
            return {}
        return data if isinstance(data, dict) else {}

    def load_best(self, name: str, default: int = 0) -> int:
        """Best score for a player. Returns default if no record."""
        return self._load_all().get(name, default)

    def save_best(self, name: str, score: int) -> None:
        with self._lock:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            data = self._load_all()
            data[name] = score
            with open(self.path, "w") as f:
                json.dump(data, f, indent=2)

    def record(self, player: PlayerConfig, score: int) -> bool:
        """Save score if the player opted in and it beats their best.

        Returns True when a new best was written.
        """
        if not player.save_score:
            return False
        if score <= self.load_best(player.name):
            return False
        self.save_best(player.name, score)
        return True
