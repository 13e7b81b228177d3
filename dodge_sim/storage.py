from __future__ import annotations

import json
import os
from typing import Any, Optional


DEFAULT_BEST_SCORE_PATH = os.path.join(os.path.expanduser("~"), ".dodge_sim", "best_score.json")


def parse_best_score(value: Any) -> int:
    """Coerce a stored value into a best score; anything unusable counts as 0.

    Strings with trailing junk such as "12abc" are rejected rather than
    prefix-parsed, so they also load as 0.
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, str):
        value = value.strip()
    try:
        score = int(value)
    except (TypeError, ValueError, OverflowError):
        try:
            score = int(float(value))
        except (TypeError, ValueError, OverflowError):
            return 0
    return max(0, score)


class MemoryBestScoreStore:
    def __init__(self, best_score: int = 0) -> None:
        self.best_score = parse_best_score(best_score)
        self.saves = 0

    def load_best_score(self) -> int:
        return self.best_score

    def save_best_score(self, score: int) -> None:
        self.best_score = int(score)
        self.saves += 1


class JsonBestScoreStore:
    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or DEFAULT_BEST_SCORE_PATH

    def load_best_score(self) -> int:
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError):
            return 0

        if isinstance(data, dict):
            data = data.get("best_score")
        return parse_best_score(data)

    def save_best_score(self, score: int) -> None:
        base_dir = os.path.dirname(self.path)
        if base_dir:
            os.makedirs(base_dir, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as handle:
            json.dump({"best_score": int(score)}, handle)
