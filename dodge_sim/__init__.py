from .env import Config, DodgeEnv, Obstacle, RunState, Snapshot, Track
from .gym_env import DodgeGymEnv
from .storage import JsonBestScoreStore, MemoryBestScoreStore

__all__ = [
    "Config",
    "DodgeEnv",
    "DodgeGymEnv",
    "JsonBestScoreStore",
    "MemoryBestScoreStore",
    "Obstacle",
    "RunState",
    "Snapshot",
    "Track",
]
