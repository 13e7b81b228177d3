from __future__ import annotations

from typing import Any, Optional, Tuple

import numpy as np

try:
    import gymnasium as gym
    from gymnasium import spaces
except ImportError as exc:
    raise RuntimeError("gymnasium is required to use DodgeGymEnv") from exc

from .env import DodgeEnv
from .render import CONTROLS_HEIGHT


class DodgeGymEnv(gym.Env):
    metadata = {"render_modes": ["human", "rgb_array"], "render_fps": 60}

    def __init__(
        self,
        render_mode: Optional[str] = None,
        obs_mode: str = "state",
        width: int = 400,
        height: int = 600,
        max_objects: int = 5,
        fps: int = 60,
        seed: Optional[int] = None,
        store: Optional[Any] = None,
        viewport_width: Optional[int] = None,
    ) -> None:
        super().__init__()
        self.env = DodgeEnv(
            width=width,
            height=height,
            fps=fps,
            render_mode=render_mode,
            obs_mode=obs_mode,
            seed=seed,
            max_objects=max_objects,
            store=store,
            viewport_width=viewport_width,
        )
        self.render_mode = render_mode
        self.obs_mode = obs_mode

        # 0 = stay, 1 = left, 2 = right
        self.action_space = spaces.Discrete(3)
        self.observation_space = self._make_observation_space(obs_mode)

    @property
    def pixel_height(self) -> int:
        return self.env.height + (CONTROLS_HEIGHT if self.env.compact else 0)

    def _make_observation_space(self, obs_mode: str):
        if obs_mode == "state":
            size = self.env.state_size
            return spaces.Box(low=-1.0, high=1.0, shape=(size,), dtype=np.float32)
        if obs_mode in ("pixels", "rgb_array"):
            return spaces.Box(
                low=0,
                high=255,
                shape=(self.pixel_height, self.env.width, 3),
                dtype=np.uint8,
            )
        raise ValueError(f"Unknown obs_mode: {obs_mode}")

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None):
        del options
        obs, info = self.env.reset(seed=seed)
        return self._format_obs(obs), info

    def step(self, action: Any) -> Tuple[Any, float, bool, bool, dict]:
        if isinstance(action, np.ndarray):
            action = int(action.reshape(-1)[0]) if action.size else 0
        obs, reward, terminated, truncated, info = self.env.step(action)
        return self._format_obs(obs), float(reward), bool(terminated), bool(truncated), info

    def render(self):
        return self.env.render(mode=self.render_mode)

    def close(self) -> None:
        self.env.close()

    def _format_obs(self, obs: Any):
        if self.obs_mode == "state":
            return np.asarray(obs, dtype=np.float32)
        if self.obs_mode in ("pixels", "rgb_array"):
            if obs is None:
                return np.zeros(self.observation_space.shape, dtype=np.uint8)
            return obs.astype(np.uint8, copy=False)
        return obs
