from __future__ import annotations

from dataclasses import dataclass, field, replace
import random
from typing import List, Optional, Tuple, Dict, Any, Union

from .storage import MemoryBestScoreStore
from .timers import IntervalTimer


class Config:
    tick_ms = 50
    countdown_ms = 1000
    countdown_start = 3
    countdown_go = "GO!"

    top_line = 80
    player_size = 60
    obstacle_size = 50
    bottom_margin = 10
    player_step = 30
    starting_lives = 3

    spawn_chance = 0.025
    oscillate_chance = 0.5
    oscillate_dx = 2
    base_speed_min = 3
    base_speed_spread = 5
    fast_speed_threshold = 6

    boost_every = 10
    boost_amount = 0.2
    surge_every = 20
    surge_amount = 0.05

    compact_max_width = 768

    # observation scaling only
    speed_norm = 12.0
    boost_norm = 2.0


PHASES = ("intro", "countdown", "running", "game_over")
OBSTACLE_KINDS = ("straight", "moving", "fast")

CountdownValue = Union[int, str]


@dataclass(frozen=True)
class Track:
    width: int = 400
    height: int = 600
    top_line: int = Config.top_line
    player_size: int = Config.player_size
    obstacle_size: int = Config.obstacle_size
    bottom_margin: int = Config.bottom_margin

    @property
    def player_top(self) -> int:
        return self.height - self.player_size - self.bottom_margin

    @property
    def player_bottom(self) -> int:
        return self.height - self.bottom_margin

    @property
    def scoring_line(self) -> int:
        # Obstacles below the top of the player band have been dodged.
        return self.player_top

    @property
    def max_player_x(self) -> int:
        return self.width - self.player_size

    @property
    def max_obstacle_x(self) -> int:
        return self.width - self.obstacle_size

    @property
    def center_x(self) -> float:
        return self.width / 2.0 - self.player_size / 2.0


@dataclass
class Obstacle:
    x: float
    y: float
    dx: float = 0.0
    speed: float = float(Config.base_speed_min)
    kind: str = "straight"
    scored: bool = False
    hit: bool = False


@dataclass
class RunState:
    player_x: float
    obstacles: List[Obstacle] = field(default_factory=list)
    score: int = 0
    lives: int = Config.starting_lives
    speed_boost: float = 0.0
    high_score: int = 0
    ticks: int = 0

    @classmethod
    def fresh(cls, track: Track, high_score: int = 0) -> "RunState":
        return cls(player_x=track.center_x, high_score=high_score)


@dataclass
class TickEvents:
    spawned: Optional[Obstacle] = None
    hits: int = 0
    dodges: int = 0
    removed: int = 0
    game_over: bool = False
    new_high_score: bool = False


@dataclass(frozen=True)
class Snapshot:
    """Read-only view of a run handed to the presentation layer each frame."""

    phase: str
    countdown: Optional[CountdownValue]
    player_x: float
    player_y: float
    obstacles: Tuple[Obstacle, ...]
    score: int
    lives: int
    high_score: int
    speed_boost: float
    compact: bool
    track: Track


def is_compact_layout(viewport_width: Optional[int]) -> bool:
    if viewport_width is None:
        return False
    return viewport_width <= Config.compact_max_width


def classify_obstacle(dx: float, speed: float) -> str:
    kind = "straight"
    if dx != 0:
        kind = "moving"
    if speed >= Config.fast_speed_threshold:
        kind = "fast"
    return kind


def rects_intersect(
    ax: float,
    ay: float,
    aw: float,
    ah: float,
    bx: float,
    by: float,
    bw: float,
    bh: float,
) -> bool:
    return ax < bx + bw and ax + aw > bx and ay < by + bh and ay + ah > by


def spawn_obstacle(state: RunState, track: Track, rng: random.Random) -> Optional[Obstacle]:
    if rng.random() >= Config.spawn_chance:
        return None

    x = rng.randint(0, track.max_obstacle_x)
    dx = 0
    if rng.random() < Config.oscillate_chance:
        dx = -Config.oscillate_dx if rng.random() < 0.5 else Config.oscillate_dx
    speed = Config.base_speed_min + rng.randrange(Config.base_speed_spread) + state.speed_boost

    obstacle = Obstacle(
        x=float(x),
        y=float(track.top_line),
        dx=float(dx),
        speed=float(speed),
        kind=classify_obstacle(dx, speed),
    )
    state.obstacles.append(obstacle)
    return obstacle


def move_obstacles(state: RunState, track: Track) -> None:
    for obstacle in state.obstacles:
        obstacle.y += obstacle.speed
        if obstacle.dx == 0:
            continue
        new_x = obstacle.x + obstacle.dx
        if new_x < 0 or new_x > track.max_obstacle_x:
            obstacle.dx = -obstacle.dx
            new_x = obstacle.x + obstacle.dx
        obstacle.x = new_x


def intersects_player(state: RunState, track: Track, obstacle: Obstacle) -> bool:
    return rects_intersect(
        state.player_x,
        track.player_top,
        track.player_size,
        track.player_size,
        obstacle.x,
        obstacle.y,
        track.obstacle_size,
        track.obstacle_size,
    )


def resolve_collisions(state: RunState, track: Track) -> int:
    hits = 0
    for obstacle in list(state.obstacles):
        if state.lives <= 0:
            break
        if obstacle.hit or not intersects_player(state, track, obstacle):
            continue
        obstacle.hit = True
        state.obstacles.remove(obstacle)
        state.lives = max(0, state.lives - 1)
        hits += 1
    return hits


def escalate(state: RunState) -> None:
    if state.score % Config.boost_every == 0:
        state.speed_boost += Config.boost_amount
    if state.score % Config.surge_every == 0:
        for obstacle in state.obstacles:
            obstacle.speed += Config.surge_amount


def award_dodges(state: RunState, track: Track) -> int:
    dodges = 0
    for obstacle in state.obstacles:
        if obstacle.scored or obstacle.hit or obstacle.y <= track.scoring_line:
            continue
        obstacle.scored = True
        state.score += 1
        dodges += 1
        escalate(state)
    return dodges


def remove_off_track(state: RunState, track: Track) -> int:
    before = len(state.obstacles)
    state.obstacles = [obstacle for obstacle in state.obstacles if obstacle.y < track.height]
    return before - len(state.obstacles)


def update_high_score(state: RunState) -> bool:
    if state.score > state.high_score:
        state.high_score = state.score
        return True
    return False


def advance_run(state: RunState, track: Track, rng: random.Random) -> TickEvents:
    """Advance a run by one tick.

    Spawning, kinematics, collisions, scoring and off-track removal are applied
    in that order. Scoring is skipped on the tick the last life is lost.
    """
    events = TickEvents()
    state.ticks += 1

    events.spawned = spawn_obstacle(state, track, rng)
    move_obstacles(state, track)
    events.hits = resolve_collisions(state, track)
    events.game_over = state.lives <= 0
    if not events.game_over:
        events.dodges = award_dodges(state, track)
    events.removed = remove_off_track(state, track)
    events.new_high_score = update_high_score(state)
    return events


class DodgeEnv:
    def __init__(
        self,
        width: int = 400,
        height: int = 600,
        fps: int = 60,
        render_mode: Optional[str] = None,
        obs_mode: str = "state",
        seed: Optional[int] = None,
        max_objects: int = 5,
        store: Optional[Any] = None,
        viewport_width: Optional[int] = None,
    ) -> None:
        self.track = Track(width=width, height=height)
        self.width = width
        self.height = height
        self.fps = fps
        self.render_mode = render_mode
        self.obs_mode = obs_mode
        self.max_objects = max_objects
        self.compact = is_compact_layout(viewport_width)

        self.seed_value = seed
        self.rng = random.Random(seed)

        self.store = store if store is not None else MemoryBestScoreStore()
        self.state = RunState.fresh(self.track, self.store.load_best_score())

        self.phase = "intro"
        self.countdown: Optional[CountdownValue] = None
        self.last_events: Optional[TickEvents] = None

        self.tick_timer = IntervalTimer(Config.tick_ms, self.tick)
        self.countdown_timer = IntervalTimer(Config.countdown_ms, self.advance_countdown)

        self.renderer = None

    def seed(self, seed: Optional[int]) -> None:
        self.seed_value = seed
        self.rng.seed(seed)

    def reset(self, seed: Optional[int] = None) -> Tuple[Any, Dict[str, Any]]:
        """Start a fresh run directly in the running phase, skipping the countdown."""
        if seed is not None:
            self.seed(seed)
        self._new_run()
        self._enter_phase("running")
        return self._get_observation(), self._get_info()

    # -- intents ---------------------------------------------------------

    def start_game(self) -> bool:
        if self.phase != "intro":
            return False
        self._begin_countdown()
        return True

    def restart_game(self) -> bool:
        if self.phase != "game_over":
            return False
        self._new_run()
        self._begin_countdown()
        return True

    def move_left(self) -> None:
        if self.phase != "running":
            return
        self.state.player_x = max(self.state.player_x - Config.player_step, 0)

    def move_right(self) -> None:
        if self.phase != "running":
            return
        self.state.player_x = min(self.state.player_x + Config.player_step, self.track.max_player_x)

    # -- phase machine ---------------------------------------------------

    def _new_run(self) -> None:
        self.state = RunState.fresh(self.track, self.state.high_score)
        self.last_events = None

    def _begin_countdown(self) -> None:
        self.countdown = Config.countdown_start
        self._enter_phase("countdown")

    def _enter_phase(self, phase: str) -> None:
        if phase not in PHASES:
            raise ValueError(f"Unknown phase: {phase}")
        self.tick_timer.stop()
        self.countdown_timer.stop()
        self.phase = phase
        if phase == "countdown":
            self.countdown_timer.start()
        else:
            self.countdown = None
        if phase == "running":
            self.tick_timer.start()

    def advance_countdown(self) -> None:
        if self.phase != "countdown":
            return
        if self.countdown == Config.countdown_go:
            self._enter_phase("running")
        elif self.countdown == 1:
            self.countdown = Config.countdown_go
        else:
            self.countdown -= 1

    def tick(self) -> Optional[TickEvents]:
        if self.phase != "running":
            return None
        events = advance_run(self.state, self.track, self.rng)
        if events.new_high_score:
            self.store.save_best_score(self.state.high_score)
        if events.game_over:
            self._enter_phase("game_over")
        self.last_events = events
        return events

    def advance_time(self, elapsed_ms: float) -> None:
        """Feed wall-clock time to whichever timer the current phase owns."""
        remaining = elapsed_ms
        while remaining > 0:
            if self.phase == "countdown":
                timer = self.countdown_timer
            elif self.phase == "running":
                timer = self.tick_timer
            else:
                return
            remaining = timer.advance(remaining)

    # -- gym-style surface -----------------------------------------------

    def step(self, action: Any) -> Tuple[Any, float, bool, bool, Dict[str, Any]]:
        prev_score = self.state.score
        self.apply_action(action)
        self.tick()

        reward = float(self.state.score - prev_score)
        terminated = self.phase == "game_over"
        truncated = False
        return self._get_observation(), reward, terminated, truncated, self._get_info()

    def apply_action(self, action: Any) -> None:
        try:
            action_id = int(action)
        except (TypeError, ValueError):
            action_id = 0
        if action_id == 1:
            self.move_left()
        elif action_id == 2:
            self.move_right()

    def render(self, mode: Optional[str] = None) -> Optional["Any"]:
        if mode is None:
            mode = self.render_mode
        if mode is None:
            return None

        if self.renderer is None or self.renderer.mode != mode:
            from .render import PygameRenderer

            if self.renderer is not None:
                self.renderer.close()
            self.renderer = PygameRenderer(self.width, self.height, mode, compact=self.compact)
        frame = self.renderer.draw(self.snapshot())
        if mode == "human":
            self.renderer.tick(self.fps)
            return None
        return frame

    def close(self) -> None:
        self.tick_timer.stop()
        self.countdown_timer.stop()
        if self.renderer is not None:
            self.renderer.close()
            self.renderer = None

    def snapshot(self) -> Snapshot:
        return Snapshot(
            phase=self.phase,
            countdown=self.countdown,
            player_x=self.state.player_x,
            player_y=float(self.track.player_top),
            obstacles=tuple(replace(obstacle) for obstacle in self.state.obstacles),
            score=self.state.score,
            lives=self.state.lives,
            high_score=self.state.high_score,
            speed_boost=self.state.speed_boost,
            compact=self.compact,
            track=self.track,
        )

    # -- read-only accessors ---------------------------------------------

    @property
    def score(self) -> int:
        return self.state.score

    @property
    def lives(self) -> int:
        return self.state.lives

    @property
    def high_score(self) -> int:
        return self.state.high_score

    @property
    def speed_boost(self) -> float:
        return self.state.speed_boost

    @property
    def player_x(self) -> float:
        return self.state.player_x

    @property
    def obstacles(self) -> List[Obstacle]:
        return self.state.obstacles

    # -- observation -----------------------------------------------------

    def _get_observation(self) -> Any:
        if self.obs_mode == "state":
            return self._get_state_observation()
        if self.obs_mode in ("pixels", "rgb_array"):
            return self.render(mode="rgb_array")
        raise ValueError(f"Unknown obs_mode: {self.obs_mode}")

    def _get_state_observation(self) -> List[float]:
        track = self.track
        player_x_norm = self.state.player_x / max(1.0, float(track.max_player_x)) * 2.0 - 1.0
        lives_norm = max(0.0, min(1.0, self.state.lives / float(Config.starting_lives)))
        boost_norm = max(0.0, min(1.0, self.state.speed_boost / Config.boost_norm))
        running_flag = 1.0 if self.phase == "running" else 0.0
        game_over_flag = 1.0 if self.phase == "game_over" else 0.0

        base = [
            max(-1.0, min(1.0, player_x_norm)),
            lives_norm,
            boost_norm,
            running_flag,
            game_over_flag,
        ]

        player_center = self.state.player_x + track.player_size / 2.0
        for obstacle in self._nearest_obstacles():
            obstacle_center = obstacle.x + track.obstacle_size / 2.0
            dx = (obstacle_center - player_center) / float(track.width)
            dy = (track.player_top - obstacle.y) / float(track.height)
            speed = min(1.0, obstacle.speed / Config.speed_norm)
            direction = 0.0 if obstacle.dx == 0 else (1.0 if obstacle.dx > 0 else -1.0)
            one_hot = [1.0 if obstacle.kind == kind else 0.0 for kind in OBSTACLE_KINDS]
            base.extend([max(-1.0, min(1.0, dx)), max(-1.0, min(1.0, dy)), speed, direction] + one_hot)

        while len(base) < self.state_size:
            base.append(0.0)
        return base

    def _nearest_obstacles(self) -> List[Obstacle]:
        candidates = [o for o in self.state.obstacles if o.y < self.track.player_bottom]
        candidates.sort(key=lambda o: -o.y)
        return candidates[: self.max_objects]

    @property
    def state_size(self) -> int:
        base_count = 5
        per_object = 4 + len(OBSTACLE_KINDS)
        return base_count + self.max_objects * per_object

    def _get_info(self) -> Dict[str, Any]:
        return {
            "score": self.state.score,
            "lives": self.state.lives,
            "high_score": self.state.high_score,
            "speed_boost": self.state.speed_boost,
            "phase": self.phase,
            "countdown": self.countdown,
            "obstacles": len(self.state.obstacles),
            "tick": self.state.ticks,
            "message": self.current_message(),
        }

    def current_message(self) -> Optional[str]:
        if self.phase == "game_over":
            return "GAME OVER"
        if self.phase == "countdown" and self.countdown is not None:
            return str(self.countdown)
        return None
