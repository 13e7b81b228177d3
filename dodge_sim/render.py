from __future__ import annotations

from typing import Optional, Any, Dict


OBSTACLE_COLORS = {
    "straight": (235, 64, 52),
    "moving": (52, 120, 235),
    "fast": (60, 200, 90),
}

CONTROLS_HEIGHT = 80


class PygameRenderer:
    def __init__(self, width: int, height: int, mode: str, compact: bool = False) -> None:
        try:
            import pygame
        except ImportError as exc:
            raise RuntimeError("pygame is required for rendering") from exc

        self.pygame = pygame
        self.width = width
        self.height = height
        self.mode = mode
        self.compact = compact
        # Touch-style arrow buttons sit in a strip below the track.
        self.surface_height = height + (CONTROLS_HEIGHT if compact else 0)

        pygame.init()
        pygame.font.init()

        self.screen = None
        if mode == "human":
            self.screen = pygame.display.set_mode((width, self.surface_height))
            pygame.display.set_caption("Dodge")
            self.surface = self.screen
        else:
            self.surface = pygame.Surface((width, self.surface_height))

        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(None, 24)
        self.big_font = pygame.font.Font(None, 40)
        self.huge_font = pygame.font.Font(None, 120)

    def close(self) -> None:
        self.pygame.quit()

    def tick(self, fps: int) -> int:
        if self.mode == "human":
            return self.clock.tick(fps)
        return 0

    def button_rects(self, snapshot) -> Dict[str, Any]:
        """Clickable areas for the current phase, keyed by intent name."""
        pg = self.pygame
        rects: Dict[str, Any] = {}
        if snapshot.phase in ("intro", "game_over"):
            name = "start" if snapshot.phase == "intro" else "restart"
            rects[name] = pg.Rect(self.width // 2 - 80, self.height // 2 + 40, 160, 44)
        if self.compact and snapshot.phase == "running":
            top = self.height + 12
            rects["left"] = pg.Rect(self.width // 2 - 20 - 64, top, 64, 56)
            rects["right"] = pg.Rect(self.width // 2 + 20, top, 64, 56)
        return rects

    def draw(self, snapshot) -> Optional[Any]:
        surface = self.surface
        surface.fill((18, 18, 30))

        if snapshot.phase == "intro":
            self._draw_intro(surface, snapshot)
        elif snapshot.phase == "countdown":
            self._draw_countdown(surface, snapshot)
        else:
            self._draw_track(surface, snapshot)
            for obstacle in snapshot.obstacles:
                self._draw_obstacle(surface, snapshot, obstacle)
            self._draw_player(surface, snapshot)
            self._draw_hud(surface, snapshot)
            if snapshot.phase == "game_over":
                self._draw_game_over(surface, snapshot)

        if self.compact:
            self._draw_controls(surface, snapshot)

        if self.mode == "human":
            self.pygame.display.flip()
            return None
        return self._get_rgb_array()

    def _draw_track(self, surface, snapshot) -> None:
        pg = self.pygame
        track = snapshot.track
        pg.draw.rect(surface, (255, 255, 255), (0, track.top_line - 5, self.width, 2))
        pg.draw.rect(surface, (120, 120, 140), (0, track.player_bottom, self.width, 2))

    def _draw_player(self, surface, snapshot) -> None:
        pg = self.pygame
        size = snapshot.track.player_size
        rect = pg.Rect(int(snapshot.player_x), int(snapshot.player_y), size, size)
        pg.draw.rect(surface, (245, 210, 40), rect)
        pg.draw.rect(surface, (255, 240, 150), rect, width=2)

    def _draw_obstacle(self, surface, snapshot, obstacle) -> None:
        pg = self.pygame
        size = snapshot.track.obstacle_size
        color = OBSTACLE_COLORS.get(obstacle.kind, OBSTACLE_COLORS["straight"])
        rect = pg.Rect(int(obstacle.x), int(obstacle.y), size, size)
        pg.draw.rect(surface, color, rect)

    def _draw_heart(self, surface, x: int, y: int, full: bool) -> None:
        pg = self.pygame
        color = (230, 40, 70) if full else (70, 70, 80)
        pg.draw.circle(surface, color, (x + 5, y + 5), 5)
        pg.draw.circle(surface, color, (x + 13, y + 5), 5)
        pg.draw.polygon(surface, color, [(x, y + 7), (x + 18, y + 7), (x + 9, y + 17)])

    def _draw_hud(self, surface, snapshot) -> None:
        margin = 12
        score_text = self.font.render(f"Score: {snapshot.score}", True, (255, 255, 255))
        best_text = self.font.render(f"Best: {snapshot.high_score}", True, (255, 255, 255))
        surface.blit(score_text, (margin, margin))
        surface.blit(best_text, (margin, margin + 22))

        hearts_x = self.width - margin - 3 * 24
        for index in range(3):
            self._draw_heart(surface, hearts_x + index * 24, margin, snapshot.lives > index)

    def _blit_centered(self, surface, font, text: str, y: float, color=(255, 255, 255)) -> None:
        rendered = font.render(text, True, color)
        surface.blit(rendered, ((self.width - rendered.get_width()) / 2.0, y))

    def _draw_button(self, surface, rect, label: str) -> None:
        pg = self.pygame
        pg.draw.rect(surface, (60, 60, 90), rect, border_radius=8)
        pg.draw.rect(surface, (200, 200, 230), rect, width=2, border_radius=8)
        rendered = self.font.render(label, True, (255, 255, 255))
        surface.blit(
            rendered,
            (rect.centerx - rendered.get_width() / 2.0, rect.centery - rendered.get_height() / 2.0),
        )

    def _draw_intro(self, surface, snapshot) -> None:
        top = self.height / 2.0 - 140
        self._blit_centered(surface, self.big_font, "How to Play", top)
        self._blit_centered(surface, self.font, "1. Move left or Move right", top + 60)
        legend_y = top + 95
        size = 22
        start_x = self.width / 2.0 - 2 * (size + 10)
        pg = self.pygame
        pg.draw.rect(surface, (245, 210, 40), (start_x, legend_y, size, size))
        for index, kind in enumerate(("straight", "moving", "fast")):
            x = start_x + (index + 1) * (size + 10) + 10
            pg.draw.rect(surface, OBSTACLE_COLORS[kind], (x, legend_y, size, size))
        self._blit_centered(surface, self.font, "2. Avoid obstacles and survive!", top + 135)
        rect = self.button_rects(snapshot)["start"]
        self._draw_button(surface, rect, "Start Game")

    def _draw_countdown(self, surface, snapshot) -> None:
        text = str(snapshot.countdown) if snapshot.countdown is not None else ""
        rendered = self.huge_font.render(text, True, (255, 255, 255))
        surface.blit(
            rendered,
            ((self.width - rendered.get_width()) / 2.0, (self.height - rendered.get_height()) / 2.0),
        )

    def _draw_game_over(self, surface, snapshot) -> None:
        pg = self.pygame
        overlay = pg.Surface((self.width, self.height), pg.SRCALPHA)
        overlay.fill((0, 0, 0, 160))
        surface.blit(overlay, (0, 0))
        self._blit_centered(surface, self.big_font, "Game Over", self.height / 2.0 - 30)
        rect = self.button_rects(snapshot)["restart"]
        self._draw_button(surface, rect, "Play Again")

    def _draw_controls(self, surface, snapshot) -> None:
        rects = self.button_rects(snapshot)
        if "left" in rects:
            self._draw_button(surface, rects["left"], "<")
        if "right" in rects:
            self._draw_button(surface, rects["right"], ">")

    def _get_rgb_array(self):
        try:
            import numpy as np
        except ImportError as exc:
            raise RuntimeError("rgb_array mode requires numpy") from exc

        arr = self.pygame.surfarray.array3d(self.surface)
        return np.transpose(arr, (1, 0, 2))
