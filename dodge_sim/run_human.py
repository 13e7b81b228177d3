import argparse
import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from dodge_sim import DodgeEnv  # noqa: E402
from dodge_sim.storage import DEFAULT_BEST_SCORE_PATH, JsonBestScoreStore  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play the dodge game with keyboard or mouse")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--best-score-file", type=str, default=DEFAULT_BEST_SCORE_PATH)
    parser.add_argument("--compact", action="store_true", help="Show on-screen arrow buttons")
    parser.add_argument("--fps", type=int, default=60)
    return parser.parse_args()


def detect_viewport_width(pygame) -> int:
    pygame.display.init()
    info = pygame.display.Info()
    return int(info.current_w)


def handle_key(env: DodgeEnv, key: int, pygame) -> None:
    if key in (pygame.K_LEFT, pygame.K_a):
        env.move_left()
    elif key in (pygame.K_RIGHT, pygame.K_d):
        env.move_right()
    elif key in (pygame.K_RETURN, pygame.K_SPACE):
        if env.phase == "intro":
            env.start_game()
        elif env.phase == "game_over":
            env.restart_game()
    elif key == pygame.K_r:
        env.restart_game()


def handle_click(env: DodgeEnv, pos) -> None:
    if env.renderer is None:
        return
    for name, rect in env.renderer.button_rects(env.snapshot()).items():
        if not rect.collidepoint(pos):
            continue
        if name == "start":
            env.start_game()
        elif name == "restart":
            env.restart_game()
        elif name == "left":
            env.move_left()
        elif name == "right":
            env.move_right()


def main() -> None:
    args = parse_args()

    try:
        import pygame
    except ImportError as exc:
        raise RuntimeError("pygame is required to run the human demo") from exc

    viewport_width = 0 if args.compact else detect_viewport_width(pygame)
    env = DodgeEnv(
        render_mode="human",
        fps=args.fps,
        seed=args.seed,
        store=JsonBestScoreStore(args.best_score_file),
        viewport_width=viewport_width,
    )
    env.render()
    pygame.key.set_repeat(200, 60)

    last_ticks = pygame.time.get_ticks()
    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                else:
                    handle_key(env, event.key, pygame)
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                handle_click(env, event.pos)

        now = pygame.time.get_ticks()
        env.advance_time(now - last_ticks)
        last_ticks = now
        env.render()

    print(f"best score: {env.high_score}")
    env.close()


if __name__ == "__main__":
    main()
