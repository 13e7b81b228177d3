from __future__ import annotations

from typing import Iterable, List


class NeverSpawnRandom:
    """RNG stand-in whose spawn roll always fails."""

    def random(self) -> float:
        return 1.0

    def randint(self, a: int, b: int) -> int:
        raise AssertionError("randint should not be reached")

    def randrange(self, stop: int) -> int:
        raise AssertionError("randrange should not be reached")


class ScriptedRandom:
    """RNG stand-in that replays fixed values in call order."""

    def __init__(self, randoms: Iterable[float], ints: Iterable[int] = (), ranges: Iterable[int] = ()) -> None:
        self.randoms: List[float] = list(randoms)
        self.ints: List[int] = list(ints)
        self.ranges: List[int] = list(ranges)

    def random(self) -> float:
        return self.randoms.pop(0)

    def randint(self, a: int, b: int) -> int:
        value = self.ints.pop(0)
        assert a <= value <= b, (a, value, b)
        return value

    def randrange(self, stop: int) -> int:
        value = self.ranges.pop(0)
        assert 0 <= value < stop, (value, stop)
        return value
