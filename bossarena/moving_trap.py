"""Traps that drift around the map in random directions."""

from __future__ import annotations

import math
import random
from typing import Optional, Tuple

from .game_map import GameMap

TRAP_SPEED = 0.2
_DIRECTION_RANGE = 3.0
_shared_rng = random.Random()


class MovingTrap:
    """A trap that moves at constant speed and turns when it would leave the map."""

    def __init__(
        self,
        x: float,
        y: float,
        game_map: GameMap,
        trap_id: str,
        speed: float = TRAP_SPEED,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.x = x
        self.y = y
        self.speed = speed
        self.game_map = game_map
        self.trap_id = trap_id
        self._rng = rng if rng is not None else _shared_rng
        self._direction: Tuple[float, float] = (1.0, 0.0)
        self._pick_direction()

    @property
    def direction(self) -> Tuple[float, float]:
        return self._direction

    def _pick_direction(self) -> None:
        dx = self._rng.uniform(-_DIRECTION_RANGE, _DIRECTION_RANGE)
        dy = self._rng.uniform(-_DIRECTION_RANGE, _DIRECTION_RANGE)
        magnitude = math.hypot(dx, dy)
        if magnitude != 0.0:
            self._direction = (dx / magnitude, dy / magnitude)
        else:
            self._direction = (1.0, 0.0)

    def update(self) -> None:
        """Advance one step, or choose a new direction if the step leaves the map."""
        dir_x, dir_y = self._direction
        next_x = self.x + dir_x * self.speed
        next_y = self.y + dir_y * self.speed
        if self.game_map.is_valid_position(int(next_x), int(next_y)):
            self.x = next_x
            self.y = next_y
        else:
            self._pick_direction()