"""Rectangular play area bounds."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GameMap:
    """Inclusive integer bounds of the play area."""

    min_x: int
    max_x: int
    min_y: int
    max_y: int

    def is_valid_position(self, x: int, y: int) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y