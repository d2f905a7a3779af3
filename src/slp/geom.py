from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Protocol


class SupportsXY(Protocol):
    x: float
    y: float


@dataclass(slots=True, frozen=True)
class Vec2:
    """Stage-space position or stick/velocity pair."""

    x: float = 0.0
    y: float = 0.0

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def distance_sq_to(self, other: SupportsXY) -> float:
        dx = float(other.x) - self.x
        dy = float(other.y) - self.y
        return dx * dx + dy * dy

    def distance_to(self, other: SupportsXY) -> float:
        return math.sqrt(self.distance_sq_to(other))


__all__ = ["SupportsXY", "Vec2"]
