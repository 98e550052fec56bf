from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class Unbounded:
    """No constraint: every value is contained."""

    def __bool__(self) -> bool:
        return False

    def contains(self, value: float) -> bool:
        return True

    def outside(self, value: float) -> bool:
        return False

    def __str__(self) -> str:
        return "[unbounded]"


@dataclass(frozen=True)
class Range:
    """Inclusive range [min_value, max_value]; reversed limits are swapped."""

    min_value: float
    max_value: float

    def __post_init__(self) -> None:
        if self.max_value < self.min_value:
            lo, hi = self.max_value, self.min_value
            object.__setattr__(self, "min_value", lo)
            object.__setattr__(self, "max_value", hi)

    def __bool__(self) -> bool:
        return True

    def contains(self, value: float) -> bool:
        return self.min_value <= value <= self.max_value

    def outside(self, value: float) -> bool:
        return value < self.min_value or value > self.max_value

    def __str__(self) -> str:
        return f"[{self.min_value:g}, {self.max_value:g}]"


Bounds = Union[Unbounded, Range]


@dataclass(frozen=True)
class XYBounds:
    x: Bounds = field(default_factory=Unbounded)
    y: Bounds = field(default_factory=Unbounded)

    def __bool__(self) -> bool:
        return bool(self.x) or bool(self.y)

    def contains(self, xy: tuple[float, float]) -> bool:
        return self.x.contains(float(xy[0])) and self.y.contains(float(xy[1]))

    def outside(self, xy: tuple[float, float]) -> bool:
        return self.x.outside(float(xy[0])) or self.y.outside(float(xy[1]))

    def __str__(self) -> str:
        if not self:
            return "unbounded"
        parts = []
        if self.x:
            parts.append(f"x: {self.x}")
        if self.y:
            parts.append(f"y: {self.y}")
        return ", ".join(parts)


@dataclass(frozen=True)
class RectBounds:
    left: float
    right: float
    top: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom

    def reflected_horizontally(self) -> "RectBounds":
        return RectBounds(left=-self.right, right=-self.left, top=self.top, bottom=self.bottom)


def bounds_from_pair(pair: tuple[float, float] | list[float] | None) -> Bounds:
    if pair is None:
        return Unbounded()
    lo, hi = pair
    return Range(float(lo), float(hi))
