"""Core geometry models and generator constants."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

BOUND = 100
MARGIN = 2
MAX_TRY = 100_000_000
CUTOFF = 1_000_000
PRINT_GRAN = 5000
RETRY_REPORT_GRAN = 10_000
UNASSIGNED_ID = -1


class ShapeKind(StrEnum):
    """Shape kinds that can appear in a picture."""

    SQUARE = "SQUARE"
    CIRCLE = "CIRCLE"
    TRIANGLE_UP = "TRIANGLE_UP"
    TRIANGLE_DOWN = "TRIANGLE_DOWN"


class PictureState(StrEnum):
    """Picture construction state."""

    UNPOPULATED = "UNPOPULATED"
    BUILDING = "BUILDING"
    VALID = "VALID"
    FAILED = "FAILED"


@dataclass(frozen=True, slots=True)
class Point:
    """Integer canvas coordinate."""

    x: int
    y: int

    def __str__(self) -> str:
        return f"({self.x},{self.y})"


@dataclass(frozen=True, slots=True)
class Rectangle:
    """Axis-aligned rectangle anchored at its left-bottom corner."""

    left_bottom: Point
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Rectangle size must be non-negative: {self.width}x{self.height}.")

    @classmethod
    def from_xywh(cls, x: int, y: int, width: int, height: int) -> Rectangle:
        return cls(Point(x, y), width, height)

    @property
    def right_top(self) -> Point:
        return Point(self.left_bottom.x + self.width, self.left_bottom.y + self.height)

    @property
    def bounds(self) -> tuple[int, int, int, int]:
        """Return (x0, y0, x1, y1)."""
        top = self.right_top
        return (self.left_bottom.x, self.left_bottom.y, top.x, top.y)

    def is_inside(self, other: Rectangle, margin: int = MARGIN) -> bool:
        """Return whether every edge is inset from ``other`` by at least ``margin``."""
        lb, rt = self.left_bottom, self.right_top
        other_lb, other_rt = other.left_bottom, other.right_top
        return (
            lb.x >= other_lb.x + margin
            and lb.y >= other_lb.y + margin
            and rt.x <= other_rt.x - margin
            and rt.y <= other_rt.y - margin
        )

    def is_overlapped(self, other: Rectangle, margin: int = MARGIN) -> bool:
        """Return whether both axis projections meet once widened by ``margin``."""
        lb, rt = self.left_bottom, self.right_top
        other_lb, other_rt = other.left_bottom, other.right_top
        return (
            lb.x <= other_rt.x + margin
            and rt.x + margin >= other_lb.x
            and lb.y <= other_rt.y + margin
            and rt.y + margin >= other_lb.y
        )

    def is_east_of(self, other: Rectangle) -> bool:
        return self.left_bottom.x > other.right_top.x

    def is_north_of(self, other: Rectangle) -> bool:
        return self.left_bottom.y > other.right_top.y


@dataclass(frozen=True, slots=True)
class GeneratorParams:
    """Bounds of the random distributions used to build pictures."""

    min_elements: int = 4
    max_elements: int = 6
    min_size: int = 2
    max_size: int = 98
    min_insides: int = 1

    def __post_init__(self) -> None:
        if self.min_elements < 1:
            raise ValueError("Pictures must contain at least one element.")
        if self.min_elements > self.max_elements:
            raise ValueError(
                f"Invalid element range: [{self.min_elements}, {self.max_elements}]."
            )
        if self.min_size < 1:
            raise ValueError("Element size must be positive.")
        if self.min_size > self.max_size:
            raise ValueError(f"Invalid size range: [{self.min_size}, {self.max_size}].")
        if self.min_insides < 0:
            raise ValueError("min_insides cannot be negative.")


@dataclass(slots=True)
class IdCounters:
    """Next picture, shape and fold identifiers to hand out."""

    picture_id: int = 0
    shape_id: int = 0
    fold_id: int = 0
