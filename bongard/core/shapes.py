"""Shape construction and pairwise shape predicates."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

from bongard.core.models import (
    BOUND,
    MARGIN,
    UNASSIGNED_ID,
    GeneratorParams,
    Point,
    Rectangle,
    ShapeKind,
)

_SQRT2 = math.sqrt(2)
_SQRT3 = math.sqrt(3)


@dataclass(frozen=True, slots=True)
class Shape:
    """A placed shape with its collision envelope and guaranteed interior.

    ``outer`` is the tightest box around the shape and drives overlap,
    overflow and direction tests. ``inner`` is a box fully enclosed by the
    shape; another shape counts as inside this one only when its outer box
    fits in this inner box. Shapes are immutable; ``id`` is set by
    replacing the shape once its picture is accepted.
    """

    kind: ShapeKind
    origin: Point
    size: int
    outer: Rectangle
    inner: Rectangle
    id: int = UNASSIGNED_ID

    def is_inside(self, other: Shape, margin: int = MARGIN) -> bool:
        return self.outer.is_inside(other.inner, margin)

    def is_overlapped(self, other: Shape, margin: int = MARGIN) -> bool:
        return self.outer.is_overlapped(other.outer, margin)

    def is_east_of(self, other: Shape) -> bool:
        return self.outer.is_east_of(other.outer)

    def is_north_of(self, other: Shape) -> bool:
        return self.outer.is_north_of(other.outer)

    def conflict(self, other: Shape, margin: int = MARGIN) -> bool:
        """Return whether the shapes overlap without one enclosing the other."""
        if self.is_inside(other, margin) or other.is_inside(self, margin):
            return False
        return self.is_overlapped(other, margin)

    def overflow(self, bound: int = BOUND) -> bool:
        """Return whether the shape reaches the canvas bound."""
        top = self.outer.right_top
        return top.x >= bound or top.y >= bound

    def __str__(self) -> str:
        if self.kind is ShapeKind.CIRCLE:
            return f"Circle({self.origin}, {self.size // 2})"
        if self.kind is ShapeKind.SQUARE:
            return f"Square({self.origin}, {self.size})"
        return f"Triangle({self.origin}, {self.size})"


def square(x: int, y: int, width: int) -> Shape:
    """Build a square; its inner and outer boxes coincide."""
    rect = Rectangle.from_xywh(x, y, width, width)
    return Shape(ShapeKind.SQUARE, Point(x, y), width, outer=rect, inner=rect)


def circle(x: int, y: int, diameter: int) -> Shape:
    """Build a circle whose inner box is the inscribed square."""
    radius = diameter // 2
    half_side = _SQRT2 / 2.0 * radius
    side = int(_SQRT2 * radius)
    return Shape(
        ShapeKind.CIRCLE,
        Point(x, y),
        diameter,
        outer=Rectangle.from_xywh(x, y, diameter, diameter),
        inner=Rectangle.from_xywh(
            int(x + radius - half_side), int(y + radius - half_side), side, side
        ),
    )


def triangle(x: int, y: int, width: int, up: bool) -> Shape:
    """Build an equilateral triangle with a horizontal base of ``width``.

    The inner square sits on the flat side: the bottom edge when the point
    is up, the top edge when it is down.
    """
    height = math.ceil(width * _SQRT3 / 2.0)
    side = height * width // (height + width) if height + width else 0
    left = x + (width - side) // 2
    bottom = y if up else y + height - side
    return Shape(
        ShapeKind.TRIANGLE_UP if up else ShapeKind.TRIANGLE_DOWN,
        Point(x, y),
        width,
        outer=Rectangle.from_xywh(x, y, width, height),
        inner=Rectangle.from_xywh(left, bottom, side, side),
    )


def make_shape(kind: ShapeKind, x: int, y: int, size: int) -> Shape:
    """Build a shape of ``kind`` from its native parameters."""
    if kind is ShapeKind.SQUARE:
        return square(x, y, size)
    if kind is ShapeKind.CIRCLE:
        return circle(x, y, size)
    return triangle(x, y, size, up=kind is ShapeKind.TRIANGLE_UP)


_KINDS: tuple[ShapeKind, ...] = tuple(ShapeKind)


def random_shape(
    rng: random.Random,
    params: GeneratorParams,
    bound: int = BOUND,
    margin: int = MARGIN,
) -> Shape:
    """Sample one candidate shape uniformly over kind, size and position."""
    size = rng.randint(params.min_size, params.max_size)
    x = rng.randrange(margin, bound - margin)
    y = rng.randrange(margin, bound - margin)
    kind = rng.choice(_KINDS)
    return make_shape(kind, x, y, size)
