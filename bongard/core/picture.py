"""Picture construction by rejection sampling and relation derivation."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field, replace

import numpy as np

from bongard.core.models import (
    BOUND,
    MARGIN,
    MAX_TRY,
    RETRY_REPORT_GRAN,
    UNASSIGNED_ID,
    GeneratorParams,
    IdCounters,
    PictureState,
)
from bongard.core.shapes import Shape, random_shape

logger = logging.getLogger(__name__)

RELATIONS: tuple[str, ...] = ("inside", "east", "north")


@dataclass(slots=True)
class Picture:
    """Shapes of one picture plus the relations derived between them.

    Relation pairs are index pairs into ``shapes``. ``inside`` holds
    ``(a, b)`` when shape ``a`` lies inside shape ``b``; ``east`` and
    ``north`` hold ``(a, b)`` when ``a`` is east/north of ``b``. ``margin``
    is the spacing used both for sampling positions and for the conflict and
    inside tests.
    """

    params: GeneratorParams
    bound: int = BOUND
    margin: int = MARGIN
    shapes: list[Shape] = field(default_factory=list)
    inside: list[tuple[int, int]] = field(default_factory=list)
    east: list[tuple[int, int]] = field(default_factory=list)
    north: list[tuple[int, int]] = field(default_factory=list)
    id: int = UNASSIGNED_ID
    state: PictureState = PictureState.UNPOPULATED

    @property
    def size(self) -> int:
        return len(self.shapes)

    def is_valid(self, candidate: Shape) -> bool:
        """Return whether ``candidate`` fits the canvas and conflicts with no placed shape."""
        if candidate.overflow(self.bound):
            return False
        for shape in self.shapes:
            if shape.conflict(candidate, self.margin):
                return False
        return True

    def create_picture(
        self,
        target_size: int,
        rng: random.Random,
        *,
        max_tries: int = MAX_TRY,
    ) -> bool:
        """Place ``target_size`` shapes and derive relations.

        Returns False when a slot runs out of candidates or the picture ends
        up with fewer inside pairs than required. Placed shapes are never
        removed; a failed picture must be discarded by the caller.
        """
        self.state = PictureState.BUILDING
        while len(self.shapes) < target_size:
            for _ in range(max_tries):
                candidate = random_shape(rng, self.params, self.bound, self.margin)
                if self.is_valid(candidate):
                    self.shapes.append(candidate)
                    break
            else:
                self.state = PictureState.FAILED
                return False

        self.populate()
        if len(self.inside) < self.params.min_insides:
            self.state = PictureState.FAILED
            return False
        self.state = PictureState.VALID
        return True

    def populate(self) -> None:
        """Derive inside/east/north pairs over every unordered shape pair."""
        self.inside.clear()
        self.east.clear()
        self.north.clear()
        n = len(self.shapes)
        if n < 2:
            return

        outer = np.array([shape.outer.bounds for shape in self.shapes], dtype=np.int64)
        inner = np.array([shape.inner.bounds for shape in self.shapes], dtype=np.int64)
        inside = _inside_matrix(outer, inner, self.margin)
        east = outer[:, None, 0] > outer[None, :, 2]
        north = outer[:, None, 1] > outer[None, :, 3]

        for i in range(n):
            for j in range(i + 1, n):
                if inside[i, j]:
                    self.inside.append((i, j))
                    continue
                if inside[j, i]:
                    self.inside.append((j, i))
                    continue

                if east[i, j]:
                    self.east.append((i, j))
                elif east[j, i]:
                    self.east.append((j, i))

                # North is always recorded in one direction.
                if north[i, j]:
                    self.north.append((i, j))
                else:
                    self.north.append((j, i))

    def relation_pairs(self, name: str) -> list[tuple[int, int]]:
        """Return the index pairs of relation ``name``."""
        if name == "inside":
            return self.inside
        if name == "east":
            return self.east
        if name == "north":
            return self.north
        raise ValueError(f"Unknown relation: {name}.")

    def relation_matrix(self, name: str) -> np.ndarray:
        """Return relation ``name`` as an n x n boolean matrix."""
        n = len(self.shapes)
        matrix = np.zeros((n, n), dtype=bool)
        for a, b in self.relation_pairs(name):
            matrix[a, b] = True
        return matrix

    def id_pairs(self, name: str) -> list[tuple[int, int]]:
        """Return relation ``name`` as pairs of shape ids."""
        return [(self.shapes[a].id, self.shapes[b].id) for a, b in self.relation_pairs(name)]

    def assign_ids(self, counters: IdCounters) -> None:
        """Take the next picture id and consecutive shape ids from ``counters``."""
        if self.state is not PictureState.VALID:
            raise ValueError(f"Cannot assign ids to a picture in state {self.state.value}.")
        self.id = counters.picture_id
        counters.picture_id += 1
        for index, shape in enumerate(self.shapes):
            self.shapes[index] = replace(shape, id=counters.shape_id)
            counters.shape_id += 1


def _inside_matrix(outer: np.ndarray, inner: np.ndarray, margin: int) -> np.ndarray:
    """m[a, b] is True when outer box ``a`` fits in inner box ``b`` with ``margin``."""
    return (
        (outer[:, None, 0] >= inner[None, :, 0] + margin)
        & (outer[:, None, 1] >= inner[None, :, 1] + margin)
        & (outer[:, None, 2] <= inner[None, :, 2] - margin)
        & (outer[:, None, 3] <= inner[None, :, 3] - margin)
    )


def build_picture(
    rng: random.Random,
    params: GeneratorParams,
    target_size: int,
    *,
    bound: int = BOUND,
    margin: int = MARGIN,
    max_tries: int = MAX_TRY,
) -> Picture:
    """Build pictures from scratch until one is valid.

    There is no retry cap: parameters that can never satisfy ``min_insides``
    loop forever.
    """
    failures = 0
    while True:
        picture = Picture(params, bound=bound, margin=margin)
        if picture.create_picture(target_size, rng, max_tries=max_tries):
            return picture
        failures += 1
        if failures % RETRY_REPORT_GRAN == 0:
            logger.warning("picture_build_retries failures=%d size=%d", failures, target_size)
