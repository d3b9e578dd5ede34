"""Flat-file row schema for generated folds."""

from __future__ import annotations

import re
from dataclasses import dataclass

from bongard.core.models import UNASSIGNED_ID, GeneratorParams, IdCounters, ShapeKind
from bongard.core.picture import RELATIONS, Picture

ROW_SEPARATOR = "|"
SUMMARY_FILE = "summary"

FOLD_FILES: tuple[str, ...] = (
    "element",
    "circle",
    "rectangle",
    "triangle",
    "triangle_up",
    "triangle_down",
    "inside",
    "east",
    "north",
)

KIND_FILES: dict[ShapeKind, tuple[str, ...]] = {
    ShapeKind.SQUARE: ("rectangle",),
    ShapeKind.CIRCLE: ("circle",),
    ShapeKind.TRIANGLE_UP: ("triangle", "triangle_up"),
    ShapeKind.TRIANGLE_DOWN: ("triangle", "triangle_down"),
}

_SUMMARY_PATTERN = re.compile(
    r"#elements: \[(-?\d+), (-?\d+)\]; #size: \[(-?\d+), (-?\d+)\]; "
    r"#min_insides: (-?\d+); max_pid: (-?\d+) max_eid: (-?\d+)"
)


@dataclass(frozen=True, slots=True)
class FoldSummary:
    """Parsed contents of a fold summary line."""

    params: GeneratorParams
    max_picture_id: int
    max_shape_id: int


def picture_rows(picture: Picture) -> dict[str, list[str]]:
    """Convert a picture with assigned ids into rows keyed by fold file name."""
    if picture.id == UNASSIGNED_ID:
        raise ValueError("Picture ids must be assigned before serialization.")
    rows: dict[str, list[str]] = {name: [] for name in FOLD_FILES}
    for shape in picture.shapes:
        rows["element"].append(f"{picture.id}{ROW_SEPARATOR}{shape.id}")
        for name in KIND_FILES[shape.kind]:
            rows[name].append(str(shape.id))
    for relation in RELATIONS:
        rows[relation].extend(f"{a}{ROW_SEPARATOR}{b}" for a, b in picture.id_pairs(relation))
    return rows


def summary_line(params: GeneratorParams, counters: IdCounters) -> str:
    """Render the summary line; maxima are the last ids handed out."""
    return (
        f"#elements: [{params.min_elements}, {params.max_elements}]; "
        f"#size: [{params.min_size}, {params.max_size}]; "
        f"#min_insides: {params.min_insides}; "
        f"max_pid: {counters.picture_id - 1} max_eid: {counters.shape_id - 1}"
    )


def parse_summary(line: str) -> FoldSummary:
    """Parse a summary line written by ``summary_line``."""
    match = _SUMMARY_PATTERN.fullmatch(line.strip())
    if match is None:
        raise ValueError(f"Malformed summary line: {line!r}.")
    values = [int(group) for group in match.groups()]
    params = GeneratorParams(
        min_elements=values[0],
        max_elements=values[1],
        min_size=values[2],
        max_size=values[3],
        min_insides=values[4],
    )
    return FoldSummary(params=params, max_picture_id=values[5], max_shape_id=values[6])


def parse_pair_row(row: str) -> tuple[int, int]:
    """Parse a ``left|right`` row into two ids."""
    parts = row.strip().split(ROW_SEPARATOR)
    if len(parts) != 2:
        raise ValueError(f"Expected two fields in row: {row!r}.")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"Non-integer id in row: {row!r}.") from exc


def parse_id_row(row: str) -> int:
    """Parse a single-id row."""
    try:
        return int(row.strip())
    except ValueError as exc:
        raise ValueError(f"Non-integer id in row: {row!r}.") from exc
