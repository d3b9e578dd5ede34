from __future__ import annotations

import logging
import random
from collections.abc import Sequence

import pytest

from bongard.core.models import GeneratorParams, IdCounters, PictureState
from bongard.core.picture import Picture
from bongard.core.shapes import circle, square
from bongard.infra.logging import shutdown_logging


class RecordingSink:
    """In-memory fold sink capturing flushed batches."""

    def __init__(self) -> None:
        self.folds: list[tuple[int, list[Picture], int, int]] = []

    def write_fold(
        self,
        fold_id: int,
        pictures: Sequence[Picture],
        params: GeneratorParams,
        counters: IdCounters,
    ) -> None:
        self.folds.append((fold_id, list(pictures), counters.picture_id, counters.shape_id))


def make_nested_picture(params: GeneratorParams | None = None) -> Picture:
    """Big square holding a small circle, plus a square to the north-east."""
    picture = Picture(params or GeneratorParams())
    picture.shapes.extend([square(10, 10, 60), circle(30, 30, 10), square(80, 80, 8)])
    picture.populate()
    picture.state = PictureState.VALID
    return picture


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1337)


@pytest.fixture
def default_params() -> GeneratorParams:
    return GeneratorParams()


@pytest.fixture
def fast_params() -> GeneratorParams:
    return GeneratorParams(min_elements=2, max_elements=4, min_size=2, max_size=40, min_insides=1)


@pytest.fixture
def nested_picture() -> Picture:
    return make_nested_picture()


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers = [handler for handler in root.handlers if type(handler).__module__ != "_pytest.logging"]
    level = root.level
    yield
    shutdown_logging()
    root.handlers[:] = handlers
    root.setLevel(level)
