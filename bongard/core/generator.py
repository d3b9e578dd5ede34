"""Dataset generation loop: picture building, id assignment and fold batching."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from typing import Protocol

from bongard.core.models import (
    BOUND,
    CUTOFF,
    MARGIN,
    MAX_TRY,
    PRINT_GRAN,
    GeneratorParams,
    IdCounters,
)
from bongard.core.picture import Picture, build_picture

logger = logging.getLogger(__name__)


class FoldSink(Protocol):
    """Destination of flushed picture batches."""

    def write_fold(
        self,
        fold_id: int,
        pictures: Sequence[Picture],
        params: GeneratorParams,
        counters: IdCounters,
    ) -> object: ...


class DatasetGenerator:
    """Builds valid pictures and flushes them to ``sink`` in folds of ``cutoff``."""

    def __init__(
        self,
        params: GeneratorParams,
        sink: FoldSink,
        rng: random.Random,
        counters: IdCounters | None = None,
        *,
        cutoff: int = CUTOFF,
        print_gran: int = PRINT_GRAN,
        max_tries: int = MAX_TRY,
        bound: int = BOUND,
        margin: int = MARGIN,
    ) -> None:
        if cutoff < 1:
            raise ValueError("cutoff must be positive.")
        if print_gran < 1:
            raise ValueError("print_gran must be positive.")
        self._params = params
        self._sink = sink
        self._rng = rng
        self._counters = counters if counters is not None else IdCounters()
        self._cutoff = cutoff
        self._print_gran = print_gran
        self._max_tries = max_tries
        self._bound = bound
        self._margin = margin
        self._batch: list[Picture] = []

    @property
    def counters(self) -> IdCounters:
        return self._counters

    def generate(self, num: int, stop_requested: Callable[[], bool] | None = None) -> IdCounters:
        """Generate pictures until the next picture id reaches ``num``.

        ``stop_requested`` is polled between completed pictures only.
        """
        logger.info(
            "generation_started target=%d next_picture_id=%d next_shape_id=%d fold=%d",
            num,
            self._counters.picture_id,
            self._counters.shape_id,
            self._counters.fold_id,
        )
        while self._counters.picture_id < num:
            if stop_requested is not None and stop_requested():
                logger.info("generation_stopped next_picture_id=%d", self._counters.picture_id)
                break
            picture = self.next_picture()
            picture.assign_ids(self._counters)
            self._batch.append(picture)

            if len(self._batch) >= self._cutoff:
                self._flush()
            if self._counters.picture_id % self._print_gran == 0:
                logger.info("generated_pictures count=%d", self._counters.picture_id)

        if self._batch:
            self._flush()
        return self._counters

    def next_picture(self) -> Picture:
        """Build one valid picture of a random size, without assigning ids."""
        target_size = self._rng.randint(self._params.min_elements, self._params.max_elements)
        return build_picture(
            self._rng,
            self._params,
            target_size,
            bound=self._bound,
            margin=self._margin,
            max_tries=self._max_tries,
        )

    def _flush(self) -> None:
        batch, self._batch = self._batch, []
        self._sink.write_fold(self._counters.fold_id, batch, self._params, self._counters)
        logger.debug("fold_flushed fold=%d pictures=%d", self._counters.fold_id, len(batch))
        self._counters.fold_id += 1
