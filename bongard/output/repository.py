"""Persistence layer for writing and reading generated folds."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from contextlib import ExitStack
from pathlib import Path

from bongard.core.models import GeneratorParams, IdCounters
from bongard.core.picture import Picture
from bongard.output.schema import (
    FOLD_FILES,
    SUMMARY_FILE,
    FoldSummary,
    parse_id_row,
    parse_pair_row,
    parse_summary,
    picture_rows,
    summary_line,
)

logger = logging.getLogger(__name__)


class FoldRepository:
    """Directory-per-fold repository of flat relation files."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        return self._root

    def fold_path(self, fold_id: int) -> Path:
        return self._root / str(fold_id)

    def write_fold(
        self,
        fold_id: int,
        pictures: Sequence[Picture],
        params: GeneratorParams,
        counters: IdCounters,
    ) -> Path:
        """Write ``pictures`` and the summary into the fold directory."""
        path = self.fold_path(fold_id)
        if path.exists():
            logger.info("fold_dir_rewritten path=%s", path)
        else:
            path.mkdir(parents=True)
            logger.info("fold_dir_created path=%s", path)

        with ExitStack() as stack:
            handles = {
                name: stack.enter_context((path / name).open("w", encoding="utf-8"))
                for name in FOLD_FILES
            }
            for picture in pictures:
                for name, rows in picture_rows(picture).items():
                    for row in rows:
                        handles[name].write(f"{row}\n")

        with (path / SUMMARY_FILE).open("w", encoding="utf-8") as handle:
            handle.write(f"{summary_line(params, counters)}\n")
        logger.info("fold_written fold=%d pictures=%d", fold_id, len(pictures))
        return path

    def read_rows(self, fold_id: int, name: str) -> list[str]:
        """Read the non-empty rows of fold file ``name``."""
        if name not in FOLD_FILES and name != SUMMARY_FILE:
            raise ValueError(f"Unknown fold file: {name}.")
        path = self.fold_path(fold_id) / name
        if not path.exists():
            raise FileNotFoundError(f"Fold file '{path}' not found.")
        with path.open("r", encoding="utf-8") as handle:
            return [line.rstrip("\n") for line in handle if line.strip()]

    def read_pairs(self, fold_id: int, name: str) -> list[tuple[int, int]]:
        return [parse_pair_row(row) for row in self.read_rows(fold_id, name)]

    def read_ids(self, fold_id: int, name: str) -> list[int]:
        return [parse_id_row(row) for row in self.read_rows(fold_id, name)]

    def read_summary(self, fold_id: int) -> FoldSummary:
        rows = self.read_rows(fold_id, SUMMARY_FILE)
        if len(rows) != 1:
            raise ValueError(f"Summary of fold {fold_id} must hold exactly one line.")
        return parse_summary(rows[0])
