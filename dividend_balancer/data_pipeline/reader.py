from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterator

import pandas as pd

from dividend_balancer.data_pipeline.parser import build_positions


logger = logging.getLogger(__name__)

DELIMITERS = {
    "tab": "\t",
    "comma": ",",
}
DEFAULT_DELIMITER = "tab"
# Largest value csv.field_size_limit accepts on every platform (C long).
FIELD_SIZE_LIMIT = 2**31 - 1


class PortfolioReadError(ValueError):
    """The positions export is missing, unreadable or structurally malformed."""


def read_rows(path: str | Path, delimiter: str = DELIMITERS[DEFAULT_DELIMITER]) -> Iterator[list[str]]:
    path = Path(path)
    if not path.exists():
        raise PortfolioReadError(f'File "{path}" does not exist.')

    try:
        handle = path.open("r", encoding="utf-8", errors="replace", newline="")
    except OSError as exc:
        raise PortfolioReadError(f"Unable to open {path}") from exc

    with handle:
        csv.field_size_limit(FIELD_SIZE_LIMIT)
        reader = csv.reader(handle, delimiter=delimiter, strict=True)
        try:
            yield from reader
        except csv.Error as exc:
            raise PortfolioReadError(f"{path}, line {reader.line_num}: {exc}") from exc


def load_positions(path: str | Path, delimiter: str = DEFAULT_DELIMITER) -> pd.DataFrame:
    if delimiter not in DELIMITERS:
        raise ValueError(f"Unsupported delimiter: {delimiter}")
    positions = build_positions(read_rows(path, DELIMITERS[delimiter]))
    logger.debug("Loaded %d positions from %s", len(positions), path)
    return positions
