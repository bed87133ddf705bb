"""CSV reading for the taxonomy feeds (local paths or published sheet URLs)."""

import logging
from typing import Dict, List, Tuple

import pandas as pd

logger = logging.getLogger(__name__)


def frame_to_rows(frame: pd.DataFrame) -> Tuple[List[Dict[str, str]], List[str]]:
    """Split a DataFrame into (rows, headers) with every cell as a string."""
    frame = frame.fillna("").astype(str)
    return frame.to_dict("records"), [str(c) for c in frame.columns]


def read_feed(source: str) -> Tuple[List[Dict[str, str]], List[str]]:
    """
    Read a tabular feed with a header row.

    All cells are read as text so codes like "007" keep their padding and
    blank cells stay blank instead of becoming NaN.

    Args:
        source: File path or URL of a CSV document.

    Returns:
        Tuple of (rows, headers).

    Raises:
        OSError: Source cannot be opened.
        ValueError: Source is empty or not parseable as CSV.
    """
    frame = pd.read_csv(source, dtype=str, keep_default_na=False, skip_blank_lines=True)
    frame = frame[~(frame == "").all(axis=1)]
    logger.info(f"Read feed {source}: {len(frame)} rows, columns {list(frame.columns)}")
    return frame_to_rows(frame)
