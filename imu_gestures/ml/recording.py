"""
Labelled Feature Recording

Collects training data for offline classifier work: a window of recent
samples is reduced to a FeatureVector, tagged with the gesture the user
performed, and appended to a CSV log.
"""
import logging
import os
from typing import Iterable, Optional, Sequence

import pandas as pd

from ..config import CLASSIFIER_BUFFER_CAPACITY, FEATURE_LOG_PATH
from ..errors import InsufficientData
from ..signal_processing.feature_extraction import FeatureExtractor, FeatureVector
from ..signal_processing.samples import Sample

logger = logging.getLogger(__name__)

LABEL_COLUMN = 'label'


def record_window(samples: Sequence[Sample],
                  label: str,
                  window_size: int = CLASSIFIER_BUFFER_CAPACITY,
                  extractor: Optional[FeatureExtractor] = None) -> FeatureVector:
    """
    Extract a labelled feature vector from the most recent samples.

    Args:
        samples: Buffered samples, oldest first
        label: Gesture label to attach
        window_size: Use at most this many trailing samples
        extractor: FeatureExtractor to use (a new one if None)

    Returns:
        Labelled FeatureVector

    Raises:
        InsufficientData: if no samples are available
    """
    if len(samples) == 0:
        raise InsufficientData(requested=1, available=0)

    extractor = extractor or FeatureExtractor()
    start = max(0, len(samples) - window_size)
    return extractor.extract(samples[start:], label=label)


class FeatureLogger:
    """
    Appends labelled feature vectors to a CSV file.

    The header (27 feature names plus ``label``) is written once, when the
    file is created.

    Attributes:
        filepath: Destination CSV path
        rows_written: Rows appended by this logger instance
    """

    def __init__(self, filepath: str = FEATURE_LOG_PATH):
        self.filepath = filepath
        self.rows_written = 0
        self._columns = FeatureExtractor().get_feature_names() + [LABEL_COLUMN]

    def log(self, vector: FeatureVector, label: Optional[str] = None) -> None:
        """
        Append one vector.

        Args:
            vector: Feature vector to write
            label: Overrides the vector's own label when given
        """
        if label is not None:
            vector = vector.with_label(label)
        self.log_many([vector])

    def log_many(self, vectors: Iterable[FeatureVector]) -> int:
        """Append several vectors; returns how many rows were written."""
        rows = [v.to_row() for v in vectors]
        if not rows:
            return 0

        directory = os.path.dirname(self.filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)

        write_header = not os.path.exists(self.filepath)
        df = pd.DataFrame(rows, columns=self._columns)
        df.to_csv(self.filepath, mode='a', header=write_header, index=False)

        self.rows_written += len(rows)
        logger.debug("Wrote %d feature rows to %s", len(rows), self.filepath)
        return len(rows)

    def load(self) -> pd.DataFrame:
        """Read the whole log back; an empty frame if nothing was written yet."""
        if not os.path.exists(self.filepath):
            return pd.DataFrame(columns=self._columns)
        return pd.read_csv(self.filepath, keep_default_na=False)

    def label_counts(self) -> dict:
        df = self.load()
        if df.empty:
            return {}
        return {str(k): int(v) for k, v in df[LABEL_COLUMN].value_counts().items()}
