"""
CSV File IMU Source

Replays recorded IMU sessions for offline analysis and testing.

Expected CSV format:
- 9 columns in the order accel_x, accel_y, accel_z, gyro_x, gyro_y,
  gyro_z, mag_x, mag_y, mag_z
- An optional header row (detected and skipped)
- One sample per row, no timestamps
"""
import logging
from io import StringIO
from typing import List, Optional

import numpy as np
import pandas as pd

from ..signal_processing.samples import Sample
from .base_source import IMUSource

logger = logging.getLogger(__name__)


class CSVSource(IMUSource):
    """
    IMU source that reads samples from CSV content.

    Attributes:
        data: Array of shape (n_samples, 9) with all loaded rows
        current_index: Position in the data for sequential reading
    """

    def __init__(self):
        super().__init__()
        self.data: Optional[np.ndarray] = None
        self.current_index = 0

    def load_from_file(self, file_content: bytes) -> bool:
        """
        Load samples from uploaded file content.

        Args:
            file_content: Raw bytes of the CSV file

        Returns:
            True if data loaded successfully, False otherwise
        """
        try:
            try:
                content_str = file_content.decode('utf-8')
            except UnicodeDecodeError:
                content_str = file_content.decode('latin-1')
            return self._load_frame(pd.read_csv(StringIO(content_str), header=None))
        except (ValueError, pd.errors.ParserError) as e:
            logger.error("Error loading CSV: %s", e)
            self.data = None
            return False

    def load_from_path(self, filepath: str) -> bool:
        """Load samples from a CSV file on disk."""
        try:
            return self._load_frame(pd.read_csv(filepath, header=None))
        except (OSError, ValueError, pd.errors.ParserError) as e:
            logger.error("Error loading CSV %s: %s", filepath, e)
            self.data = None
            return False

    def _load_frame(self, df: pd.DataFrame) -> bool:
        if df.empty:
            raise ValueError("CSV contains no rows")

        # A header row does not parse as numbers
        first_row = pd.to_numeric(df.iloc[0], errors='coerce')
        if not first_row.notna().all():
            df = df.iloc[1:]

        df = df.apply(pd.to_numeric, errors='coerce')

        if df.shape[1] != self.num_axes:
            raise ValueError(
                f"CSV has {df.shape[1]} columns but expected {self.num_axes} IMU axes"
            )

        # Rows with unparseable cells are dropped rather than fed as NaN
        dropped = int(df.isna().any(axis=1).sum())
        if dropped:
            logger.warning("Dropping %d rows with non-numeric values", dropped)
            df = df.dropna()

        self.data = df.values.astype(np.float64)
        self.current_index = 0
        self.is_active = True
        logger.info("Loaded %d IMU samples from CSV", len(self.data))
        return True

    def load_from_array(self, data: np.ndarray) -> bool:
        """
        Load samples from an array of shape (n_samples, 9).

        Returns:
            True if data loaded successfully, False otherwise
        """
        data = np.asarray(data)
        if data.ndim != 2 or data.shape[1] != self.num_axes:
            logger.error("Invalid data shape: %s. Expected (n, %d)", data.shape, self.num_axes)
            return False

        self.data = data.astype(np.float64)
        self.current_index = 0
        self.is_active = True
        return True

    def get_sample(self) -> Optional[Sample]:
        """
        Get the next sample; None once every row has been read.

        Call reset() to start over.
        """
        if self.data is None or self.current_index >= len(self.data):
            return None

        row = self.data[self.current_index]
        self.current_index += 1
        return Sample.from_sequence(row)

    def get_batch(self, batch_size: int) -> Optional[List[Sample]]:
        if self.data is None or self.current_index >= len(self.data):
            return None

        end = min(len(self.data), self.current_index + batch_size)
        rows = self.data[self.current_index:end]
        self.current_index = end
        return [Sample.from_sequence(row) for row in rows]

    def get_all_samples(self) -> List[Sample]:
        """All loaded samples, without moving the read position."""
        if self.data is None:
            return []
        return [Sample.from_sequence(row) for row in self.data]

    def is_streaming(self) -> bool:
        return False

    def reset(self) -> None:
        self.current_index = 0

    def get_sample_count(self) -> int:
        return len(self.data) if self.data is not None else 0

    def get_remaining_samples(self) -> int:
        if self.data is None:
            return 0
        return max(0, len(self.data) - self.current_index)
