"""
Parquet persistence for the sample history of a run.
"""

import os
import logging
from typing import Optional, Sequence
from datetime import datetime

from common.metrics_utils import samples_to_dataframe
from configuration import DEFAULT_SAMPLES_PREFIX
from persistence.record import Sample

logger = logging.getLogger(__name__)


class ParquetPersistence:
    """Saves a sample history to a Parquet file for later analysis.

    Only measurements are written: key, size, status, duration and rate.
    Object payloads are never stored.

    Attributes:
        output_dir: Directory where Parquet files will be saved
    """

    def __init__(self, output_dir: str):
        """Initialize Parquet persistence.

        Args:
            output_dir: Directory for saving Parquet files
        """
        self.output_dir: str = output_dir

        # Ensure output directory exists
        os.makedirs(output_dir, exist_ok=True)

    def save_samples(
        self, samples: Sequence[Sample], filename_prefix: str = DEFAULT_SAMPLES_PREFIX
    ) -> Optional[str]:
        """Save samples to a Parquet file.

        Args:
            samples: Snapshot of the sample history
            filename_prefix: Prefix for the generated filename

        Returns:
            Path to the saved file, or None if there are no samples
        """
        if not samples:
            return None

        logger.info(f"Saving {len(samples)} samples to file")
        df = samples_to_dataframe(samples)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"{filename_prefix}_{timestamp}.parquet"
        filepath = os.path.join(self.output_dir, filename)

        df.to_parquet(filepath, index=False)

        return filepath
