"""
Output service for exporting analytics payloads and measurements.

Writes dashboard and comparison payloads as JSON and measurement history as CSV.
"""

import json
import logging
from pathlib import Path
from typing import Any

import pandas as pd

from healthbridge_analytics.domain.weight import WeightMeasurement
from healthbridge_analytics.utils.parameters import OutputConfig

logger = logging.getLogger(__name__)


class OutputService:
    """
    Service for writing data to output files.
    """

    def __init__(self, config: OutputConfig) -> None:
        """
        Initialize output service.

        Args:
            config: Output configuration.
        """
        self.config = config
        self.output_dir = Path(config.dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _write_json(self, payload: dict[str, Any], file_name: str) -> Path:
        path = self.output_dir / file_name

        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=str)

        return path

    def write_dashboard(self, payload: dict[str, Any]) -> Path:
        """
        Write a dashboard payload to JSON.

        Args:
            payload: Dashboard dictionary as produced by DashboardAnalytics.to_dict().

        Returns:
            Path of the written file.
        """
        path = self._write_json(payload, self.config.files.dashboard)
        logger.info(f"Wrote dashboard to {path}")
        return path

    def write_comparison(self, payload: dict[str, Any]) -> Path:
        """
        Write a comparison payload to JSON.

        Args:
            payload: Comparison dictionary as produced by ComparisonResult.to_dict().

        Returns:
            Path of the written file.
        """
        path = self._write_json(payload, self.config.files.comparison)
        logger.info(f"Wrote comparison to {path}")
        return path

    def write_measurements_csv(self, measurements: list[WeightMeasurement]) -> Path | None:
        """
        Write measurements to CSV, oldest first.

        Args:
            measurements: Measurements in any order.

        Returns:
            Path of the written file, or None when there is nothing to write.
        """
        if not measurements:
            logger.warning("No measurements to write")
            return None

        csv_path = self.output_dir / self.config.files.measurements_csv

        df = pd.DataFrame([m.to_dict() for m in measurements])
        df = df.sort_values("timestamp")

        df.to_csv(csv_path, index=False, encoding="utf-8")
        logger.info(f"Wrote {len(df)} measurements to {csv_path}")
        return csv_path
