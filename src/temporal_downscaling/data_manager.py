import pandas as pd
import numpy as np
from typing import List, Optional, Sequence, Union
from dataclasses import dataclass
from pathlib import Path
import logging
from contextlib import contextmanager
from tqdm import tqdm

from .core.downscaling import (
    downscale_with_details,
    DEFAULT_INTERVAL_SCALE,
    DEFAULT_XATOL,
    DEFAULT_MAXITER,
)
from .utils.validation import validate_dataframe, DataValidationError


# Set up logging
logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xls"}


@dataclass
class DownscalingOptions:
    """Tuning of the bounded search shared by every column of a table."""
    interval: Optional[Sequence[float]] = None
    interval_scale: float = DEFAULT_INTERVAL_SCALE
    xatol: float = DEFAULT_XATOL
    maxiter: int = DEFAULT_MAXITER


class DataManager:
    """
    Manages tabular data for the downscaling procedure.

    The input table holds one row per interval: a column of interval centres,
    optionally a column of per-interval subdivision counts, and one column per
    aggregate series. Every series is downscaled independently.
    """

    def __init__(self,
                 data_path: Union[str, Path] = "data/aggregates.csv",
                 x_column: str = "x",
                 counts_column: Optional[str] = None,
                 sheet_name: Optional[str] = None):
        self.__raw_data = None
        self.data_path = Path(data_path)
        self.x_column = x_column
        self.counts_column = counts_column
        self.sheet_name = sheet_name

    @classmethod
    def from_frame(cls, df: pd.DataFrame, x_column: str = "x",
                   counts_column: Optional[str] = None) -> "DataManager":
        """Build a manager around an in-memory DataFrame."""
        manager = cls(data_path="<memory>", x_column=x_column, counts_column=counts_column)
        manager.__raw_data = df.reset_index(drop=True)
        return manager

    @property
    def raw_data(self) -> pd.DataFrame:
        """
        Load the aggregate table from CSV or Excel if not already loaded.

        Returns:
            DataFrame with one row per interval
        """
        if self.__raw_data is None:
            if not self.data_path.exists():
                raise DataValidationError(f"Input file not found: {self.data_path}")
            if self.data_path.suffix.lower() in EXCEL_SUFFIXES:
                self.__raw_data = pd.read_excel(self.data_path, sheet_name=self.sheet_name or 0)
            else:
                self.__raw_data = pd.read_csv(self.data_path)
            logger.info(f"Loaded data from {self.data_path}: {self.__raw_data.shape}")
        return self.__raw_data

    @property
    def value_columns(self) -> List[str]:
        """Columns holding aggregate series."""
        excluded = {self.x_column, self.counts_column}
        return [col for col in self.raw_data.columns if col not in excluded]

    @contextmanager
    def debug_context(self, debug: bool = False):
        """Context manager for debug operations."""
        previous = logger.level
        if debug:
            logger.setLevel(logging.DEBUG)
        try:
            yield
        finally:
            logger.setLevel(previous)

    def validate(self) -> None:
        """Check the table before any computation."""
        required = [self.x_column] + ([self.counts_column] if self.counts_column else [])
        validate_dataframe(self.raw_data, required_columns=required, numeric_only=True)
        if not self.value_columns:
            raise DataValidationError("No value columns to downscale")
        if "interval" in [self.x_column] + self.value_columns:
            raise DataValidationError("Column name 'interval' is reserved for the source row of each value")

    def resolve_counts(self, subdivisions: Optional[int] = None) -> Union[int, np.ndarray]:
        """Subdivision counts from the counts column, else the given number."""
        if self.counts_column:
            counts = self.raw_data[self.counts_column]
            if counts.isna().any():
                raise DataValidationError(f"Missing values in counts column {self.counts_column}")
            return counts.to_numpy()
        if subdivisions is None:
            raise DataValidationError("No subdivision count given and no counts column configured")
        return subdivisions

    def downscale_frame(self,
                        subdivisions: Optional[int] = None,
                        options: Optional[DownscalingOptions] = None,
                        debug: bool = False,
                        progress: bool = False) -> pd.DataFrame:
        """
        Downscale every value column of the table.

        Args:
            subdivisions: Values to infer per interval when no counts column is used
            options: Bounded search settings
            debug: If True, log debug information
            progress: Whether to show a progress bar over the columns

        Returns:
            DataFrame with an ``interval`` column (source row), the fine
            positions under the centre column name, and one column per series
        """
        options = options or DownscalingOptions()
        with self.debug_context(debug):
            self.validate()
            df = self.raw_data
            x = df[self.x_column].to_numpy(dtype=float)
            counts = self.resolve_counts(subdivisions)

            columns = {}
            positions = interval_index = None
            for column in tqdm(self.value_columns, desc="Downscaling", disable=not progress):
                logger.info(f"Downscaling column {column}")
                result = downscale_with_details(
                    df[column].to_numpy(dtype=float), x, counts, options.interval,
                    interval_scale=options.interval_scale,
                    xatol=options.xatol,
                    maxiter=options.maxiter,
                )
                logger.debug(f"{column}: first boundary value {result.first_value:.6g}, "
                             f"unsmoothness {result.unsmoothness:.6g}")
                columns[column] = result.values
                if positions is None:
                    positions = result.positions
                    interval_index = np.repeat(np.arange(len(x)), result.counts)

            downscaled = pd.DataFrame({"interval": interval_index, self.x_column: positions})
            for column, values in columns.items():
                downscaled[column] = values
            logger.info(f"Downscaled {len(columns)} columns into {len(downscaled)} rows")
            return downscaled

    def aggregate_check(self, downscaled: pd.DataFrame) -> pd.DataFrame:
        """
        Compare the original aggregates with the means of the downscaled values.

        Returns:
            Long DataFrame with columns interval, column, aggregate,
            reconstructed and difference
        """
        means = downscaled.groupby("interval")[self.value_columns].mean()
        check = []
        for column in self.value_columns:
            aggregate = self.raw_data[column].to_numpy(dtype=float)
            reconstructed = means[column].to_numpy()
            check.append(pd.DataFrame({
                "interval": means.index.to_numpy(),
                "column": column,
                "aggregate": aggregate,
                "reconstructed": reconstructed,
                "difference": reconstructed - aggregate,
            }))
        return pd.concat(check, ignore_index=True)

    def save(self, df: pd.DataFrame, output_path: Union[str, Path]) -> Path:
        """Save a DataFrame to CSV or Excel depending on the suffix."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            if output_path.suffix.lower() in EXCEL_SUFFIXES:
                df.to_excel(output_path, index=False)
            else:
                df.to_csv(output_path, index=False)
        except OSError as e:
            logger.error(f"Error saving data to {output_path}: {e}")
            raise
        logger.info(f"Saved {df.shape} to {output_path}")
        return output_path
