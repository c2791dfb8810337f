"""
Visualization module for the temporal downscaling procedure.
"""

import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd
import numpy as np
from pathlib import Path
import logging
from typing import Optional, Dict, Any, Sequence
from .config import Config
from ..core.intervals import centers

logger = logging.getLogger(__name__)


class Visualization:
    """Class for generating visualizations of downscaled series."""

    def __init__(self, output_dir: Path, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the visualization class.

        Args:
            output_dir: Directory to save visualizations
            config: Optional configuration dictionary. If not provided, uses default config.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(exist_ok=True, parents=True)

        self.config = config or Config().get('visualization', {})
        self._configure_matplotlib()

    def _configure_matplotlib(self):
        """Configure matplotlib based on settings."""
        plt.rcParams.update({
            'axes.titlesize': 14,
            'axes.labelsize': 12,
            'xtick.labelsize': 10,
            'ytick.labelsize': 10,
            'legend.fontsize': 10,
            'axes.spines.top': False,
            'axes.spines.right': False,
        })
        sns.set_style(self.config.get('seaborn_style', 'whitegrid'), {
            'grid.linestyle': ':',
            'grid.alpha': 0.3,
        })

    def _figure_size(self, name: str, default: Sequence[float]):
        return tuple(self.config.get('figure_sizes', {}).get(name, default))

    def _save(self, fig, filename: str) -> Path:
        output_path = self.output_dir / filename
        fig.savefig(output_path, dpi=self.config.get('dpi', 150))
        plt.close(fig)
        logger.info(f"Saved plot to {output_path}")
        return output_path

    def plot_downscaled(self,
                        x: Sequence[float],
                        y: Sequence[float],
                        positions: Sequence[float],
                        values: Sequence[float],
                        name: str = 'series') -> Path:
        """
        Plot the downscaled values against the aggregate data.

        Inferred values are drawn in black, aggregates in blue and the
        interval boundaries as red vertical lines.

        Returns:
            Path to saved plot
        """
        fig, ax = plt.subplots(figsize=self._figure_size('downscaled', (12, 6)))
        for boundary in centers(x, with_borders=True):
            ax.axvline(boundary, color='red', linewidth=0.8, alpha=0.6, zorder=1)
        ax.plot(positions, values, marker='o', linestyle='', markersize=3,
                color='black', label='Downscaled', zorder=2)
        ax.plot(x, y, marker='o', linestyle='', markersize=7,
                color='#1f77b4', label='Aggregate', zorder=3)
        ax.set_title(f'Temporal downscaling: {name}')
        ax.set_xlabel('Position')
        ax.set_ylabel('Value')
        ax.legend(loc='best')
        fig.tight_layout()
        return self._save(fig, f'downscaled_{name}.png')

    def plot_aggregate_check(self,
                             y: Sequence[float],
                             means: Sequence[float],
                             name: str = 'series') -> Path:
        """
        Plot the aggregate data against the means of the downscaled values.

        Points on the identity line mean the aggregates are reproduced.

        Returns:
            Path to saved plot
        """
        fig, ax = plt.subplots(figsize=self._figure_size('aggregate_check', (6, 6)))
        ax.scatter(y, means, color='black', s=20, zorder=2)
        lims = [np.nanmin([np.nanmin(y), np.nanmin(means)]), np.nanmax([np.nanmax(y), np.nanmax(means)])]
        ax.plot(lims, lims, color='grey', linewidth=1, zorder=1)
        ax.set_title(f'Aggregate check: {name}')
        ax.set_xlabel('Initial aggregate data')
        ax.set_ylabel('Aggregates of inferred values')
        fig.tight_layout()
        return self._save(fig, f'aggregate_check_{name}.png')

    def generate_all_plots(self, source_df: pd.DataFrame, downscaled_df: pd.DataFrame,
                           x_column: str = 'x', counts_column: Optional[str] = None) -> Dict[str, Path]:
        """
        Generate both plots for every downscaled series.

        Args:
            source_df: Aggregate table, one row per interval
            downscaled_df: Output of DataManager.downscale_frame
            x_column: Name of the interval centre column
            counts_column: Name of the counts column, excluded from the series

        Returns:
            Dictionary mapping plot names to paths of saved plots
        """
        plots = {}
        excluded = {x_column, counts_column, 'interval'}
        series = [col for col in downscaled_df.columns if col not in excluded and col in source_df.columns]
        means = downscaled_df.groupby('interval')[series].mean()
        for column in series:
            try:
                plots[f'downscaled_{column}'] = self.plot_downscaled(
                    source_df[x_column], source_df[column],
                    downscaled_df[x_column], downscaled_df[column], column
                )
                plots[f'aggregate_check_{column}'] = self.plot_aggregate_check(
                    source_df[column], means[column], column
                )
            except (ValueError, OSError) as e:
                logger.warning(f"Failed to plot {column}: {e}")
        logger.info(f"Generated {len(plots)} plots")
        return plots
