"""Tests for the command-line interface and the plots."""

import logging
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch, PropertyMock

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd

from temporal_downscaling import cli
from temporal_downscaling.utils.config import Config
from temporal_downscaling.utils.visualization import Visualization


class ConfigIsolationMixin:
    """Point the configuration at a temporary file."""

    def isolate_config(self, directory: Path):
        Config.reset()
        patcher = patch.object(Config, "config_path", new_callable=PropertyMock,
                               return_value=directory / "config.yaml")
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(Config.reset)


class TestCli(ConfigIsolationMixin, unittest.TestCase):
    """Test cases for the CLI entry point."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.dir = Path(self.tmp.name)
        self.isolate_config(self.dir)
        self.addCleanup(logging.root.handlers.clear)

        self.input_path = self.dir / "weekly.csv"
        pd.DataFrame({
            "week": [1.0, 2.0, 3.0, 4.0, 5.0],
            "sales": [70.0, 91.0, 84.0, 105.0, 98.0],
        }).to_csv(self.input_path, index=False)
        self.output_path = self.dir / "daily.csv"

    def test_parse_arguments(self):
        args = cli.parse_arguments(["-i", "in.csv", "-n", "7", "--interval", "0", "10", "--check"])
        self.assertEqual(args.input, "in.csv")
        self.assertEqual(args.subdivisions, 7)
        self.assertEqual(args.interval, [0.0, 10.0])
        self.assertTrue(args.check)
        self.assertFalse(args.visualize)

    def test_main_success(self):
        """A run writes the downscaled table and the aggregate check."""
        code = cli.main(["-i", str(self.input_path), "-o", str(self.output_path),
                         "--x-column", "week", "-n", "7", "--check"])
        self.assertEqual(code, 0)
        result = pd.read_csv(self.output_path)
        self.assertEqual(len(result), 35)
        self.assertEqual(list(result.columns), ["interval", "week", "sales"])
        np.testing.assert_allclose(result.groupby("interval")["sales"].mean(),
                                   [70.0, 91.0, 84.0, 105.0, 98.0], atol=1e-9)
        check = pd.read_csv(self.dir / "daily_check.csv")
        self.assertLess(check["difference"].abs().max(), 1e-9)

    def test_main_visualize(self):
        """Plots are written next to the output."""
        code = cli.main(["-i", str(self.input_path), "-o", str(self.output_path),
                         "--x-column", "week", "-n", "3", "-v"])
        self.assertEqual(code, 0)
        self.assertTrue((self.dir / "visualizations" / "downscaled_sales.png").exists())
        self.assertTrue((self.dir / "visualizations" / "aggregate_check_sales.png").exists())

    def test_main_validation_error(self):
        """Validation problems give exit code 1."""
        code = cli.main(["-i", str(self.input_path), "-o", str(self.output_path),
                         "--x-column", "week", "-n", "3", "--interval", "5", "1"])
        self.assertEqual(code, 1)
        self.assertFalse(self.output_path.exists())

    def test_main_zero_subdivisions(self):
        """An explicit zero count is an error, not a request for the default."""
        code = cli.main(["-i", str(self.input_path), "-o", str(self.output_path),
                         "--x-column", "week", "-n", "0"])
        self.assertEqual(code, 1)
        self.assertFalse(self.output_path.exists())

    def test_lowercase_log_level(self):
        """Log levels from the configuration are case-insensitive."""
        (self.dir / "config.yaml").write_text("logging:\n  level: warning\n")
        Config.reset()
        cli.configure_logging()
        self.assertEqual(logging.root.level, logging.WARNING)
        code = cli.main(["-i", str(self.input_path), "-o", str(self.output_path),
                         "--x-column", "week", "-n", "2"])
        self.assertEqual(code, 0)

    def test_main_missing_input(self):
        code = cli.main(["-i", str(self.dir / "absent.csv"), "-o", str(self.output_path)])
        self.assertEqual(code, 1)


class TestVisualization(ConfigIsolationMixin, unittest.TestCase):
    """Test cases for the plots."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.dir = Path(self.tmp.name)
        self.isolate_config(self.dir)

    def test_plots_saved(self):
        viz = Visualization(self.dir / "plots")
        x = np.arange(1, 5, dtype=float)
        y = np.array([2.0, 5.0, 3.0, 4.0])
        positions = np.linspace(0.75, 4.25, 8)
        values = np.repeat(y, 2)
        path = viz.plot_downscaled(x, y, positions, values, "demo")
        self.assertTrue(path.exists())
        path = viz.plot_aggregate_check(y, y, "demo")
        self.assertTrue(path.exists())
        self.assertEqual(path.name, "aggregate_check_demo.png")


if __name__ == '__main__':
    unittest.main()
