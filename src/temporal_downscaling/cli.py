"""
Command-line interface for the temporal downscaling procedure.
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import Dict, List, Optional

from .data_manager import DataManager, DownscalingOptions
from .utils.config import Config
from .utils.validation import DownscalingError, validate_config
from .utils.visualization import Visualization


# Set up logging
logger = logging.getLogger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Downscale aggregate interval data to a finer resolution'
    )
    parser.add_argument(
        '--input', '-i',
        type=str,
        help='Path to input CSV or Excel file, one row per interval (default: data/aggregates.csv)',
        default=None
    )
    parser.add_argument(
        '--output', '-o',
        type=str,
        help='Path to output CSV or Excel file (default: data/downscaled.csv)',
        default=None
    )
    parser.add_argument(
        '--x-column',
        type=str,
        help='Column holding the interval centres (default: x)',
        default=None
    )
    parser.add_argument(
        '--counts-column',
        type=str,
        help='Column holding the number of values to infer per interval',
        default=None
    )
    parser.add_argument(
        '--subdivisions', '-n',
        type=int,
        help='Number of values to infer per interval (default: 12)',
        default=None
    )
    parser.add_argument(
        '--interval',
        type=float,
        nargs=2,
        metavar=('LOWER', 'UPPER'),
        help='Bracket searched for the first boundary value (default: 3 * range of each series)',
        default=None
    )
    parser.add_argument(
        '--sheet',
        type=str,
        help='Sheet to read when the input is an Excel file',
        default=None
    )
    parser.add_argument(
        '--check',
        action='store_true',
        help='Also save a table comparing aggregates with the means of the inferred values'
    )
    parser.add_argument(
        '--visualize', '-v',
        action='store_true',
        help='Generate plots of the downscaled series'
    )
    parser.add_argument(
        '--debug', '-d',
        action='store_true',
        help='Enable debug output'
    )
    return parser.parse_args(argv)


def configure_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    config = Config()
    log_config = config.get('logging', {})

    level_name = str(log_config.get('level', 'INFO')).upper()
    level = logging.DEBUG if debug else getattr(logging, level_name, logging.INFO)
    format_str = log_config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Reset the root logger
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_config.get('file'):
        handlers.append(logging.FileHandler(log_config['file']))

    logging.basicConfig(level=level, format=format_str, handlers=handlers)

    logging.getLogger('matplotlib').setLevel(logging.INFO)
    logging.getLogger('matplotlib.font_manager').setLevel(logging.INFO)
    logging.getLogger('PIL').setLevel(logging.INFO)


def initialize_data_manager(args: argparse.Namespace) -> DataManager:
    """Initialize the DataManager with configuration."""
    config = Config()
    data_config = config.get('data', {})

    input_file = args.input or data_config.get('input_file')
    if not input_file:
        raise ValueError("Input file path not provided in arguments or configuration")

    return DataManager(
        data_path=input_file,
        x_column=args.x_column or data_config.get('x_column', 'x'),
        counts_column=args.counts_column or data_config.get('counts_column'),
        sheet_name=args.sheet
    )


def get_options(args: argparse.Namespace) -> DownscalingOptions:
    """Bounded search settings from args and config."""
    config = Config()
    return DownscalingOptions(
        interval=args.interval,
        interval_scale=config.get('downscaling.interval_scale', 3.0),
        xatol=config.get('downscaling.xatol', 1.0e-8),
        maxiter=config.get('downscaling.maxiter', 500)
    )


def get_output_path(args: argparse.Namespace) -> Path:
    """Get the output file path from args or config."""
    config = Config()
    output_file = args.output or config.get('data.output_file')
    if not output_file:
        output_file = 'data/downscaled.csv'
        logger.warning(f"Output file path not provided, using default: {output_file}")
    return Path(output_file)


def generate_visualizations(data_manager: DataManager, downscaled, output_dir: Path) -> Dict[str, Path]:
    """Generate visualizations using the Visualization class."""
    logger.info("Generating visualizations")
    viz = Visualization(output_dir)
    return viz.generate_all_plots(
        data_manager.raw_data, downscaled,
        x_column=data_manager.x_column,
        counts_column=data_manager.counts_column
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to downscale and save aggregate data."""
    try:
        args = parse_arguments(argv)
        configure_logging(args.debug)
        validate_config(Config().as_dict())

        logger.info("Starting temporal downscaling")

        data_manager = initialize_data_manager(args)
        subdivisions = args.subdivisions
        if subdivisions is None:
            subdivisions = Config().get('data.subdivisions')

        downscaled = data_manager.downscale_frame(
            subdivisions=subdivisions,
            options=get_options(args),
            debug=args.debug,
            progress=True
        )

        output_path = get_output_path(args)
        data_manager.save(downscaled, output_path)

        if args.check:
            check = data_manager.aggregate_check(downscaled)
            check_path = output_path.parent / f"{output_path.stem}_check{output_path.suffix}"
            data_manager.save(check, check_path)
            logger.info(f"Largest aggregate deviation: {check['difference'].abs().max():.3g}")

        if args.visualize:
            generate_visualizations(data_manager, downscaled, output_path.parent / "visualizations")

        logger.info("Process completed successfully!")
        return 0

    except (DownscalingError, ValueError) as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 2


if __name__ == "__main__":
    sys.exit(main())
