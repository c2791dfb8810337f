"""
Configuration management for the temporal downscaling procedure.
"""

import copy
import yaml
from pathlib import Path
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)


class Config:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            cls._instance._load_config()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Forget the cached instance so the next call reloads the file."""
        cls._instance = None

    @property
    def config_path(self) -> Path:
        return Path(__file__).parent / "config.yaml"

    def _load_config(self):
        """Load configuration from YAML file."""
        try:
            config_path = self.config_path
            if not config_path.exists():
                self._create_default_config(config_path)

            with open(config_path, "r") as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, dict):
                raise yaml.YAMLError(f"Expected a mapping in {config_path}")
            self._config = self._merge(self._get_default_config(), loaded)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading configuration: {e}")
            self._config = self._get_default_config()

    def _create_default_config(self, config_path: Path):
        """Create default configuration file if it doesn't exist."""
        config = self._get_default_config()
        with open(config_path, "w") as f:
            yaml.dump(config, f, default_flow_style=False)

    @staticmethod
    def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay a loaded configuration on the defaults, section by section."""
        merged = copy.deepcopy(defaults)
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = Config._merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return {
            "data": {
                "input_file": "data/aggregates.csv",
                "output_file": "data/downscaled.csv",
                "x_column": "x",
                "counts_column": None,
                "subdivisions": 12
            },
            "downscaling": {
                "interval_scale": 3.0,
                "xatol": 1.0e-08,
                "maxiter": 500
            },
            "visualization": {
                "seaborn_style": "whitegrid",
                "dpi": 150,
                "figure_sizes": {
                    "downscaled": [12, 6],
                    "aggregate_check": [6, 6]
                }
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "file": None
            }
        }

    def as_dict(self) -> Dict[str, Any]:
        """Return a copy of the whole configuration."""
        return copy.deepcopy(self._config)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        try:
            current = self._config
            for k in key.split('.'):
                current = current[k]
            return current
        except (KeyError, TypeError):
            return default
