"""
Configuration and logging setup for the setpoint GMM toolkit.

All tunable constants live in DEFAULT_CONFIG; a YAML file (config/setpoint.yaml)
may override any subset of them.
"""

import copy
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import yaml


DEFAULT_CONFIG: Dict = {
    'em': {
        'max_iter': 100,
        'tolerance': 0.001,
        'epsilon': 1e-10,
    },
    'selection': {
        'max_components': 3,
        'min_dominant_weight': 0.5,
        'min_samples': 5,
    },
    'cumulative': {
        'min_points': 3,  # no band before the third measurement
        'z_score': 1.96,
    },
    'sample': {
        'seed': 42,
        'populations': [
            {'mean': 6.0, 'std': 0.8, 'n': 15},   # normal setpoint
            {'mean': 14.0, 'std': 2.0, 'n': 3},   # acute values
        ],
    },
    'validation': {
        'lower': 0.0,
        'upper': 100.0,
    },
    'input': {
        'values': None,
        'path': None,
        'column': None,
    },
    'reports': {
        'dir': 'reports/setpoint',
        'density_steps': 200,
        'density_padding': 2.0,
    },
    'logging': {
        'level': 'INFO',
        'log_file': 'logs/setpoint.log',
    },
}


@dataclass(frozen=True)
class EMParams:
    max_iter: int = 100
    tolerance: float = 0.001
    epsilon: float = 1e-10

    @classmethod
    def from_config(cls, config: Dict) -> "EMParams":
        em = config.get('em', {})
        return cls(
            max_iter=int(em.get('max_iter', cls.max_iter)),
            tolerance=float(em.get('tolerance', cls.tolerance)),
            epsilon=float(em.get('epsilon', cls.epsilon)),
        )


def _merge(base: Dict, override: Dict) -> Dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    config_path: str = "config/setpoint.yaml",
    logger: Optional[logging.Logger] = None,
) -> dict:
    """
    Load configuration, layering the YAML file over DEFAULT_CONFIG.

    Args:
        config_path: Path to config file
        logger: Optional logger

    Returns:
        Configuration dictionary
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    path = Path(config_path)
    if not path.exists():
        logger.debug("Config %s not found, using defaults", path)
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(path, 'r') as f:
        overrides = yaml.safe_load(f) or {}

    return _merge(DEFAULT_CONFIG, overrides)


def setup_logging(config: dict) -> logging.Logger:
    """Setup logging configuration."""
    log_level = getattr(logging, config['logging']['level'])
    handlers = [logging.StreamHandler(sys.stdout)]

    log_file = config['logging'].get('log_file')
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        handlers=handlers,
    )

    return logging.getLogger(__name__)
