"""
Logging utilities for Clairvoyant.
"""

import logging
import sys
from datetime import datetime
from typing import Dict, Any
import json


def setup_logger(name: str = 'clairvoyant', level: int = logging.INFO) -> logging.Logger:
    """
    Set up logger with consistent formatting.

    Args:
        name: Logger name
        level: Logging level

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Console handler, attached once per logger
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)

        logger.addHandler(handler)

    return logger


class MetricsLogger:
    """
    Logs training metrics to a JSONL file and, at debug level, to the
    'clairvoyant.metrics' logger.
    """

    def __init__(self, log_file: str = 'metrics.jsonl'):
        self.log_file = log_file
        self.logger = logging.getLogger('clairvoyant.metrics')

    def log(self, metrics: Dict[str, Any], step: int) -> None:
        """
        Log metrics.

        Args:
            metrics: Dictionary of metric name -> value
            step: Training iteration
        """
        log_entry = {
            'timestamp': datetime.now().isoformat(),
            'step': step,
            **metrics
        }

        with open(self.log_file, 'a') as f:
            f.write(json.dumps(log_entry) + '\n')

        metrics_str = ', '.join(f'{k}: {v:.6f}' for k, v in metrics.items() if isinstance(v, (int, float)))
        self.logger.debug(f"Step {step} - {metrics_str}")
