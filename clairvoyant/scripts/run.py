#!/usr/bin/env python3
"""
Command line entry point for Clairvoyant.

Usage:
    python -m clairvoyant.scripts.run --mode fetch
    python -m clairvoyant.scripts.run --mode train --iterations 100
    python -m clairvoyant.scripts.run --mode rank --snapshot symbols.pt
"""

import argparse
import logging
import os
from typing import List, Optional

from clairvoyant.config import ClairvoyantConfig, MODES
from clairvoyant.pipeline import Pipeline
from clairvoyant.utils import setup_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Rank stocks by spectral entropy and fit the price model')
    parser.add_argument('--mode', type=str, default='rank', choices=MODES,
                      help='fetch stock data, train on live data, or rank a snapshot')
    parser.add_argument('--window', type=int, default=251,
                      help='Number of daily closes per symbol')
    parser.add_argument('--iterations', type=int, default=100,
                      help='Maximum number of training iterations')
    parser.add_argument('--lr', type=float, default=0.05,
                      help='Learning rate')
    parser.add_argument('--momentum', type=float, default=0.3,
                      help='Momentum')
    parser.add_argument('--seed', type=int, default=1,
                      help='Random seed')
    parser.add_argument('--snapshot', type=str, default='symbols.pt',
                      help='Path to the symbol snapshot')
    parser.add_argument('--plot', type=str, default='epochs.png',
                      help='Path of the loss curve image')
    parser.add_argument('--metrics', type=str, default=None,
                      help='Path of a JSONL file for training metrics')
    parser.add_argument('--symbols', type=str, nargs='+', default=None,
                      help='Symbols used by the train mode')
    parser.add_argument('--api-key', type=str, default=os.environ.get('FINNHUB_API_KEY', ''),
                      help='Finnhub API key (default: $FINNHUB_API_KEY)')
    parser.add_argument('--verbose', action='store_true',
                      help='Log debug messages')
    return parser


def main(argv: Optional[List[str]] = None):
    args = build_parser().parse_args(argv)

    logger = setup_logger(level=logging.DEBUG if args.verbose else logging.INFO)
    logger.info("Starting Clairvoyant")

    config = ClairvoyantConfig(
        window_length=args.window,
        iterations=args.iterations,
        learning_rate=args.lr,
        momentum=args.momentum,
        seed=args.seed,
        snapshot_path=args.snapshot,
        plot_path=args.plot,
        metrics_path=args.metrics,
        api_key=args.api_key,
    )
    if args.symbols:
        config.symbols = args.symbols

    logger.info(f"Config: {config}")

    result = Pipeline(config).run(args.mode)

    logger.info("Done!")
    return result


if __name__ == '__main__':
    main()
