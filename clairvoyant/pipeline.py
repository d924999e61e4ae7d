"""
Pipeline - one entry point for every Clairvoyant mode.

Modes:
    fetch   download the symbol directory and a year of prices per symbol,
            save them as a snapshot
    train   fetch the configured symbols live and train the price model
    rank    load the snapshot, rank symbols by spectral entropy, then train
            the price model on the same batch
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from tqdm import tqdm

from .config import ClairvoyantConfig, MODES
from .data import FinnhubClient, SnapshotStore, SpectralFeaturizer, SymbolRecord, prepare_windows
from .model import AttentionScorer, PriceModel, Prediction, Score
from .training import PriceModelTrainer, TrainingResult
from .utils import MetricsLogger, format_predictions, format_scores, plot_loss_curve

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Outputs of one pipeline run; fields a mode does not produce stay empty."""

    mode: str
    symbols: List[SymbolRecord] = field(default_factory=list)
    scores: List[Score] = field(default_factory=list)
    predictions: List[Prediction] = field(default_factory=list)
    training: Optional[TrainingResult] = None


class Pipeline:
    """
    Runs a Clairvoyant mode with explicitly passed collaborators.

    Args:
        config: Clairvoyant configuration
        client: Price history provider (defaults to a FinnhubClient)
        store: Snapshot store (defaults to ``config.snapshot_path``)
    """

    def __init__(
        self,
        config: ClairvoyantConfig,
        client: Optional[FinnhubClient] = None,
        store: Optional[SnapshotStore] = None,
    ):
        self.config = config
        self._client = client
        self.store = store or SnapshotStore(config.snapshot_path)

    @property
    def client(self) -> FinnhubClient:
        if self._client is None:
            self._client = FinnhubClient(
                api_key=self.config.api_key,
                base_url=self.config.api_url,
                timeout=self.config.request_timeout,
            )
        return self._client

    def run(self, mode: str) -> PipelineResult:
        if mode not in MODES:
            raise ValueError(f"Invalid mode: {mode} (expected one of {', '.join(MODES)})")
        logger.info(f"Running mode: {mode}")
        return getattr(self, mode)()

    def fetch(self) -> PipelineResult:
        """Fetch every symbol of the exchange and save the snapshot."""
        symbols = self.client.list_symbols(self.config.exchange)
        if not symbols:
            logger.error("Symbol directory is empty, nothing to fetch")
            return PipelineResult(mode='fetch')

        symbols.sort(key=lambda record: record.symbol)
        gigabytes, days = FinnhubClient.estimate_fetch(len(symbols), self.config.request_delay)
        logger.info(f"{len(symbols)} symbols, {gigabytes:.3f} GB, {days:.3f} days")

        for index, record in enumerate(tqdm(symbols, desc="Fetching")):
            if index > 0 and self.config.request_delay > 0:
                time.sleep(self.config.request_delay)
            record.prices = self.client.prices(record.symbol)
            logger.debug(f"{record.symbol}: {len(record.prices)} prices")

        self.store.save(symbols)
        return PipelineResult(mode='fetch', symbols=symbols)

    def train(self) -> PipelineResult:
        """Fetch the configured symbols live and train the price model."""
        records = []
        for symbol in self.config.symbols:
            prices = self.client.prices(symbol)
            logger.info(f"{symbol}: {len(prices)} prices")
            records.append(SymbolRecord(symbol=symbol, prices=prices))

        records = prepare_windows(records, self.config.window_length)
        result = PipelineResult(mode='train', symbols=records)
        if not records:
            logger.error("No symbol has a full price window, nothing to train")
            return result

        result.predictions, result.training = self._train(records)
        return result

    def rank(self) -> PipelineResult:
        """Rank the snapshot by spectral entropy, then train on the same batch."""
        records = prepare_windows(self.store.load(), self.config.window_length)

        featurizer = SpectralFeaturizer(self.config.window_length)
        features, records = featurizer.feature_matrix(records)
        result = PipelineResult(mode='rank', symbols=records)
        if not records:
            logger.error("No symbol could be featurized, nothing to rank")
            return result

        scorer = AttentionScorer(features, epsilon=self.config.spherical_epsilon)
        result.scores = scorer.rank(records)
        logger.info("Ranked symbols:\n" + format_scores(result.scores))

        result.predictions, result.training = self._train(records)
        return result

    def _train(self, records: List[SymbolRecord]):
        model = PriceModel([record.prices for record in records], self.config)

        metrics_logger = None
        if self.config.metrics_path:
            metrics_logger = MetricsLogger(self.config.metrics_path)

        trainer = PriceModelTrainer(model, self.config, metrics_logger=metrics_logger)
        training = trainer.train()
        logger.info(
            f"Training finished after {training.iterations} iterations, "
            f"final loss {training.final_loss:.6f}"
        )

        predictions = model.predictions([record.symbol for record in records])
        logger.info("Predictions:\n" + format_predictions(predictions))

        if self.config.plot_path:
            plot_loss_curve(training.losses, self.config.plot_path)

        return predictions, training
