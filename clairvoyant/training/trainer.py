"""
Training loop for the price model.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from tqdm import tqdm

from ..config import ClairvoyantConfig
from ..model.price_model import PriceModel
from ..optim import ClippedHeavyBall
from ..utils.logging_utils import MetricsLogger

logger = logging.getLogger(__name__)


@dataclass
class TrainingResult:
    """Loss history of one training run."""

    losses: List[float] = field(default_factory=list)
    grad_norms: List[float] = field(default_factory=list)
    converged: bool = False

    @property
    def iterations(self) -> int:
        return len(self.losses)

    @property
    def final_loss(self) -> float:
        return self.losses[-1] if self.losses else float('nan')


class PriceModelTrainer:
    """
    Trainer for the price model.

    Each iteration zeros the gradients, evaluates the cost forward and
    backward, and takes one clipped heavy-ball step. ``w1`` moves only on its
    lower triangle and ``values`` only on its closing-price row; the ``values``
    step is never clipped. Training stops as soon as the loss read at the
    start of an iteration is below ``config.loss_threshold``.

    Args:
        model: Price model to train
        config: Clairvoyant configuration
        metrics_logger: Optional per-iteration JSONL logger
    """

    def __init__(
        self,
        model: PriceModel,
        config: ClairvoyantConfig,
        metrics_logger: Optional[MetricsLogger] = None,
    ):
        self.model = model
        self.config = config
        self.metrics_logger = metrics_logger

        parameters = model.parameters
        self.optimizer = ClippedHeavyBall(
            [
                {'params': [parameters['w1'].data], 'mask': model.lower_triangle, 'clip': True},
                {'params': [parameters['b1'].data], 'clip': True},
                {'params': [parameters['values'].data], 'mask': model.close_row, 'clip': False},
            ],
            lr=config.learning_rate,
            momentum=config.momentum,
            max_norm=config.gradient_clip_norm,
        )

    def _closure(self) -> float:
        loss = self.model.loss_and_gradients()
        # Hand the graph gradients to the optimizer
        for tensor in self.model.parameters:
            tensor.data.grad = tensor.grad
        return loss

    def train_step(self) -> Tuple[float, float]:
        """Single training step, returning (loss, gradient norm)"""
        loss = self.optimizer.step(self._closure)
        return loss, self.optimizer.grad_norm()

    def train(self) -> TrainingResult:
        """Main training loop"""
        result = TrainingResult()

        pbar = tqdm(range(self.config.iterations), desc="Training")
        start = time.perf_counter()
        for iteration in pbar:
            loss, norm = self.train_step()
            elapsed = time.perf_counter() - start
            start = time.perf_counter()

            result.losses.append(loss)
            result.grad_norms.append(norm)

            pbar.set_postfix({
                'loss': f"{loss:.6f}",
                'norm': f"{norm:.4f}",
            })

            if self.metrics_logger is not None:
                self.metrics_logger.log({'loss': loss, 'grad_norm': norm, 'elapsed': elapsed}, step=iteration)

            if iteration % self.config.log_interval == 0:
                logger.info(f"Iteration {iteration} - loss: {loss:.6f}, grad norm: {norm:.4f}, {elapsed:.3f}s")

            if loss < self.config.loss_threshold:
                logger.info(f"Loss below {self.config.loss_threshold} at iteration {iteration}, stopping")
                result.converged = True
                break

        pbar.close()
        return result
