"""
Loss curve rendering.
"""

import logging
from pathlib import Path
from typing import Sequence

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def plot_loss_curve(losses: Sequence[float], path: str = 'epochs.png') -> Path:
    """
    Save a scatter plot of loss per training iteration.

    Args:
        losses: Loss of each iteration
        path: Output image

    Returns:
        Path of the written image
    """
    epochs = np.arange(len(losses))

    fig, ax = plt.subplots(figsize=(8, 8))
    ax.scatter(epochs, np.asarray(losses, dtype=float), s=4, marker='o')
    ax.set_title("epochs vs cost")
    ax.set_xlabel("epochs")
    ax.set_ylabel("cost")
    ax.grid(True, alpha=0.3)

    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output)
    plt.close(fig)

    logger.info(f"Loss curve saved: {output}")
    return output
