"""
Configuration module for Clairvoyant.

All hyperparameters, window sizes and collaborator settings are defined here
using Python dataclasses and passed explicitly to every component.
"""

from dataclasses import dataclass, field
from typing import List, Optional


MODES = ('fetch', 'train', 'rank')


@dataclass
class ClairvoyantConfig:
    """
    Main configuration for Clairvoyant.

    Covers the spectral attention scorer, the price reconstruction model and
    its training loop, and the data collaborators (Finnhub client, snapshot
    store, plot and metrics output).
    """

    # ========== Windows ==========
    window_length: int = 251
    """Number of daily closes per symbol (W); the price model uses W + 1 rows"""

    # ========== Spectral Attention ==========
    spherical_epsilon: float = 0.0
    """Stabilizer added to squared entries in the spherical softmax"""

    # ========== Training Parameters ==========
    iterations: int = 100
    """Maximum number of training iterations"""

    learning_rate: float = 0.05
    """Step size (eta) of the heavy-ball update"""

    momentum: float = 0.3
    """Velocity decay (alpha) of the heavy-ball update"""

    gradient_clip_norm: float = 1.0
    """Restricted gradient norm above which w1/b1 updates are rescaled"""

    loss_threshold: float = 1e-3
    """Training stops once the total loss falls below this value"""

    seed: int = 1
    """Random seed for parameter initialization"""

    dtype: str = 'float32'
    """Floating point type of the price model parameters"""

    # ========== Data Collaborators ==========
    api_key: str = field(default='', repr=False)
    """Finnhub API token"""

    api_url: str = 'https://finnhub.io/api/v1'
    """Finnhub REST endpoint"""

    exchange: str = 'US'
    """Exchange whose symbol directory is fetched"""

    request_delay: float = 1.5
    """Seconds to wait between price history requests"""

    request_timeout: float = 30.0
    """HTTP timeout in seconds"""

    symbols: List[str] = field(
        default_factory=lambda: ['AAPL', 'IBM', 'CTVA', 'K', 'CAT', 'GS', 'T', 'WMT']
    )
    """Fixed symbol list used by the live training mode"""

    # ========== Output ==========
    snapshot_path: str = 'symbols.pt'
    """Where the fetched symbol snapshot is stored"""

    plot_path: Optional[str] = 'epochs.png'
    """Loss curve image (None disables plotting)"""

    metrics_path: Optional[str] = None
    """JSONL file for per-iteration training metrics (None disables it)"""

    log_interval: int = 10
    """How often to log training metrics"""

    def __post_init__(self):
        """Validate configuration values"""
        if self.window_length < 1:
            raise ValueError(f"Invalid window_length: {self.window_length}")
        if self.iterations < 1:
            raise ValueError(f"Invalid iterations: {self.iterations}")
        if self.learning_rate < 0.0:
            raise ValueError(f"Invalid learning rate: {self.learning_rate}")
        if not 0.0 <= self.momentum < 1.0:
            raise ValueError(f"Invalid momentum: {self.momentum}")
        if self.gradient_clip_norm <= 0.0:
            raise ValueError(f"Invalid gradient_clip_norm: {self.gradient_clip_norm}")
        if self.spherical_epsilon < 0.0:
            raise ValueError(f"Invalid spherical_epsilon: {self.spherical_epsilon}")
        if self.dtype not in ('float32', 'float64'):
            raise ValueError(f"Invalid dtype: {self.dtype}")
        if self.log_interval < 1:
            raise ValueError(f"Invalid log_interval: {self.log_interval}")

    @property
    def model_size(self) -> int:
        """Rows of the price model: the window plus the duplicated close (S = W + 1)"""
        return self.window_length + 1
