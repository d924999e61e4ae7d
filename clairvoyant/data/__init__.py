"""Data pipeline for Clairvoyant"""

from .symbols import SymbolRecord, prepare_windows
from .featurizer import SpectralFeaturizer, DataQualityError
from .finnhub_client import FinnhubClient
from .snapshot import SnapshotStore

__all__ = [
    "SymbolRecord",
    "prepare_windows",
    "SpectralFeaturizer",
    "DataQualityError",
    "FinnhubClient",
    "SnapshotStore",
]
