"""
Snapshot store - persists fetched symbols so ranking can run offline.
"""

import logging
from dataclasses import asdict
from pathlib import Path
from typing import List, Sequence

import torch

from .symbols import SymbolRecord

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class SnapshotStore:
    """
    Saves and loads symbol records with ``torch.save``.

    Args:
        path: Snapshot file
    """

    def __init__(self, path: str = 'symbols.pt'):
        self.path = Path(path)

    def save(self, records: Sequence[SymbolRecord]) -> None:
        entries = []
        for record in records:
            entry = asdict(record)
            entry['prices'] = torch.tensor(record.prices, dtype=torch.float32)
            entries.append(entry)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        torch.save({'version': SNAPSHOT_VERSION, 'symbols': entries}, self.path)
        logger.info(f"Snapshot saved: {self.path} ({len(entries)} symbols)")

    def load(self) -> List[SymbolRecord]:
        if not self.path.exists():
            raise FileNotFoundError(f"Snapshot not found: {self.path}")

        payload = torch.load(self.path)
        records = []
        for entry in payload['symbols']:
            entry = dict(entry)
            entry['prices'] = entry['prices'].tolist()
            records.append(SymbolRecord(**entry))

        logger.info(f"Snapshot loaded: {self.path} ({len(records)} symbols)")
        return records
