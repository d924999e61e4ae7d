"""
Human-readable tables for ranked scores and price predictions.
"""

from dataclasses import asdict
from typing import Sequence

import pandas as pd

from ..model.attention_scorer import Score
from ..model.price_model import Prediction


def scores_frame(scores: Sequence[Score]) -> pd.DataFrame:
    """Ranked scores as a DataFrame, one row per symbol in rank order"""
    return pd.DataFrame(
        [asdict(score) for score in scores],
        columns=['symbol', 'entropy', 'phase', 'change', 'name'],
    )


def format_scores(scores: Sequence[Score]) -> str:
    frame = scores_frame(scores)
    return frame.to_string(
        index=False,
        float_format=lambda v: f"{v:11.7f}",
    )


def format_predictions(predictions: Sequence[Prediction]) -> str:
    frame = pd.DataFrame(
        [asdict(prediction) for prediction in predictions],
        columns=['symbol', 'original', 'refined'],
    )
    frame['error'] = frame['refined'] - frame['original']
    return frame.to_string(index=False, float_format=lambda v: f"{v:.4f}")
