import math
from typing import Iterable, Sequence


def round_half_up(value: float) -> int:
    # round() is banker's rounding; scores round .5 upwards
    return int(math.floor(value + 0.5))


def mean(values: Iterable[float]) -> float | None:
    vals = list(values)
    if not vals:
        return None
    return sum(vals) / len(vals)


def band(score: float, bands: Sequence[tuple[float, str]], default: str) -> str:
    """Map a score onto the first label whose lower bound it reaches, e.g. [(70, "low"), (40, "medium")]."""
    for lower, label in bands:
        if score >= lower:
            return label
    return default
