"""
EISV Governance Core - Integrity Estimator

Integrity is the complement of Surprise, computed directly each turn:

    I = 1 - clip(S, 0, 1)

There is no integration lag: a turn with S=0 yields I=1 immediately,
whatever the previous turns looked like.
"""

from .utils import clip


def clamp_surprise(S: float) -> float:
    """Clamp raw surprise into [0, 1]. Upstream noise may overshoot either side."""
    return clip(S, 0.0, 1.0)


def compute_integrity(S: float) -> float:
    """
    Compute Integrity from raw Surprise.

    Args:
        S: Raw surprise, any real number

    Returns:
        I in [0, 1]
    """
    return 1.0 - clamp_surprise(S)
