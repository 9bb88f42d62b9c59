"""
EISV Governance Core - Utility Functions

Helper functions for per-turn computations.
"""

import math


def clip(x: float, lo: float, hi: float) -> float:
    """
    Clip value to range [lo, hi].

    NaN is returned unchanged so that non-finite inputs stay visible
    downstream instead of being silently mapped onto a bound.

    Args:
        x: Value to clip
        lo: Lower bound
        hi: Upper bound

    Returns:
        Clipped value in [lo, hi]
    """
    if x != x:
        return x
    return max(lo, min(hi, x))


def is_finite(*values: float) -> bool:
    """Return True when every value is a finite real number."""
    return all(math.isfinite(v) for v in values)
