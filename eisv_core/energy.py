"""
EISV Governance Core - Energy (direct variant)

Energy measures the load of a turn from its token length and latency:

    E = clip(α_L · n(token_len / max_token_norm) + α_C · n(latency / max_latency_norm), 0, 1)

where n() clips each normalized component to [0, 1]. Callers that already
have an Energy value skip this module and pass E directly.
"""

from .parameters import CoreParams, DEFAULT_PARAMS
from .utils import clip


def compute_energy(token_len: float, latency: float, params: CoreParams = DEFAULT_PARAMS) -> float:
    """
    Compute normalized Energy for one turn.

    Args:
        token_len: Token count of the turn (negative counts contribute nothing)
        latency: Latency of the turn in seconds
        params: Core parameters (normalization constants and weights)

    Returns:
        E in [0, 1]
    """
    length_load = clip(token_len / params.max_token_norm, 0.0, 1.0)
    latency_load = clip(latency / params.max_latency_norm, 0.0, 1.0)

    return clip(params.alpha_L * length_load + params.alpha_C * latency_load, 0.0, 1.0)
