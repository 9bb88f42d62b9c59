"""
EISV Governance Core - Void Accumulator and Detector

The void V is a leaky integral of the Energy/Integrity imbalance:

    V_t = γ · V_{t-1} + (E_t - I_t),   0 <= γ < 1

For a forcing sequence with |E - I| <= M the accumulator settles inside
|V| <= M / (1 - γ), and recent imbalances outweigh old ones, so V recovers
after a transient shock instead of drifting.

A void event is a near-equilibrium state: |V| < threshold. Detection is a
pure function of the current V; consecutive turns each report their own event.
"""


def update_void(E: float, I: float, V_prev: float, gamma: float) -> float:
    """
    Advance the void accumulator by one turn.

    The accumulator holds no state of its own: the caller stores the
    returned value and feeds it back as V_prev on the next turn.

    Args:
        E: Energy of the current turn
        I: Integrity of the current turn
        V_prev: Void value from the preceding turn
        gamma: Decay factor in [0, 1)

    Returns:
        New void value
    """
    return gamma * V_prev + (E - I)


def void_steady_state_bound(max_imbalance: float, gamma: float) -> float:
    """
    Upper bound on limsup |V| for a forcing bounded by max_imbalance.

    Args:
        max_imbalance: M, with |E - I| <= M on every turn
        gamma: Decay factor in [0, 1)

    Returns:
        M / (1 - γ)
    """
    return abs(max_imbalance) / (1.0 - gamma)


def detect_void(V: float, threshold: float) -> bool:
    """Return True iff |V| < threshold."""
    return bool(abs(V) < threshold)
