"""
EISV Turn Governance - Configuration
Concrete defaults for every decision point of the per-turn update.
"""

from dataclasses import dataclass
from typing import Dict, Optional
import numpy as np

from eisv_core import CoreParams


@dataclass
class GovernanceConfig:
    """Complete configuration for the per-turn EISV monitor"""

    # =================================================================
    # DECISION POINT 1: Void Accumulator
    # =================================================================

    # Leaky integrator decay: V = γ·V_prev + (E - I)
    # γ = 0 keeps only the current imbalance, γ → 1 approaches pure accumulation
    VOID_GAMMA = 0.85

    # =================================================================
    # DECISION POINT 2: Void Detection Threshold
    # =================================================================

    # |V| < threshold raises a void event (near-equilibrium state)
    # Exact-zero comparison is unreliable after repeated float accumulation
    VOID_THRESHOLD = 0.01

    # =================================================================
    # DECISION POINT 3: PI Controller for λ₁
    # =================================================================

    PI_KP = 0.05           # Proportional gain on void error
    PI_KI = 0.005          # Integral gain on accumulated void error
    PI_KRHO = 0.02         # Cross gain on coherence error
    PI_INTEGRAL_MAX = None  # Anti-windup limit (None = unbounded accumulator)

    # Controller reference points
    TARGET_VOID = 0.0        # Balanced E and I
    TARGET_COHERENCE = 0.85  # Minimum acceptable coherence

    # λ₁ bounds (operational range)
    LAMBDA1_MIN = 0.05
    LAMBDA1_MAX = 0.20
    LAMBDA1_INITIAL = 0.15

    # =================================================================
    # DECISION POINT 4: Energy Normalization (direct variant)
    # =================================================================

    MAX_TOKEN_NORM = 2000.0    # Token count mapped to full length load
    MAX_LATENCY_NORM = 10.0    # Seconds mapped to full latency load
    ALPHA_L = 0.5              # Length weight
    ALPHA_C = 0.5              # Latency (compute cost) weight

    # =================================================================
    # Monitoring
    # =================================================================

    DT = 1.0                   # Time advance per turn without caller timestamp
    HISTORY_WINDOW = 1000      # Keep last 1000 turns for statistics
    LAMBDA1_LOG_DELTA = 0.01   # Log λ₁ moves larger than this

    # =================================================================
    # DECISION POINT 5: λ₁ → Sampling Params Transfer Function
    # =================================================================

    @staticmethod
    def lambda_to_params(lambda1: float,
                         lambda_min: Optional[float] = None,
                         lambda_max: Optional[float] = None) -> Dict[str, float]:
        """
        Maps adaptive gain λ₁ to model sampling parameters.

        λ₁ is first normalized over its operational range [λ_min, λ_max]:
        - Low λ₁: conservative, low temperature, short responses
        - High λ₁: exploratory, higher temperature, longer responses

        Returns:
            temperature: [0.5, 1.2] - sampling randomness
            top_p: [0.85, 0.95] - nucleus sampling threshold
            max_tokens: [100, 500] - response length limit
        """
        lo = GovernanceConfig.LAMBDA1_MIN if lambda_min is None else lambda_min
        hi = GovernanceConfig.LAMBDA1_MAX if lambda_max is None else lambda_max

        span = hi - lo
        position = (lambda1 - lo) / span if span > 0 else 0.0
        position = float(np.clip(np.nan_to_num(position, nan=0.0), 0.0, 1.0))

        # Linear transfer functions
        temperature = 0.5 + 0.7 * position      # [0.5, 1.2]
        top_p = 0.85 + 0.10 * position          # [0.85, 0.95]
        max_tokens = int(100 + 400 * position)  # [100, 500]

        return {
            'temperature': temperature,
            'top_p': top_p,
            'max_tokens': max_tokens,
            'lambda1': float(lambda1)
        }


def build_core_params(overrides: Optional[Dict[str, float]] = None) -> CoreParams:
    """
    Build validated core parameters from the config constants.

    Args:
        overrides: Optional CoreParams field values that replace the defaults

    Returns:
        CoreParams instance

    Raises:
        ValueError: if the resulting parameters are inconsistent
    """
    values = {
        'gamma_V': GovernanceConfig.VOID_GAMMA,
        'void_threshold': GovernanceConfig.VOID_THRESHOLD,
        'lambda_min': GovernanceConfig.LAMBDA1_MIN,
        'lambda_max': GovernanceConfig.LAMBDA1_MAX,
        'lambda_initial': GovernanceConfig.LAMBDA1_INITIAL,
        'k_p': GovernanceConfig.PI_KP,
        'k_i': GovernanceConfig.PI_KI,
        'k_rho': GovernanceConfig.PI_KRHO,
        'V_target': GovernanceConfig.TARGET_VOID,
        'rho_target': GovernanceConfig.TARGET_COHERENCE,
        'integral_max': GovernanceConfig.PI_INTEGRAL_MAX,
        'max_token_norm': GovernanceConfig.MAX_TOKEN_NORM,
        'max_latency_norm': GovernanceConfig.MAX_LATENCY_NORM,
        'alpha_L': GovernanceConfig.ALPHA_L,
        'alpha_C': GovernanceConfig.ALPHA_C,
        'dt': GovernanceConfig.DT,
    }
    if overrides:
        unknown = set(overrides) - set(values)
        if unknown:
            raise ValueError(f"Unknown core parameter(s): {sorted(unknown)}")
        values.update(overrides)

    return CoreParams(**values).validate()


# Export singleton config
config = GovernanceConfig()
