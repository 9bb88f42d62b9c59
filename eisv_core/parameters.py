"""
EISV Governance Core - Parameter Definitions

Canonical parameter definitions for the per-turn EISV update.

This is the single source of truth for the core's default constants.
Parameters are fixed when a monitor is created and never mutated mid-run.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CoreParams:
    """
    Per-turn EISV Update Parameters

    These parameters control the Void accumulator, the λ₁ PI controller,
    the void detector and the direct Energy variant.
    """

    # V dynamics (leaky integrator)
    gamma_V: float = 0.85          # Void decay factor, must lie in [0, 1)

    # Void detection
    void_threshold: float = 0.01   # |V| below this raises a void event

    # λ₁ bounds (operational range)
    lambda_min: float = 0.05
    lambda_max: float = 0.20
    lambda_initial: float = 0.15

    # PI controller gains
    k_p: float = 0.05              # Proportional gain on e_V
    k_i: float = 0.005             # Integral gain on accumulated e_V
    k_rho: float = 0.02            # Cross gain on coherence error e_ρ

    # Controller reference points
    V_target: float = 0.0          # Void setpoint (balanced E and I)
    rho_target: float = 0.85       # Minimum acceptable coherence

    # Integral wind-up protection (None = unbounded accumulator)
    integral_max: Optional[float] = None

    # Energy normalization (direct variant)
    max_token_norm: float = 2000.0
    max_latency_norm: float = 10.0
    alpha_L: float = 0.5           # Weight of normalized token length
    alpha_C: float = 0.5           # Weight of normalized latency (compute cost)

    # Time axis advance per turn when the caller supplies no timestamp
    dt: float = 1.0

    def validate(self) -> "CoreParams":
        """
        Check parameter consistency.

        Returns:
            self, so construction can be chained

        Raises:
            ValueError: if any parameter is outside its admissible range
        """
        if not (0.0 <= self.gamma_V < 1.0):
            raise ValueError(f"gamma_V must lie in [0, 1), got {self.gamma_V}")
        if self.void_threshold < 0.0:
            raise ValueError(f"void_threshold must be >= 0, got {self.void_threshold}")
        if self.lambda_min > self.lambda_max:
            raise ValueError(
                f"lambda_min ({self.lambda_min}) must be <= lambda_max ({self.lambda_max})"
            )
        if self.integral_max is not None and self.integral_max < 0.0:
            raise ValueError(f"integral_max must be >= 0, got {self.integral_max}")
        if self.max_token_norm <= 0.0 or self.max_latency_norm <= 0.0:
            raise ValueError("Energy normalization constants must be > 0")
        if self.dt <= 0.0:
            raise ValueError(f"dt must be > 0, got {self.dt}")
        return self


# Default configuration
DEFAULT_PARAMS: CoreParams = CoreParams()
