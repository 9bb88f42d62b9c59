"""
EISV Governance Core - λ₁ Controller

Discrete PI controller with a coherence cross-term and hard output clamp:

    integral' = integral + e_V
    λ_uncapped = λ_prev + k_p·e_V + k_i·integral' + k_ρ·e_ρ
    λ = clip(λ_uncapped, λ_min, λ_max)

The clamp is always the last step. The integral accumulator itself is only
bounded when an explicit integral_max is supplied; by default it is left
unbounded, so a long one-sided error can wind it up while λ sits on a rail.
"""

from typing import Optional, Tuple

from .parameters import CoreParams
from .utils import clip


def compute_errors(V: float, rho: float, params: CoreParams) -> Tuple[float, float]:
    """
    Tracking errors fed into the λ₁ controller.

    Args:
        V: Void value after this turn's update
        rho: Coherence signal of this turn
        params: Core parameters (for V_target and rho_target)

    Returns:
        (e_V, e_rho) with e_V = V_target - V and e_rho = rho - rho_target
    """
    e_V = params.V_target - V
    e_rho = rho - params.rho_target
    return e_V, e_rho


def update_lambda(
    e_V: float,
    e_rho: float,
    lambda_prev: float,
    k_p: float,
    k_i: float,
    k_rho: float,
    integral_error_V: float,
    lambda_min: float,
    lambda_max: float,
    *,
    integral_max: Optional[float] = None,
) -> Tuple[float, float]:
    """
    One PI update of λ₁.

    Args:
        e_V: Void tracking error
        e_rho: Coherence tracking error
        lambda_prev: λ₁ from the previous turn
        k_p: Proportional gain
        k_i: Integral gain
        k_rho: Cross gain on e_rho
        integral_error_V: Accumulated e_V before this turn
        lambda_min: Lower clamp bound
        lambda_max: Upper clamp bound
        integral_max: Optional anti-windup limit on the accumulator

    Returns:
        (new λ₁, new integral_error_V)

    Notes:
        Non-finite inputs are not sanitized; a NaN error term yields a NaN λ₁.
    """
    integral = integral_error_V + e_V
    if integral_max is not None:
        integral = clip(integral, -integral_max, integral_max)

    lambda_uncapped = lambda_prev + k_p * e_V + k_i * integral + k_rho * e_rho

    return clip(lambda_uncapped, lambda_min, lambda_max), integral
