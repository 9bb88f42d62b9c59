"""
EISV Governance Core - Turn Update

Canonical per-turn update. Given the previous AgentState and the raw inputs
of one turn, derive the new state and the record handed to storage:

    E  = supplied, or compute_energy(token_len, latency)
    S  = clip(S_raw, 0, 1)
    I  = 1 - S
    V  = γ · V_prev + (E - I)
    λ₁ = clip(λ_prev + k_p·e_V + k_i·Σe_V + k_ρ·e_ρ, λ_min, λ_max)
    void_event = |V| < void_threshold

where:
    e_V = V_target - V
    e_ρ = ρ - ρ_target

The function is pure: the incoming state is never mutated, which keeps
replays of recorded histories exact.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from .parameters import CoreParams, DEFAULT_PARAMS
from .state import AgentState
from .energy import compute_energy
from .utils import clip
from .integrity import clamp_surprise, compute_integrity
from .void import update_void, detect_void
from .lambda_controller import compute_errors, update_lambda


@dataclass(frozen=True)
class TurnInput:
    """
    Raw inputs of one observed turn.

    Either E is given, or both token_len and latency are given and
    Energy is computed with the direct variant.
    """
    S: float
    rho: float
    E: Optional[float] = None
    token_len: Optional[float] = None
    latency: Optional[float] = None
    time: Optional[float] = None

    def energy(self, params: CoreParams) -> float:
        """Resolve Energy for this turn. A precomputed E is clipped to [0, 1]."""
        if self.E is not None:
            return clip(float(self.E), 0.0, 1.0)
        if self.token_len is None or self.latency is None:
            raise ValueError("TurnInput needs E, or both token_len and latency")
        return compute_energy(self.token_len, self.latency, params)


@dataclass(frozen=True)
class TurnRecord:
    """One row of the per-turn time series."""
    time: float
    E: float
    I: float
    S: float
    V: float
    lambda1: float
    rho: float
    void_event: bool

    def to_dict(self) -> Dict:
        return {
            'time': float(self.time),
            'E': float(self.E),
            'I': float(self.I),
            'S': float(self.S),
            'V': float(self.V),
            'lambda1': float(self.lambda1),
            'rho': float(self.rho),
            'void_event': bool(self.void_event),
        }


def step_turn(
    state: AgentState,
    turn: TurnInput,
    params: Optional[CoreParams] = None,
) -> Tuple[AgentState, TurnRecord]:
    """
    Process one turn for one agent.

    Args:
        state: State after the previous turn
        turn: Raw inputs of this turn
        params: Core parameters (uses DEFAULT_PARAMS if None)

    Returns:
        (new state, record for storage)

    Raises:
        ValueError: if the turn carries neither E nor token_len/latency
    """
    if params is None:
        params = DEFAULT_PARAMS

    E = turn.energy(params)
    S = clamp_surprise(turn.S)
    I = compute_integrity(S)

    V = update_void(E, I, state.V, params.gamma_V)

    e_V, e_rho = compute_errors(V, turn.rho, params)
    lambda1, integral = update_lambda(
        e_V=e_V,
        e_rho=e_rho,
        lambda_prev=state.lambda1,
        k_p=params.k_p,
        k_i=params.k_i,
        k_rho=params.k_rho,
        integral_error_V=state.integral_error_V,
        lambda_min=params.lambda_min,
        lambda_max=params.lambda_max,
        integral_max=params.integral_max,
    )

    void_event = detect_void(V, params.void_threshold)
    time = float(turn.time) if turn.time is not None else state.time + params.dt

    new_state = replace(
        state,
        E=E,
        S=S,
        I=I,
        V=V,
        V_prev=state.V,
        rho=float(turn.rho),
        lambda1=lambda1,
        integral_error_V=integral,
        time=time,
        update_count=state.update_count + 1,
    )
    record = TurnRecord(
        time=time,
        E=E,
        I=I,
        S=S,
        V=V,
        lambda1=lambda1,
        rho=float(turn.rho),
        void_event=void_event,
    )
    return new_state, record
