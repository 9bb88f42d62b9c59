"""
EISV Governance Core - Agent State

The per-agent state record carried from one turn to the next.

One AgentState exists per monitored agent. It is created with the defaults
below when the agent is first observed, replaced exactly once per turn by
step_turn(), and dropped when monitoring for the agent ends.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Tuple

from .parameters import CoreParams, DEFAULT_PARAMS
from .utils import clip, is_finite


@dataclass(frozen=True)
class AgentState:
    """
    Per-Agent EISV State

    Attributes:
        E: Energy of the last turn [0, 1] (logged, not fed back)
        S: Surprise of the last turn, clamped to [0, 1]
        I: Integrity of the last turn [0, 1]
        V: Void accumulator after the last turn
        V_prev: Void accumulator before the last turn
        rho: Coherence signal of the last turn
        lambda1: Adaptive gain, kept within [lambda_min, lambda_max]
        integral_error_V: Running sum of void tracking errors
        time: Time stamp of the last turn
        update_count: Number of turns processed
    """
    E: float = 0.0
    S: float = 0.0
    I: float = 1.0
    V: float = 0.0
    V_prev: float = 0.0
    rho: float = 1.0
    lambda1: float = 0.15
    integral_error_V: float = 0.0
    time: float = 0.0
    update_count: int = 0

    @classmethod
    def initial(cls, params: Optional[CoreParams] = None) -> "AgentState":
        """Fresh state for a newly observed agent."""
        params = params or DEFAULT_PARAMS
        return cls(lambda1=clip(params.lambda_initial, params.lambda_min, params.lambda_max))

    def to_dict(self) -> Dict[str, float]:
        """Convert state to dictionary"""
        data = asdict(self)
        data['update_count'] = int(self.update_count)
        return data

    def validate(self, params: Optional[CoreParams] = None) -> Tuple[bool, List[str]]:
        """
        Check the state against the core invariants.

        Never raises: callers that want stricter input handling decide
        what to do with the returned errors.

        Returns:
            (is_valid, errors)
        """
        params = params or DEFAULT_PARAMS
        errors = []

        for name in ('E', 'S', 'I', 'V', 'V_prev', 'rho', 'lambda1', 'integral_error_V'):
            value = getattr(self, name)
            if not is_finite(value):
                errors.append(f"{name} is NaN or Inf: {value}")

        if is_finite(self.I) and not (0.0 <= self.I <= 1.0):
            errors.append(f"I out of bounds: {self.I} (expected [0, 1])")
        if is_finite(self.S) and not (0.0 <= self.S <= 1.0):
            errors.append(f"S out of bounds: {self.S} (expected [0, 1])")
        if is_finite(self.lambda1) and not (params.lambda_min <= self.lambda1 <= params.lambda_max):
            errors.append(
                f"lambda1 out of bounds: {self.lambda1} "
                f"(expected [{params.lambda_min}, {params.lambda_max}])"
            )

        return len(errors) == 0, errors


# Default initial state
DEFAULT_STATE = AgentState()
