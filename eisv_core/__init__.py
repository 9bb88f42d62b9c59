"""
EISV Governance Core - Per-Turn Scoring

This module contains the canonical implementation of the per-turn EISV
update: Energy, Surprise, Integrity and Void, the adaptive gain λ₁ and the
void-event flag. Everything here is pure arithmetic over an explicit
per-agent state record; monitoring, storage and configuration live in
src/ and config/.

Version: 3.0
Status: Active
"""

from .parameters import (
    CoreParams,
    DEFAULT_PARAMS,
)

from .state import (
    AgentState,
    DEFAULT_STATE,
)

from .energy import compute_energy

from .integrity import (
    clamp_surprise,
    compute_integrity,
)

from .void import (
    update_void,
    void_steady_state_bound,
    detect_void,
)

from .lambda_controller import (
    compute_errors,
    update_lambda,
)

from .dynamics import (
    TurnInput,
    TurnRecord,
    step_turn,
)

from .utils import (
    clip,
    is_finite,
)

__all__ = [
    # State and parameters
    'AgentState',
    'CoreParams',
    'DEFAULT_PARAMS',
    'DEFAULT_STATE',

    # Sub-calculations
    'compute_energy',
    'clamp_surprise',
    'compute_integrity',
    'update_void',
    'void_steady_state_bound',
    'detect_void',
    'compute_errors',
    'update_lambda',

    # Turn update
    'TurnInput',
    'TurnRecord',
    'step_turn',

    # Utilities
    'clip',
    'is_finite',
]

__version__ = '3.0.0'
