"""
EISV Turn Monitor - Core Implementation
Per-agent governance monitor built on the eisv_core per-turn update.

One TurnMonitor owns the AgentState of exactly one agent. It feeds each
observed turn through eisv_core.step_turn(), keeps capped histories for
summaries and export, and hands every record to an optional sink
(normally an EISVLog).

Version History:
- v2.0: Euler-integrated E/I/S/V dynamics, void-frequency PI controller
- v3.0: Direct Integrity, leaky Void accumulator, clamped PI λ₁ with cross-term
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from datetime import datetime
import csv
import io
import json

from config.governance_config import config, build_core_params
from eisv_core import (
    AgentState, CoreParams, TurnInput, TurnRecord,
    step_turn, is_finite,
)
from src.eisv_log import COLUMNS
from src.logging_utils import get_logger
from src.runtime_config import get_thresholds

logger = get_logger(__name__)


@dataclass
class MonitorHistory:
    """Capped per-turn histories kept alongside the AgentState"""

    time_history: List[float] = field(default_factory=list)
    E_history: List[float] = field(default_factory=list)
    I_history: List[float] = field(default_factory=list)
    S_history: List[float] = field(default_factory=list)
    V_history: List[float] = field(default_factory=list)
    lambda1_history: List[float] = field(default_factory=list)
    rho_history: List[float] = field(default_factory=list)
    void_event_history: List[bool] = field(default_factory=list)
    timestamp_history: List[str] = field(default_factory=list)

    def append(self, record: TurnRecord, window: int) -> None:
        self.time_history.append(float(record.time))
        self.E_history.append(float(record.E))
        self.I_history.append(float(record.I))
        self.S_history.append(float(record.S))
        self.V_history.append(float(record.V))
        self.lambda1_history.append(float(record.lambda1))
        self.rho_history.append(float(record.rho))
        self.void_event_history.append(bool(record.void_event))
        self.timestamp_history.append(datetime.now().isoformat())

        if len(self.V_history) > window:
            for name in self.__dataclass_fields__:
                setattr(self, name, getattr(self, name)[-window:])

    def __len__(self) -> int:
        return len(self.V_history)


def params_from_runtime() -> CoreParams:
    """Core parameters from config constants plus current runtime overrides."""
    return build_core_params(get_thresholds())


class TurnMonitor:
    """
    EISV Turn Monitor

    Implements per-turn governance scoring for one agent:
    - Direct Integrity from Surprise
    - Leaky Void accumulator
    - Adaptive λ₁ via clamped PI controller
    - Void event detection
    """

    def __init__(self, agent_id: str, params: Optional[CoreParams] = None, sink=None):
        """
        Initialize monitor for a specific agent

        Args:
            agent_id: Unique identifier for the agent
            params: Core parameters, fixed for the monitor's lifetime.
                    Defaults to config constants plus runtime overrides.
            sink: Optional object with an append(TurnRecord) method
        """
        self.agent_id = agent_id
        self.params = (params or params_from_runtime()).validate()
        self.state = AgentState.initial(self.params)
        self.history = MonitorHistory()
        self.sink = sink

        self.created_at = datetime.now()
        self.last_update = self.created_at

        logger.info(
            f"Initialized monitor for agent: {agent_id} "
            f"(λ₁={self.state.lambda1:.4f}, γ={self.params.gamma_V}, "
            f"void threshold={self.params.void_threshold})"
        )

    def process_turn(self,
                     S: float,
                     rho: float,
                     E: Optional[float] = None,
                     token_len: Optional[float] = None,
                     latency: Optional[float] = None,
                     time: Optional[float] = None) -> Dict:
        """
        Complete governance cycle for one turn: Integrity → Void → λ₁ → void event

        Args:
            S: Raw surprise of the turn
            rho: Coherence signal of the turn
            E: Precomputed Energy (takes precedence over token_len/latency)
            token_len: Token length, for the direct Energy variant
            latency: Latency in seconds, for the direct Energy variant
            time: Time stamp of the turn (defaults to previous time + dt)

        Returns:
        {
            'agent_id': str,
            'status': 'void' | 'tracking',
            'metrics': {...},
            'sampling_params': {...}
        }

        Raises:
            ValueError: if neither E nor token_len/latency is supplied
        """
        turn = TurnInput(S=S, rho=rho, E=E, token_len=token_len, latency=latency, time=time)

        raw = [v for v in (S, rho, E, token_len, latency) if v is not None]
        if not is_finite(*raw):
            logger.warning(f"Non-finite input for {self.agent_id}: {turn}")

        lambda1_prev = self.state.lambda1
        self.state, record = step_turn(self.state, turn, self.params)
        self.last_update = datetime.now()

        self.history.append(record, config.HISTORY_WINDOW)
        if self.sink is not None:
            self.sink.append(record)

        if abs(record.lambda1 - lambda1_prev) > config.LAMBDA1_LOG_DELTA:
            logger.info(
                f"λ₁ for {self.agent_id}: {lambda1_prev:.4f} → {record.lambda1:.4f} "
                f"(V={record.V:.4f}, ρ={record.rho:.3f})"
            )
        if record.void_event:
            logger.debug(f"Void event for {self.agent_id} at t={record.time} (|V|={abs(record.V):.5f})")

        metrics = record.to_dict()
        metrics['updates'] = int(self.state.update_count)
        metrics['integral_error_V'] = float(self.state.integral_error_V)

        return {
            'agent_id': self.agent_id,
            'status': 'void' if record.void_event else 'tracking',
            'metrics': metrics,
            'sampling_params': config.lambda_to_params(
                record.lambda1, self.params.lambda_min, self.params.lambda_max
            ),
        }

    def get_metrics(self) -> Dict:
        """Returns current governance metrics"""
        metrics = {
            'agent_id': self.agent_id,
            'current': self.state.to_dict(),
            'history_size': len(self.history),
            'created_at': self.created_at.isoformat(),
            'last_update': self.last_update.isoformat(),
        }

        if not len(self.history):
            metrics.update({
                'void_event_rate': 0.0,
                'mean_abs_V': 0.0,
                'max_abs_V': 0.0,
                'lambda1_at_min': 0,
                'lambda1_at_max': 0,
            })
            return metrics

        abs_V = np.abs(np.array(self.history.V_history, dtype=float))
        lambdas = np.array(self.history.lambda1_history, dtype=float)

        metrics.update({
            'void_event_rate': float(np.mean(self.history.void_event_history)),
            'mean_abs_V': float(np.mean(abs_V)),
            'max_abs_V': float(np.max(abs_V)),
            'lambda1_at_min': int(np.sum(np.isclose(lambdas, self.params.lambda_min))),
            'lambda1_at_max': int(np.sum(np.isclose(lambdas, self.params.lambda_max))),
        })
        return metrics

    def export_history(self, format: str = 'json') -> str:
        """
        Exports complete history for analysis

        Raises:
            ValueError: for an unsupported format
        """
        h = self.history
        if format == 'json':
            return json.dumps({
                'agent_id': self.agent_id,
                'timestamps': h.timestamp_history,
                'time_history': h.time_history,
                'E_history': h.E_history,
                'I_history': h.I_history,
                'S_history': h.S_history,
                'V_history': h.V_history,
                'lambda1_history': h.lambda1_history,
                'rho_history': h.rho_history,
                'void_event_history': h.void_event_history,
                'lambda1_final': float(self.state.lambda1),
                'total_updates': int(self.state.update_count),
                'total_time': float(self.state.time),
            }, indent=2)
        elif format == 'csv':
            output = io.StringIO()
            writer = csv.writer(output)
            writer.writerow(COLUMNS)
            for i in range(len(h)):
                writer.writerow([
                    h.time_history[i],
                    h.E_history[i],
                    h.I_history[i],
                    h.S_history[i],
                    h.V_history[i],
                    h.lambda1_history[i],
                    h.rho_history[i],
                    1 if h.void_event_history[i] else 0,
                ])
            return output.getvalue()
        else:
            raise ValueError(f"Unsupported format: {format}")
