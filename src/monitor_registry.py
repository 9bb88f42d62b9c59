"""
Monitor Registry

Explicit map from agent identifier to its TurnMonitor.

Each agent has its own monitor and its own lock. Turns for one agent are
processed strictly one after another (turn N+1 sees the state written by
turn N); different agents never share state and can be processed in
parallel.

Usage:
    registry = MonitorRegistry(log_dir=Path("data/eisv"))
    result = registry.process_turn("agent-123", S=0.1, rho=0.9, E=0.4)
    registry.remove("agent-123")
"""

import re
import threading
from pathlib import Path
from typing import Dict, List, Optional

from eisv_core import CoreParams
from src.eisv_log import EISVLog
from src.governance_monitor import TurnMonitor
from src.logging_utils import get_logger

logger = get_logger(__name__)

_SAFE_ID = re.compile(r'[^A-Za-z0-9_.-]')


class MonitorRegistry:
    """Owns one TurnMonitor and one lock per monitored agent."""

    def __init__(self, log_dir: Optional[Path] = None, params: Optional[CoreParams] = None):
        """
        Args:
            log_dir: Directory for per-agent EISV logs (no logging if None)
            params: Core parameters for every new monitor
                    (config constants plus runtime overrides if None)
        """
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self.params = params
        self._monitors: Dict[str, TurnMonitor] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def log_path(self, agent_id: str) -> Optional[Path]:
        """Per-agent CSV path, or None when logging is disabled."""
        if self.log_dir is None:
            return None
        return self.log_dir / f"{_SAFE_ID.sub('_', agent_id)}_eisv.csv"

    def create(self, agent_id: str) -> TurnMonitor:
        """
        Start monitoring an agent.

        Raises:
            ValueError: if the agent is already monitored
        """
        with self._registry_lock:
            if agent_id in self._monitors:
                raise ValueError(f"Agent '{agent_id}' is already monitored")
            return self._create_locked(agent_id)

    def _create_locked(self, agent_id: str) -> TurnMonitor:
        path = self.log_path(agent_id)
        sink = None
        if path is not None:
            # Each lifecycle gets its own file; a previous one is archived
            sink = EISVLog(path)
            sink.rotate()
        monitor = TurnMonitor(agent_id, params=self.params, sink=sink)
        self._monitors[agent_id] = monitor
        self._locks[agent_id] = threading.Lock()
        return monitor

    def get(self, agent_id: str) -> TurnMonitor:
        """
        Raises:
            KeyError: if the agent is not monitored
        """
        with self._registry_lock:
            return self._monitors[agent_id]

    def get_or_create(self, agent_id: str) -> TurnMonitor:
        """Get existing monitor or create a new one"""
        with self._registry_lock:
            if agent_id in self._monitors:
                return self._monitors[agent_id]
            return self._create_locked(agent_id)

    def remove(self, agent_id: str) -> TurnMonitor:
        """
        Stop monitoring an agent and drop its state.

        Waits for an in-flight turn of that agent to finish.

        Raises:
            KeyError: if the agent is not monitored
        """
        with self._registry_lock:
            lock = self._locks[agent_id]
        with lock:
            with self._registry_lock:
                self._locks.pop(agent_id, None)
                monitor = self._monitors.pop(agent_id)
        logger.info(f"Stopped monitoring {agent_id} after {monitor.state.update_count} turns")
        return monitor

    def agent_ids(self) -> List[str]:
        with self._registry_lock:
            return sorted(self._monitors)

    def __contains__(self, agent_id: str) -> bool:
        with self._registry_lock:
            return agent_id in self._monitors

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._monitors)

    def process_turn(self, agent_id: str, **turn) -> Dict:
        """
        Process one turn for an agent, creating its monitor on first sight.

        Args:
            agent_id: Agent identifier
            **turn: Keyword arguments of TurnMonitor.process_turn

        Returns:
            Result dict of TurnMonitor.process_turn
        """
        with self._registry_lock:
            monitor = self._monitors.get(agent_id)
            if monitor is None:
                monitor = self._create_locked(agent_id)
            lock = self._locks[agent_id]

        with lock:
            return monitor.process_turn(**turn)
