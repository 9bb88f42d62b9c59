"""
EISV Time Series - Append-Only Per-Turn Log

PURPOSE:
Persist one row per processed turn so histories can be inspected, plotted
and replayed against the current core.

SCHEMA (stable, column order matters for previously recorded files):
    time, E, I, S, V, lambda1, coherence, void_event

The 'coherence' column carries ρ. void_event is written as 0/1; older files
that wrote True/False are still readable. The schema is versioned
independently of the formulas that fill it: replay() recomputes a recorded
history with the current core and reports where the two disagree.
"""

import csv
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import numpy as np

from eisv_core import AgentState, CoreParams, TurnInput, TurnRecord, step_turn
from src.logging_utils import get_logger

logger = get_logger(__name__)

COLUMNS = ('time', 'E', 'I', 'S', 'V', 'lambda1', 'coherence', 'void_event')

# Thread-safe lock for file operations
_log_lock = threading.Lock()


def record_to_row(record: TurnRecord) -> List:
    """Convert a TurnRecord to a CSV row in schema order."""
    return [
        record.time,
        record.E,
        record.I,
        record.S,
        record.V,
        record.lambda1,
        record.rho,
        1 if record.void_event else 0,
    ]


def _parse_bool(value: str) -> bool:
    text = value.strip().lower()
    if text in ('1', 'true', 'yes'):
        return True
    if text in ('0', 'false', 'no', ''):
        return False
    raise ValueError(f"Invalid void_event value: {value!r}")


def parse_row(row: Dict[str, str]) -> Dict:
    """
    Parse one CSV row into typed values.

    Extra columns are ignored.

    Raises:
        ValueError: if a schema column is missing or unparseable
    """
    missing = [c for c in COLUMNS if c not in row or row[c] is None]
    if missing:
        raise ValueError(f"EISV row missing column(s): {missing}")

    parsed = {name: float(row[name]) for name in COLUMNS if name != 'void_event'}
    parsed['void_event'] = _parse_bool(row['void_event'])
    return parsed


class EISVLog:
    """
    Append-only CSV writer for per-turn records.

    The header is written when the file is created (or is empty); later
    appends only add rows.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        logger.debug(f"EISVLog initialized: {self.path}")

    def rotate(self) -> Optional[Path]:
        """
        Move an existing non-empty log aside so the next append starts a new file.

        The old file is renamed to <stem>.<n><suffix> with the first free n.

        Returns:
            Path of the archived file, or None if there was nothing to rotate
        """
        with _log_lock:
            if not self.path.exists() or self.path.stat().st_size == 0:
                return None
            n = 1
            while True:
                archived = self.path.with_name(f"{self.path.stem}.{n}{self.path.suffix}")
                if not archived.exists():
                    break
                n += 1
            self.path.rename(archived)
        logger.info(f"Rotated EISV log {self.path} -> {archived}")
        return archived

    def append(self, record: TurnRecord) -> None:
        """Append a single record."""
        self.extend([record])

    def extend(self, records: Iterable[TurnRecord]) -> None:
        """Append several records under one lock acquisition."""
        rows = [record_to_row(r) for r in records]
        if not rows:
            return

        with _log_lock:
            needs_header = not self.path.exists() or self.path.stat().st_size == 0
            with open(self.path, 'a', newline='') as f:
                writer = csv.writer(f)
                if needs_header:
                    writer.writerow(COLUMNS)
                writer.writerows(rows)

    def read(self) -> List[Dict]:
        """
        Read all rows, oldest first.

        Returns:
            List of dicts keyed by schema column, floats plus a bool void_event
        """
        if not self.path.exists():
            return []

        with _log_lock:
            with open(self.path, 'r', newline='') as f:
                reader = csv.DictReader(f)
                header = reader.fieldnames or []
                missing = [c for c in COLUMNS if c not in header]
                if missing:
                    raise ValueError(f"{self.path} is not an EISV log, missing column(s): {missing}")
                return [parse_row(row) for row in reader]


@dataclass
class ReplayResult:
    """Outcome of recomputing a recorded history."""
    records: List[TurnRecord] = field(default_factory=list)
    max_V_delta: float = 0.0
    max_lambda_delta: float = 0.0
    void_mismatches: List[int] = field(default_factory=list)

    @property
    def matches(self) -> bool:
        return not self.void_mismatches and self.max_V_delta < 1e-9 and self.max_lambda_delta < 1e-9

    def to_dict(self) -> Dict:
        return {
            'turns': len(self.records),
            'max_V_delta': float(self.max_V_delta),
            'max_lambda_delta': float(self.max_lambda_delta),
            'void_mismatches': list(self.void_mismatches),
            'matches': self.matches,
        }


def replay(rows: List[Dict], params: CoreParams, state: Optional[AgentState] = None) -> ReplayResult:
    """
    Recompute a recorded history with the current core.

    Each row supplies the turn inputs (time, E, S, coherence); the recorded
    V, lambda1 and void_event are compared with the recomputed values.

    Args:
        rows: Parsed rows as returned by EISVLog.read()
        params: Core parameters to replay with
        state: Starting state (fresh state if None)

    Returns:
        ReplayResult
    """
    if state is None:
        state = AgentState.initial(params)

    result = ReplayResult()
    if not rows:
        return result

    for row in rows:
        turn = TurnInput(S=row['S'], rho=row['coherence'], E=row['E'], time=row['time'])
        state, record = step_turn(state, turn, params)
        result.records.append(record)

    recorded_V = np.array([row['V'] for row in rows], dtype=float)
    recorded_lambda = np.array([row['lambda1'] for row in rows], dtype=float)
    replayed_V = np.array([r.V for r in result.records], dtype=float)
    replayed_lambda = np.array([r.lambda1 for r in result.records], dtype=float)

    result.max_V_delta = float(np.max(np.abs(recorded_V - replayed_V)))
    result.max_lambda_delta = float(np.max(np.abs(recorded_lambda - replayed_lambda)))
    result.void_mismatches = [
        i for i, (row, rec) in enumerate(zip(rows, result.records))
        if row['void_event'] != rec.void_event
    ]

    if not result.matches:
        logger.info(
            f"Replay diverged: max|ΔV|={result.max_V_delta:.6f}, "
            f"max|Δλ₁|={result.max_lambda_delta:.6f}, "
            f"void mismatches={len(result.void_mismatches)}"
        )
    return result
