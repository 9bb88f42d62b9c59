"""
Tests for src/governance_monitor.py - TurnMonitor.

The monitor is the State Holder for one agent: it owns the AgentState,
keeps capped histories and forwards each record to its sink.
"""

import csv
import io
import json

import pytest

from config.governance_config import GovernanceConfig
from eisv_core import CoreParams
from src.governance_monitor import MonitorHistory, TurnMonitor
from src.runtime_config import set_thresholds


class ListSink:
    def __init__(self):
        self.records = []

    def append(self, record):
        self.records.append(record)


class TestTurnMonitorInit:

    def test_fresh_state(self):
        monitor = TurnMonitor("agent-1")
        assert monitor.state.lambda1 == 0.15
        assert monitor.state.I == 1.0
        assert monitor.state.update_count == 0
        assert len(monitor.history) == 0

    def test_explicit_params(self):
        monitor = TurnMonitor("agent-1", params=CoreParams(gamma_V=0.5))
        assert monitor.params.gamma_V == 0.5

    def test_invalid_params_rejected(self):
        with pytest.raises(ValueError):
            TurnMonitor("agent-1", params=CoreParams(gamma_V=1.5))

    def test_runtime_overrides_snapshotted_at_creation(self):
        set_thresholds({'void_threshold': 0.05})
        monitor = TurnMonitor("agent-1")
        set_thresholds({'void_threshold': 0.2})
        assert monitor.params.void_threshold == 0.05
        assert TurnMonitor("agent-2").params.void_threshold == 0.2


class TestProcessTurn:

    def test_result_shape(self):
        monitor = TurnMonitor("agent-1")
        result = monitor.process_turn(S=0.1, rho=0.9, E=0.5)
        assert result['agent_id'] == "agent-1"
        assert result['status'] == 'tracking'
        assert result['metrics']['I'] == pytest.approx(0.9)
        assert result['metrics']['updates'] == 1
        assert set(result['sampling_params']) == {'temperature', 'top_p', 'max_tokens', 'lambda1'}

    def test_void_status(self):
        monitor = TurnMonitor("agent-1")
        result = monitor.process_turn(S=0.5, rho=0.85, E=0.5)
        assert result['status'] == 'void'
        assert result['metrics']['void_event'] is True

    def test_state_carries_across_turns(self):
        monitor = TurnMonitor("agent-1")
        monitor.process_turn(S=0.1, rho=0.9, E=0.6)
        monitor.process_turn(S=0.1, rho=0.9, E=0.6)
        assert monitor.state.V == pytest.approx(0.85 * -0.3 - 0.3)
        assert monitor.state.V_prev == pytest.approx(-0.3)

    def test_direct_energy_variant(self):
        monitor = TurnMonitor("agent-1")
        result = monitor.process_turn(S=0.0, rho=1.0, token_len=2000, latency=10.0)
        assert result['metrics']['E'] == pytest.approx(1.0)

    def test_missing_energy_raises(self):
        monitor = TurnMonitor("agent-1")
        with pytest.raises(ValueError):
            monitor.process_turn(S=0.0, rho=1.0)
        assert monitor.state.update_count == 0

    def test_records_forwarded_to_sink(self):
        sink = ListSink()
        monitor = TurnMonitor("agent-1", sink=sink)
        for _ in range(3):
            monitor.process_turn(S=0.2, rho=0.9, E=0.4)
        assert len(sink.records) == 3
        assert sink.records[-1].V == monitor.state.V

    def test_lambda_move_is_logged(self, caplog):
        monitor = TurnMonitor("agent-1")
        with caplog.at_level("INFO", logger="eisv"):
            for _ in range(5):
                monitor.process_turn(S=0.1, rho=0.9, E=0.6)
        assert any("λ₁ for agent-1" in r.getMessage() for r in caplog.records)

    def test_non_finite_input_is_logged(self, caplog):
        monitor = TurnMonitor("agent-1")
        with caplog.at_level("WARNING", logger="eisv"):
            monitor.process_turn(S=float('nan'), rho=0.9, E=0.5)
        assert any("Non-finite input" in r.getMessage() for r in caplog.records)

    def test_history_is_capped(self, monkeypatch):
        monkeypatch.setattr(GovernanceConfig, "HISTORY_WINDOW", 5)
        monitor = TurnMonitor("agent-1")
        for _ in range(12):
            monitor.process_turn(S=0.2, rho=0.9, E=0.4)
        assert len(monitor.history) == 5
        assert len(monitor.history.timestamp_history) == 5
        assert monitor.history.time_history == [8.0, 9.0, 10.0, 11.0, 12.0]
        assert monitor.state.update_count == 12


class TestMetricsAndExport:

    def test_metrics_without_history(self):
        metrics = TurnMonitor("agent-1").get_metrics()
        assert metrics['history_size'] == 0
        assert metrics['void_event_rate'] == 0.0

    def test_metrics_summary(self):
        monitor = TurnMonitor("agent-1")
        monitor.process_turn(S=0.5, rho=0.85, E=0.5)   # void
        monitor.process_turn(S=0.1, rho=0.85, E=0.6)   # not void
        metrics = monitor.get_metrics()
        assert metrics['history_size'] == 2
        assert metrics['void_event_rate'] == pytest.approx(0.5)
        assert metrics['max_abs_V'] == pytest.approx(0.3)
        assert metrics['current']['update_count'] == 2

    def test_lambda_saturation_counts(self):
        monitor = TurnMonitor("agent-1")
        for _ in range(30):
            monitor.process_turn(S=0.1, rho=0.9, E=0.6)
        metrics = monitor.get_metrics()
        assert metrics['lambda1_at_max'] > 0
        assert metrics['lambda1_at_min'] == 0

    def test_export_json(self):
        monitor = TurnMonitor("agent-1")
        monitor.process_turn(S=0.2, rho=0.9, E=0.4)
        data = json.loads(monitor.export_history('json'))
        assert data['agent_id'] == "agent-1"
        assert data['total_updates'] == 1
        assert len(data['V_history']) == 1

    def test_export_csv_uses_stable_columns(self):
        monitor = TurnMonitor("agent-1")
        monitor.process_turn(S=0.5, rho=0.85, E=0.5)
        monitor.process_turn(S=0.2, rho=0.9, E=0.4)
        rows = list(csv.reader(io.StringIO(monitor.export_history('csv'))))
        assert rows[0] == ['time', 'E', 'I', 'S', 'V', 'lambda1', 'coherence', 'void_event']
        assert len(rows) == 3
        assert rows[1][-1] == '1'
        assert rows[2][-1] == '0'

    def test_export_unknown_format(self):
        with pytest.raises(ValueError):
            TurnMonitor("agent-1").export_history('xml')


class TestMonitorHistory:

    def test_empty(self):
        assert len(MonitorHistory()) == 0
