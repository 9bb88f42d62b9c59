"""
Tests for src/eisv_log.py - stable-schema CSV time series and replay.
"""

import csv

import pytest

from eisv_core import AgentState, CoreParams, TurnInput, TurnRecord, step_turn
from src.eisv_log import COLUMNS, EISVLog, parse_row, record_to_row, replay
from src.governance_monitor import TurnMonitor


def _record(**overrides):
    values = dict(time=1.0, E=0.5, I=0.9, S=0.1, V=-0.4, lambda1=0.15, rho=0.9, void_event=False)
    values.update(overrides)
    return TurnRecord(**values)


class TestSchema:

    def test_column_order(self):
        assert COLUMNS == ('time', 'E', 'I', 'S', 'V', 'lambda1', 'coherence', 'void_event')

    def test_record_to_row(self):
        row = record_to_row(_record(void_event=True))
        assert row == [1.0, 0.5, 0.9, 0.1, -0.4, 0.15, 0.9, 1]

    def test_parse_row_accepts_legacy_booleans(self):
        row = {c: '0.5' for c in COLUMNS}
        row['void_event'] = 'True'
        assert parse_row(row)['void_event'] is True
        row['void_event'] = 'False'
        assert parse_row(row)['void_event'] is False

    def test_parse_row_ignores_extra_columns(self):
        row = {c: '0.5' for c in COLUMNS}
        row['void_event'] = '0'
        row['regime'] = 'stable'
        assert 'regime' not in parse_row(row)

    def test_parse_row_missing_column(self):
        row = {c: '0.5' for c in COLUMNS if c != 'V'}
        with pytest.raises(ValueError, match="missing"):
            parse_row(row)

    def test_parse_row_bad_flag(self):
        row = {c: '0.5' for c in COLUMNS}
        with pytest.raises(ValueError):
            parse_row(row)


class TestEISVLog:

    def test_header_written_once(self, eisv_log_path):
        log = EISVLog(eisv_log_path)
        log.append(_record(time=1.0))
        log.append(_record(time=2.0))
        with open(eisv_log_path, newline='') as f:
            rows = list(csv.reader(f))
        assert rows[0] == list(COLUMNS)
        assert len(rows) == 3

    def test_read_back(self, eisv_log_path):
        log = EISVLog(eisv_log_path)
        log.extend([_record(time=1.0), _record(time=2.0, void_event=True)])
        rows = log.read()
        assert [r['time'] for r in rows] == [1.0, 2.0]
        assert rows[1]['void_event'] is True
        assert rows[0]['coherence'] == 0.9

    def test_read_missing_file(self, tmp_path):
        assert EISVLog(tmp_path / "none.csv").read() == []

    def test_extend_empty_writes_nothing(self, eisv_log_path):
        EISVLog(eisv_log_path).extend([])
        assert not eisv_log_path.exists()

    def test_read_rejects_foreign_csv(self, tmp_path):
        path = tmp_path / "other.csv"
        path.write_text("update,timestamp,E\n1,now,0.5\n")
        with pytest.raises(ValueError, match="not an EISV log"):
            EISVLog(path).read()

    def test_reads_file_with_extra_columns(self, tmp_path):
        path = tmp_path / "legacy.csv"
        path.write_text(
            "time,E,I,S,V,lambda1,coherence,void_event,regime\n"
            "0.1,0.5,0.9,0.1,-0.4,0.15,0.9,False,stable\n"
        )
        rows = EISVLog(path).read()
        assert rows[0]['V'] == -0.4
        assert rows[0]['void_event'] is False


class TestReplay:

    def _recorded(self, path, turns, params=None):
        monitor = TurnMonitor("agent-1", params=params, sink=EISVLog(path))
        for S, rho, E in turns:
            monitor.process_turn(S=S, rho=rho, E=E)
        return EISVLog(path).read()

    def test_replay_reproduces_recorded_history(self, eisv_log_path, default_params):
        turns = [(0.1, 0.9, 0.6), (0.5, 0.85, 0.5), (0.0, 0.7, 0.2), (1.4, 0.95, 0.9)] * 10
        rows = self._recorded(eisv_log_path, turns, default_params)
        result = replay(rows, default_params)
        assert result.matches
        assert len(result.records) == len(turns)
        assert result.to_dict()['void_mismatches'] == []

    def test_replay_with_changed_decay_diverges(self, eisv_log_path, default_params):
        rows = self._recorded(eisv_log_path, [(0.1, 0.9, 0.6)] * 20, default_params)
        result = replay(rows, CoreParams(gamma_V=0.5))
        assert not result.matches
        assert result.max_V_delta > 0.1

    def test_replay_reports_void_mismatches(self, default_params):
        state, record = step_turn(AgentState(), TurnInput(S=0.5, rho=0.85, E=0.5))
        row = {c: v for c, v in zip(COLUMNS, record_to_row(record))}
        row['void_event'] = False
        result = replay([row], default_params)
        assert result.void_mismatches == [0]

    def test_replay_empty(self, default_params):
        result = replay([], default_params)
        assert result.records == []
        assert result.matches


class TestRotate:

    def test_rotate_missing_file(self, eisv_log_path):
        assert EISVLog(eisv_log_path).rotate() is None

    def test_rotate_moves_file_aside(self, eisv_log_path):
        log = EISVLog(eisv_log_path)
        log.append(_record())
        archived = log.rotate()
        assert archived == eisv_log_path.with_name("agent_eisv.1.csv")
        assert not eisv_log_path.exists()
        assert len(EISVLog(archived).read()) == 1
        log.append(_record(time=2.0))
        assert [r['time'] for r in log.read()] == [2.0]
