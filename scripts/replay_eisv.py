#!/usr/bin/env python3
"""
EISV Replay - Recompute a Recorded History With the Current Core

PURPOSE:
Backtest the per-turn update against a previously recorded EISV log:
1. Read the stable-schema CSV (time, E, I, S, V, lambda1, coherence, void_event)
2. Feed every row's inputs (E, S, coherence) through eisv_core.step_turn
3. Report where recomputed V, λ₁ and void events differ from the record

USAGE:
    python scripts/replay_eisv.py data/eisv/agent-1_eisv.csv [--gamma 0.85] [--output replayed.csv] [--json]
"""

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config.governance_config import build_core_params
from src.eisv_log import EISVLog, replay


def main(argv=None):
    parser = argparse.ArgumentParser(description='Replay a recorded EISV log through the current core')
    parser.add_argument('log', type=str, help='Path to the recorded EISV CSV')
    parser.add_argument('--gamma', type=float, help='Override void decay γ')
    parser.add_argument('--threshold', type=float, help='Override void threshold')
    parser.add_argument('--output', '-o', type=str, help='Write replayed records to this CSV')
    parser.add_argument('--json', action='store_true', help='Print the summary as JSON')

    args = parser.parse_args(argv)

    log_path = Path(args.log)
    if not log_path.exists():
        print(f"No EISV log found: {log_path}", file=sys.stderr)
        return 1
    if args.output and Path(args.output).exists():
        print(f"Output already exists, not overwriting: {args.output}", file=sys.stderr)
        return 1

    overrides = {}
    if args.gamma is not None:
        overrides['gamma_V'] = args.gamma
    if args.threshold is not None:
        overrides['void_threshold'] = args.threshold
    try:
        params = build_core_params(overrides)
        rows = EISVLog(log_path).read()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    result = replay(rows, params)

    if args.output:
        EISVLog(Path(args.output)).extend(result.records)

    summary = result.to_dict()
    if args.json:
        print(json.dumps(summary, indent=2))
        return 0

    print("\n" + "=" * 60)
    print("EISV REPLAY")
    print("=" * 60)
    print(f"\nLog: {log_path}")
    print(f"Turns replayed: {summary['turns']}")
    print(f"max |ΔV|:  {summary['max_V_delta']:.6f}")
    print(f"max |Δλ₁|: {summary['max_lambda_delta']:.6f}")
    print(f"Void event mismatches: {len(summary['void_mismatches'])}")
    if summary['matches']:
        print("\n✅ Recorded history reproduced exactly")
    else:
        print("\n⚠️ Recorded history differs from current computation")
    if args.output:
        print(f"\nReplayed records written to {args.output}")
    print("\n" + "=" * 60)
    return 0


if __name__ == '__main__':
    sys.exit(main())
