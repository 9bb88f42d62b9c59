"""
Pytest configuration and fixtures for the EISV turn governance tests.
"""
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture(autouse=True)
def _isolate_runtime_overrides():
    """
    Reset runtime threshold overrides between tests.

    Overrides live in a module-level dict and would otherwise leak from one
    test into every monitor created later in the session.
    """
    from src.runtime_config import clear_overrides

    clear_overrides()
    yield
    clear_overrides()


@pytest.fixture
def default_params():
    """Core parameters built from the config constants."""
    from config.governance_config import build_core_params

    return build_core_params()


@pytest.fixture
def eisv_log_path(tmp_path):
    """Provide a temporary EISV log path for tests."""
    return tmp_path / "eisv" / "agent_eisv.csv"
