"""
Runtime Configuration Management

Allows runtime access and modification of governance thresholds
without requiring code changes or redeployment.

Overrides are read once when a monitor is created; a running monitor keeps
the parameters it started with.
"""

from typing import Dict, Any

from config import governance_config as config_module
from src.logging_utils import get_logger

logger = get_logger(__name__)


# Runtime overrides (None = use class defaults)
_runtime_overrides: Dict[str, float] = {}

# Validation ranges; gamma_V excludes 1.0 (pure accumulation drifts)
_VALID_RANGES = {
    "void_threshold": (0.0, 1.0),
    "gamma_V": (0.0, 0.999),
    "lambda_min": (0.0, 1.0),
    "lambda_max": (0.0, 1.0),
}


def _defaults() -> Dict[str, float]:
    config = config_module.GovernanceConfig
    return {
        "void_threshold": config.VOID_THRESHOLD,
        "gamma_V": config.VOID_GAMMA,
        "lambda_min": config.LAMBDA1_MIN,
        "lambda_max": config.LAMBDA1_MAX,
    }


def get_thresholds() -> Dict[str, float]:
    """
    Get current threshold configuration (runtime overrides + defaults).
    """
    thresholds = _defaults()
    thresholds.update(_runtime_overrides)
    return thresholds


def set_thresholds(thresholds: Dict[str, float], validate: bool = True) -> Dict[str, Any]:
    """
    Set runtime threshold overrides.

    Args:
        thresholds: Dict of threshold_name -> value
        validate: If True, validate values are in reasonable ranges

    Returns:
        {
            "success": bool,
            "updated": List[str],
            "errors": List[str]
        }
    """
    errors = []
    accepted: Dict[str, float] = {}

    for name, value in thresholds.items():
        if name not in _VALID_RANGES:
            errors.append(f"Unknown threshold: {name}")
            continue

        if validate:
            min_val, max_val = _VALID_RANGES[name]
            if not (min_val <= value <= max_val):
                errors.append(f"{name}={value} out of range [{min_val}, {max_val}]")
                continue

        accepted[name] = float(value)

    # λ bounds must stay ordered against live values plus what this call accepted
    candidate = get_thresholds()
    candidate.update(accepted)
    if candidate["lambda_min"] > candidate["lambda_max"]:
        errors.append(
            f"lambda_min ({candidate['lambda_min']}) must be <= lambda_max ({candidate['lambda_max']})"
        )
        accepted.pop("lambda_min", None)
        accepted.pop("lambda_max", None)
        candidate = get_thresholds()
        candidate.update(accepted)

    # Nothing is committed unless the full set still builds valid core parameters
    try:
        config_module.build_core_params(candidate)
    except ValueError as e:
        errors.append(str(e))
        accepted = {}

    _runtime_overrides.update(accepted)
    updated = list(accepted)

    if updated:
        logger.info(f"Runtime overrides updated: {', '.join(updated)}")
    for error in errors:
        logger.warning(f"Rejected runtime override: {error}")

    return {
        "success": len(errors) == 0,
        "updated": updated,
        "errors": errors
    }


def get_effective_threshold(threshold_name: str) -> float:
    """
    Get effective threshold value (runtime override or default).

    Raises:
        ValueError: for an unknown threshold name
    """
    defaults = _defaults()
    if threshold_name not in defaults:
        raise ValueError(f"Unknown threshold: {threshold_name}")
    return _runtime_overrides.get(threshold_name, defaults[threshold_name])


def clear_overrides() -> None:
    """Clear all runtime overrides, revert to defaults"""
    _runtime_overrides.clear()
