"""Pure risk, yield and alerting logic."""
from .alerts import AlertOutcome, AlertPhase, AlertState, AlertStateMachine
from .comparison import compare_vault_yields, detect_apy_change
from .risk import ThresholdPolicy, assess_position, is_ltv_alert
from .yields import aggregate_vault_yield

__all__ = [
    "AlertOutcome",
    "AlertPhase",
    "AlertState",
    "AlertStateMachine",
    "ThresholdPolicy",
    "aggregate_vault_yield",
    "assess_position",
    "compare_vault_yields",
    "detect_apy_change",
    "is_ltv_alert",
]
