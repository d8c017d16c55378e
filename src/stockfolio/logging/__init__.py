"""
Decision logging module for stockfolio.

Provides append-only decision logging for audit and reproducibility.
"""

from stockfolio.logging.decision_log import (
    DecisionLogger,
    log_action,
    get_logger,
)

__all__ = [
    "DecisionLogger",
    "log_action",
    "get_logger",
]
