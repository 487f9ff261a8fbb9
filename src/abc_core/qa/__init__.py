"""Quality checks on aggregated data."""

from abc_core.qa.api import ReconciliationResult, check_completeness, check_reconciliation

__all__ = ["ReconciliationResult", "check_completeness", "check_reconciliation"]
