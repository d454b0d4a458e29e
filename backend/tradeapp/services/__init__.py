"""Application services."""

from tradeapp.services.decision import Decision, TradingDecisionService
from tradeapp.services.gatekeeper import OrderGatekeeper, SubmissionResult

__all__ = [
    "Decision",
    "TradingDecisionService",
    "OrderGatekeeper",
    "SubmissionResult",
]
