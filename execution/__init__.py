"""
Execution utilities for turning validated decisions into exchange orders.
"""

from .audit import AuditReporter
from .order_executor import OrderExecutor, OrderOutcome

__all__ = ["AuditReporter", "OrderExecutor", "OrderOutcome"]
