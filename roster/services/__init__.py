"""
Prepaid session service layer.

Convenience imports for the ledger services.
"""

from .attendance_reconciler import AttendanceReconciler, AttendanceReconciliation
from .balance_adjustment_service import BalanceAdjustment, BalanceAdjustmentService
from .payment_service import PaymentResult, PaymentService
from .payment_session_grantor import PaymentSessionGrantor, SessionGrant
from .session_balance_store import SessionBalanceStore
from .session_ledger import SessionTransactionLedger

__all__ = [
    "AttendanceReconciler",
    "AttendanceReconciliation",
    "BalanceAdjustment",
    "BalanceAdjustmentService",
    "PaymentResult",
    "PaymentService",
    "PaymentSessionGrantor",
    "SessionGrant",
    "SessionBalanceStore",
    "SessionTransactionLedger",
]
