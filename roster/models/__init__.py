from .attendance import Attendance
from .payment import Payment
from .session_balance import SessionBalance
from .session_transaction import SessionTransaction, SessionTransactionReason

__all__ = [
    "Attendance",
    "Payment",
    "SessionBalance",
    "SessionTransaction",
    "SessionTransactionReason",
]
