from .attendance import (
    AttendanceReconciliationResponse,
    AttendanceRecordIn,
    AttendanceRecordResponse,
    AttendanceSubmission,
)
from .payment import PaymentCreate, PaymentCreateResponse, PaymentResponse, SessionGrantResponse
from .session import (
    BalanceAdjustmentRequest,
    BalanceAdjustmentResponse,
    PlayerSessionsResponse,
    SessionBalanceResponse,
    SessionTransactionPage,
    SessionTransactionResponse,
)

__all__ = [
    "AttendanceReconciliationResponse",
    "AttendanceRecordIn",
    "AttendanceRecordResponse",
    "AttendanceSubmission",
    "PaymentCreate",
    "PaymentCreateResponse",
    "PaymentResponse",
    "SessionGrantResponse",
    "BalanceAdjustmentRequest",
    "BalanceAdjustmentResponse",
    "PlayerSessionsResponse",
    "SessionBalanceResponse",
    "SessionTransactionPage",
    "SessionTransactionResponse",
]
