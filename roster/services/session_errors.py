class SessionLedgerError(Exception):
    pass


class SessionValidationError(SessionLedgerError, ValueError):
    pass


class BalanceNotFoundError(SessionLedgerError):
    pass


class BalanceAlreadyExistsError(SessionLedgerError):
    pass


class ConcurrentBalanceUpdateError(SessionLedgerError):
    pass


class SessionOverdraftError(SessionLedgerError):
    pass


class ConcurrentAttendanceUpdateError(SessionLedgerError):
    pass
