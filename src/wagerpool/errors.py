"""Error taxonomy. Every engine rejection is a WagerError carrying a machine-readable code."""

from __future__ import annotations


class WagerError(Exception):
    """Base for all engine rejections. The operation that raised it left no partial state."""

    code = "wager_error"
    default_message = "Operation rejected"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(WagerError):
    code = "unauthorized"
    default_message = "Caller is not allowed to perform this operation"


class InvalidPhase(WagerError):
    """Operation invoked outside its required lifecycle phase."""

    code = "invalid_phase"
    default_message = "Operation not allowed in the current phase"

    def __init__(
        self,
        message: str | None = None,
        *,
        operation: str | None = None,
        phase: str | None = None,
    ) -> None:
        self.operation = operation
        self.phase = phase
        if message is None and operation and phase:
            message = f"{operation} not allowed in phase {phase}"
        super().__init__(message)


class NotYetOwnerFunded(InvalidPhase):
    code = "not_yet_owner_funded"
    default_message = "Owner has not funded the bet yet"


class AlreadyFullyFunded(InvalidPhase):
    code = "already_fully_funded"
    default_message = "Public pool is already fully funded"


class NotExecuted(InvalidPhase):
    code = "not_executed"
    default_message = "Bet has not been resolved yet"


class AlreadyExecuted(InvalidPhase):
    code = "already_executed"
    default_message = "Bet has already been resolved"


class AlreadyPaid(InvalidPhase):
    code = "already_paid"
    default_message = "Bet has already been settled"


class BetClosed(InvalidPhase):
    code = "bet_closed"
    default_message = "Bet is closed"


class InvalidOdds(WagerError):
    code = "invalid_odds"
    default_message = "Odds must be in (0, odds_denominator]"


class ZeroAmount(WagerError):
    code = "zero_amount"
    default_message = "Amount must be positive"


class Oversubscription(WagerError):
    code = "oversubscription"
    default_message = "Amount exceeds the remaining public pool capacity"


class InsufficientAllowance(WagerError):
    code = "insufficient_allowance"
    default_message = "Ledger allowance for the pool custody is too low"


class TransferFailed(WagerError):
    code = "transfer_failed"
    default_message = "Ledger transfer failed"


class BetNotFound(WagerError):
    code = "bet_not_found"
    default_message = "Bet not found"
