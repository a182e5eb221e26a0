"""Bet state machine - Created -> OwnerFunded -> PublicFunded -> Executed -> Paid -> Closed.

Every mutating operation follows check-effect-interact: preconditions are validated, the bet's
own state is updated, and only then is the ledger called. A ledger transfer may re-enter the bet
(token callbacks); the re-entrant call sees the already-updated state and is rejected by the
normal checks. If the transfer fails, the operation's own effect is reverted before the error
propagates.
"""

from __future__ import annotations

import threading
import time
import uuid
from typing import Callable, TypeVar

import structlog

from wagerpool.engine.admission import StakeAdmissionController
from wagerpool.engine.payout import PayoutDistributor
from wagerpool.engine.resolution import EntropySource, ResolutionEngine, SystemEntropy
from wagerpool.engine.sizing import ODDS_DENOMINATOR, pool_capacity
from wagerpool.errors import (
    AlreadyExecuted,
    AlreadyPaid,
    BetClosed,
    InsufficientAllowance,
    InvalidPhase,
    NotExecuted,
    TransferFailed,
    Unauthorized,
)
from wagerpool.ledger.base import LedgerGateway
from wagerpool.models.bet import BetSnapshot, Payout, Phase, Winner

log = structlog.get_logger(__name__)

T = TypeVar("T")


def custody_account(bet_id: str) -> str:
    """Ledger identity holding both sides' funds for a bet."""
    return f"bet:{bet_id}"


class Bet:
    """One wager instance. All operations are serialized on a per-instance re-entrant lock."""

    def __init__(
        self,
        owner: str,
        odds: int,
        owner_stake: int,
        ledger: LedgerGateway,
        *,
        entropy: EntropySource | None = None,
        odds_denominator: int = ODDS_DENOMINATOR,
        bet_id: str | None = None,
        created_at: int | None = None,
    ) -> None:
        total = pool_capacity(odds, owner_stake, odds_denominator)
        self.bet_id = bet_id or uuid.uuid4().hex[:12]
        self.owner = owner
        self.odds = odds
        self.odds_denominator = odds_denominator
        self.owner_stake = owner_stake
        self.total_public_stake = total
        self.custody = custody_account(self.bet_id)
        self.created_at = created_at if created_at is not None else int(time.time() * 1000)
        self.ledger = ledger
        self.owner_funded = False
        self.executed = False
        self.paid = False
        self.closed = False
        self.winner = Winner.UNDETERMINED
        self.draw: int | None = None
        self._admission = StakeAdmissionController(total)
        self._resolver = ResolutionEngine(entropy or SystemEntropy())
        self._distributor = PayoutDistributor(ledger, self.custody)
        self._lock = threading.RLock()

    @classmethod
    def create(
        cls,
        caller: str,
        odds: int,
        owner_stake: int,
        ledger: LedgerGateway,
        **kwargs,
    ) -> Bet:
        """Create a bet; the caller becomes its owner."""
        bet = cls(caller, odds, owner_stake, ledger, **kwargs)
        log.info(
            "bet_created",
            bet_id=bet.bet_id,
            owner=caller,
            odds=odds,
            owner_stake=owner_stake,
            total_public_stake=bet.total_public_stake,
        )
        return bet

    @classmethod
    def from_snapshot(
        cls,
        snapshot: BetSnapshot,
        ledger: LedgerGateway,
        entropy: EntropySource | None = None,
    ) -> Bet:
        """Rebuild a bet from persisted state."""
        bet = cls(
            snapshot.owner,
            snapshot.odds,
            snapshot.owner_stake,
            ledger,
            entropy=entropy,
            odds_denominator=snapshot.odds_denominator,
            bet_id=snapshot.bet_id,
            created_at=snapshot.created_at,
        )
        if bet.total_public_stake != snapshot.total_public_stake:
            raise ValueError(f"bet {snapshot.bet_id}: persisted capacity does not match odds")
        bet._admission.load(snapshot.stakes)
        bet.owner_funded = snapshot.owner_funded
        bet.executed = snapshot.executed
        bet.paid = snapshot.paid
        bet.closed = snapshot.closed
        bet.winner = snapshot.winner
        bet.draw = snapshot.draw
        return bet

    # --- Read-only surface ---

    @property
    def public_funded(self) -> bool:
        return self._admission.full

    @property
    def current_public_stake(self) -> int:
        return self._admission.current

    @property
    def staker_order(self) -> list[str]:
        return list(self._admission.staker_order)

    @property
    def pool(self) -> int:
        return self.owner_stake + self.total_public_stake

    @property
    def phase(self) -> Phase:
        if self.closed:
            return Phase.CLOSED
        if self.paid:
            return Phase.PAID
        if self.executed:
            return Phase.EXECUTED
        if self.public_funded:
            return Phase.PUBLIC_FUNDED
        if self.owner_funded:
            return Phase.OWNER_FUNDED
        return Phase.CREATED

    def get_stake(self, identity: str) -> int:
        return self._admission.stake_of(identity)

    def snapshot(self) -> BetSnapshot:
        with self._lock:
            return BetSnapshot(
                bet_id=self.bet_id,
                owner=self.owner,
                custody=self.custody,
                odds=self.odds,
                odds_denominator=self.odds_denominator,
                owner_stake=self.owner_stake,
                total_public_stake=self.total_public_stake,
                current_public_stake=self.current_public_stake,
                owner_funded=self.owner_funded,
                public_funded=self.public_funded,
                executed=self.executed,
                paid=self.paid,
                closed=self.closed,
                winner=self.winner,
                draw=self.draw,
                stakes=self._admission.entries(),
                phase=self.phase,
                created_at=self.created_at,
            )

    # --- Operations ---

    def fund(self, caller: str) -> None:
        """Owner deposits owner_stake into custody."""
        with self._lock:
            self._require_open("fund")
            self._require_owner(caller, "fund")
            if self.owner_funded:
                raise InvalidPhase(operation="fund", phase=self.phase.value)
            self._require_allowance(caller, self.owner_stake)
            self.owner_funded = True
            self._interact(lambda: self._pull(caller, self.owner_stake), self._undo_fund)
            log.info("bet_funded", bet_id=self.bet_id, owner=caller, amount=self.owner_stake)

    def stake(self, identity: str, amount: int) -> None:
        """Admit a public stake of exactly amount, or reject it whole."""
        with self._lock:
            self._require_open("stake")
            self._admission.validate(amount, self.owner_funded)
            self._require_allowance(identity, amount)
            first = self._admission.admit(identity, amount)
            self._interact(
                lambda: self._pull(identity, amount),
                lambda: self._admission.revert(identity, amount, first),
            )
            log.info(
                "stake_admitted",
                bet_id=self.bet_id,
                identity=identity,
                amount=amount,
                current_public_stake=self.current_public_stake,
                public_funded=self.public_funded,
            )

    def resolve(self, caller: str) -> Winner:
        """Draw the outcome once both sides are funded. Effect-only, no transfer."""
        with self._lock:
            self._require_open("resolve")
            self._require_owner(caller, "resolve")
            if self.executed:
                raise AlreadyExecuted()
            if not (self.owner_funded and self.public_funded):
                raise InvalidPhase(operation="resolve", phase=self.phase.value)
            r, winner = self._resolver.resolve(self.odds, self.odds_denominator)
            self.draw = r
            self.winner = winner
            self.executed = True
            log.info("bet_resolved", bet_id=self.bet_id, draw=r, winner=winner.value)
            return winner

    def settle(self, caller: str) -> list[Payout]:
        """Distribute the pool to the winning side. Open to any caller."""
        with self._lock:
            self._require_open("settle")
            if not self.executed:
                raise NotExecuted()
            if self.paid:
                raise AlreadyPaid()
            self.paid = True
            payouts = self._interact(
                lambda: self._distributor.distribute(
                    self.winner,
                    self.owner,
                    self.pool,
                    self._admission.stake_by_address,
                    self._admission.staker_order,
                    self.total_public_stake,
                ),
                self._undo_settle,
            )
            log.info(
                "bet_settled",
                bet_id=self.bet_id,
                caller=caller,
                winner=self.winner.value,
                payouts=len(payouts),
                total=sum(p.amount for p in payouts),
            )
            return payouts

    def close(self, caller: str) -> int:
        """Hand any custody balance left after settlement back to the owner. Returns that amount."""
        with self._lock:
            self._require_open("close")
            self._require_owner(caller, "close")
            if not self.paid:
                raise InvalidPhase(operation="close", phase=self.phase.value)
            self.closed = True
            remaining = self.ledger.balance_of(self.custody)
            if remaining > 0:
                self._interact(lambda: self._push(self.owner, remaining), self._undo_close)
            log.info("bet_closed", bet_id=self.bet_id, returned_to_owner=remaining)
            return remaining

    # --- Internals ---

    def _require_open(self, operation: str) -> None:
        if self.closed:
            raise BetClosed(f"{operation}: bet {self.bet_id} is closed")

    def _require_owner(self, caller: str, operation: str) -> None:
        if caller != self.owner:
            raise Unauthorized(f"{operation} is restricted to the bet owner")

    def _require_allowance(self, identity: str, amount: int) -> None:
        allowed = self.ledger.allowance(identity, self.custody)
        if allowed < amount:
            raise InsufficientAllowance(
                f"{identity} approved {allowed} for {self.custody}, needs {amount}"
            )

    def _pull(self, src: str, amount: int) -> None:
        if not self.ledger.transfer_from(src, self.custody, amount, spender=self.custody):
            raise TransferFailed(f"transfer of {amount} from {src} into custody failed")

    def _push(self, dst: str, amount: int) -> None:
        if not self.ledger.transfer_from(self.custody, dst, amount):
            raise TransferFailed(f"transfer of {amount} from custody to {dst} failed")

    def _interact(self, call: Callable[[], T], undo: Callable[[], None]) -> T:
        """Run the external ledger call last; revert this operation's effect if it fails.

        The call runs in a ledger atomic scope so a transfer whose callback raises is rolled back too.
        """
        try:
            with self.ledger.atomic():
                return call()
        except Exception as e:
            undo()
            log.warning("bet_operation_reverted", bet_id=self.bet_id, error=str(e))
            raise

    def _undo_fund(self) -> None:
        self.owner_funded = False

    def _undo_settle(self) -> None:
        self.paid = False

    def _undo_close(self) -> None:
        self.closed = False
