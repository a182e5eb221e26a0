"""Settlement payouts - proportional shares to the winning side out of pool custody.

Public shares are ``stake * pool // total_public_stake``. Each share truncates, so after the
loop the custody account still holds the rounding dust; it goes to the first staker in
first-stake order. The pool is always fully disbursed, and the dust bias toward the first
staker is accepted behavior.
"""

from __future__ import annotations

import structlog

from wagerpool.errors import TransferFailed
from wagerpool.ledger.base import LedgerGateway
from wagerpool.models.bet import Payout, Winner

log = structlog.get_logger(__name__)


def public_shares(
    stake_by_address: dict[str, int],
    staker_order: list[str],
    total_public_stake: int,
    pool: int,
) -> list[Payout]:
    """Truncated proportional share per staker, in staker order. Remainder not included."""
    shares = []
    for identity in staker_order:
        amount = stake_by_address[identity] * pool // total_public_stake
        shares.append(Payout(recipient=identity, amount=amount, kind="share"))
    return shares


class PayoutDistributor:
    """Executes settlement transfers from custody inside one ledger atomic scope."""

    def __init__(self, ledger: LedgerGateway, custody: str) -> None:
        self.ledger = ledger
        self.custody = custody

    def distribute(
        self,
        winner: Winner,
        owner: str,
        pool: int,
        stake_by_address: dict[str, int],
        staker_order: list[str],
        total_public_stake: int,
    ) -> list[Payout]:
        """Pay the winning side. Any failed transfer rolls back all transfers of this call."""
        if winner is Winner.UNDETERMINED:
            raise ValueError("cannot distribute an unresolved bet")
        payouts: list[Payout] = []
        with self.ledger.atomic():
            if winner is Winner.OWNER:
                payouts.append(self._pay(Payout(recipient=owner, amount=pool, kind="owner")))
            else:
                for share in public_shares(stake_by_address, staker_order, total_public_stake, pool):
                    payouts.append(self._pay(share))
                dust = self.ledger.balance_of(self.custody)
                if dust > 0 and staker_order:
                    payouts.append(self._pay(Payout(recipient=staker_order[0], amount=dust, kind="remainder")))
        return payouts

    def _pay(self, payout: Payout) -> Payout:
        if payout.amount == 0:
            return payout
        if not self.ledger.transfer_from(self.custody, payout.recipient, payout.amount):
            log.warning(
                "transfer_failed",
                src=self.custody,
                dst=payout.recipient,
                amount=payout.amount,
                kind=payout.kind,
            )
            raise TransferFailed(f"payout of {payout.amount} to {payout.recipient} failed")
        return payout
