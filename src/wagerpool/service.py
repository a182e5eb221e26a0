"""Bet service - runs each operation as one DuckDB transaction over store, ledger and event log."""

from __future__ import annotations

from threading import Lock
from typing import TYPE_CHECKING, Any, Callable, TypeVar

import structlog

from wagerpool.config.settings import Settings
from wagerpool.engine.lifecycle import Bet
from wagerpool.engine.resolution import EntropySource, SystemEntropy, entropy_from_name
from wagerpool.engine.sizing import ODDS_DENOMINATOR
from wagerpool.ledger.duckdb_ledger import DuckDBLedger
from wagerpool.models.bet import BetSnapshot, Payout
from wagerpool.storage.bets import delete_bet, list_bets, load_bet, save_bet
from wagerpool.storage.event_log import append_bet_event, list_bet_events

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)

T = TypeVar("T")


class BetService:
    """Load bet, apply operation, persist, log event - all or nothing.

    Operations are serialized per service; the DuckDB transaction opened by ledger.atomic()
    covers ledger transfers, bet rows and the event row together.
    """

    def __init__(
        self,
        conn: DuckDBPyConnection,
        *,
        entropy: EntropySource | None = None,
        odds_denominator: int = ODDS_DENOMINATOR,
    ) -> None:
        self.conn = conn
        self.ledger = DuckDBLedger(conn)
        self.entropy = entropy or SystemEntropy()
        self.odds_denominator = odds_denominator
        self._lock = Lock()

    @classmethod
    def from_settings(cls, conn: DuckDBPyConnection, settings: Settings) -> BetService:
        return cls(
            conn,
            entropy=entropy_from_name(settings.entropy, settings.entropy_seed),
            odds_denominator=settings.odds_denominator,
        )

    # --- Bet operations ---

    def create_bet(self, caller: str, odds: int, owner_stake: int) -> BetSnapshot:
        with self._lock, self.ledger.atomic():
            bet = Bet.create(
                caller,
                odds,
                owner_stake,
                self.ledger,
                entropy=self.entropy,
                odds_denominator=self.odds_denominator,
            )
            snap = bet.snapshot()
            save_bet(self.conn, snap)
            append_bet_event(
                self.conn,
                bet.bet_id,
                "create",
                caller,
                owner_stake,
                {"odds": odds, "total_public_stake": bet.total_public_stake},
                ts=bet.created_at,
            )
        return snap

    def fund(self, bet_id: str, caller: str) -> BetSnapshot:
        snap, _ = self._apply(bet_id, "fund", caller, lambda bet: bet.fund(caller))
        return snap

    def stake(self, bet_id: str, caller: str, amount: int) -> BetSnapshot:
        snap, _ = self._apply(bet_id, "stake", caller, lambda bet: bet.stake(caller, amount), amount)
        return snap

    def resolve(self, bet_id: str, caller: str) -> BetSnapshot:
        snap, _ = self._apply(
            bet_id,
            "resolve",
            caller,
            lambda bet: bet.resolve(caller),
            payload=lambda bet, winner: {"winner": winner.value, "draw": bet.draw},
        )
        return snap

    def settle(self, bet_id: str, caller: str) -> tuple[BetSnapshot, list[Payout]]:
        return self._apply(
            bet_id,
            "settle",
            caller,
            lambda bet: bet.settle(caller),
            payload=lambda bet, payouts: {"payouts": [p.model_dump() for p in payouts]},
        )

    def close(self, bet_id: str, caller: str) -> tuple[BetSnapshot, int]:
        return self._apply(
            bet_id,
            "close",
            caller,
            lambda bet: bet.close(caller),
            payload=lambda bet, returned: {"returned_to_owner": returned},
        )

    # --- Queries ---

    def get_bet(self, bet_id: str) -> BetSnapshot:
        with self._lock:
            return load_bet(self.conn, bet_id)

    def list_bets(self, owner: str | None = None) -> list[BetSnapshot]:
        with self._lock:
            return list_bets(self.conn, owner=owner)

    def get_stake(self, bet_id: str, identity: str) -> int:
        return self.get_bet(bet_id).stake_of(identity)

    def events(self, bet_id: str) -> list[dict[str, Any]]:
        with self._lock:
            return list_bet_events(self.conn, bet_id)

    # --- Ledger helpers ---

    def mint(self, identity: str, amount: int) -> int:
        with self._lock:
            self.ledger.mint(identity, amount)
            return self.ledger.balance_of(identity)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        with self._lock:
            return self.ledger.approve(owner, spender, amount)

    def balance(self, identity: str) -> int:
        with self._lock:
            return self.ledger.balance_of(identity)

    def allowance(self, owner: str, spender: str) -> int:
        with self._lock:
            return self.ledger.allowance(owner, spender)

    # --- Internals ---

    def _apply(
        self,
        bet_id: str,
        op: str,
        actor: str,
        fn: Callable[[Bet], T],
        amount: int | None = None,
        payload: Callable[[Bet, T], dict[str, Any]] | None = None,
    ) -> tuple[BetSnapshot, T]:
        with self._lock, self.ledger.atomic():
            bet = Bet.from_snapshot(load_bet(self.conn, bet_id), self.ledger, self.entropy)
            result = fn(bet)
            snap = bet.snapshot()
            if bet.closed:
                delete_bet(self.conn, bet_id)
            else:
                save_bet(self.conn, snap)
            append_bet_event(
                self.conn,
                bet_id,
                op,
                actor,
                amount,
                payload(bet, result) if payload else {"phase": snap.phase.value},
            )
        log.debug("bet_operation_committed", bet_id=bet_id, op=op, actor=actor, phase=snap.phase.value)
        return snap, result
