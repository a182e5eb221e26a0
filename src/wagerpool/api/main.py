"""FastAPI surface over the bet service."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from wagerpool.api.schemas import (
    AllowanceResponse,
    ApproveRequest,
    BalanceResponse,
    BetEventItem,
    BetEventsResponse,
    BetsListResponse,
    CallerRequest,
    CloseResponse,
    CreateBetRequest,
    ErrorResponse,
    HealthResponse,
    MintRequest,
    SettleResponse,
    StakeAmountResponse,
    StakeRequest,
)
from wagerpool.config import Settings, get_settings
from wagerpool.errors import BetNotFound, InvalidPhase, Unauthorized, WagerError
from wagerpool.models.bet import BetSnapshot
from wagerpool.service import BetService
from wagerpool.storage.db import get_connection, init_schema

log = structlog.get_logger(__name__)

# Set by run_api() so the module-level app picks up the CLI profile and --db override.
_config_profile: str | None = None
_db_path_override: str | None = None

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def _status_for(exc: WagerError) -> int:
    if isinstance(exc, Unauthorized):
        return 403
    if isinstance(exc, BetNotFound):
        return 404
    if isinstance(exc, InvalidPhase):
        return 409
    return 400


def _error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
    )


def get_service(request: Request) -> BetService:
    return request.app.state.service


def create_app(settings: Settings | None = None, db_path: str | None = None) -> FastAPI:
    """Build the API app. db_path overrides settings.db_path (":memory:" for tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        s = settings or get_settings(_config_profile)
        path = db_path or _db_path_override or s.db_path
        conn = get_connection(path)
        init_schema(conn)
        app.state.service = BetService.from_settings(conn, s)
        log.info("api_started", db_path=path)
        try:
            yield
        finally:
            conn.close()

    app = FastAPI(title="WagerPool API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.exception_handler(WagerError)
    async def wager_error_handler(request: Request, exc: WagerError) -> JSONResponse:
        status_code = _status_for(exc)
        log.info("api_rejected", path=request.url.path, code=exc.code, status=status_code)
        return _error_json(exc.code, exc.message, status_code)

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    # --- Bets ---

    @app.post("/bets", response_model=BetSnapshot, status_code=201, responses=_ERROR_RESPONSES)
    def create_bet(body: CreateBetRequest, svc: BetService = Depends(get_service)) -> BetSnapshot:
        return svc.create_bet(body.caller, body.odds, body.owner_stake)

    @app.get("/bets", response_model=BetsListResponse)
    def bets_list(owner: str | None = None, svc: BetService = Depends(get_service)) -> BetsListResponse:
        bets = svc.list_bets(owner=owner)
        return BetsListResponse(bets=bets, total=len(bets))

    @app.get("/bets/{bet_id}", response_model=BetSnapshot, responses=_ERROR_RESPONSES)
    def bet_detail(bet_id: str, svc: BetService = Depends(get_service)) -> BetSnapshot:
        return svc.get_bet(bet_id)

    @app.post("/bets/{bet_id}/fund", response_model=BetSnapshot, responses=_ERROR_RESPONSES)
    def bet_fund(bet_id: str, body: CallerRequest, svc: BetService = Depends(get_service)) -> BetSnapshot:
        return svc.fund(bet_id, body.caller)

    @app.post("/bets/{bet_id}/stake", response_model=BetSnapshot, responses=_ERROR_RESPONSES)
    def bet_stake(bet_id: str, body: StakeRequest, svc: BetService = Depends(get_service)) -> BetSnapshot:
        return svc.stake(bet_id, body.caller, body.amount)

    @app.post("/bets/{bet_id}/resolve", response_model=BetSnapshot, responses=_ERROR_RESPONSES)
    def bet_resolve(bet_id: str, body: CallerRequest, svc: BetService = Depends(get_service)) -> BetSnapshot:
        return svc.resolve(bet_id, body.caller)

    @app.post("/bets/{bet_id}/settle", response_model=SettleResponse, responses=_ERROR_RESPONSES)
    def bet_settle(bet_id: str, body: CallerRequest, svc: BetService = Depends(get_service)) -> SettleResponse:
        bet, payouts = svc.settle(bet_id, body.caller)
        return SettleResponse(bet=bet, payouts=payouts)

    @app.post("/bets/{bet_id}/close", response_model=CloseResponse, responses=_ERROR_RESPONSES)
    def bet_close(bet_id: str, body: CallerRequest, svc: BetService = Depends(get_service)) -> CloseResponse:
        _, returned = svc.close(bet_id, body.caller)
        return CloseResponse(bet_id=bet_id, returned_to_owner=returned)

    @app.get("/bets/{bet_id}/stakes/{identity}", response_model=StakeAmountResponse, responses=_ERROR_RESPONSES)
    def bet_stake_of(bet_id: str, identity: str, svc: BetService = Depends(get_service)) -> StakeAmountResponse:
        return StakeAmountResponse(bet_id=bet_id, identity=identity, amount=svc.get_stake(bet_id, identity))

    @app.get("/bets/{bet_id}/events", response_model=BetEventsResponse)
    def bet_events(bet_id: str, svc: BetService = Depends(get_service)) -> BetEventsResponse:
        """Operation log; available after close as well."""
        events = [BetEventItem(**e) for e in svc.events(bet_id)]
        return BetEventsResponse(bet_id=bet_id, events=events)

    # --- Ledger ---

    @app.post("/ledger/mint", response_model=BalanceResponse)
    def ledger_mint(body: MintRequest, svc: BetService = Depends(get_service)) -> BalanceResponse:
        return BalanceResponse(identity=body.identity, balance=svc.mint(body.identity, body.amount))

    @app.post("/ledger/approve", response_model=AllowanceResponse)
    def ledger_approve(body: ApproveRequest, svc: BetService = Depends(get_service)) -> AllowanceResponse:
        svc.approve(body.owner, body.spender, body.amount)
        return AllowanceResponse(
            owner=body.owner, spender=body.spender, amount=svc.allowance(body.owner, body.spender)
        )

    @app.get("/ledger/{identity}", response_model=BalanceResponse)
    def ledger_balance(identity: str, svc: BetService = Depends(get_service)) -> BalanceResponse:
        return BalanceResponse(identity=identity, balance=svc.balance(identity))

    return app


app = create_app()


def run_api(
    host: str = "127.0.0.1",
    port: int = 8000,
    profile: str | None = None,
    db_path: str | None = None,
) -> None:
    global _config_profile, _db_path_override
    _config_profile = profile
    _db_path_override = db_path
    import uvicorn

    uvicorn.run("wagerpool.api.main:app", host=host, port=port, reload=False)
