from dataclasses import asdict
from typing import Callable, Optional, Dict, Any, List

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ledger.config import load_config
from ledger.errors import (
    InvalidAccount,
    InvalidAmount,
    InvalidGateMarker,
    LedgerError,
    Unauthorized,
)
from ledger.service import LedgerService
from ledger.token import Token

View = Callable[[Token], Dict[str, Any]]

# ---------------------------
# Error mapping
# ---------------------------
BAD_REQUEST = (InvalidAmount, InvalidAccount, InvalidGateMarker)


def status_for(err: LedgerError) -> int:
    if isinstance(err, Unauthorized):
        return 403
    if isinstance(err, BAD_REQUEST):
        return 400
    return 409


def require_caller(x_caller: Optional[str]) -> str:
    """The host vouches for the caller; the engine only ever sees this id."""
    if not x_caller or not x_caller.strip():
        raise HTTPException(status_code=401, detail="Missing X-Caller header.")
    return x_caller.strip()


# ---------------------------
# Models
# ---------------------------
class MintBody(BaseModel):
    to: str
    amount: int = Field(ge=0)


class AmountBody(BaseModel):
    amount: int = Field(ge=0)


class BurnFromBody(BaseModel):
    owner: str
    amount: int = Field(ge=0)


class ApproveBody(BaseModel):
    spender: str
    amount: int = Field(ge=0)


class TransferBody(BaseModel):
    to: str
    amount: int = Field(ge=0)


class TransferFromBody(BaseModel):
    owner: str
    to: str
    amount: int = Field(ge=0)


class LockBody(BaseModel):
    account: str
    amount: int = Field(ge=0)


class GateBody(BaseModel):
    marker: int


class AccountBody(BaseModel):
    account: str


class OwnershipBody(BaseModel):
    new_owner: str


class AdvanceBody(BaseModel):
    blocks: int = Field(default=1, ge=1)


# ---------------------------
# App
# ---------------------------
def create_app(service: Optional[LedgerService] = None) -> FastAPI:
    svc = service if service is not None else LedgerService.bootstrap(load_config())
    token = svc.token

    app = FastAPI(
        title="Ledger-API",
        version="2.0.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
    )
    app.state.service = svc

    origins = svc.cfg.allow_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in origins.split(",")] if origins else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(LedgerError)
    async def ledger_error(request: Request, err: LedgerError):
        return JSONResponse(status_code=status_for(err), content={"ok": False, **err.to_dict()})

    def run(operation: str, x_caller: Optional[str], *args: Any, view: Optional[View] = None) -> Any:
        # view builds the response while the mutation still holds the token mutex
        return svc.execute(operation, require_caller(x_caller), *args, view=view)

    def ok(**fields: Callable[[Token], Any]) -> View:
        return lambda t: {"ok": True, **{name: read(t) for name, read in fields.items()}}

    # -------- Root + health --------
    @app.get("/")
    def root():
        return {
            "ok": True,
            "service": "Ledger-API",
            "env": svc.cfg.env_name,
            "health_url": "/healthz",
            "token_url": "/v1/token",
        }

    @app.get("/healthz")
    def health():
        return svc.query(
            lambda t: {
                "ok": True,
                "env": svc.cfg.env_name,
                "storage": svc.storage.kind,
                "version": t.version,
                "marker": svc.clock.current(),
            }
        )

    # -------- Queries --------
    @app.get("/v1/token")
    def token_info():
        return svc.query(
            lambda t: {
                "version": t.version,
                "owner": t.owner,
                "cap": t.cap,
                "total_supply": t.total_supply,
                "enabled_from": t.enabled_from,
                "lock_from_marker": t.state.lock_from_marker,
                "lock_to_marker": t.state.lock_to_marker,
                "marker": svc.clock.current(),
                "clock": svc.cfg.clock,
            }
        )

    @app.get("/v1/accounts/{account}")
    def account_info(account: str):
        return svc.query(
            lambda t: {
                "account": account,
                "available": t.balance_of(account),
                "locked": t.lock_of(account),
                "total": t.total_balance_of(account),
                "whitelisted": t.check_whitelist(account),
                "transfer_allowed": t.is_transfer_allowed(account),
            }
        )

    @app.get("/v1/allowances/{owner}/{spender}")
    def allowance(owner: str, spender: str):
        return svc.query(lambda t: {"owner": owner, "spender": spender, "amount": t.allowance(owner, spender)})

    @app.get("/v1/whitelist/{account}")
    def whitelist_check(account: str):
        return svc.query(lambda t: {"account": account, "whitelisted": t.check_whitelist(account)})

    @app.get("/v1/journal")
    def journal(limit: int = 50):
        limit = max(1, min(limit, 1000))
        with token.mutex:
            items: List[Dict[str, Any]] = [asdict(e) for e in token.journal.entries(limit)]
        return {"ok": True, "items": items}

    # -------- Supply --------
    @app.post("/v1/token/mint")
    def mint(body: MintBody, x_caller: Optional[str] = Header(None, alias="X-Caller")):
        return run(
            "mint",
            x_caller,
            body.to,
            body.amount,
            view=ok(balance=lambda t: t.balance_of(body.to), total_supply=lambda t: t.total_supply),
        )

    @app.post("/v1/token/burn")
    def burn(body: AmountBody, x_caller: Optional[str] = Header(None, alias="X-Caller")):
        return run("burn", x_caller, body.amount, view=ok(total_supply=lambda t: t.total_supply))

    @app.post("/v1/token/burn-from")
    def burn_from(body: BurnFromBody, x_caller: Optional[str] = Header(None, alias="X-Caller")):
        return run(
            "burn_from",
            x_caller,
            body.owner,
            body.amount,
            view=ok(balance=lambda t: t.balance_of(body.owner), total_supply=lambda t: t.total_supply),
        )

    @app.post("/v1/token/approve")
    def approve(body: ApproveBody, x_caller: Optional[str] = Header(None, alias="X-Caller")):
        run("approve", x_caller, body.spender, body.amount)
        return {"ok": True}

    # -------- Transfers --------
    @app.post("/v1/token/transfer")
    def transfer(body: TransferBody, x_caller: Optional[str] = Header(None, alias="X-Caller")):
        run("transfer", x_caller, body.to, body.amount)
        return {"ok": True}

    @app.post("/v1/token/transfer-from")
    def transfer_from(body: TransferFromBody, x_caller: Optional[str] = Header(None, alias="X-Caller")):
        run("transfer_from", x_caller, body.owner, body.to, body.amount)
        return {"ok": True}

    # -------- Locks + gate --------
    @app.post("/v1/token/lock")
    def lock(body: LockBody, x_caller: Optional[str] = Header(None, alias="X-Caller")):
        return run(
            "lock",
            x_caller,
            body.account,
            body.amount,
            view=ok(
                available=lambda t: t.balance_of(body.account),
                locked=lambda t: t.lock_of(body.account),
                total=lambda t: t.total_balance_of(body.account),
            ),
        )

    @app.post("/v1/token/gate")
    def gate(body: GateBody, x_caller: Optional[str] = Header(None, alias="X-Caller")):
        return run("set_enabled_from", x_caller, body.marker, view=ok(enabled_from=lambda t: t.enabled_from))

    @app.post("/v1/token/upgrade")
    def upgrade(x_caller: Optional[str] = Header(None, alias="X-Caller")):
        return run("upgrade", x_caller, view=ok(version=lambda t: t.version))

    # -------- Whitelist --------
    @app.post("/v1/whitelist/add")
    def whitelist_add(body: AccountBody, x_caller: Optional[str] = Header(None, alias="X-Caller")):
        run("add_whitelist", x_caller, body.account)
        return {"ok": True, "whitelisted": True}

    @app.post("/v1/whitelist/revoke")
    def whitelist_revoke(body: AccountBody, x_caller: Optional[str] = Header(None, alias="X-Caller")):
        run("revoke_whitelist", x_caller, body.account)
        return {"ok": True, "whitelisted": False}

    @app.post("/v1/whitelist/renounce")
    def whitelist_renounce(x_caller: Optional[str] = Header(None, alias="X-Caller")):
        run("renounce_whitelist", x_caller)
        return {"ok": True, "whitelisted": False}

    # -------- Ownership + clock --------
    @app.post("/v1/ownership/transfer")
    def ownership_transfer(body: OwnershipBody, x_caller: Optional[str] = Header(None, alias="X-Caller")):
        return run("transfer_ownership", x_caller, body.new_owner, view=ok(owner=lambda t: t.owner))

    @app.post("/v1/ownership/renounce")
    def ownership_renounce(x_caller: Optional[str] = Header(None, alias="X-Caller")):
        return run("renounce_ownership", x_caller, view=ok(owner=lambda t: t.owner))

    @app.post("/v1/clock/advance")
    def clock_advance(body: AdvanceBody, x_caller: Optional[str] = Header(None, alias="X-Caller")):
        caller = require_caller(x_caller)
        try:
            height = svc.advance_clock(caller, body.blocks)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"ok": True, "marker": height}

    return app
