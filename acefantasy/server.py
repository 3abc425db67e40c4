"""
acefantasy/server.py - FastAPI gateway over a local AceFantasy chain.

One simulated chain per server lifetime, with the game contracts deployed by
the first dev account at startup. Dev accounts are unlocked: requests name
their ``sender`` address and the gateway submits the call on its behalf.

Endpoints:
    GET    /health                          Chain height and time
    GET    /accounts                        Dev accounts with balances
    GET    /deployment                      Root contract addresses
    POST   /time/increase                   Mine an empty block later in time
    POST   /cards                           Mint a player card (minter only)
    GET    /cards/{id}                      Card attributes + owner
    POST   /cards/{id}/points               Update points (updater only)
    POST   /leagues                         Create a league
    GET    /leagues/{address}               League state
    POST   /leagues/{address}/teams         Register a team (attach value)
    POST   /tournaments                     Create a tournament
    GET    /tournaments/{address}           Tournament state
    POST   /transfers                       Plain value transfer (funds a pool)
    POST   /payouts/{address}/distribute    Distribute a closed pool
    POST   /payouts/{address}/claim         Claim the sender's reward
    GET    /payouts/{address}/rewards/{acct} Claimable amount
    GET    /events                          Event log, filterable

Rejected calls return 400 with {"error": <code>, "reason": <reason>}.
"""

import functools
import logging
import threading
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .chain import Chain, Event, as_address
from .config import AcefantasyConfig
from .errors import Revert
from .game import Deployment, deploy_game
from .payout import PayoutLedger

logger = logging.getLogger(__name__)


# Global deployment — set during lifespan
_deployment: Deployment | None = None

# Sync endpoints run in a threadpool; one transaction or read at a time
_chain_lock = threading.Lock()


def get_deployment() -> Deployment:
    assert _deployment is not None, "Chain not initialized"
    return _deployment


def start_chain(config: AcefantasyConfig | None = None) -> Deployment:
    """Create a fresh chain and deploy the game on it."""
    global _deployment
    config = config or AcefantasyConfig()
    with _chain_lock:
        chain = Chain(config=config.chain)
        _deployment = deploy_game(chain, team_size=config.league.team_size)
    return _deployment


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _deployment
    config = getattr(app.state, "config", None)
    deployment = start_chain(config)
    logger.info(f"Chain {deployment.chain.chain_id} ready at block {deployment.chain.latest.number}")
    for name, address in deployment.addresses().items():
        logger.info(f"  {name}: {address}")
    yield
    _deployment = None


app = FastAPI(title="AceFantasy", lifespan=lifespan)


# ======================================================================
# Request/Response Models
# ======================================================================


class IncreaseTimeRequest(BaseModel):
    seconds: int | None = None
    timestamp: int | None = None


class MintRequest(BaseModel):
    sender: str
    to: str
    name: str
    position: int
    team_id: int
    value: int


class PointsRequest(BaseModel):
    sender: str
    points: int


class CreateLeagueRequest(BaseModel):
    sender: str
    name: str
    entry_fee: int  # wei
    max_teams: int
    start_time: int
    end_time: int


class RegisterTeamRequest(BaseModel):
    sender: str
    player_ids: list[int]
    value: int  # wei attached; must equal the entry fee


class CreateTournamentRequest(BaseModel):
    sender: str
    name: str
    start_time: int
    end_time: int


class TransferRequest(BaseModel):
    sender: str
    to: str
    value: int


class DistributeRequest(BaseModel):
    sender: str
    winners: list[str]
    amounts: list[int]


class ClaimRequest(BaseModel):
    sender: str


class CreatedResponse(BaseModel):
    address: str
    block_number: int


class TxResponse(BaseModel):
    success: bool
    block_number: int
    events: list[dict[str, Any]] = []


# ======================================================================
# Helpers
# ======================================================================


def _serialized(endpoint):
    """Hold the chain lock for the whole request so calls never interleave."""

    @functools.wraps(endpoint)
    def wrapper(*args, **kwargs):
        with _chain_lock:
            return endpoint(*args, **kwargs)

    return wrapper


def _jsonable(value: Any) -> Any:
    if isinstance(value, bytes):
        return "0x" + value.hex()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _event_dict(event: Event) -> dict[str, Any]:
    return {
        "name": event.name,
        "address": event.address,
        "block_number": event.block_number,
        "args": {k: _jsonable(v) for k, v in event.args.items()},
    }


def _submit(fn, *args, **kwargs) -> Any:
    """Run a state-changing call, mapping reverts to HTTP 400."""
    try:
        return fn(*args, **kwargs)
    except Revert as e:
        raise HTTPException(status_code=400, detail={"error": e.code, "reason": e.reason})
    except ValueError as e:
        # Malformed addresses from eth-utils checksum conversion
        raise HTTPException(status_code=422, detail=str(e))


def _tx_response(chain: Chain) -> dict[str, Any]:
    receipt = chain.last_receipt
    return {
        "success": True,
        "block_number": receipt.block_number,
        "events": [_event_dict(e) for e in receipt.logs],
    }


def _ledger(address: str) -> PayoutLedger:
    deployment = get_deployment()
    try:
        contract = deployment.chain.contract_at(address)
    except (KeyError, ValueError):
        raise HTTPException(status_code=404, detail="Contract not found")
    if not isinstance(contract, PayoutLedger):
        raise HTTPException(status_code=404, detail="Not a league or tournament")
    return contract


def _ledger_state(ledger: PayoutLedger) -> dict[str, Any]:
    return {
        "address": ledger.address,
        "name": ledger.name,
        "start_time": ledger.start_time,
        "end_time": ledger.end_time,
        "phase": ledger.phase.value,
        "prize_pool": ledger.prize_pool,
        "distributed": ledger.distributed,
        "distributed_total": ledger.distributed_total,
        "claimed_total": ledger.claimed_total,
        "outstanding": ledger.outstanding,
    }


# ======================================================================
# Endpoints
# ======================================================================


@app.get("/health")
@_serialized
def health() -> dict[str, Any]:
    chain = get_deployment().chain
    return {
        "status": "ok",
        "chain_id": chain.chain_id,
        "block_number": chain.latest.number,
        "timestamp": chain.latest.timestamp,
    }


@app.get("/accounts")
@_serialized
def accounts() -> list[dict[str, Any]]:
    chain = get_deployment().chain
    return [
        {"address": as_address(a), "balance": chain.balance_of(a)}
        for a in chain.accounts
    ]


@app.get("/deployment")
@_serialized
def deployment_addresses() -> dict[str, str]:
    return get_deployment().addresses()


@app.post("/time/increase")
@_serialized
def increase_time(req: IncreaseTimeRequest) -> dict[str, Any]:
    chain = get_deployment().chain
    if (req.seconds is None) == (req.timestamp is None):
        raise HTTPException(status_code=422, detail="Give exactly one of seconds or timestamp")
    if req.seconds is not None:
        block = _submit(chain.increase, req.seconds)
    else:
        block = _submit(chain.increase_to, req.timestamp)
    return {"block_number": block.number, "timestamp": block.timestamp}


# ----------------------------------------------------------------------
# Player cards
# ----------------------------------------------------------------------


@app.post("/cards")
@_serialized
def mint_card(req: MintRequest) -> dict[str, Any]:
    deployment = get_deployment()
    token_id = _submit(
        deployment.player_card.mint_player,
        req.to, req.name, req.position, req.team_id, req.value,
        sender=req.sender,
    )
    return {"id": token_id, **_tx_response(deployment.chain)}


@app.get("/cards/{token_id}")
@_serialized
def get_card(token_id: int) -> dict[str, Any]:
    card = get_deployment().player_card
    try:
        player = card.players(token_id)
    except Revert:
        raise HTTPException(status_code=404, detail="Card not found")
    return {
        "id": player.id,
        "owner": card.owner_of(token_id),
        "name": player.name,
        "position": player.position.name,
        "team_id": player.team_id,
        "value": player.value,
        "points": player.points,
    }


@app.post("/cards/{token_id}/points", response_model=TxResponse)
@_serialized
def update_points(token_id: int, req: PointsRequest) -> dict[str, Any]:
    deployment = get_deployment()
    _submit(deployment.player_card.update_player_points, token_id, req.points, sender=req.sender)
    return _tx_response(deployment.chain)


# ----------------------------------------------------------------------
# Leagues
# ----------------------------------------------------------------------


@app.post("/leagues", response_model=CreatedResponse)
@_serialized
def create_league(req: CreateLeagueRequest) -> dict[str, Any]:
    deployment = get_deployment()
    address = _submit(
        deployment.league_factory.create_league,
        req.name, req.entry_fee, req.max_teams, req.start_time, req.end_time,
        sender=req.sender,
    )
    return {"address": address, "block_number": deployment.chain.latest.number}


@app.get("/leagues/{address}")
@_serialized
def get_league(address: str) -> dict[str, Any]:
    deployment = get_deployment()
    try:
        league = deployment.league(address)
    except (KeyError, ValueError):
        raise HTTPException(status_code=404, detail="League not found")
    return {
        **_ledger_state(league),
        "entry_fee": league.entry_fee,
        "max_teams": league.max_teams,
        "team_size": league.team_size,
        "registered_count": league.registered_count,
        "participants": league.participants(),
    }


@app.post("/leagues/{address}/teams", response_model=TxResponse)
@_serialized
def register_team(address: str, req: RegisterTeamRequest) -> dict[str, Any]:
    deployment = get_deployment()
    try:
        league = deployment.league(address)
    except (KeyError, ValueError):
        raise HTTPException(status_code=404, detail="League not found")
    _submit(league.register_team, req.player_ids, sender=req.sender, value=req.value)
    return _tx_response(deployment.chain)


# ----------------------------------------------------------------------
# Tournaments
# ----------------------------------------------------------------------


@app.post("/tournaments", response_model=CreatedResponse)
@_serialized
def create_tournament(req: CreateTournamentRequest) -> dict[str, Any]:
    deployment = get_deployment()
    address = _submit(
        deployment.tournament_factory.create_tournament,
        req.name, req.start_time, req.end_time,
        sender=req.sender,
    )
    return {"address": address, "block_number": deployment.chain.latest.number}


@app.get("/tournaments/{address}")
@_serialized
def get_tournament(address: str) -> dict[str, Any]:
    deployment = get_deployment()
    try:
        tournament = deployment.tournament(address)
    except (KeyError, ValueError):
        raise HTTPException(status_code=404, detail="Tournament not found")
    return _ledger_state(tournament)


@app.post("/transfers", response_model=TxResponse)
@_serialized
def transfer(req: TransferRequest) -> dict[str, Any]:
    chain = get_deployment().chain
    _submit(chain.send_value, req.sender, req.to, req.value)
    return _tx_response(chain)


# ----------------------------------------------------------------------
# Payouts (leagues and tournaments)
# ----------------------------------------------------------------------


@app.post("/payouts/{address}/distribute", response_model=TxResponse)
@_serialized
def distribute(address: str, req: DistributeRequest) -> dict[str, Any]:
    ledger = _ledger(address)
    _submit(ledger.distribute_rewards, req.winners, req.amounts, sender=req.sender)
    return _tx_response(ledger.chain)


@app.post("/payouts/{address}/claim", response_model=TxResponse)
@_serialized
def claim(address: str, req: ClaimRequest) -> dict[str, Any]:
    ledger = _ledger(address)
    _submit(ledger.claim_reward, sender=req.sender)
    return _tx_response(ledger.chain)


@app.get("/payouts/{address}/rewards/{account}")
@_serialized
def reward_of(address: str, account: str) -> dict[str, Any]:
    ledger = _ledger(address)
    try:
        amount = ledger.rewards(account)
    except ValueError:
        raise HTTPException(status_code=422, detail="Invalid account address")
    return {"account": as_address(account), "amount": amount}


# ----------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------


@app.get("/events")
@_serialized
def events(name: str | None = None, address: str | None = None) -> list[dict[str, Any]]:
    chain = get_deployment().chain
    try:
        matched = chain.events(name=name, address=address)
    except ValueError:
        raise HTTPException(status_code=422, detail="Invalid address")
    return [_event_dict(e) for e in matched]
