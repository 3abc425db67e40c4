"""
acefantasy/chain.py - In-process host ledger for the AceFantasy contracts.

Executes contract calls as atomic message calls against a single world state
(balances, nonces, contract storage, event log). Every call, top-level or
nested, snapshots the world first and restores it if anything raises, so a
rejected operation never leaves partial effects behind.

Top-level calls mine one block each. Block timestamps advance by one second
per block unless moved with increase_to()/increase(), the same way a local
hardhat node behaves with automine on.

Usage:
    chain = Chain()
    owner, alice = chain.accounts[:2]
    card = chain.deploy(PlayerCard, sender=owner)
    card.mint_player(alice, "Keeper", Position.GK, 1, 1000, sender=owner)
"""

import copy
import functools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import rlp
from eth_utils import keccak, to_canonical_address, to_checksum_address

from .config import ChainConfig
from .errors import InsufficientBalance, LedgerError, NonPayable, Revert, TimeTravelError, TransferFailed
from .units import parse_ether
from .wallet import derive_accounts

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def as_address(account: Any) -> str:
    """Checksummed address for an address string or anything with .address."""
    return to_checksum_address(getattr(account, "address", account))


def contract_address(deployer: str, nonce: int) -> str:
    """Ethereum CREATE address: keccak(rlp([deployer, nonce]))[12:]."""
    encoded = rlp.encode([to_canonical_address(deployer), nonce])
    return to_checksum_address(keccak(encoded)[12:])


# ============================================================================
# Data Types
# ============================================================================


@dataclass(frozen=True)
class Message:
    """The executing call frame: who called, which contract, how much value."""

    sender: str
    to: str
    value: int = 0


@dataclass(frozen=True)
class Block:
    number: int
    timestamp: int


@dataclass(frozen=True)
class Event:
    """One emitted log entry."""

    name: str
    address: str
    args: dict[str, Any]
    block_number: int

    def __getitem__(self, key: str) -> Any:
        return self.args[key]


@dataclass
class Receipt:
    """Outcome of a mined top-level call."""

    sender: str
    to: str
    block_number: int
    timestamp: int
    logs: list[Event] = field(default_factory=list)
    return_value: Any = None

    def events(self, name: str) -> list[Event]:
        return [e for e in self.logs if e.name == name]


@dataclass
class _WorldState:
    balances: dict[str, int]
    nonces: dict[str, int]
    contracts: dict[str, "Contract"]
    storage: dict[str, dict[str, Any]]
    log_count: int


# ============================================================================
# Contracts
# ============================================================================


def external(fn: Callable | None = None, *, payable: bool = False):
    """Mark a contract method as a state-changing entry point.

    The wrapped method takes keyword-only ``sender`` (and ``value`` when
    payable) and runs as an atomic message call on the contract's chain.

        @external
        def claim_reward(self): ...

        @external(payable=True)
        def register_team(self, player_ids): ...
    """

    def decorate(method: Callable) -> Callable:
        @functools.wraps(method)
        def wrapper(self, *args, sender, value: int = 0, **kwargs):
            if value and not payable:
                raise NonPayable()
            return self.chain.message_call(
                sender, self.address, value, lambda: method(self, *args, **kwargs)
            )

        wrapper.payable = payable
        return wrapper

    if fn is not None:
        return decorate(fn)
    return decorate


class Contract:
    """Base for simulated contracts.

    Instances are built by Chain.deploy()/Chain.create(), which attach
    ``chain`` and ``address`` before ``__init__`` runs so constructors can
    read ``self.msg`` and emit events. Everything else in ``vars(self)`` is
    storage and is snapshotted around every call.
    """

    chain: "Chain"
    address: str

    _UNSNAPSHOTTED = ("chain", "address")

    @property
    def msg(self) -> Message:
        return self.chain.message

    @property
    def now(self) -> int:
        return self.chain.block.timestamp

    @property
    def balance(self) -> int:
        return self.chain.balance_of(self.address)

    def receive(self) -> None:
        """Plain value transfers are rejected unless a contract overrides this."""
        raise NonPayable()

    def emit(self, event_name: str, /, **args: Any) -> None:
        self.chain.emit(self.address, event_name, args)

    def _send(self, to: str, amount: int) -> None:
        self.chain.transfer(self.address, to, amount)

    def _dump_storage(self) -> dict[str, Any]:
        return copy.deepcopy(
            {k: v for k, v in vars(self).items() if k not in self._UNSNAPSHOTTED}
        )

    def _load_storage(self, storage: dict[str, Any]) -> None:
        for key in [k for k in vars(self) if k not in self._UNSNAPSHOTTED]:
            delattr(self, key)
        vars(self).update(storage)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.address}>"


# ============================================================================
# Chain
# ============================================================================


class Chain:
    """Deterministic single-threaded ledger.

    Args:
        accounts: Funded externally-owned accounts (eth_account LocalAccounts
            or plain addresses). Defaults to the dev accounts from
            ``config`` (or the built-in ChainConfig defaults).
        config: ChainConfig supplying chain_id, mnemonic, account count,
            initial balance and genesis timestamp.
    """

    def __init__(self, accounts: list | None = None, config: ChainConfig | None = None):
        self.config = config or ChainConfig()
        self.chain_id = self.config.chain_id

        if accounts is None:
            accounts = derive_accounts(self.config.mnemonic, self.config.accounts)
        self.accounts = list(accounts)

        genesis_time = self.config.genesis_timestamp
        if genesis_time is None:
            genesis_time = int(time.time())
        self.blocks: list[Block] = [Block(0, genesis_time)]
        self.receipts: list[Receipt] = []
        self.logs: list[Event] = []

        self._balances: dict[str, int] = {}
        self._nonces: dict[str, int] = {}
        self._contracts: dict[str, Contract] = {}
        self._frames: list[Message] = []
        self._pending: Block | None = None

        initial = parse_ether(self.config.initial_balance)
        for account in self.accounts:
            self._balances[as_address(account)] = initial

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def latest(self) -> Block:
        return self.blocks[-1]

    @property
    def block(self) -> Block:
        """Block being executed, or the latest mined block outside a call."""
        return self._pending or self.latest

    @property
    def message(self) -> Message:
        if not self._frames:
            raise RuntimeError("No call in progress")
        return self._frames[-1]

    @property
    def last_receipt(self) -> Receipt | None:
        return self.receipts[-1] if self.receipts else None

    def balance_of(self, account: Any) -> int:
        return self._balances.get(as_address(account), 0)

    def nonce_of(self, account: Any) -> int:
        return self._nonces.get(as_address(account), 0)

    def is_contract(self, account: Any) -> bool:
        return as_address(account) in self._contracts

    def contract_at(self, address: Any) -> Contract:
        address = as_address(address)
        contract = self._contracts.get(address)
        if contract is None:
            raise KeyError(f"No contract at {address}")
        return contract

    def events(self, name: str | None = None, address: Any = None) -> list[Event]:
        """Filter the global log by event name and/or emitting address."""
        wanted = as_address(address) if address is not None else None
        return [
            e for e in self.logs
            if (name is None or e.name == name) and (wanted is None or e.address == wanted)
        ]

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def increase_to(self, timestamp: int) -> Block:
        """Mine an empty block at ``timestamp``."""
        if self._pending is not None:
            raise LedgerError("Cannot move time during a call")
        if timestamp <= self.latest.timestamp:
            raise TimeTravelError()
        block = Block(self.latest.number + 1, timestamp)
        self.blocks.append(block)
        return block

    def increase(self, seconds: int) -> Block:
        if seconds <= 0:
            raise TimeTravelError("Seconds must be positive")
        return self.increase_to(self.latest.timestamp + seconds)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def deploy(self, contract_cls: type, *args, sender, value: int = 0, **kwargs) -> Contract:
        """Deploy a contract from an externally-owned account."""
        sender = as_address(sender)
        address = contract_address(sender, self.nonce_of(sender))
        return self.message_call(
            sender, address, value,
            lambda: self._instantiate(contract_cls, address, args, kwargs),
        )

    def create(self, contract_cls: type, *args, **kwargs) -> Contract:
        """Deploy a contract from inside the executing contract (CREATE)."""
        creator = self.message.to
        nonce = self._nonces.get(creator, 1)
        self._nonces[creator] = nonce + 1
        address = contract_address(creator, nonce)
        return self.message_call(
            creator, address, 0,
            lambda: self._instantiate(contract_cls, address, args, kwargs),
        )

    def send_value(self, sender, to, value: int) -> Receipt:
        """Plain value transfer from an externally-owned account."""
        self.message_call(sender, to, value, lambda: self._deliver(as_address(to)))
        return self.last_receipt

    def transfer(self, source: str, to: Any, amount: int) -> None:
        """Value transfer made by a contract. Recipient hooks run nested."""
        to = as_address(to)
        try:
            self.message_call(source, to, amount, lambda: self._deliver(to))
        except Revert as e:
            raise TransferFailed() from e

    def message_call(self, sender: Any, to: Any, value: int, body: Callable[[], Any]) -> Any:
        """Run ``body`` as one atomic call frame.

        Any exception restores the world state captured on entry and
        propagates. A successful top-level call mines a block and records a
        Receipt.
        """
        sender = as_address(sender)
        to = as_address(to)
        if value < 0:
            raise LedgerError("Negative value")

        top_level = self._pending is None
        if top_level:
            self._pending = Block(self.latest.number + 1, self.latest.timestamp + 1)

        log_start = len(self.logs)
        state = self._capture()
        self._frames.append(Message(sender, to, value))
        try:
            self._move(sender, to, value)
            result = body()
        except Exception as e:
            self._restore(state)
            if top_level and isinstance(e, Revert):
                logger.debug(f"Call {sender} -> {to} reverted: {e.reason}")
            raise
        finally:
            self._frames.pop()
            if top_level:
                block, self._pending = self._pending, None

        if top_level:
            self._mine(block, sender, to, self.logs[log_start:], result)
        return result

    def emit(self, address: str, name: str, args: dict[str, Any]) -> Event:
        event = Event(name, address, dict(args), self.block.number)
        self.logs.append(event)
        return event

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _instantiate(self, contract_cls: type, address: str, args, kwargs) -> Contract:
        contract = contract_cls.__new__(contract_cls)
        contract.chain = self
        contract.address = address
        self._contracts[address] = contract
        self._nonces.setdefault(address, 1)
        contract.__init__(*args, **kwargs)
        return contract

    def _deliver(self, to: str) -> None:
        contract = self._contracts.get(to)
        if contract is not None:
            contract.receive()

    def _move(self, sender: str, to: str, value: int) -> None:
        if value == 0:
            return
        available = self._balances.get(sender, 0)
        if available < value:
            raise InsufficientBalance(
                f"Insufficient balance: {sender} has {available}, needs {value}"
            )
        self._balances[sender] = available - value
        self._balances[to] = self._balances.get(to, 0) + value

    def _mine(self, block: Block, sender: str, to: str, logs: list[Event], result: Any) -> None:
        self.blocks.append(block)
        if not self.is_contract(sender):
            self._nonces[sender] = self._nonces.get(sender, 0) + 1
        self.receipts.append(
            Receipt(
                sender=sender,
                to=to,
                block_number=block.number,
                timestamp=block.timestamp,
                logs=list(logs),
                return_value=result,
            )
        )

    def _capture(self) -> _WorldState:
        return _WorldState(
            balances=dict(self._balances),
            nonces=dict(self._nonces),
            contracts=dict(self._contracts),
            storage={addr: c._dump_storage() for addr, c in self._contracts.items()},
            log_count=len(self.logs),
        )

    def _restore(self, state: _WorldState) -> None:
        self._balances = state.balances
        self._nonces = state.nonces
        self._contracts = state.contracts
        for addr, contract in self._contracts.items():
            contract._load_storage(state.storage[addr])
        del self.logs[state.log_count:]
