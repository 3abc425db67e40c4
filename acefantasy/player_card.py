"""
acefantasy/player_card.py - PlayerCard asset registry (ERC-721 style).

Each card is a unique football player owned by one account. Leagues only
rely on ownership lookups; points are updated by an oracle-style role as
real matches are played.
"""

import dataclasses
import logging
from dataclasses import dataclass
from enum import IntEnum

from .access import DEFAULT_ADMIN_ROLE, AccessControl, role_id
from .chain import ZERO_ADDRESS, as_address, external
from .errors import InvalidRecipient, NonexistentToken, NotTokenOwner, PreconditionError

logger = logging.getLogger(__name__)

MINTER_ROLE = role_id("MINTER_ROLE")
UPDATER_ROLE = role_id("UPDATER_ROLE")


class Position(IntEnum):
    GK = 1
    DEF = 2
    MID = 3
    FWD = 4


@dataclass
class Player:
    id: int
    name: str
    position: Position
    team_id: int
    value: int
    points: int = 0


class PlayerCard(AccessControl):
    """Player card registry. The deployer holds every role."""

    name = "AceFantasy Player"
    symbol = "ACEP"

    def __init__(self):
        self._init_roles()
        self._players: dict[int, Player] = {}
        self._owners: dict[int, str] = {}
        self._holdings: dict[str, int] = {}
        self._next_id = 1

        deployer = self.msg.sender
        self._grant_role(DEFAULT_ADMIN_ROLE, deployer)
        self._grant_role(MINTER_ROLE, deployer)
        self._grant_role(UPDATER_ROLE, deployer)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def owner_of(self, token_id: int) -> str:
        owner = self._owners.get(token_id)
        if owner is None:
            raise NonexistentToken()
        return owner

    def balance_of(self, owner) -> int:
        return self._holdings.get(as_address(owner), 0)

    def players(self, token_id: int) -> Player:
        """Copy of the card's attributes. Mutating it changes nothing."""
        if token_id not in self._players:
            raise NonexistentToken()
        return dataclasses.replace(self._players[token_id])

    def tokens_of(self, owner) -> list[int]:
        owner = as_address(owner)
        return sorted(tid for tid, holder in self._owners.items() if holder == owner)

    @property
    def total_supply(self) -> int:
        return len(self._owners)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    @external
    def mint_player(self, to, name: str, position: int, team_id: int, value: int) -> int:
        self._check_role(MINTER_ROLE)
        to = as_address(to)
        if to == ZERO_ADDRESS:
            raise InvalidRecipient()

        try:
            position = Position(position)
        except ValueError:
            raise PreconditionError("Invalid position") from None

        token_id = self._next_id
        self._next_id += 1
        self._players[token_id] = Player(
            id=token_id,
            name=name,
            position=position,
            team_id=team_id,
            value=value,
        )
        self._owners[token_id] = to
        self._holdings[to] = self._holdings.get(to, 0) + 1

        self.emit("Transfer", from_=ZERO_ADDRESS, to=to, token_id=token_id)
        self.emit("PlayerMinted", token_id=token_id, owner=to, name=name, position=int(position))
        return token_id

    @external
    def update_player_points(self, token_id: int, points: int) -> None:
        self._check_role(UPDATER_ROLE)
        if token_id not in self._players:
            raise NonexistentToken()
        self._players[token_id].points = points
        self.emit("PointsUpdated", token_id=token_id, points=points)

    @external
    def transfer_from(self, from_, to, token_id: int) -> None:
        from_ = as_address(from_)
        to = as_address(to)
        owner = self.owner_of(token_id)
        if owner != from_ or self.msg.sender != owner:
            raise NotTokenOwner()
        if to == ZERO_ADDRESS:
            raise InvalidRecipient()

        self._owners[token_id] = to
        self._holdings[from_] -= 1
        self._holdings[to] = self._holdings.get(to, 0) + 1
        self.emit("Transfer", from_=from_, to=to, token_id=token_id)
