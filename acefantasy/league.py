"""
acefantasy/league.py - Fantasy leagues with entry-fee escrow.

Participants register an 11-card team they own by attaching exactly the
entry fee before the league starts. Fees stay in the league; once it ends
the league admin distributes them to winners, who claim individually.
"""

import logging

from .chain import Contract, as_address, external
from .clock import Phase, Schedule
from .config import TEAM_SIZE
from .errors import (
    AlreadyRegistered,
    AssetNotOwned,
    ConfigurationError,
    IncorrectEntryFee,
    InvalidMaxTeams,
    LeagueFull,
    PreconditionError,
    RegistrationClosed,
    TeamSizeInvalid,
)
from .payout import PayoutLedger

logger = logging.getLogger(__name__)


class League(PayoutLedger):
    """One league. Configuration is fixed by the constructor."""

    def __init__(
        self,
        name: str,
        entry_fee: int,
        max_teams: int,
        start_time: int,
        end_time: int,
        player_card: str,
        admin: str,
        team_size: int = TEAM_SIZE,
    ):
        self._schedule = Schedule(start_time, end_time)
        if max_teams <= 0:
            raise InvalidMaxTeams()
        if entry_fee < 0:
            raise ConfigurationError("Invalid entry fee")
        if team_size <= 0:
            raise ConfigurationError("Invalid team size")

        self._name = name
        self._entry_fee = entry_fee
        self._max_teams = max_teams
        self._team_size = team_size
        self._player_card = as_address(player_card)

        self._teams: dict[str, tuple[int, ...]] = {}
        self._registered_count = 0

        self._init_payouts(as_address(admin))

    # ------------------------------------------------------------------
    # Configuration (read-only)
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def entry_fee(self) -> int:
        return self._entry_fee

    @property
    def max_teams(self) -> int:
        return self._max_teams

    @property
    def team_size(self) -> int:
        return self._team_size

    @property
    def player_card(self) -> str:
        return self._player_card

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def registered_count(self) -> int:
        return self._registered_count

    @property
    def escrow_balance(self) -> int:
        """Entry fees collected: always registered_count * entry_fee."""
        return self._registered_count * self._entry_fee

    def is_registered(self, participant) -> bool:
        return as_address(participant) in self._teams

    def get_team(self, participant) -> list[int]:
        return list(self._teams.get(as_address(participant), ()))

    def participants(self) -> list[str]:
        return list(self._teams)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    @external(payable=True)
    def register_team(self, player_ids: list[int]) -> None:
        participant = self.msg.sender

        if self.msg.value != self._entry_fee:
            raise IncorrectEntryFee()
        if self.phase is not Phase.OPEN:
            raise RegistrationClosed()
        if self.is_registered(participant):
            raise AlreadyRegistered()
        if self._registered_count >= self._max_teams:
            raise LeagueFull()

        team = tuple(player_ids)
        if not all(isinstance(pid, int) and not isinstance(pid, bool) for pid in team):
            raise PreconditionError("Invalid player id")
        if len(team) != self._team_size:
            raise TeamSizeInvalid()
        if len(set(team)) != len(team):
            raise TeamSizeInvalid("Duplicate player")

        registry = self.chain.contract_at(self._player_card)
        for player_id in team:
            if registry.owner_of(player_id) != participant:
                raise AssetNotOwned(f"Not player owner: {player_id}")

        self._teams[participant] = team
        self._registered_count += 1

        self.emit("TeamRegistered", participant=participant, player_ids=list(team))
        logger.info(
            f"{self!r}: team registered by {participant} "
            f"({self._registered_count}/{self._max_teams})"
        )


class LeagueFactory(Contract):
    """Creates leagues bound to one PlayerCard registry."""

    def __init__(self, player_card, team_size: int = TEAM_SIZE):
        if team_size <= 0:
            raise ConfigurationError("Invalid team size")
        self.player_card = as_address(player_card)
        self.team_size = team_size
        self._leagues: list[str] = []

    @property
    def leagues(self) -> list[str]:
        return list(self._leagues)

    @property
    def league_count(self) -> int:
        return len(self._leagues)

    @external
    def create_league(
        self,
        name: str,
        entry_fee: int,
        max_teams: int,
        start_time: int,
        end_time: int,
    ) -> str:
        """Create a league administered by the caller. Returns its address."""
        creator = self.msg.sender
        league = self.chain.create(
            League,
            name,
            entry_fee,
            max_teams,
            start_time,
            end_time,
            player_card=self.player_card,
            admin=creator,
            team_size=self.team_size,
        )
        self._leagues.append(league.address)

        self.emit(
            "LeagueCreated",
            league_address=league.address,
            name=name,
            creator=creator,
            entry_fee=entry_fee,
            max_teams=max_teams,
            start_time=start_time,
            end_time=end_time,
        )
        logger.info(f"League {name!r} created at {league.address} by {creator}")
        return league.address
