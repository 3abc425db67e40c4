"""
acefantasy/tournament.py - Prize tournaments funded by plain transfers.

Anyone can top up the prize pool by sending value to the tournament address,
before or after it is created. After end_time the admin distributes the pool
once; winners claim their share individually.
"""

import logging

from .chain import Contract, as_address, external
from .clock import Schedule
from .payout import PayoutLedger

logger = logging.getLogger(__name__)


class Tournament(PayoutLedger):
    def __init__(self, name: str, start_time: int, end_time: int, admin: str):
        self._schedule = Schedule(start_time, end_time)
        self._name = name
        self._init_payouts(as_address(admin))

    @property
    def name(self) -> str:
        return self._name

    def receive(self) -> None:
        self.emit("FundsReceived", sender=self.msg.sender, amount=self.msg.value)
        logger.debug(f"{self!r}: +{self.msg.value} wei from {self.msg.sender}")


class TournamentFactory(Contract):
    def __init__(self):
        self._tournaments: list[str] = []

    @property
    def tournaments(self) -> list[str]:
        return list(self._tournaments)

    @property
    def tournament_count(self) -> int:
        return len(self._tournaments)

    @external
    def create_tournament(self, name: str, start_time: int, end_time: int) -> str:
        """Create a tournament administered by the caller. Returns its address."""
        creator = self.msg.sender
        tournament = self.chain.create(Tournament, name, start_time, end_time, admin=creator)
        self._tournaments.append(tournament.address)

        self.emit(
            "TournamentCreated",
            tournament_address=tournament.address,
            name=name,
            creator=creator,
            start_time=start_time,
            end_time=end_time,
        )
        logger.info(f"Tournament {name!r} created at {tournament.address} by {creator}")
        return tournament.address
