"""
acefantasy/game.py - Wire up a full AceFantasy deployment on one chain.

The PlayerCard registry, LeagueFactory and TournamentFactory are deployed by
the same owner account, which therefore holds the minter and updater roles.
"""

import logging
from dataclasses import dataclass

from .chain import Chain, as_address
from .config import TEAM_SIZE
from .league import League, LeagueFactory
from .player_card import PlayerCard
from .tournament import Tournament, TournamentFactory

logger = logging.getLogger(__name__)


@dataclass
class Deployment:
    chain: Chain
    owner: str
    player_card: PlayerCard
    league_factory: LeagueFactory
    tournament_factory: TournamentFactory

    def league(self, address) -> League:
        contract = self.chain.contract_at(address)
        if not isinstance(contract, League):
            raise KeyError(f"No league at {as_address(address)}")
        return contract

    def tournament(self, address) -> Tournament:
        contract = self.chain.contract_at(address)
        if not isinstance(contract, Tournament):
            raise KeyError(f"No tournament at {as_address(address)}")
        return contract

    def addresses(self) -> dict[str, str]:
        return {
            "player_card": self.player_card.address,
            "league_factory": self.league_factory.address,
            "tournament_factory": self.tournament_factory.address,
        }


def deploy_game(chain: Chain, owner=None, team_size: int = TEAM_SIZE) -> Deployment:
    """Deploy the three root contracts from ``owner`` (default: first account)."""
    owner = as_address(owner if owner is not None else chain.accounts[0])

    player_card = chain.deploy(PlayerCard, sender=owner)
    league_factory = chain.deploy(LeagueFactory, player_card.address, team_size=team_size, sender=owner)
    tournament_factory = chain.deploy(TournamentFactory, sender=owner)

    logger.info(
        f"Deployed PlayerCard {player_card.address}, LeagueFactory {league_factory.address}, "
        f"TournamentFactory {tournament_factory.address}"
    )
    return Deployment(
        chain=chain,
        owner=owner,
        player_card=player_card,
        league_factory=league_factory,
        tournament_factory=tournament_factory,
    )
