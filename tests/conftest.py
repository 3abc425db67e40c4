"""Shared fixtures: a fresh chain with the game deployed, plus named signers."""

import pytest

from acefantasy.chain import Chain, as_address
from acefantasy.config import ChainConfig
from acefantasy.game import deploy_game
from acefantasy.player_card import Position
from acefantasy.units import parse_ether

GENESIS_TIMESTAMP = 1_700_000_000
WEEK_IN_SECS = 7 * 24 * 60 * 60


@pytest.fixture
def chain():
    """Fresh chain with a fixed genesis time so block timestamps are predictable."""
    return Chain(config=ChainConfig(genesis_timestamp=GENESIS_TIMESTAMP))


@pytest.fixture
def game(chain):
    """PlayerCard + both factories, deployed by account #0."""
    return deploy_game(chain)


@pytest.fixture
def owner(chain):
    return as_address(chain.accounts[0])


@pytest.fixture
def admin(chain):
    return as_address(chain.accounts[1])


@pytest.fixture
def user1(chain):
    return as_address(chain.accounts[2])


@pytest.fixture
def user2(chain):
    return as_address(chain.accounts[3])


@pytest.fixture
def schedule(game):
    """(start_time, end_time): starts in a week, runs for a week."""
    start = game.chain.latest.timestamp + WEEK_IN_SECS
    return start, start + WEEK_IN_SECS


@pytest.fixture
def entry_fee():
    return parse_ether("0.1")


@pytest.fixture
def mint_squad(game, owner):
    """Mint ``count`` cards to ``to`` and return their ids."""

    def _mint(to, count: int = 11) -> list[int]:
        return [
            game.player_card.mint_player(to, f"Player {i}", Position.MID, 1, 1000, sender=owner)
            for i in range(count)
        ]

    return _mint
