"""Tests for acefantasy.tournament — funding, distribution, claims and conservation."""

import random

import pytest

from acefantasy.chain import ZERO_ADDRESS, Contract, contract_address, external
from acefantasy.errors import (
    AlreadyDistributed,
    InsufficientPool,
    InvalidEndTime,
    InvalidRecipient,
    LengthMismatch,
    MissingRole,
    NoRewardToClaim,
    NotClosed,
    NotDistributed,
    PreconditionError,
    TransferFailed,
)
from acefantasy.payout import DISTRIBUTOR_ROLE
from acefantasy.units import parse_ether

PRIZE = parse_ether("1.0")
SHARES = [parse_ether("0.6"), parse_ether("0.4")]


@pytest.fixture
def tournament(game, owner, schedule):
    """Tournament created by the owner and funded with 1 ether."""
    start, end = schedule
    address = game.tournament_factory.create_tournament("Test Tournament", start, end, sender=owner)
    game.chain.send_value(owner, address, PRIZE)
    return game.tournament(address)


@pytest.fixture
def closed(tournament, schedule):
    _, end = schedule
    tournament.chain.increase_to(end + 1)
    return tournament


# ============================================================================
# Test contracts
# ============================================================================


class Reentrant(Contract):
    """Winner contract whose receive hook tries to claim again."""

    def __init__(self, target: str, swallow: bool):
        self.target = target
        self.swallow = swallow
        self.hits = 0

    @external
    def attack(self) -> int:
        return self.chain.contract_at(self.target).claim_reward(sender=self.address)

    def receive(self) -> None:
        self.hits += 1
        target = self.chain.contract_at(self.target)
        if self.swallow:
            try:
                target.claim_reward(sender=self.address)
            except NoRewardToClaim:
                pass
        else:
            target.claim_reward(sender=self.address)


class Rejecting(Contract):
    """Winner contract that cannot accept value."""

    def __init__(self, target: str):
        self.target = target

    @external
    def claim(self) -> int:
        return self.chain.contract_at(self.target).claim_reward(sender=self.address)


# ============================================================================
# Creation and funding
# ============================================================================


class TestTournamentCreation:
    def test_create_emits_event(self, game, owner, schedule):
        start, end = schedule
        address = game.tournament_factory.create_tournament("Test Tournament", start, end, sender=owner)

        event = game.chain.last_receipt.events("TournamentCreated")[0]
        assert event["tournament_address"] == address
        assert event["name"] == "Test Tournament"
        assert event["creator"] == owner
        assert (event["start_time"], event["end_time"]) == (start, end)
        assert game.tournament_factory.tournaments == [address]
        assert game.tournament_factory.tournament_count == 1

    def test_end_before_start(self, game, owner):
        now = game.chain.latest.timestamp
        with pytest.raises(InvalidEndTime):
            game.tournament_factory.create_tournament("Bad", now + 100, now + 100, sender=owner)

    def test_funding(self, tournament, owner):
        assert tournament.prize_pool == PRIZE
        event = tournament.chain.last_receipt.events("FundsReceived")[0]
        assert event["sender"] == owner
        assert event["amount"] == PRIZE

    def test_anyone_can_top_up(self, tournament, user1):
        tournament.chain.send_value(user1, tournament.address, parse_ether("0.5"))
        assert tournament.prize_pool == parse_ether("1.5")

    def test_funding_before_creation(self, game, owner, user1, schedule):
        start, end = schedule
        factory = game.tournament_factory.address
        # Factory contracts start at nonce 1
        future = contract_address(factory, 1)
        game.chain.send_value(user1, future, parse_ether("0.25"))

        address = game.tournament_factory.create_tournament("Prefunded", start, end, sender=owner)
        assert address == future
        assert game.tournament(address).prize_pool == parse_ether("0.25")


# ============================================================================
# Distribution
# ============================================================================


class TestDistribution:
    def test_distribute(self, closed, owner, user1, user2):
        closed.distribute_rewards([user1, user2], SHARES, sender=owner)

        events = closed.chain.last_receipt.events("RewardDistributed")
        assert [(e["winner"], e["amount"]) for e in events] == [(user1, SHARES[0]), (user2, SHARES[1])]
        assert closed.rewards(user1) == SHARES[0]
        assert closed.rewards(user2) == SHARES[1]
        assert closed.distributed
        assert closed.distributed_total == closed.outstanding == PRIZE

    def test_before_end(self, tournament, owner, user1, user2):
        with pytest.raises(NotClosed, match="Not ended yet"):
            tournament.distribute_rewards([user1, user2], SHARES, sender=owner)

    def test_exactly_at_end(self, tournament, owner, user1, user2, schedule):
        _, end = schedule
        # Next transaction runs exactly at end_time
        tournament.chain.increase_to(end - 1)
        tournament.distribute_rewards([user1, user2], SHARES, sender=owner)
        assert tournament.distributed

    def test_only_once(self, closed, owner, user1, user2):
        closed.distribute_rewards([user1], [SHARES[0]], sender=owner)
        with pytest.raises(AlreadyDistributed, match="Rewards already distributed"):
            closed.distribute_rewards([user2], [SHARES[1]], sender=owner)

    def test_requires_distributor(self, closed, admin, user1):
        with pytest.raises(MissingRole):
            closed.distribute_rewards([user1], [SHARES[0]], sender=admin)

    def test_length_mismatch_changes_nothing(self, closed, owner, user1, user2):
        with pytest.raises(LengthMismatch):
            closed.distribute_rewards([user1, user2], [SHARES[0]], sender=owner)
        assert not closed.distributed
        assert closed.rewards(user1) == 0
        assert closed.chain.events("RewardDistributed") == []

    def test_over_distribution_rejected(self, closed, owner, user1, user2):
        with pytest.raises(InsufficientPool):
            closed.distribute_rewards([user1, user2], [PRIZE, 1], sender=owner)
        assert not closed.distributed

    def test_zero_address_winner(self, closed, owner, user1):
        with pytest.raises(InvalidRecipient):
            closed.distribute_rewards([user1, ZERO_ADDRESS], SHARES, sender=owner)

    def test_negative_amount(self, closed, owner, user1, user2):
        with pytest.raises(PreconditionError, match="Invalid amount"):
            closed.distribute_rewards([user1, user2], [PRIZE, -1], sender=owner)

    def test_duplicate_winners_accumulate(self, closed, owner, user1):
        closed.distribute_rewards([user1, user1], SHARES, sender=owner)
        assert closed.rewards(user1) == PRIZE
        assert len(closed.chain.last_receipt.events("RewardDistributed")) == 2

    def test_delegated_distributor(self, closed, owner, admin, user1):
        closed.grant_role(DISTRIBUTOR_ROLE, admin, sender=owner)
        closed.distribute_rewards([user1], [SHARES[0]], sender=admin)
        assert closed.rewards(user1) == SHARES[0]


# ============================================================================
# Claims
# ============================================================================


class TestClaims:
    @pytest.fixture
    def distributed(self, closed, owner, user1, user2):
        closed.distribute_rewards([user1, user2], SHARES, sender=owner)
        return closed

    def test_winner_claims(self, distributed, user1):
        before = distributed.chain.balance_of(user1)
        assert distributed.claim_reward(sender=user1) == SHARES[0]

        assert distributed.chain.balance_of(user1) == before + SHARES[0]
        assert distributed.rewards(user1) == 0
        assert distributed.prize_pool == SHARES[1]
        event = distributed.chain.last_receipt.events("RewardClaimed")[0]
        assert (event["winner"], event["amount"]) == (user1, SHARES[0])

    def test_non_winner(self, distributed, admin):
        with pytest.raises(NoRewardToClaim, match="No reward to claim"):
            distributed.claim_reward(sender=admin)

    def test_claim_twice(self, distributed, user1):
        distributed.claim_reward(sender=user1)
        with pytest.raises(NoRewardToClaim):
            distributed.claim_reward(sender=user1)

    def test_all_claimed(self, distributed, user1, user2):
        distributed.claim_reward(sender=user1)
        distributed.claim_reward(sender=user2)
        assert distributed.prize_pool == 0
        assert distributed.outstanding == 0
        assert distributed.claimed_total == PRIZE

    def test_claim_before_distribution(self, closed, user1):
        with pytest.raises(NoRewardToClaim):
            closed.claim_reward(sender=user1)


# ============================================================================
# Reentrancy and failed transfers
# ============================================================================


class TestReentrancy:
    def _distribute_to(self, tournament, owner, winner, schedule):
        _, end = schedule
        tournament.chain.increase_to(end + 1)
        tournament.distribute_rewards([winner], [SHARES[0]], sender=owner)

    def test_reentrant_claim_pays_once(self, game, tournament, owner, user1, schedule):
        attacker = game.chain.deploy(Reentrant, tournament.address, True, sender=user1)
        self._distribute_to(tournament, owner, attacker.address, schedule)

        assert attacker.attack(sender=user1) == SHARES[0]
        assert attacker.balance == SHARES[0]
        assert attacker.hits == 1
        assert tournament.prize_pool == PRIZE - SHARES[0]
        assert tournament.rewards(attacker.address) == 0

    def test_failing_reentry_reverts_claim(self, game, tournament, owner, user1, schedule):
        attacker = game.chain.deploy(Reentrant, tournament.address, False, sender=user1)
        self._distribute_to(tournament, owner, attacker.address, schedule)

        with pytest.raises(TransferFailed, match="Transfer failed"):
            attacker.attack(sender=user1)
        assert attacker.balance == 0
        assert tournament.rewards(attacker.address) == SHARES[0]
        assert tournament.prize_pool == PRIZE

    def test_rejecting_recipient_keeps_reward(self, game, tournament, owner, user1, schedule):
        winner = game.chain.deploy(Rejecting, tournament.address, sender=user1)
        self._distribute_to(tournament, owner, winner.address, schedule)

        with pytest.raises(TransferFailed):
            winner.claim(sender=user1)
        assert tournament.rewards(winner.address) == SHARES[0]
        assert tournament.claimed_total == 0
        assert tournament.chain.events("RewardClaimed") == []


# ============================================================================
# Sweeping
# ============================================================================


class TestSweep:
    def test_sweep_remainder(self, closed, owner, admin, user1):
        closed.distribute_rewards([user1], [SHARES[0]], sender=owner)
        before = closed.chain.balance_of(admin)

        assert closed.sweep_unallocated(admin, sender=owner) == SHARES[1]
        assert closed.chain.balance_of(admin) == before + SHARES[1]
        assert closed.prize_pool == SHARES[0]
        # Winner is unaffected
        assert closed.claim_reward(sender=user1) == SHARES[0]

    def test_sweep_late_deposit(self, closed, owner, admin, user1, user2):
        closed.distribute_rewards([user1, user2], SHARES, sender=owner)
        closed.chain.send_value(user1, closed.address, 123)
        assert closed.sweep_unallocated(admin, sender=owner) == 123
        assert closed.prize_pool == PRIZE

    def test_sweep_nothing(self, closed, owner, admin, user1, user2):
        closed.distribute_rewards([user1, user2], SHARES, sender=owner)
        assert closed.sweep_unallocated(admin, sender=owner) == 0
        assert closed.chain.last_receipt.events("UnallocatedSwept") == []

    def test_sweep_before_distribution(self, closed, owner, admin):
        with pytest.raises(NotDistributed):
            closed.sweep_unallocated(admin, sender=owner)

    def test_sweep_requires_admin(self, closed, owner, user1):
        closed.distribute_rewards([user1], [SHARES[0]], sender=owner)
        with pytest.raises(MissingRole):
            closed.sweep_unallocated(user1, sender=user1)


# ============================================================================
# Conservation
# ============================================================================


class TestConservation:
    @pytest.mark.parametrize("seed", range(10))
    def test_random_season(self, game, owner, chain, schedule, seed):
        rng = random.Random(seed)
        start, end = schedule
        tournament = game.tournament(
            game.tournament_factory.create_tournament(f"Cup {seed}", start, end, sender=owner)
        )
        players = [a.address for a in chain.accounts[2:8]]

        funded = 0
        for _ in range(rng.randint(1, 4)):
            amount = rng.randint(1, 10**18)
            chain.send_value(rng.choice(players), tournament.address, amount)
            funded += amount
        assert tournament.prize_pool == funded

        chain.increase_to(end + 1)
        winners = [rng.choice(players) for _ in range(rng.randint(1, 6))]
        budget = rng.randint(0, funded)
        cuts = sorted(rng.randint(0, budget) for _ in range(len(winners) - 1))
        amounts = [b - a for a, b in zip([0] + cuts, cuts + [budget])]
        tournament.distribute_rewards(winners, amounts, sender=owner)

        expected: dict[str, int] = {}
        for winner, amount in zip(winners, amounts):
            expected[winner] = expected.get(winner, 0) + amount

        for player in players:
            assert tournament.rewards(player) == expected.get(player, 0)
        assert tournament.outstanding == budget
        assert tournament.prize_pool == funded

        paid = 0
        for player in players:
            if not expected.get(player) or rng.random() < 0.3:
                continue
            before = chain.balance_of(player)
            paid += tournament.claim_reward(sender=player)
            assert chain.balance_of(player) == before + expected[player]

            assert tournament.claimed_total == paid
            assert tournament.claimed_total + tournament.outstanding == tournament.distributed_total
            assert tournament.prize_pool == funded - paid
            assert tournament.outstanding <= tournament.prize_pool

        # Everyone still owed a reward claims it
        for player in players:
            if tournament.rewards(player):
                paid += tournament.claim_reward(sender=player)

        assert paid == tournament.claimed_total == budget
        assert tournament.outstanding == 0
        assert tournament.prize_pool == funded - budget
        for player in players:
            with pytest.raises(NoRewardToClaim):
                tournament.claim_reward(sender=player)
