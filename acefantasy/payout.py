"""
acefantasy/payout.py - Distribution and pull-based claims over a prize pool.

Shared by League (pool = collected entry fees) and Tournament (pool = plain
transfers). The lifecycle per contract is:

    funding -> closed (end_time passed) -> distributed -> per winner: unclaimed -> claimed

Invariants held after every call:
    sum(rewards.values()) == outstanding <= balance
    claimed_total + outstanding == distributed_total
"""

import logging

from .access import DEFAULT_ADMIN_ROLE, AccessControl, role_id
from .chain import ZERO_ADDRESS, as_address, external
from .clock import Phase, Schedule
from .errors import (
    AlreadyDistributed,
    InsufficientPool,
    InvalidRecipient,
    LengthMismatch,
    NoRewardToClaim,
    NotClosed,
    NotDistributed,
    PreconditionError,
)

logger = logging.getLogger(__name__)

DISTRIBUTOR_ROLE = role_id("DISTRIBUTOR_ROLE")


class PayoutLedger(AccessControl):
    """Base for contracts that pay a closed pool out to winners.

    Subclasses set ``_schedule`` and call ``_init_payouts(admin)``.
    """

    _schedule: Schedule

    def _init_payouts(self, admin: str) -> None:
        self._init_roles()
        self._rewards: dict[str, int] = {}
        self._distributed = False
        self._distributed_total = 0
        self._claimed_total = 0
        self._outstanding = 0

        self._grant_role(DEFAULT_ADMIN_ROLE, admin)
        self._grant_role(DISTRIBUTOR_ROLE, admin)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def start_time(self) -> int:
        return self._schedule.start_time

    @property
    def end_time(self) -> int:
        return self._schedule.end_time

    @property
    def phase(self) -> Phase:
        return self._schedule.phase_at(self.now)

    @property
    def prize_pool(self) -> int:
        """Funds held by the contract (not yet claimed or swept)."""
        return self.balance

    @property
    def distributed(self) -> bool:
        return self._distributed

    @property
    def distributed_total(self) -> int:
        return self._distributed_total

    @property
    def claimed_total(self) -> int:
        return self._claimed_total

    @property
    def outstanding(self) -> int:
        """Assigned but not yet claimed."""
        return self._outstanding

    def rewards(self, account) -> int:
        return self._rewards.get(as_address(account), 0)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    @external
    def distribute_rewards(self, winners: list, amounts: list[int]) -> None:
        """Assign claimable amounts once, after the schedule closes.

        Duplicate winners accumulate. The whole batch must fit in the pool.
        """
        self._check_role(DISTRIBUTOR_ROLE)
        if self._distributed:
            raise AlreadyDistributed()
        if self.phase is not Phase.CLOSED:
            raise NotClosed()
        if len(winners) != len(amounts):
            raise LengthMismatch()

        recipients = [as_address(w) for w in winners]
        if ZERO_ADDRESS in recipients:
            raise InvalidRecipient()
        if any(amount < 0 for amount in amounts):
            raise PreconditionError("Invalid amount")

        total = sum(amounts)
        if total > self.prize_pool:
            raise InsufficientPool(
                f"Insufficient prize pool: distributing {total}, holding {self.prize_pool}"
            )

        for winner, amount in zip(recipients, amounts):
            self._rewards[winner] = self._rewards.get(winner, 0) + amount
            self.emit("RewardDistributed", winner=winner, amount=amount)

        self._distributed = True
        self._distributed_total = total
        self._outstanding = total
        logger.info(f"{self!r}: distributed {total} wei to {len(set(recipients))} winners")

    @external
    def claim_reward(self) -> int:
        """Pay the caller's full reward. Balance is zeroed before the transfer."""
        caller = self.msg.sender
        amount = self._rewards.get(caller, 0)
        if amount == 0:
            raise NoRewardToClaim()

        self._rewards[caller] = 0
        self._outstanding -= amount
        self._claimed_total += amount
        self.emit("RewardClaimed", winner=caller, amount=amount)

        self._send(caller, amount)
        logger.info(f"{self!r}: {caller} claimed {amount} wei")
        return amount

    @external
    def sweep_unallocated(self, recipient) -> int:
        """Send funds no winner can claim (undistributed remainder, late deposits).

        Claimable balances are never touched.
        """
        self._check_role(DEFAULT_ADMIN_ROLE)
        if not self._distributed:
            raise NotDistributed()
        recipient = as_address(recipient)
        if recipient == ZERO_ADDRESS:
            raise InvalidRecipient()

        amount = self.balance - self._outstanding
        if amount > 0:
            self.emit("UnallocatedSwept", recipient=recipient, amount=amount)
            self._send(recipient, amount)
        return amount
