"""
acefantasy/errors.py - Revert taxonomy for the simulated contracts.

Every failed contract call raises a Revert subclass. The ``reason`` string is
stable (it is what a Solidity ``require`` would surface) so callers can tell
"wrong fee" from "league full" without parsing messages.
"""


class Revert(Exception):
    """A contract call was rejected. No state change survives it."""

    reason = "Transaction reverted"

    def __init__(self, reason: str | None = None):
        if reason is not None:
            self.reason = reason
        super().__init__(self.reason)

    @property
    def code(self) -> str:
        return type(self).__name__


# ============================================================================
# Kinds
# ============================================================================


class ConfigurationError(Revert):
    """Invalid immutable configuration at creation time."""


class AuthorizationError(Revert):
    """Caller lacks the capability for a privileged operation."""


class PreconditionError(Revert):
    """Operation not allowed in the current state or with these inputs."""


class ConservationError(Revert):
    """Operation would pay out more than the contract holds."""


class LedgerError(Revert):
    """Host-level failure (balances, value transfer, block time)."""


# ============================================================================
# Configuration
# ============================================================================


class InvalidEndTime(ConfigurationError):
    reason = "Invalid end time"


class InvalidMaxTeams(ConfigurationError):
    reason = "Invalid max teams"


# ============================================================================
# Authorization
# ============================================================================


class MissingRole(AuthorizationError):
    """Mirrors OpenZeppelin's AccessControl revert string."""

    def __init__(self, account: str, role: bytes):
        self.account = account
        self.role = role
        super().__init__(
            f"AccessControl: account {account.lower()} is missing role 0x{role.hex()}"
        )


class NotTokenOwner(AuthorizationError):
    reason = "Caller is not token owner"


# ============================================================================
# Preconditions
# ============================================================================


class IncorrectEntryFee(PreconditionError):
    reason = "Incorrect entry fee"


class RegistrationClosed(PreconditionError):
    reason = "Registration closed"


class AlreadyRegistered(PreconditionError):
    reason = "Team already registered"


class LeagueFull(PreconditionError):
    reason = "League is full"


class TeamSizeInvalid(PreconditionError):
    reason = "Invalid team size"


class AssetNotOwned(PreconditionError):
    reason = "Not player owner"


class NonexistentToken(PreconditionError):
    reason = "Invalid token ID"


class NotClosed(PreconditionError):
    reason = "Not ended yet"


class AlreadyDistributed(PreconditionError):
    reason = "Rewards already distributed"


class NotDistributed(PreconditionError):
    reason = "Rewards not distributed"


class LengthMismatch(PreconditionError):
    reason = "Length mismatch"


class InvalidRecipient(PreconditionError):
    reason = "Invalid recipient"


class NoRewardToClaim(PreconditionError):
    reason = "No reward to claim"


class TransferFailed(PreconditionError):
    reason = "Transfer failed"


# ============================================================================
# Conservation
# ============================================================================


class InsufficientPool(ConservationError):
    reason = "Insufficient prize pool"


# ============================================================================
# Ledger
# ============================================================================


class InsufficientBalance(LedgerError):
    reason = "Insufficient balance"


class NonPayable(LedgerError):
    reason = "Function is not payable"


class TimeTravelError(LedgerError):
    reason = "Timestamp must be greater than the latest block"
