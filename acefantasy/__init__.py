"""
AceFantasy - Fantasy football leagues and prize tournaments with on-chain escrow

Player cards are owned assets, leagues escrow entry fees, tournaments hold
prize pools, and winners pull their rewards exactly once.
"""

__version__ = "0.1.0"

from .chain import (
    Block,
    Chain,
    Contract,
    Event,
    Message,
    Receipt,
    ZERO_ADDRESS,
    as_address,
    external,
)

from .access import (
    DEFAULT_ADMIN_ROLE,
    AccessControl,
    role_id,
)

from .clock import (
    Phase,
    Schedule,
    phase_at,
)

from .player_card import (
    MINTER_ROLE,
    UPDATER_ROLE,
    Player,
    PlayerCard,
    Position,
)

from .payout import (
    DISTRIBUTOR_ROLE,
    PayoutLedger,
)

from .league import (
    League,
    LeagueFactory,
)

from .tournament import (
    Tournament,
    TournamentFactory,
)

from .game import (
    Deployment,
    deploy_game,
)

from .units import (
    format_ether,
    parse_ether,
)

__all__ = [
    # Version
    "__version__",
    # Host ledger
    "Block",
    "Chain",
    "Contract",
    "Event",
    "Message",
    "Receipt",
    "ZERO_ADDRESS",
    "as_address",
    "external",
    # Access control
    "DEFAULT_ADMIN_ROLE",
    "AccessControl",
    "role_id",
    # Lifecycle
    "Phase",
    "Schedule",
    "phase_at",
    # Player cards
    "MINTER_ROLE",
    "UPDATER_ROLE",
    "Player",
    "PlayerCard",
    "Position",
    # Escrow and payouts
    "DISTRIBUTOR_ROLE",
    "PayoutLedger",
    "League",
    "LeagueFactory",
    "Tournament",
    "TournamentFactory",
    # Deployment
    "Deployment",
    "deploy_game",
    # Units
    "format_ether",
    "parse_ether",
]
