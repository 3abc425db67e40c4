"""
acefantasy/config.py - Local configuration management

Reads user config from a platform-appropriate config directory:
  - macOS/Linux: ~/.acefantasy/config.toml
  - Windows: %APPDATA%\\acefantasy\\config.toml

Example:
    [chain]
    chain_id = 31337
    mnemonic = "test test test test test test test test test test test junk"
    accounts = 20
    initial_balance = "10000"     # ether per dev account
    genesis_timestamp = 1735689600  # omit to start at wall-clock time

    [league]
    team_size = 11
    entry_fee = "0.1"  # ether
    max_teams = 10

    [server]
    host = "127.0.0.1"
    port = 8545
"""

import logging
import os
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================


def _get_config_dir() -> Path:
    """Get platform-appropriate config directory."""
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "acefantasy"
    return Path.home() / ".acefantasy"


CONFIG_DIR = _get_config_dir()
CONFIG_PATH = CONFIG_DIR / "config.toml"

# Well-known development mnemonic shipped with hardhat and anvil.
# Never fund these addresses on a real network.
DEFAULT_MNEMONIC = "test test test test test test test test test test test junk"

# Players per registered team.
TEAM_SIZE = 11


# ============================================================================
# Data Types
# ============================================================================

@dataclass
class ChainConfig:
    """Simulated host ledger settings."""

    chain_id: int = 31337  # local dev chain id
    mnemonic: str = DEFAULT_MNEMONIC
    accounts: int = 20
    initial_balance: str = "10000"  # ether per account
    genesis_timestamp: int | None = None  # None = wall clock at startup


@dataclass
class LeagueConfig:
    """Defaults for leagues created from the CLI / gateway."""

    team_size: int = TEAM_SIZE
    entry_fee: str = "0.1"  # ether
    max_teams: int = 10


@dataclass
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8545


@dataclass
class AcefantasyConfig:
    """Top-level configuration."""

    chain: ChainConfig
    league: LeagueConfig
    server: ServerConfig

    def __init__(
        self,
        chain: ChainConfig | None = None,
        league: LeagueConfig | None = None,
        server: ServerConfig | None = None,
    ):
        self.chain = chain or ChainConfig()
        self.league = league or LeagueConfig()
        self.server = server or ServerConfig()


# ============================================================================
# Parsing
# ============================================================================

def _section(raw: dict, name: str) -> dict:
    data = raw.get(name, {})
    return data if isinstance(data, dict) else {}


def _parse_chain(data: dict) -> ChainConfig:
    _defaults = ChainConfig()
    return ChainConfig(
        chain_id=data.get("chain_id", _defaults.chain_id),
        mnemonic=data.get("mnemonic", _defaults.mnemonic),
        accounts=data.get("accounts", _defaults.accounts),
        initial_balance=str(data.get("initial_balance", _defaults.initial_balance)),
        genesis_timestamp=data.get("genesis_timestamp"),
    )


def _parse_league(data: dict) -> LeagueConfig:
    _defaults = LeagueConfig()
    return LeagueConfig(
        team_size=data.get("team_size", _defaults.team_size),
        entry_fee=str(data.get("entry_fee", _defaults.entry_fee)),
        max_teams=data.get("max_teams", _defaults.max_teams),
    )


def _parse_server(data: dict) -> ServerConfig:
    _defaults = ServerConfig()
    return ServerConfig(
        host=data.get("host", _defaults.host),
        port=data.get("port", _defaults.port),
    )


def load_config(path: Path | None = None) -> AcefantasyConfig:
    """
    Read config from TOML file.

    Args:
        path: Override config file path (default: ~/.acefantasy/config.toml)

    Returns:
        AcefantasyConfig. Missing file or bad TOML returns defaults.
    """
    config_path = path or CONFIG_PATH

    if not config_path.exists():
        return AcefantasyConfig()

    try:
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        logger.warning(f"Failed to parse {config_path}: {e}")
        return AcefantasyConfig()

    return AcefantasyConfig(
        chain=_parse_chain(_section(raw, "chain")),
        league=_parse_league(_section(raw, "league")),
        server=_parse_server(_section(raw, "server")),
    )
