"""Tests for acefantasy.config — local config file management."""

import textwrap
from pathlib import Path

import pytest

from acefantasy.config import (
    DEFAULT_MNEMONIC,
    TEAM_SIZE,
    AcefantasyConfig,
    ChainConfig,
    LeagueConfig,
    ServerConfig,
    load_config,
)


@pytest.fixture
def config_dir(tmp_path):
    """Temporary directory for config files."""
    return tmp_path


def _write_config(config_dir: Path, content: str) -> Path:
    """Write a config.toml and return the path."""
    config_path = config_dir / "config.toml"
    config_path.write_text(textwrap.dedent(content))
    return config_path


class TestLoadConfig:
    def test_missing_file_returns_defaults(self, config_dir):
        missing = config_dir / "nonexistent.toml"
        cfg = load_config(missing)
        assert isinstance(cfg, AcefantasyConfig)
        assert cfg.chain == ChainConfig()
        assert cfg.league == LeagueConfig()
        assert cfg.server == ServerConfig()

    def test_defaults(self):
        cfg = AcefantasyConfig()
        assert cfg.chain.chain_id == 31337
        assert cfg.chain.mnemonic == DEFAULT_MNEMONIC
        assert cfg.chain.accounts == 20
        assert cfg.chain.genesis_timestamp is None
        assert cfg.league.team_size == TEAM_SIZE == 11
        assert cfg.league.entry_fee == "0.1"
        assert cfg.league.max_teams == 10
        assert cfg.server.port == 8545

    def test_full_config(self, config_dir):
        path = _write_config(config_dir, """\
            [chain]
            chain_id = 1337
            mnemonic = "abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon abandon about"
            accounts = 5
            initial_balance = "250"
            genesis_timestamp = 1735689600

            [league]
            team_size = 5
            entry_fee = "0.05"
            max_teams = 4

            [server]
            host = "0.0.0.0"
            port = 9000
        """)
        cfg = load_config(path)

        assert cfg.chain.chain_id == 1337
        assert cfg.chain.mnemonic.startswith("abandon")
        assert cfg.chain.accounts == 5
        assert cfg.chain.initial_balance == "250"
        assert cfg.chain.genesis_timestamp == 1735689600

        assert cfg.league.team_size == 5
        assert cfg.league.entry_fee == "0.05"
        assert cfg.league.max_teams == 4

        assert cfg.server.host == "0.0.0.0"
        assert cfg.server.port == 9000

    def test_numeric_amounts_become_strings(self, config_dir):
        path = _write_config(config_dir, """\
            [chain]
            initial_balance = 100

            [league]
            entry_fee = 0.25
        """)
        cfg = load_config(path)
        assert cfg.chain.initial_balance == "100"
        assert cfg.league.entry_fee == "0.25"

    def test_partial_config_keeps_defaults(self, config_dir):
        path = _write_config(config_dir, """\
            [league]
            max_teams = 2
        """)
        cfg = load_config(path)
        assert cfg.league.max_teams == 2
        assert cfg.league.entry_fee == "0.1"
        assert cfg.chain == ChainConfig()

    def test_corrupt_toml_returns_defaults(self, config_dir):
        path = config_dir / "config.toml"
        path.write_text("this is not [valid toml }{")
        cfg = load_config(path)
        assert cfg.chain == ChainConfig()
        assert cfg.league == LeagueConfig()

    def test_non_table_section_ignored(self, config_dir):
        path = _write_config(config_dir, """\
            chain = "oops"
        """)
        cfg = load_config(path)
        assert cfg.chain == ChainConfig()

    def test_empty_file(self, config_dir):
        path = config_dir / "config.toml"
        path.write_text("")
        cfg = load_config(path)
        assert cfg.server == ServerConfig()
