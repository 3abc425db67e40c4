"""Tests for acefantasy.cli — subcommands run in-process."""

import argparse
import textwrap

from acefantasy.cli import _split_evenly, cmd_accounts, cmd_demo, cmd_wallet


def _args(tmp_path, **kwargs):
    defaults = {
        "config": str(tmp_path / "missing.toml"),
        "verbose": False,
    }
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


class TestSplitEvenly:
    def test_even(self):
        assert _split_evenly(10, 2) == [5, 5]

    def test_remainder_goes_first(self):
        assert _split_evenly(10, 3) == [4, 3, 3]
        assert sum(_split_evenly(10**18 + 7, 4)) == 10**18 + 7


class TestDemo:
    def test_full_season(self, tmp_path):
        args = _args(tmp_path, teams=2, entry_fee=None, max_teams=None, prize="1.0")
        assert cmd_demo(args) == 0

    def test_too_many_teams_for_accounts(self, tmp_path):
        args = _args(tmp_path, teams=50, entry_fee=None, max_teams=None, prize="1.0")
        assert cmd_demo(args) == 1

    def test_zero_teams_rejected(self, tmp_path):
        args = _args(tmp_path, teams=0, entry_fee=None, max_teams=None, prize="1.0")
        assert cmd_demo(args) == 1

    def test_invalid_team_size_config(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("[league]\nteam_size = 0\n")
        args = _args(tmp_path, config=str(path), teams=2, entry_fee=None, max_teams=None, prize="1.0")
        assert cmd_demo(args) == 1

    def test_league_too_small_fails(self, tmp_path):
        args = _args(tmp_path, teams=3, entry_fee="0.1", max_teams=2, prize="1.0")
        assert cmd_demo(args) == 1

    def test_reads_config(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(textwrap.dedent("""\
            [chain]
            accounts = 4
            genesis_timestamp = 1700000000

            [league]
            team_size = 3
            entry_fee = "0.5"
        """))
        args = _args(tmp_path, config=str(path), teams=3, entry_fee=None, max_teams=None, prize="2")
        assert cmd_demo(args) == 0


class TestAccounts:
    def test_lists_accounts(self, tmp_path, capsys):
        assert cmd_accounts(_args(tmp_path, show_keys=False)) == 0
        out = capsys.readouterr().out
        assert "Account #0: 0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266 (10000 ETH)" in out
        assert "Private key" not in out

    def test_show_keys(self, tmp_path, capsys):
        cmd_accounts(_args(tmp_path, show_keys=True))
        out = capsys.readouterr().out
        assert "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80" in out


class TestWallet:
    def test_prints_wallet(self, tmp_path, capsys):
        assert cmd_wallet(_args(tmp_path)) == 0
        out = capsys.readouterr().out
        assert "Address:     0x" in out
        assert "Private key: 0x" in out
