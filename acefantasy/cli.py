#!/usr/bin/env python3
"""
acefantasy/cli.py - Command line interface for AceFantasy

Usage:
    acefantasy demo [options]       Play a full season on a local chain
    acefantasy accounts             List funded dev accounts
    acefantasy wallet               Generate a fresh wallet
    acefantasy serve [options]      Start the HTTP gateway
"""

import argparse
import logging
import sys
from pathlib import Path

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

WEEK_IN_SECS = 7 * 24 * 60 * 60


def _load_config(args):
    from acefantasy.config import load_config

    return load_config(Path(args.config) if args.config else None)


def cmd_demo(args):
    """Run the full escrow-and-payout lifecycle and log every step."""
    from acefantasy.chain import Chain
    from acefantasy.errors import Revert
    from acefantasy.game import deploy_game
    from acefantasy.player_card import Position
    from acefantasy.units import format_ether, parse_ether

    if args.teams < 1:
        logger.error(f"Need at least one team, got {args.teams}")
        return 1

    config = _load_config(args)
    chain = Chain(config=config.chain)
    team_size = config.league.team_size

    managers = [a.address for a in chain.accounts[1:1 + args.teams]]
    if len(managers) < args.teams:
        logger.error(f"Only {len(chain.accounts) - 1} accounts available for {args.teams} teams")
        return 1

    entry_fee = parse_ether(args.entry_fee or config.league.entry_fee)
    max_teams = args.max_teams or config.league.max_teams
    prize = parse_ether(args.prize)

    try:
        game = deploy_game(chain, team_size=team_size)
        owner = game.owner

        start = chain.latest.timestamp + WEEK_IN_SECS
        end = start + WEEK_IN_SECS

        # --- League: mint squads and register ---
        league = game.league(
            game.league_factory.create_league(
                "Demo League", entry_fee, max_teams, start, end, sender=owner,
            )
        )
        logger.info(f"League {league.address}: fee {format_ether(entry_fee)} ETH, {max_teams} teams max")

        for manager in managers:
            squad = [
                game.player_card.mint_player(
                    manager, f"Player {i + 1}", Position.MID, 1, 1000, sender=owner,
                )
                for i in range(team_size)
            ]
            league.register_team(squad, sender=manager, value=entry_fee)
        logger.info(f"   Escrow: {format_ether(league.escrow_balance)} ETH from {league.registered_count} teams")

        # --- Tournament: fund the pool ---
        tournament = game.tournament(
            game.tournament_factory.create_tournament("Demo Cup", start, end, sender=owner)
        )
        chain.send_value(owner, tournament.address, prize)
        logger.info(f"Tournament {tournament.address}: pool {format_ether(tournament.prize_pool)} ETH")

        # --- Season ends ---
        chain.increase_to(end + 1)
        logger.info(f"Season closed at {chain.latest.timestamp}")

        for ledger in (league, tournament):
            pool = ledger.prize_pool
            shares = _split_evenly(pool, len(managers))
            ledger.distribute_rewards(managers, shares, sender=owner)
            for manager in managers:
                amount = ledger.claim_reward(sender=manager)
                logger.info(f"   {manager} claimed {format_ether(amount)} ETH from {ledger.name}")
            logger.info(f"{ledger.name}: {format_ether(ledger.claimed_total)} ETH paid, {ledger.prize_pool} wei left")

    except Revert as e:
        logger.error(f"Demo reverted: {e.code}: {e.reason}")
        return 1

    logger.info(f"🏆 Season complete: {len(chain.receipts)} transactions, {len(chain.logs)} events")
    return 0


def _split_evenly(total: int, n: int) -> list[int]:
    """Split ``total`` wei into ``n`` shares; the first shares absorb the remainder."""
    base, extra = divmod(total, n)
    return [base + (1 if i < extra else 0) for i in range(n)]


def cmd_accounts(args):
    """List the funded dev accounts."""
    from acefantasy.units import format_ether, parse_ether
    from acefantasy.wallet import derive_accounts

    config = _load_config(args)
    balance = format_ether(parse_ether(config.chain.initial_balance))
    for i, account in enumerate(derive_accounts(config.chain.mnemonic, config.chain.accounts)):
        line = f"Account #{i}: {account.address} ({balance} ETH)"
        if args.show_keys:
            key_hex = account.key.hex()
            if not key_hex.startswith("0x"):
                key_hex = "0x" + key_hex
            line += f"\n  Private key: {key_hex}"
        print(line)
    return 0


def cmd_wallet(args):
    """Generate a new wallet."""
    from acefantasy.wallet import generate_wallet

    address, key = generate_wallet()
    print(f"Address:     {address}")
    print(f"Private key: {key}")
    logger.warning("Store the private key somewhere safe — it is not saved anywhere.")
    return 0


def cmd_serve(args):
    """Start the HTTP gateway."""
    try:
        import uvicorn
    except ImportError:
        logger.error("The gateway requires extra dependencies: pip install acefantasy[server]")
        return 1

    from acefantasy.server import app

    config = _load_config(args)
    host = args.host or config.server.host
    port = args.port or config.server.port
    app.state.config = config
    logger.info(f"Starting gateway on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")
    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="acefantasy",
        description="Fantasy football leagues and tournaments with on-chain escrow",
    )
    parser.add_argument("--config", default=None, help="Config file (default: ~/.acefantasy/config.toml)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # demo command
    demo_parser = subparsers.add_parser("demo", help="Play a full season on a local chain")
    demo_parser.add_argument("--teams", "-n", type=int, default=2, help="Teams to register (default: 2)")
    demo_parser.add_argument("--entry-fee", default=None, help="Entry fee in ETH (default: from config)")
    demo_parser.add_argument("--max-teams", type=int, default=None, help="League capacity (default: from config)")
    demo_parser.add_argument("--prize", default="1.0", help="Tournament prize pool in ETH (default: 1.0)")
    demo_parser.set_defaults(func=cmd_demo)

    # accounts command
    accounts_parser = subparsers.add_parser("accounts", help="List funded dev accounts")
    accounts_parser.add_argument("--show-keys", action="store_true", help="Also print private keys")
    accounts_parser.set_defaults(func=cmd_accounts)

    # wallet command
    wallet_parser = subparsers.add_parser("wallet", help="Generate a fresh wallet")
    wallet_parser.set_defaults(func=cmd_wallet)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP gateway")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: from config)")
    serve_parser.add_argument("--port", "-p", type=int, default=None, help="Port (default: from config)")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
