"""
Command-line interface for the Sportfolio engine.

Provides CLI commands for viewing the season, trading, and the
administrator's round and ladder maintenance.
"""

import argparse
import sys
from typing import Any, Optional

import yaml

from .core.config import Config
from .core.engine import GameEngine
from .utils.display_manager import DisplayManager
from .utils.exceptions import SportfolioError
from .utils.helpers import format_currency
from .utils.logging_config import get_logger, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sportfolio",
        description="AFL ladder stock market",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sportfolio ladder                              # Current ladder and prices
  sportfolio --as Jas buy "Geelong" 2000         # Buy $2000 of Geelong
  sportfolio --as Jas sell "Geelong" 100         # Sell 100 shares
  sportfolio --as Tyson update-ladder round3.yaml
  sportfolio --as Tyson advance                  # Close the round
  sportfolio validate-config --config-file sportfolio.yaml
        """
    )

    # Global options
    parser.add_argument('--config-file', help='Path to YAML configuration file')
    parser.add_argument('--state-file', help='Override the season snapshot path')
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Set logging level'
    )
    parser.add_argument('--as', dest='caller', metavar='NAME', help='Participant issuing the command')
    parser.add_argument('--no-color', action='store_true', help='Disable coloured output')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('state', help='Show round, trade window and save status')
    subparsers.add_parser('ladder', help='Show the ladder with prices and movement')
    subparsers.add_parser('standings', help='Rank all participants by total value')

    portfolio_parser = subparsers.add_parser('portfolio', help="Show a participant's portfolio")
    portfolio_parser.add_argument('name', nargs='?', help='Participant (defaults to --as)')

    fixtures_parser = subparsers.add_parser('fixtures', help='Show fixtures for a round')
    fixtures_parser.add_argument('--round', type=int, dest='round_number', help='Round number')

    buy_parser = subparsers.add_parser('buy', help='Buy shares in a team')
    buy_parser.add_argument('team', help='Team name')
    buy_parser.add_argument('amount', type=float, help='Dollar amount to spend')

    sell_parser = subparsers.add_parser('sell', help='Sell shares in a team')
    sell_parser.add_argument('team', help='Team name')
    sell_parser.add_argument('shares', type=float, help='Number of shares to sell')

    undo_parser = subparsers.add_parser('undo', help='Undo a trade from this round')
    undo_parser.add_argument('trade_id', help='Trade id from the trade log')

    subparsers.add_parser('advance', help='Advance to the next round (admin)')

    ladder_parser = subparsers.add_parser('update-ladder', help='Apply results from a YAML file (admin)')
    ladder_parser.add_argument('file', help='YAML list of {team, wins, losses, draws, pct}')

    deadline_parser = subparsers.add_parser('deadline', help='Set the trade deadline (admin)')
    deadline_parser.add_argument('iso_deadline', nargs='?', help='ISO-8601 timestamp')
    deadline_parser.add_argument('--clear', action='store_true', help='Remove the deadline')

    fixtures_set_parser = subparsers.add_parser('set-fixtures', help='Replace fixtures from a YAML file (admin)')
    fixtures_set_parser.add_argument('file', help='YAML mapping of round -> [[home, away], ...]')

    reset_parser = subparsers.add_parser('reset', help='Start a fresh season (admin)')
    reset_parser.add_argument('--confirm', required=True, help='Confirmation token')

    subparsers.add_parser('validate-config', help='Validate configuration')

    return parser


def load_config(args) -> Config:
    config = Config(config_file=args.config_file)
    if args.state_file:
        config.storage.state_file = args.state_file
    if args.log_level:
        config.system.log_level = args.log_level
    return config


def _load_yaml(path: str) -> Any:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise SportfolioError(f"Cannot read {path}: {e}", "INPUT_ERROR")


def _require_caller(args) -> str:
    if not args.caller:
        raise SportfolioError(f"'{args.command}' needs --as NAME", "INPUT_ERROR")
    return args.caller


def run_command(args, engine: GameEngine, display: DisplayManager) -> None:
    """Execute one subcommand against the engine and print the result."""
    total_rounds = engine.config.economy.total_rounds

    if args.command == 'state':
        state = engine.get_state()
        status = engine.get_status()
        print(display.render_header(state, total_rounds))
        print(f"  Last updated: {status['last_updated'] or 'never'}")
        print(f"  Snapshot: {engine.config.storage.state_file}"
              f"{'' if status['has_saved_state'] else ' (not yet saved)'}")

    elif args.command == 'ladder':
        state = engine.get_state()
        print(display.render_header(state, total_rounds))
        print(display.render_ladder(state))

    elif args.command == 'standings':
        print(display.render_standings(engine.standings()))

    elif args.command == 'portfolio':
        name = args.name or _require_caller(args)
        print(display.render_portfolio(engine.portfolio(name)))

    elif args.command == 'fixtures':
        round_number = args.round_number
        if round_number is None:
            round_number = engine.get_state().round + 1
        print(display.render_fixtures(round_number, engine.fixtures_for_round(round_number)))

    elif args.command == 'buy':
        result = engine.buy(_require_caller(args), args.team, args.amount)
        print(display.success(
            f"Bought {result.shares:g} {args.team} for {format_currency(result.cost)} "
            f"(fee {format_currency(result.fee)}) [{result.trade_id}]"
        ))

    elif args.command == 'sell':
        result = engine.sell(_require_caller(args), args.team, args.shares)
        print(display.success(
            f"Sold {result.shares:g} {args.team} for {format_currency(result.net)} net "
            f"(fee {format_currency(result.fee)}) [{result.trade_id}]"
        ))

    elif args.command == 'undo':
        engine.undo(_require_caller(args), args.trade_id)
        print(display.success(f"Trade {args.trade_id} undone"))

    elif args.command == 'advance':
        state = engine.advance_round(_require_caller(args))
        print(display.success(f"Advanced to round {state.round}"))

    elif args.command == 'update-ladder':
        updates = _load_yaml(args.file)
        if isinstance(updates, dict):
            updates = updates.get('results', [])
        state = engine.update_ladder_results(_require_caller(args), updates or [])
        print(display.success("Ladder updated"))
        print(display.render_ladder(state))

    elif args.command == 'deadline':
        if args.clear == bool(args.iso_deadline):
            raise SportfolioError("Give either a deadline or --clear", "INPUT_ERROR")
        deadline = None if args.clear else args.iso_deadline
        engine.set_trade_deadline(_require_caller(args), deadline)
        print(display.success(f"Trade deadline {'cleared' if deadline is None else 'set to ' + deadline}"))

    elif args.command == 'set-fixtures':
        state = engine.set_fixtures(_require_caller(args), _load_yaml(args.file) or {})
        print(display.success(f"Fixtures saved for {len(state.fixtures)} round(s)"))

    elif args.command == 'reset':
        engine.reset_season(_require_caller(args), args.confirm)
        print(display.success("Season reset"))


def validate_config_command(args) -> None:
    """Execute the validate-config command."""
    config = load_config(args)
    print("✓ Configuration is valid")

    print("\nConfiguration Summary:")
    for key, value in config.to_dict().items():
        print(f"  {key}: {value}")


def main(argv: Optional[list] = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == 'validate-config':
        try:
            validate_config_command(args)
        except SportfolioError as e:
            print(f"✗ Configuration validation failed: {e.message}")
            sys.exit(1)
        return

    try:
        config = load_config(args)
    except SportfolioError as e:
        print(f"✗ {e.message}")
        sys.exit(1)

    setup_logging(
        log_level=config.system.log_level,
        log_dir=config.system.log_dir,
        enable_console=config.system.enable_console,
        enable_structlog=config.system.enable_structlog
    )
    logger = get_logger(__name__)

    display = DisplayManager(config.economy.price_scale, use_color=not args.no_color)
    try:
        engine = GameEngine(config)
        run_command(args, engine, display)
    except SportfolioError as e:
        logger.debug(f"{args.command} failed: {e}")
        print(display.failure(e.message))
        sys.exit(1)


if __name__ == '__main__':
    main()
