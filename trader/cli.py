from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import List, Optional

from .config import (
	CliOverrides,
	ConfigPolicy,
	Configuration,
	TraderError,
	config_path_from_env,
	load,
	overrides_from_env,
)
from .validation import parse_quantity, parse_symbol
from .logging_config import setup_logging, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


class CliArgumentError(TraderError):
	pass


class MissingRequiredArgument(CliArgumentError):
	def __init__(self, names: List[str]):
		self.names = names
		super().__init__(f"missing required argument(s): {', '.join(names)}")


class TraderArgumentParser(argparse.ArgumentParser):
	"""ArgumentParser that raises instead of exiting on bad arguments"""

	REQUIRED_PREFIX = "the following arguments are required: "

	def error(self, message: str):
		if message.startswith(self.REQUIRED_PREFIX):
			names = [name.strip() for name in message[len(self.REQUIRED_PREFIX):].split(",")]
			raise MissingRequiredArgument(names)
		raise CliArgumentError(message)


@dataclass(frozen=True)
class MarketBuy:
	symbol: str
	quantity: Decimal


def _print_config(title: str, config: Configuration) -> None:
	print(f"{title}:")
	print(json.dumps(config.to_display_dict(), indent=2))


def cmd_auto_sell(config: Configuration, args: argparse.Namespace) -> None:
	logger.info("Executing auto-sell command")
	_print_config("auto_sell config", config)


def build_market_buy(args: argparse.Namespace) -> MarketBuy:
	return MarketBuy(symbol=parse_symbol(args.symbol), quantity=parse_quantity(args.quantity))


def cmd_buy_market(config: Configuration, args: argparse.Namespace) -> MarketBuy:
	logger.info("Executing buy-market command")
	_print_config("buy_market config", config)

	order = build_market_buy(args)
	print(f"symbol: {order.symbol!r} quantity: {order.quantity} {config.default_quote_asset}")
	logger.info(f"Market buy stub: {order.quantity} {order.symbol}")
	return order


def cmd_show_config(config: Configuration, args: argparse.Namespace) -> None:
	logger.info("Executing show-config command")
	print(json.dumps(config.to_display_dict(), indent=2))


COMMANDS = {
	"auto-sell": cmd_auto_sell,
	"buy-market": cmd_buy_market,
	"show-config": cmd_show_config,
}


def build_parser() -> TraderArgumentParser:
	parser = TraderArgumentParser(prog="trader", description="Crypto trading client (stub commands, no order execution)")
	parser.add_argument("-c", "--config", metavar="FILE", help="Configuration file (TOML, or YAML by suffix)")
	parser.add_argument("-a", "--api-key", metavar="KEY", help="API key")
	parser.add_argument("-s", "--secret-key", metavar="KEY", help="Secret key")
	parser.add_argument("-l", "--log-path", metavar="PATH", help="Log file path")
	parser.add_argument("-d", "--default-quote-asset", metavar="ASSET", help="Default quote asset to sell to (default: USD)")
	parser.add_argument("--lenient-config", action="store_true", help="Use defaults when the config file is malformed")
	parser.add_argument("--file-overrides-cli", action="store_true", help="Let config file values win over command-line values")
	parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

	sub = parser.add_subparsers(dest="command", parser_class=TraderArgumentParser)
	_ = sub.add_parser("auto-sell", help="Automatically sell holdings to the default quote asset (stub)")
	buy = sub.add_parser("buy-market", help="Buy at market price (stub)")
	buy.add_argument("symbol", metavar="SYMBOL", help="Asset symbol, e.g. BTC")
	buy.add_argument("quantity", metavar="QUANTITY", help="Quantity as an exact decimal, e.g. 0.01")
	_ = sub.add_parser("show-config", help="Print the effective configuration")
	return parser


def overrides_from_args(args: argparse.Namespace) -> CliOverrides:
	return CliOverrides(
		api_key=args.api_key,
		secret_key=args.secret_key,
		log_path=Path(args.log_path) if args.log_path is not None else None,
		default_quote_asset=args.default_quote_asset,
	)


def resolve_config(args: argparse.Namespace) -> Configuration:
	overrides = overrides_from_args(args).merged_with(overrides_from_env())
	config_path = Path(args.config) if args.config is not None else config_path_from_env()
	policy = ConfigPolicy(cli_overrides_file=not args.file_overrides_cli, strict=not args.lenient_config)
	return load(overrides, config_path, policy)


def main(argv: Optional[List[str]] = None) -> int:
	setup_logging()
	logger.debug("Trader CLI starting")

	parser = build_parser()
	try:
		args = parser.parse_args(argv)
	except CliArgumentError as e:
		parser.print_usage(sys.stderr)
		print(f"error: {e}", file=sys.stderr)
		return EXIT_USAGE

	if args.verbose:
		setup_logging(verbose=True)

	try:
		config = resolve_config(args)
		if config.log_path is not None:
			setup_logging(verbose=args.verbose, log_file=config.log_path)

		command = COMMANDS.get(args.command)
		if command is not None:
			command(config, args)
	except TraderError as e:
		logger.debug(f"{args.command or 'trader'} failed", exc_info=True)
		print(f"error: {e}", file=sys.stderr)
		return EXIT_ERROR

	print("done")
	return EXIT_OK


if __name__ == "__main__":
	sys.exit(main())
