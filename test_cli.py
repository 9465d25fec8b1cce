"""Tests for the trader command-line entrypoint"""

import argparse
import json
from decimal import Decimal
from pathlib import Path

import pytest

from trader.cli import (
    EXIT_ERROR,
    EXIT_OK,
    EXIT_USAGE,
    MissingRequiredArgument,
    build_market_buy,
    build_parser,
    main,
    resolve_config,
)
from trader.config import Configuration


def test_no_command_resolves_and_finishes(capsys):
    assert main([]) == EXIT_OK
    assert capsys.readouterr().out.strip().endswith("done")


def test_buy_market_builds_exact_order():
    args = build_parser().parse_args(["buy-market", "BTC", "0.01"])

    order = build_market_buy(args)

    assert order.symbol == "BTC"
    assert order.quantity == Decimal("0.01")


def test_buy_market_prints_symbol_and_quantity(capsys):
    assert main(["buy-market", "BTC", "0.01"]) == EXIT_OK
    out = capsys.readouterr().out
    assert "symbol: 'BTC' quantity: 0.01 USD" in out
    assert out.strip().endswith("done")


def test_buy_market_invalid_quantity_exits_non_zero(capsys):
    assert main(["buy-market", "BTC", "lots"]) == EXIT_ERROR
    captured = capsys.readouterr()
    assert "lots" in captured.err
    assert "done" not in captured.out


def test_buy_market_missing_positional_raises():
    with pytest.raises(MissingRequiredArgument) as excinfo:
        build_parser().parse_args(["buy-market", "BTC"])
    assert excinfo.value.names == ["QUANTITY"]


def test_missing_positional_exit_code(capsys):
    assert main(["buy-market"]) == EXIT_USAGE
    assert "SYMBOL" in capsys.readouterr().err


def test_unknown_option_exit_code(capsys):
    assert main(["--bogus"]) == EXIT_USAGE


def test_options_default_to_not_supplied():
    args = build_parser().parse_args([])
    assert args.api_key is None
    assert args.default_quote_asset is None
    assert resolve_config(args) == Configuration()


def test_cli_flag_overrides_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('API_KEY = "fk"\n', encoding="utf-8")

    args = build_parser().parse_args(["-c", str(path), "--secret-key", "sk", "auto-sell"])
    config = resolve_config(args)

    assert config == Configuration(api_key="fk", secret_key="sk")


def test_environment_supplies_config_path_and_keys(tmp_path, monkeypatch):
    path = tmp_path / "config.toml"
    path.write_text('default_quote_asset = "EUR"\n', encoding="utf-8")
    monkeypatch.setenv("TRADER_CONFIG", str(path))
    monkeypatch.setenv("TRADER_API_KEY", "ek")

    config = resolve_config(build_parser().parse_args(["-a", "ck"]))

    assert config.default_quote_asset == "EUR"
    assert config.api_key == "ck"


def test_malformed_config_exits_non_zero_unless_lenient(tmp_path, capsys):
    path = tmp_path / "config.toml"
    path.write_text("API_KEY = [\n", encoding="utf-8")

    assert main(["-c", str(path), "auto-sell"]) == EXIT_ERROR
    assert main(["--lenient-config", "-c", str(path), "auto-sell"]) == EXIT_OK


def test_show_config_prints_masked_json(capsys):
    assert main(["-a", "abcdefgh", "-d", "EUR", "show-config"]) == EXIT_OK
    out = capsys.readouterr().out
    body = out[: out.rindex("done")]
    shown = json.loads(body)
    assert shown["api_key"] == "ab****gh"
    assert shown["default_quote_asset"] == "EUR"


def test_log_path_adds_file_handler(tmp_path, capsys):
    log_file = tmp_path / "logs" / "trader.log"

    assert main(["-l", str(log_file), "-v", "auto-sell"]) == EXIT_OK
    assert log_file.exists()
    assert "auto-sell" in log_file.read_text(encoding="utf-8")


def test_yaml_unknown_keys_of_mixed_types_do_not_abort(tmp_path, capsys):
    path = tmp_path / "config.yaml"
    path.write_text("API_KEY: fk\n1: one\nfoo: bar\n", encoding="utf-8")

    assert main(["-c", str(path), "auto-sell"]) == EXIT_OK
    assert capsys.readouterr().out.strip().endswith("done")


def test_file_overrides_cli_flag_keeps_file_values(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('API_KEY = "fk"\n', encoding="utf-8")

    args = build_parser().parse_args(["--file-overrides-cli", "-c", str(path), "-a", "ck", "-s", "sk", "auto-sell"])
    config = resolve_config(args)

    assert config.api_key == "fk"
    assert config.secret_key == "sk"
