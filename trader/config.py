from __future__ import annotations

import os
import sys
import yaml
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional
from pathlib import Path

if sys.version_info >= (3, 11):
	import tomllib
else:
	import tomli as tomllib

from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_QUOTE_ASSET = "USD"

# Environment variables consulted when the matching flag is not given
CONFIG_PATH_ENV = "TRADER_CONFIG"
API_KEY_ENV = "TRADER_API_KEY"
SECRET_KEY_ENV = "TRADER_SECRET_KEY"

YAML_SUFFIXES = (".yaml", ".yml")


class TraderError(Exception):
	"""Base class for errors reported to the user by the CLI"""
	pass


class ConfigError(TraderError):
	pass


class ConfigFileUnreadable(ConfigError):
	"""Config file is missing or cannot be read; never fatal"""

	def __init__(self, path: Path, reason: str):
		self.path = path
		self.reason = reason
		super().__init__(f"cannot read config file {path}: {reason}")


class InvalidConfigFormat(ConfigError):
	"""Config file exists but does not parse into a Configuration"""

	def __init__(self, path: Optional[Path], reason: str):
		self.path = path
		self.reason = reason
		where = f"config file {path}" if path else "config data"
		super().__init__(f"invalid {where}: {reason}")


@dataclass(frozen=True)
class Configuration:
	secret_key: str = ""
	api_key: str = ""
	log_path: Optional[Path] = None
	default_quote_asset: str = DEFAULT_QUOTE_ASSET

	def to_display_dict(self) -> Dict[str, Any]:
		"""Printable view with credentials masked"""
		return {
			"secret_key": mask_secret(self.secret_key),
			"api_key": mask_secret(self.api_key),
			"log_path": str(self.log_path) if self.log_path is not None else None,
			"default_quote_asset": self.default_quote_asset,
		}


# Configuration field -> key used in config files
FILE_KEYS: Dict[str, str] = {
	"secret_key": "SECRET_KEY",
	"api_key": "API_KEY",
	"log_path": "log_path",
	"default_quote_asset": "default_quote_asset",
}


@dataclass(frozen=True)
class CliOverrides:
	"""Values the user explicitly supplied; None means not supplied."""
	secret_key: Optional[str] = None
	api_key: Optional[str] = None
	log_path: Optional[Path] = None
	default_quote_asset: Optional[str] = None

	def supplied(self) -> Dict[str, Any]:
		return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

	def merged_with(self, fallback: CliOverrides) -> CliOverrides:
		"""Fill fields not supplied here from ``fallback``."""
		return replace(fallback, **self.supplied())


@dataclass(frozen=True)
class ConfigPolicy:
	# False reproduces the file-wins variant: file values beat the CLI
	cli_overrides_file: bool = True
	# False falls back to defaults when the config file is malformed
	strict: bool = True


def mask_secret(value: str) -> str:
	if not value:
		return ""
	if len(value) <= 4:
		return "*" * len(value)
	return value[:2] + "*" * (len(value) - 4) + value[-2:]


def read_config_file(config_path: Path) -> Dict[str, Any]:
	"""Read a TOML (or YAML, by suffix) config file into a dict."""
	config_path = Path(config_path)
	try:
		if config_path.suffix.lower() in YAML_SUFFIXES:
			with open(config_path, "r", encoding="utf-8") as file:
				data = yaml.safe_load(file)
		else:
			with open(config_path, "rb") as file:
				data = tomllib.load(file)
	except FileNotFoundError:
		raise ConfigFileUnreadable(config_path, "file not found")
	except IsADirectoryError:
		raise ConfigFileUnreadable(config_path, "is a directory")
	except OSError as e:
		raise ConfigFileUnreadable(config_path, e.strerror or str(e))
	except (tomllib.TOMLDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
		raise InvalidConfigFormat(config_path, str(e))

	# An empty YAML document loads as None
	if data is None:
		return {}
	if not isinstance(data, dict):
		raise InvalidConfigFormat(config_path, f"expected a table of settings, got {type(data).__name__}")
	return data


def from_mapping(data: Mapping[str, Any], base: Optional[Configuration] = None, source: Optional[Path] = None) -> Configuration:
	"""Layer the recognised keys of ``data`` over ``base`` (defaults if None)."""
	config = base if base is not None else Configuration()
	updates: Dict[str, Any] = {}

	for name, key in FILE_KEYS.items():
		if key not in data:
			continue
		value = data[key]
		if name == "log_path":
			if value is None:
				updates[name] = None
				continue
			if not isinstance(value, str):
				raise InvalidConfigFormat(source, f"'{key}' must be a string path, got {type(value).__name__}")
			updates[name] = Path(value)
		else:
			if not isinstance(value, str):
				raise InvalidConfigFormat(source, f"'{key}' must be a string, got {type(value).__name__}")
			updates[name] = value

	unknown = sorted(str(k) for k in set(data) - set(FILE_KEYS.values()))
	if unknown:
		logger.debug(f"Ignoring unknown config keys: {', '.join(unknown)}")

	return replace(config, **updates)


def overrides_from_env(environ: Optional[Mapping[str, str]] = None) -> CliOverrides:
	"""Credentials from the environment; empty variables count as unset"""
	env = os.environ if environ is None else environ
	return CliOverrides(
		api_key=env.get(API_KEY_ENV) or None,
		secret_key=env.get(SECRET_KEY_ENV) or None,
	)


def config_path_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[Path]:
	env = os.environ if environ is None else environ
	value = env.get(CONFIG_PATH_ENV)
	return Path(value) if value else None


def load(overrides: Optional[CliOverrides] = None, config_path: Optional[Path] = None, policy: Optional[ConfigPolicy] = None) -> Configuration:
	"""
	Resolve the effective configuration.

	Layers, lowest priority first: built-in defaults, the config file at
	``config_path`` (if any), then ``overrides``. A missing or unreadable
	file only logs a warning. A malformed file raises InvalidConfigFormat
	unless ``policy.strict`` is False, in which case defaults are used.

	Args:
		overrides: explicitly supplied values
		config_path: optional TOML/YAML file
		policy: precedence and error policy

	Returns:
		Fully populated, immutable Configuration
	"""
	overrides = overrides or CliOverrides()
	policy = policy or ConfigPolicy()
	config = Configuration()
	file_data: Dict[str, Any] = {}

	if config_path is not None:
		try:
			file_data = read_config_file(config_path)
			config = from_mapping(file_data, config, source=Path(config_path))
			logger.debug(f"Config from file {config_path}: {config.to_display_dict()}")
		except ConfigFileUnreadable as e:
			logger.warning(f"{e}; using defaults")
			file_data = {}
		except InvalidConfigFormat as e:
			if policy.strict:
				raise
			logger.warning(f"{e}; using defaults")
			file_data = {}
			config = Configuration()

	supplied = overrides.supplied()
	if not policy.cli_overrides_file:
		# File-wins variant: drop overrides for keys the file set
		supplied = {name: value for name, value in supplied.items() if FILE_KEYS[name] not in file_data}

	config = replace(config, **supplied)
	logger.debug(f"Config after overrides: {config.to_display_dict()}")
	return config
