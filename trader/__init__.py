"""Command-line skeleton for a crypto trading client (no order execution).

Modules:
- config: layered configuration (defaults, file, environment, CLI)
- validation: argument validation for sub-commands
- cli: command-line entrypoints
"""

__all__ = [
	"config",
	"validation",
	"cli",
]
