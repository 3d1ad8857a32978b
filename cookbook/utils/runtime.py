"""Shared runtime helpers for cookbook recipes."""

from __future__ import annotations

import argparse
import sys

from claudius import Config, Model
from claudius.errors import ConfigError


def add_runtime_args(parser: argparse.ArgumentParser) -> None:
    """Add common model/runtime arguments to a recipe parser."""
    parser.add_argument(
        "--model",
        choices=[m.value for m in Model],
        default=None,
        help="Model id (default: ANTHROPIC_MODEL or claude-3-haiku-20240307).",
    )
    parser.add_argument(
        "--mock",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Run in mock mode (default: enabled). Use --no-mock for real API calls.",
    )
    parser.add_argument(
        "--api-key",
        default=None,
        help="Optional API key override. Usually read from ANTHROPIC_API_KEY.",
    )


def build_config_or_exit(args: argparse.Namespace) -> Config:
    """Build Config from parsed args, exiting with a concise actionable error."""
    try:
        return Config(
            api_key=args.api_key,
            default_model=Model(args.model) if args.model else None,
            use_mock=bool(args.mock),
        )
    except ConfigError as exc:
        hint = f" Hint: {exc.hint}" if exc.hint else ""
        print(f"Configuration error: {exc}.{hint}", file=sys.stderr)
        raise SystemExit(2) from exc


def print_run_mode(config: Config) -> None:
    mode = "mock" if config.use_mock else "real-api"
    model = config.default_model.value if config.default_model else "?"
    print(f"Mode: {mode} | model={model} | base_url={config.base_url}")
