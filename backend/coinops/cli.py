"""
Command line entry point: ``coinops serve [--config FILE] [-p PORT] [-H HOST]``.

Flags override the environment, which overrides the config file.
"""

from __future__ import annotations

import argparse
import os
from collections.abc import Sequence

from coinops.config.settings import Settings, load_settings
from coinops.main import serve


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coinops",
        description="CoinOps dashboard: cached cryptocurrency prices.",
    )
    parser.add_argument("--config", help="config file (default is ./config.yaml)")
    commands = parser.add_subparsers(dest="command", required=True)

    serve_parser = commands.add_parser("serve", help="Start the CoinOps dashboard server")
    # SUPPRESS keeps a --config given before the subcommand from being reset.
    serve_parser.add_argument("--config", default=argparse.SUPPRESS, help="config file (default is ./config.yaml)")
    serve_parser.add_argument("-p", "--port", type=int, help="Server port (default from config)")
    serve_parser.add_argument("-H", "--host", help="Server host (default from config)")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    server: dict[str, object] = {}
    if args.port is not None:
        server["port"] = args.port
    if args.host:
        server["host"] = args.host
    overrides = {"server": server} if server else {}
    return load_settings(args.config, **overrides)


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.config is not None and not os.path.isfile(args.config):
        parser.error(f"config file not found: {args.config}")
    serve(settings_from_args(args))


if __name__ == "__main__":
    main()
