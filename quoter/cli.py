"""
quoter/cli.py - CLI entrypoint for plan quoting.

Usage:
    planq quote plan.yaml --pools pools.yaml
    planq quote plan.yaml --rpc-url https://ethereum-rpc.publicnode.com
    planq quote plan.yaml --log-level DEBUG --no-json-logs

Plan file:
    caller: "0x..."
    start_balance: 1000000000000000000
    commands: "0x0004"
    inputs:
      - "0x..."
      - "0x..."
"""

import json
import sys
from pathlib import Path
from typing import Any

import click
import yaml

from chains.providers import RPCProvider
from config import load_protocols
from config.settings import load_quoter_settings
from core.exceptions import PlanqError
from core.logging import get_logger, set_global_context, setup_logging
from dex.adapters.base import HopSimulator
from dex.adapters.rpc import RPCHopSimulator
from dex.pools import load_pool_book
from quoter.engine import Quoter

logger = get_logger("planq.cli")

__version__ = "0.1.0"


def _hex_bytes(value: str) -> bytes:
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


def load_plan(path: Path) -> dict[str, Any]:
    """Read a YAML plan file into quote() arguments."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    try:
        return {
            "commands": _hex_bytes(str(data["commands"])),
            "inputs": [_hex_bytes(str(blob)) for blob in data.get("inputs", [])],
            "caller": str(data["caller"]),
            "start_balance": int(data.get("start_balance", 0)),
        }
    except KeyError as e:
        raise click.BadParameter(f"Plan file is missing {e}", param_hint="PLAN_FILE") from e
    except ValueError as e:
        raise click.BadParameter(f"Plan file is malformed: {e}", param_hint="PLAN_FILE") from e


@click.group()
@click.version_option(__version__, prog_name="planq")
def main() -> None:
    """PLANQ - multi-protocol swap plan quoter."""


@main.command()
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--pools",
    "-p",
    "pools_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML pool book to quote against (in-memory simulation)",
)
@click.option(
    "--rpc-url",
    "rpc_urls",
    multiple=True,
    help="RPC endpoint for on-chain quoting (repeatable; default: config/quoter.yaml)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Engine settings file (default: config/quoter.yaml)",
)
@click.option(
    "--log-level",
    "-l",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=True,
    help="Use JSON log format",
)
def quote(
    plan_file: Path,
    pools_file: Path | None,
    rpc_urls: tuple[str, ...],
    config_path: Path | None,
    log_level: str,
    json_logs: bool,
) -> None:
    """Quote PLAN_FILE and print the result as JSON."""
    setup_logging(level=log_level, json_output=json_logs)
    set_global_context(service="planq", version=__version__)

    settings = load_quoter_settings(config_path)
    protocols = load_protocols(settings.protocols_file)
    plan = load_plan(plan_file)

    provider = None
    simulator: HopSimulator
    if pools_file is not None:
        with open(pools_file, encoding="utf-8") as f:
            simulator = load_pool_book(yaml.safe_load(f) or {}, protocols)
    else:
        provider = RPCProvider(
            chain_id=settings.chain_id,
            rpc_urls=list(rpc_urls) or settings.rpc_urls,
            timeout_seconds=settings.rpc_timeout_seconds,
        )
        simulator = RPCHopSimulator(provider, protocols)

    quoter = Quoter(simulator, protocols, max_sub_plan_depth=settings.max_sub_plan_depth)

    try:
        result = quoter.quote(**plan)
    except PlanqError as e:
        click.echo(json.dumps({"error": e.to_dict()}, indent=2, default=str), err=True)
        sys.exit(1)
    finally:
        if provider is not None:
            logger.debug("RPC stats", extra={"context": provider.get_stats_summary()})
            provider.close()

    click.echo(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
