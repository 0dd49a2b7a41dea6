"""
config/settings.py - Engine settings.

Sub-plan depth limit and RPC endpoints, loaded from quoter.yaml.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from core.constants import DEFAULT_MAX_SUB_PLAN_DEPTH, DEFAULT_RPC_TIMEOUT_SECONDS

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "quoter.yaml"


@dataclass
class QuoterSettings:
    """Quoter engine configuration."""

    max_sub_plan_depth: int = DEFAULT_MAX_SUB_PLAN_DEPTH
    chain_id: int = 1
    rpc_urls: list[str] = field(default_factory=list)
    rpc_timeout_seconds: int = DEFAULT_RPC_TIMEOUT_SECONDS
    protocols_file: str = "protocols.yaml"


def resolve_env(value: str) -> Optional[str]:
    """
    Substitute ${RPC_API_KEY} from the environment (.env supported).

    Returns None for a URL that needs a key when none is set.
    """
    load_dotenv()
    if "${RPC_API_KEY}" not in value:
        return value
    api_key = os.getenv("RPC_API_KEY", "")
    if not api_key:
        return None
    return value.replace("${RPC_API_KEY}", api_key)


def load_quoter_settings(config_path: Path | None = None) -> QuoterSettings:
    """
    Load quoter settings from YAML file.

    Args:
        config_path: Path to quoter.yaml (default: config/quoter.yaml)

    Returns:
        QuoterSettings, defaults when the file does not exist
    """
    if config_path is None:
        config_path = DEFAULT_SETTINGS_PATH

    if not config_path.exists():
        return QuoterSettings()

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    rpc = data.get("rpc", {})
    max_depth = int(data.get("max_sub_plan_depth", DEFAULT_MAX_SUB_PLAN_DEPTH))
    if max_depth < 0:
        raise ValueError(f"max_sub_plan_depth must be non-negative: {max_depth}")

    return QuoterSettings(
        max_sub_plan_depth=max_depth,
        chain_id=int(rpc.get("chain_id", 1)),
        rpc_urls=[url for url in (resolve_env(raw) for raw in rpc.get("urls", [])) if url],
        rpc_timeout_seconds=int(rpc.get("timeout_seconds", DEFAULT_RPC_TIMEOUT_SECONDS)),
        protocols_file=data.get("protocols_file", "protocols.yaml"),
    )
