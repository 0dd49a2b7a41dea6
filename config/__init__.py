# PATH: config/__init__.py
"""
Configuration loading utilities for PLANQ.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from eth_utils import to_checksum_address

from core.constants import CORE_FAMILY_RANGE, INTEGRATION_FAMILY_RANGE, ProtocolFamily, ProtocolKind
from core.exceptions import CommandError, ErrorCode


CONFIG_DIR = Path(__file__).parent


@dataclass(frozen=True)
class ProtocolConfig:
    """Deployment constants for one protocol family."""
    family: int
    name: str
    kind: ProtocolKind
    factory: str  # factory, pool deployer, or singleton manager
    init_code_hash: Optional[str] = None
    quoter: Optional[str] = None


def load_yaml(filename: str, config_dir: Path = CONFIG_DIR) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filename: Name of file in config directory
        config_dir: Directory to look in

    Returns:
        Parsed YAML as dict
    """
    filepath = config_dir / filename
    if not filepath.exists():
        raise FileNotFoundError(f"Config file not found: {filepath}")

    with open(filepath, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_protocols(data: Dict[str, Any]) -> Dict[int, ProtocolConfig]:
    """
    Build the family id -> ProtocolConfig mapping from parsed YAML.

    Args:
        data: Mapping of protocol name to {id, kind, factory, init_code_hash, quoter}

    Returns:
        Dict keyed by protocol family id

    Raises:
        ValueError: unknown kind, or a family id outside both id ranges
    """
    protocols: Dict[int, ProtocolConfig] = {}
    for name, entry in data.items():
        family = int(entry["id"])
        if family not in CORE_FAMILY_RANGE and family not in INTEGRATION_FAMILY_RANGE:
            raise ValueError(f"Protocol {name} has family id 0x{family:02x} outside 0x00-0x7f")
        quoter = entry.get("quoter")
        protocols[family] = ProtocolConfig(
            family=family,
            name=name,
            kind=ProtocolKind(entry["kind"]),
            factory=to_checksum_address(entry["factory"]),
            init_code_hash=entry.get("init_code_hash"),
            quoter=to_checksum_address(quoter) if quoter else None,
        )
    return protocols


def load_protocols(filename: str = "protocols.yaml") -> Dict[int, ProtocolConfig]:
    """Load protocol deployment constants."""
    return parse_protocols(load_yaml(filename))


def get_protocol(protocols: Dict[int, ProtocolConfig], family: int) -> ProtocolConfig:
    """
    Get configuration for a protocol family.

    Raises:
        CommandError: UNKNOWN_PROTOCOL if the family is not configured
    """
    if family not in protocols:
        try:
            label = ProtocolFamily(family).name
        except ValueError:
            label = str(family)
        raise CommandError(
            code=ErrorCode.UNKNOWN_PROTOCOL,
            message=f"Protocol family {label} is not configured",
            details={"family": family},
        )
    return protocols[family]
