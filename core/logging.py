"""
core/logging.py - Structured JSON logging on stderr.

Structured fields go in extra={"context": {...}}; a ContextAdapter merges
them with fields bound at get_logger() time (for adapters, the protocol
family) and the formatter adds the process-wide global context.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Fields added to every record, e.g. service and version set by the CLI
_global_context: dict[str, Any] = {}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record:

        {"timestamp": "...", "level": "DEBUG", "logger": "dex.adapters.uniswap_v3",
         "message": "Hop: ...", "context": {"family": "uniswap_v3", "amount_out": 2499000000}}

    Amounts stay integers; json handles arbitrary precision.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = {**_global_context, **getattr(record, "context", {})}
        if record.exc_info:
            context["exception"] = self.formatException(record.exc_info)
        if context:
            entry["context"] = context

        return json.dumps(entry, default=str)


class ContextAdapter(logging.LoggerAdapter):
    """Merges bound fields under the per-call extra={"context": ...}."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        call_context = kwargs.get("extra", {}).get("context", {})
        kwargs["extra"] = {"context": {**self.extra, **call_context}}
        return msg, kwargs


def set_global_context(**kwargs: Any) -> None:
    _global_context.update(kwargs)


def clear_global_context() -> None:
    _global_context.clear()


def get_logger(name: str, **context: Any) -> ContextAdapter:
    """
    Logger whose records always carry `context`.

    Example:
        logger = get_logger(__name__, family="uniswap_v3")
        logger.debug("Hop quoted", extra={"context": {"amount_out": 50}})
    """
    return ContextAdapter(logging.getLogger(name), context)


def setup_logging(level: str = "WARNING", json_output: bool = True) -> None:
    """
    Route all records to stderr, leaving stdout for the quote result.

    Args:
        level: DEBUG shows every command, action and hop
        json_output: One JSON object per line; otherwise a plain text line
    """
    if json_output:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter("%(levelname)-8s %(name)s: %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level.upper())

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# PLANQ RECORDS
# =============================================================================

def log_hop(
    logger: ContextAdapter,
    pool: str,
    token_in: str,
    token_out: str,
    amount_in: int,
    amount_out: int,
    gas_estimate: int,
    **extra: Any,
) -> None:
    """DEBUG record for one simulated pool hop."""
    context = dict(
        pool=pool,
        token_in=token_in,
        token_out=token_out,
        amount_in=amount_in,
        amount_out=amount_out,
        gas_estimate=gas_estimate,
    )
    context.update(extra)
    logger.debug(f"Hop {amount_in} {token_in[:10]} -> {amount_out} {token_out[:10]}", extra={"context": context})


def log_error(logger: ContextAdapter, error_code: str, message: str, **extra: Any) -> None:
    """WARNING record for a failed quote; the code leads the message."""
    logger.warning(f"[{error_code}] {message}", extra={"context": {"error_code": error_code, **extra}})
