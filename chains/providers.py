"""
chains/providers.py - Synchronous JSON-RPC client for hop quotes.

Endpoints are tried in configured order. Transport failures and node-side
errors move on to the next endpoint; an `execution reverted` answer is a
property of the call itself and is raised immediately.
"""

import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from core.exceptions import ErrorCode, InfraError
from core.logging import get_logger

logger = get_logger(__name__)

# geth answers reverted eth_call with this JSON-RPC error code
REVERT_ERROR_CODE = 3


@dataclass
class RPCStats:
    """Per-endpoint counters, reported at DEBUG after a CLI run."""
    url: str
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    total_latency_ms: int = 0
    last_error: str | None = None

    def record_success(self, latency_ms: int) -> None:
        self.total_requests += 1
        self.successful_requests += 1
        self.total_latency_ms += latency_ms

    def record_failure(self, reason: str) -> None:
        self.total_requests += 1
        self.failed_requests += 1
        self.last_error = reason

    @property
    def avg_latency_ms(self) -> int:
        return self.total_latency_ms // self.successful_requests if self.successful_requests else 0

    @property
    def success_rate(self) -> float:
        return self.successful_requests / self.total_requests if self.total_requests else 0.0


@dataclass
class RPCResponse:
    result: Any
    latency_ms: int
    endpoint_used: str


class _EndpointFailed(Exception):
    """One endpoint could not answer; the caller moves on to the next."""

    def __init__(self, reason: str, timed_out: bool = False):
        super().__init__(reason)
        self.reason = reason
        self.timed_out = timed_out


def is_revert(error: dict[str, Any]) -> bool:
    return error.get("code") == REVERT_ERROR_CODE or "revert" in str(error.get("message", "")).lower()


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class RPCProvider:
    """
    Failover JSON-RPC client over a shared httpx.Client.

    Usage:
        with RPCProvider(1, ["https://..."]) as provider:
            response = provider.eth_call(to=quoter, data=call_data)
    """

    def __init__(
        self,
        chain_id: int,
        rpc_urls: list[str],
        timeout_seconds: int = 10,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.chain_id = chain_id
        self.rpc_urls = list(rpc_urls)
        self.timeout_seconds = timeout_seconds
        self.stats = {url: RPCStats(url=url) for url in self.rpc_urls}
        self._client = httpx.Client(timeout=httpx.Timeout(timeout_seconds), transport=transport)
        self._ids = 0

    def __enter__(self) -> "RPCProvider":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _payload(self, method: str, params: list) -> dict:
        self._ids += 1
        return {"jsonrpc": "2.0", "id": self._ids, "method": method, "params": params}

    def _attempt(self, url: str, payload: dict) -> RPCResponse:
        started = time.monotonic()
        try:
            http_response = self._client.post(url, json=payload)
            http_response.raise_for_status()
            body = http_response.json()
        except httpx.TimeoutException:
            raise _EndpointFailed(f"Timeout after {_elapsed_ms(started)}ms", timed_out=True)
        except (httpx.HTTPError, ValueError) as e:
            raise _EndpointFailed(str(e))

        error = body.get("error")
        if error is None:
            return RPCResponse(result=body.get("result"), latency_ms=_elapsed_ms(started), endpoint_used=url)

        message = error.get("message", str(error))
        if is_revert(error):
            self.stats[url].record_failure(message)
            raise InfraError(
                code=ErrorCode.INFRA_RPC_ERROR,
                message=f"Call reverted: {message}",
                details={"url": url, "method": payload["method"], "revert": True, "data": error.get("data")},
            )
        raise _EndpointFailed(message)

    def call(self, method: str, params: list | None = None) -> RPCResponse:
        """
        Send one JSON-RPC request, failing over across endpoints.

        Raises:
            InfraError: revert (not retried), no endpoints, or every endpoint
                failed; INFRA_TIMEOUT when the last failure was a timeout
        """
        if not self.rpc_urls:
            raise InfraError(
                code=ErrorCode.INFRA_RPC_ERROR,
                message="No RPC endpoints configured",
                details={"chain_id": self.chain_id},
            )

        payload = self._payload(method, params or [])
        failure: _EndpointFailed | None = None
        for url in self.rpc_urls:
            try:
                response = self._attempt(url, payload)
            except _EndpointFailed as e:
                self.stats[url].record_failure(e.reason)
                logger.debug(f"{method} failed on {url}: {e.reason}")
                failure = e
                continue
            self.stats[url].record_success(response.latency_ms)
            return response

        raise InfraError(
            code=ErrorCode.INFRA_TIMEOUT if failure.timed_out else ErrorCode.INFRA_RPC_ERROR,
            message=f"All RPC endpoints failed for chain {self.chain_id}",
            details={
                "chain_id": self.chain_id,
                "method": method,
                "endpoints_tried": len(self.rpc_urls),
                "last_error": failure.reason,
            },
        )

    def get_block_number(self) -> int:
        return int(self.call("eth_blockNumber").result, 16)

    def eth_call(self, to: str, data: str, block: str = "latest") -> RPCResponse:
        return self.call("eth_call", [{"to": to, "data": data}, block])

    def get_stats_summary(self) -> dict:
        return {
            url: {
                "total_requests": s.total_requests,
                "success_rate": round(s.success_rate, 3),
                "avg_latency_ms": s.avg_latency_ms,
                "last_error": s.last_error,
            }
            for url, s in self.stats.items()
        }
