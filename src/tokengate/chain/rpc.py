"""Minimal EVM JSON-RPC client over httpx."""

from __future__ import annotations

import itertools
import logging
import re

import httpx

from tokengate.errors import MalformedResponse, OracleUnavailable

log = logging.getLogger(__name__)

BALANCE_OF_SELECTOR = "0x70a08231"  # balanceOf(address)
DECIMALS_SELECTOR = "0x313ce567"  # decimals()

HEX_RE = re.compile(r"[0-9a-fA-F]+")

_request_ids = itertools.count(1)


def encode_balance_of(owner: str) -> str:
    """ABI-encode a balanceOf(owner) call."""
    return BALANCE_OF_SELECTOR + owner.lower().removeprefix("0x").rjust(64, "0")


def decode_uint256(result: object) -> int:
    """Decode a single uint256 return word. Raises MalformedResponse."""
    if not isinstance(result, str) or not result.startswith("0x"):
        raise MalformedResponse(f"expected hex string, got {result!r}")
    body = result[2:]
    if not body:
        raise MalformedResponse("empty return data (not a contract?)")
    if not HEX_RE.fullmatch(body):
        raise MalformedResponse(f"non-hex return data {result!r}")
    # Only the first word is meaningful for balanceOf/decimals.
    return int(body[:64], 16)


class EthRpcClient:
    """Sends JSON-RPC 2.0 requests to a single EVM node endpoint.

    Timeouts, connection errors and HTTP 5xx are retried up to
    ``retries`` extra times, then raised as OracleUnavailable. JSON-RPC
    error objects and HTTP 4xx are not retried.
    """

    def __init__(self, url: str, timeout: float = 10, retries: int = 2) -> None:
        self._url = url
        self._timeout = timeout
        self._retries = max(0, retries)

    @property
    def url(self) -> str:
        return self._url

    async def call(self, method: str, params: list) -> object:
        """Send one request and return its ``result`` member."""
        payload = {
            "jsonrpc": "2.0",
            "id": next(_request_ids),
            "method": method,
            "params": params,
        }
        attempts = self._retries + 1
        for attempt in range(1, attempts + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(self._timeout, connect=min(self._timeout, 5)),
                ) as client:
                    resp = await client.post(self._url, json=payload)
                    resp.raise_for_status()
                break
            except (httpx.TimeoutException, httpx.TransportError, httpx.HTTPStatusError) as exc:
                retryable = not isinstance(exc, httpx.HTTPStatusError) or (
                    exc.response.status_code >= 500
                )
                if retryable and attempt < attempts:
                    log.warning(
                        "%s to %s failed (attempt %d/%d): %s",
                        method, self._url, attempt, attempts, exc,
                    )
                    continue
                if isinstance(exc, httpx.HTTPStatusError):
                    raise OracleUnavailable(
                        f"{method}: RPC HTTP {exc.response.status_code}"
                    ) from exc
                if isinstance(exc, httpx.TimeoutException):
                    raise OracleUnavailable(
                        f"{method}: RPC timeout after {attempts} attempts"
                    ) from exc
                raise OracleUnavailable(f"{method}: {exc}") from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise MalformedResponse(f"{method}: response is not JSON") from exc
        if not isinstance(data, dict):
            raise MalformedResponse(f"{method}: unexpected response {data!r}")
        if data.get("error") is not None:
            raise OracleUnavailable(f"{method}: RPC error {data['error']}")
        if "result" not in data:
            raise MalformedResponse(f"{method}: response has no result")
        return data["result"]

    async def eth_call(self, to: str, data: str, block: str = "latest") -> object:
        return await self.call("eth_call", [{"to": to, "data": data}, block])
