"""Minimal async JSON-RPC 2.0 client for Ethereum nodes."""

from __future__ import annotations

import itertools
import logging
import time
from typing import Any

import httpx

from hats_verifier.core.errors import ChainReadError

logger = logging.getLogger(__name__)


class JsonRpcClient:
    """Issue JSON-RPC calls to a node over HTTP.

    No retries: a failed read is fatal to the verification run, so every
    transport error, HTTP error and JSON-RPC error is raised as
    ``ChainReadError``.

    Usage::

        async with JsonRpcClient("http://127.0.0.1:8545") as rpc:
            block = await rpc.call("eth_blockNumber")
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    # ── Context manager ──────────────────────────────────────────────

    async def __aenter__(self) -> JsonRpcClient:
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ── Calls ────────────────────────────────────────────────────────

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Send one request and return its ``result`` member."""
        request_id = next(self._ids)
        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params or [],
        }

        start = time.monotonic()
        try:
            response = await self._client.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            raise ChainReadError(
                f"{method} failed with HTTP {exc.response.status_code}",
                method=method,
                code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ChainReadError(f"{method} failed: {exc}", method=method) from exc
        except ValueError as exc:
            raise ChainReadError(f"{method} returned a non-JSON body", method=method) from exc

        duration_ms = round((time.monotonic() - start) * 1000, 2)
        logger.debug(
            "rpc %s #%d took %sms",
            method,
            request_id,
            duration_ms,
            extra={"rpc_method": method, "duration_ms": duration_ms},
        )

        if not isinstance(body, dict):
            raise ChainReadError(f"{method} returned a malformed response", method=method)

        error = body.get("error")
        if error:
            if isinstance(error, dict):
                raise ChainReadError(
                    f"{method} failed: {error.get('message', 'unknown error')}",
                    method=method,
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise ChainReadError(f"{method} failed: {error}", method=method)

        if "result" not in body:
            raise ChainReadError(f"{method} response has no result", method=method)
        return body["result"]
