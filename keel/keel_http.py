import asyncio
import itertools
from typing import Optional, Dict, Any, List

import httpx

from keel.keel_errors import ProviderError

_request_ids = itertools.count(1)


async def rpc_request(url: str, method: str, params: Optional[List[Any]] = None, *, config: Optional[Dict] = None) -> Any:
    """
    Core JSON-RPC 2.0 helper.

    config keys:
      - timeout (seconds, default 5.0)
      - retries (extra attempts on transport failure, default 2)
      - backoff (base delay, doubled per attempt, default 0.2)
      - headers (extra HTTP headers)

    Returns the `result` member. An `error` member in the response raises
    ProviderError immediately (no retry); transport failures are retried.
    """
    cfg = dict(config or {})
    timeout = float(cfg.pop('timeout', 5.0))
    retries = int(cfg.pop('retries', 2))
    backoff = float(cfg.pop('backoff', 0.2))
    headers = dict(cfg.pop('headers', {}))
    headers.setdefault("Content-Type", "application/json")

    payload = {
        "jsonrpc": "2.0",
        "id": next(_request_ids),
        "method": method,
        "params": list(params or []),
    }

    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        last_exc = None
        for attempt in range(retries + 1):
            try:
                resp = await client.post(url, json=payload, headers=headers)
            except httpx.HTTPError as e:
                last_exc = e
                if attempt < retries:
                    await asyncio.sleep(backoff * (2 ** attempt))
                    continue
                raise ProviderError(f"Could not connect to {url}: {e}") from e

            if not 200 <= resp.status_code < 300:
                preview = (resp.text or "")[:200]
                raise ProviderError(f"HTTP {resp.status_code} for {url}: {preview}")
            try:
                body = resp.json()
            except ValueError as e:
                raise ProviderError(f"Invalid JSON-RPC response from {url}") from e
            if isinstance(body, dict) and body.get("error"):
                err = body["error"]
                if isinstance(err, dict):
                    raise ProviderError(str(err.get("message", err)), code=err.get("code"))
                raise ProviderError(str(err))
            return body.get("result") if isinstance(body, dict) else body
        # Loop always returns or raises; keep type checkers quiet
        raise ProviderError(f"Could not connect to {url}: {last_exc}")


class HttpProvider:
    """A provider handle for a JSON-RPC endpoint reachable over HTTP."""

    def __init__(self, url: str, config: Optional[Dict[str, Any]] = None):
        self.url = url
        self.config = dict(config or {})

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        return await rpc_request(self.url, method, params, config=self.config)

    def __repr__(self):
        return f"<HttpProvider {self.url}>"


def provider_from_network(network: Dict[str, Any]) -> Optional[HttpProvider]:
    """Build a provider from a network record (`url`, or `host` + `port`)."""
    url = network.get("url")
    if not url and network.get("host"):
        port = network.get("port", 8545)
        url = f"http://{network['host']}:{port}"
    if not url:
        return None
    cfg = {k: network[k] for k in ("timeout", "retries", "backoff", "headers") if k in network}
    return HttpProvider(url, cfg)


class InterfaceAdapter:
    """Adapts the console to the client interface of the network type."""

    SUPPORTED_TYPES = ("ethereum",)

    def __init__(self, provider, network_type: Optional[str] = None):
        network_type = (network_type or "ethereum").lower()
        if network_type not in self.SUPPORTED_TYPES:
            raise ProviderError(f"Unsupported network type: {network_type}")
        self.provider = provider
        self.network_type = network_type

    async def get_accounts(self) -> List[str]:
        if self.provider is None:
            raise ProviderError("No provider configured for this network")
        accounts = await self.provider.request("eth_accounts")
        return list(accounts or [])

    async def get_network_id(self) -> str:
        return str(await self.provider.request("net_version"))

    async def get_block_number(self) -> int:
        value = await self.provider.request("eth_blockNumber")
        return int(value, 16) if isinstance(value, str) else int(value)


def create_interface_adapter(provider, network_type: Optional[str] = None) -> InterfaceAdapter:
    return InterfaceAdapter(provider, network_type)


__all__ = [
    "rpc_request",
    "HttpProvider",
    "provider_from_network",
    "InterfaceAdapter",
    "create_interface_adapter",
]
