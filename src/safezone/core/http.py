"""
Async HTTP helpers shared by the geocoding and catalog adapters.

`get_json` sends a GET with a default User-Agent and timeout, raises
`httpx.HTTPStatusError` on non-2xx and `ValueError` on a non-JSON body. Callers
decide whether a failure is fatal (catalog) or per-item (geocoding).
"""

from __future__ import annotations

from typing import Any

import httpx

DEFAULT_USER_AGENT = "safezone/0.1.0 (+https://local)"


def _merge_headers(headers: dict[str, str] | None) -> dict[str, str]:
    return {"User-Agent": DEFAULT_USER_AGENT, **(headers or {})}


async def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
    client: httpx.AsyncClient | None = None,
) -> Any:
    """GET `url` and decode the JSON body.

    Pass a shared `client` to reuse connections across a discovery pass; without
    one a client is opened for this request only.
    """
    if client is None:
        async with httpx.AsyncClient(timeout=timeout_seconds) as owned:
            return await get_json(url, params=params, headers=headers, timeout_seconds=timeout_seconds, client=owned)

    resp = await client.get(url, params=params, headers=_merge_headers(headers), timeout=timeout_seconds)
    resp.raise_for_status()
    return resp.json()


def parse_retry_after_seconds(value: str | None) -> float | None:
    """Seconds from a numeric `Retry-After` header; HTTP-date values are ignored."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None
