"""
HTTP helpers.

This module centralizes the minimal async HTTP client logic used by the Overpass
fetcher and the IP geolocation provider.

Design goals:
- Small surface area (GET JSON, POST form).
- Deterministic defaults (timeout + User-Agent).
- Raise on non-2xx so callers can classify the failure.
"""

from __future__ import annotations

from typing import Any

import httpx


DEFAULT_USER_AGENT = "watermap/0.1.0 (+https://local)"


def _client(timeout_seconds: float, transport: httpx.AsyncBaseTransport | None) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout_seconds, transport=transport)


async def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """GET `url` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if headers:
        request_headers.update(headers)

    async with _client(timeout_seconds, transport) as client:
        resp = await client.get(url, params=params, headers=request_headers)
        resp.raise_for_status()
        return resp.json()


async def post_form(
    url: str,
    *,
    data: dict[str, Any],
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 15,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """POST `data` as form-encoded body and return the decoded JSON response.

    Used for Overpass interpreter queries (`data=<query>`).

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if headers:
        request_headers.update(headers)

    async with _client(timeout_seconds, transport) as client:
        resp = await client.post(url, data=data, headers=request_headers)
        resp.raise_for_status()
        return resp.json()
