"""Shared JSON-over-HTTP helper for the Gemini and local backends.

Both backends send one POST and need identical error normalization:
httpx failures and non-2xx statuses become TransportError, bodies that are
not JSON objects become MalformedResponseError.
"""

import json
import logging
from typing import Any, Optional

import httpx

from ..errors import MalformedResponseError, TransportError

logger = logging.getLogger(__name__)


async def post_json(
    url: str,
    payload: dict[str, Any],
    *,
    headers: dict[str, str],
    timeout: float,
    provider: str,
    client: Optional[httpx.AsyncClient] = None,
) -> dict[str, Any]:
    """
    POST a JSON payload and return the decoded JSON object.

    Args:
        url: Full endpoint URL
        payload: JSON-serializable request body
        headers: Request headers (auth, content type)
        timeout: Per-request timeout in seconds
        provider: Provider name for error messages
        client: Optional shared client; a short-lived one is created otherwise

    Returns:
        Decoded response body

    Raises:
        TransportError: Connection failure, timeout or non-2xx status
        MalformedResponseError: Body is not a JSON object
    """
    try:
        if client is not None:
            response = await client.post(url, json=payload, headers=headers, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as own_client:
                response = await own_client.post(url, json=payload, headers=headers)
    except httpx.TimeoutException as exc:
        raise TransportError(
            f"{provider} request timed out after {timeout:.0f}s", provider=provider
        ) from exc
    except httpx.HTTPError as exc:
        raise TransportError(f"{provider} is unreachable: {exc}", provider=provider) from exc

    if not response.is_success:
        raise TransportError(
            f"{provider} returned HTTP {response.status_code}: {response.text[:500]}",
            provider=provider,
            status_code=response.status_code,
        )

    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedResponseError(
            f"{provider} returned a non-JSON body", provider=provider
        ) from exc

    if not isinstance(body, dict):
        raise MalformedResponseError(
            f"{provider} returned {type(body).__name__}, expected a JSON object",
            provider=provider,
        )

    logger.debug("%s responded with keys %s", provider, sorted(body))
    return body
