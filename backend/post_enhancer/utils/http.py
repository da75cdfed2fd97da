"""Shared ``httpx`` client construction and response helpers."""

from __future__ import annotations

from json import JSONDecodeError
from typing import Any

import httpx

from ..config import Settings


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Return the process-wide async client used by every collaborator.

    The caller owns the client and must ``aclose()`` it on shutdown.
    """

    timeout = httpx.Timeout(settings.HTTP_TIMEOUT_SECONDS, connect=10.0)
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": f"post-enhancer/{settings.VERSION}"},
    )


def response_json(resp: httpx.Response) -> Any:
    """Decode a JSON body with guards that keep the root cause visible.

    Raises ``ValueError`` when the body is empty or not JSON.
    """

    if not resp.content or not resp.text.strip():
        raise ValueError(f"Empty response body from {resp.request.url}")
    try:
        return resp.json()
    except JSONDecodeError as e:
        snippet = resp.text[:200].replace("\n", " ")
        raise ValueError(f"JSON decode failed. Body starts: {snippet!r}") from e
