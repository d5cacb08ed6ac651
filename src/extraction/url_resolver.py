"""Resolve an events-directory listing page to the event's own website."""

from __future__ import annotations

import logging
import re
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 30.0

_IFRAME_RE = re.compile(
    r"""<iframe[^>]*title="embedded event's website"[^>]*src="([^"]*)"[^>]*>""",
    re.IGNORECASE,
)
_VISIT_LINK_RE = re.compile(r"""<a[^>]*href="([^"]*)"[^>]*>Visit</a>""", re.IGNORECASE)


class UrlResolutionError(Exception):
    """Raised when no event URL can be derived from a listing page."""


class UrlResolver(Protocol):
    async def resolve(self, url: str) -> str: ...


def derive_from_html(url: str, html: str) -> str:
    """Find the event URL in a listing page.

    Tries the embedded-site iframe, then a "Visit" link, then guesses
    ``https://<slug>.com`` from the last path segment minus its trailing id.

    Raises:
        UrlResolutionError: If none of the three strategies yields a URL.
    """
    iframe = _IFRAME_RE.search(html)
    if iframe and iframe.group(1):
        return iframe.group(1)

    visit = _VISIT_LINK_RE.search(html)
    if visit and visit.group(1):
        return visit.group(1)

    slug_parts = url.rstrip().split("/")[-1].split("-")
    slug_parts.pop()  # trailing listing id
    event_name = "-".join(slug_parts)
    if event_name:
        return f"https://{event_name}.com"

    raise UrlResolutionError(f"Unable to extract event URL from {url}")


class HttpUrlResolver:
    """Fetches the listing page with httpx and derives the event URL from it."""

    def __init__(
        self,
        timeout: float = FETCH_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def resolve(self, url: str) -> str:
        if not url:
            raise UrlResolutionError("URL is required")
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport, follow_redirects=True
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Error fetching listing page %s: %s", url, exc)
            raise UrlResolutionError(f"Failed to extract URL: {exc}") from exc
        return derive_from_html(url, response.text)
