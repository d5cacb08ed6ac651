"""Claude-powered event extraction from a fetched web page."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from anthropic import APIError, AsyncAnthropic
from bs4 import BeautifulSoup

from src.config import settings
from src.extraction.models import ExtractionResult
from src.extraction.normalize import ExtractionError
from src.extraction.service import EVENT_SCHEMA, EXTRACTION_PROMPT

logger = logging.getLogger(__name__)

PAGE_FETCH_TIMEOUT_SECONDS = 30.0

# Pages are trimmed before being sent to Claude
MAX_PAGE_CHARS = 60_000

# Tool definition for Claude structured output
EVENT_TOOL: dict[str, Any] = {
    "name": "store_event",
    "description": (
        "Store structured details of the event described on a web page. "
        "Call this once with every field you could find."
    ),
    "input_schema": EVENT_SCHEMA,
}

SYSTEM_PROMPT = (
    "You are an event research assistant. You read the text of an event web page "
    "and record what it says about the event.\n\n"
    f"{EXTRACTION_PROMPT}\n\n"
    "Use the store_event tool to return your results."
)


def page_text(html: str) -> str:
    """Reduce an HTML document to whitespace-collapsed visible text."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    return " ".join(soup.get_text(" ", strip=True).split())


def _parse_tool_response(response: Any) -> dict[str, Any]:
    """Return the input of the first store_event tool_use block."""
    for block in response.content:
        if block.type != "tool_use":
            continue
        if block.name != "store_event":
            continue

        data = block.input
        if isinstance(data, str):
            data = json.loads(data)
        return dict(data)

    raise ExtractionError("Claude did not return event details")


class ClaudeExtractionService:
    """Fetches a page with httpx and asks Claude for the event fields."""

    def __init__(
        self,
        client: AsyncAnthropic | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = PAGE_FETCH_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client
        self._transport = transport
        self._timeout = timeout

    async def _fetch(self, url: str) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport, follow_redirects=True
            ) as http:
                response = await http.get(url)
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ExtractionError(f"Fetching {url} timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise ExtractionError(
                f"Fetching {url} failed: {exc.response.status_code} {exc.response.reason_phrase}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ExtractionError(f"Fetching {url} failed: {exc}") from exc
        return response.text

    async def extract(self, url: str) -> ExtractionResult:
        """Extract event fields for ``url``; the visible page text is the raw text."""
        if not url:
            raise ExtractionError("URL is required")

        text = page_text(await self._fetch(url))[:MAX_PAGE_CHARS]
        client = self._client or AsyncAnthropic(api_key=settings.anthropic_api_key)

        try:
            response = await client.messages.create(
                model=settings.llm_model,
                max_tokens=4096,
                system=SYSTEM_PROMPT,
                tools=[EVENT_TOOL],
                tool_choice={"type": "tool", "name": "store_event"},
                messages=[
                    {
                        "role": "user",
                        "content": f"Event page {url}:\n\n{text}",
                    }
                ],
            )
        except APIError as exc:
            raise ExtractionError(f"LLM unavailable: {exc.message}") from exc

        fields = _parse_tool_response(response)
        logger.debug("Claude extract for %s: %s", url, fields)
        return ExtractionResult(fields=fields, raw_text=text)
