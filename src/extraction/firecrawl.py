"""Firecrawl-backed extraction: scrape a URL and extract event fields in one call."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.config import settings
from src.extraction.models import ExtractionResult
from src.extraction.normalize import ExtractionError
from src.extraction.service import EVENT_SCHEMA, EXTRACTION_PROMPT

logger = logging.getLogger(__name__)

FIRECRAWL_TIMEOUT_SECONDS = 30.0


class FirecrawlExtractionService:
    """Calls the Firecrawl scrape endpoint with the event extraction schema."""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        timeout: float = FIRECRAWL_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.firecrawl_api_key
        self._api_url = api_url or settings.firecrawl_api_url
        self._timeout = timeout
        self._transport = transport

    def build_payload(self, url: str) -> dict[str, Any]:
        return {
            "url": url,
            "formats": ["extract", "markdown"],
            "extract": {"schema": EVENT_SCHEMA, "prompt": EXTRACTION_PROMPT},
        }

    async def extract(self, url: str) -> ExtractionResult:
        """Extract event fields and page markdown for ``url``.

        Raises:
            ExtractionError: On timeout, connection failure, non-2xx status, or
                a response without an ``extract`` payload.
        """
        if not url:
            raise ExtractionError("URL is required")

        logger.info("Requesting Firecrawl extraction for %s", url)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self._api_url,
                    json=self.build_payload(url),
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ExtractionError("Request to Firecrawl API timed out") from exc
        except httpx.ConnectError as exc:
            raise ExtractionError(
                "Unable to connect to Firecrawl API. Check the network connection and try again."
            ) from exc
        except httpx.HTTPStatusError as exc:
            logger.warning("Firecrawl error body for %s: %s", url, exc.response.text)
            raise ExtractionError(
                f"Firecrawl API error: {exc.response.status_code} {exc.response.reason_phrase}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ExtractionError(f"Failed to extract event: {exc}") from exc

        body = response.json()
        data = body.get("data") or {}
        extracted = data.get("extract")
        if not isinstance(extracted, dict):
            raise ExtractionError(body.get("error") or "Firecrawl returned no extracted data")

        logger.debug("Firecrawl extract for %s: %s", url, extracted)
        return ExtractionResult(fields=extracted, raw_text=data.get("markdown") or "")
