"""Brave Search web lookup; formats top results as prompt text. Never raises."""
from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"
SEARCH_FAILED = "Search failed - no results available."
NO_RESULTS = "No relevant results found."


class BraveSearchClient:
    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    async def search(self, query: str, count: int = 5) -> str:
        """Return '[i] title\\ndescription' blocks joined by blank lines, or a fallback sentence."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(
                    BRAVE_SEARCH_URL,
                    params={"q": query, "count": count},
                    headers={"Accept": "application/json", "X-Subscription-Token": self._api_key},
                )
            if resp.status_code != 200:
                logger.error("Brave search returned %s", resp.status_code)
                return SEARCH_FAILED
            data = resp.json()
        except Exception as e:
            logger.error("Brave search failed: %s", e)
            return SEARCH_FAILED

        if not isinstance(data, dict):
            return NO_RESULTS
        results = ((data.get("web") or {}).get("results") or [])[:count]
        formatted = "\n\n".join(
            f"[{i}] {r.get('title', '')}\n{r.get('description', '')}"
            for i, r in enumerate(results, start=1)
            if isinstance(r, dict)
        )
        return formatted or NO_RESULTS
