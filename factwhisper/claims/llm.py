"""
Anthropic Messages API over httpx (no SDK). One short-lived AsyncClient per call.
Raises on transport errors and non-2xx; callers decide how to degrade.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


def text_from_blocks(blocks: list[dict[str, Any]]) -> str:
    """Concatenate every text block in emission order (tool blocks are skipped)."""
    return "".join(
        block.get("text") or ""
        for block in blocks
        if isinstance(block, dict) and block.get("type") == "text"
    )


class AnthropicClient:
    """Minimal Messages API client: system + one user turn, optional server tools."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.anthropic.com",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._transport = transport

    async def create_message(
        self,
        *,
        model: str,
        system: str,
        user: str,
        max_tokens: int,
        timeout: float = 30.0,
        tools: list[dict[str, Any]] | None = None,
    ) -> list[dict[str, Any]]:
        """POST /v1/messages; returns the response content blocks."""
        if not self._api_key:
            raise ValueError("ANTHROPIC_API_KEY is required")

        payload: dict[str, Any] = {
            "model": model,
            "max_tokens": max_tokens,
            "system": system,
            "messages": [{"role": "user", "content": user}],
        }
        if tools:
            payload["tools"] = tools

        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            resp = await client.post(
                f"{self._base_url}/v1/messages",
                json=payload,
                headers={
                    "x-api-key": self._api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                    "content-type": "application/json",
                },
            )
            resp.raise_for_status()
            data = resp.json()

        content = data.get("content") if isinstance(data, dict) else None
        if not isinstance(content, list):
            return []
        usage = data.get("usage") or {}
        logger.debug(
            "LLM %s: in=%s out=%s tokens",
            model,
            usage.get("input_tokens"),
            usage.get("output_tokens"),
        )
        return content
