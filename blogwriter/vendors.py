"""
Vendor clients. Each outbound call is attempted once with an explicit timeout;
every failure (non-2xx, transport error, timeout) surfaces as UpstreamError.
"""
import logging
from typing import Any, Optional

import anthropic
import httpx

from blogwriter.errors import UpstreamError

logger = logging.getLogger(__name__)

PERPLEXITY_URL = "https://api.perplexity.ai/chat/completions"


# ── Search vendor (Perplexity) ─────────────────────────────────────────────────

class SearchClient:
    """Search-augmented chat completions over plain httpx."""

    vendor = "Perplexity"

    def __init__(
        self,
        api_key: str,
        model: str = "sonar",
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._transport = transport

    def complete(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.2,
        max_tokens: int = 1000,
    ) -> str:
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(
                    PERPLEXITY_URL,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json=payload,
                )
        except httpx.HTTPError as exc:
            logger.error("%s transport error: %s", self.vendor, exc)
            raise UpstreamError(self.vendor, detail=type(exc).__name__) from exc

        if not resp.is_success:
            logger.error("%s API error %s: %s", self.vendor, resp.status_code, resp.text[:500])
            raise UpstreamError(self.vendor, resp.status_code)

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError(self.vendor, resp.status_code, "invalid JSON body") from exc
        return _first_choice_text(data)


def _first_choice_text(data: Any) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    if isinstance(content, list):
        # Content parts: [{"type": "text", "text": ...}, ...]
        return "".join(
            (part.get("text") or "") if isinstance(part, dict) else str(part) for part in content
        )
    return "" if content is None else str(content)


# ── Generation vendor (Anthropic) ──────────────────────────────────────────────

class GenerationClient:
    """Claude Messages API; the SDK's built-in retries are disabled."""

    vendor = "Anthropic"

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-6",
        timeout: float = 60.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.model = model
        self._client = anthropic.Anthropic(
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    def complete(
        self,
        messages: list[dict[str, str]],
        system: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 8192,
    ) -> str:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": messages,
        }
        if system:
            kwargs["system"] = system

        try:
            message = self._client.messages.create(**kwargs)
        except anthropic.APIStatusError as exc:
            logger.error("%s API error %s: %s", self.vendor, exc.status_code, exc.message)
            raise UpstreamError(self.vendor, exc.status_code) from exc
        except anthropic.APIConnectionError as exc:
            logger.error("%s transport error: %s", self.vendor, exc)
            raise UpstreamError(self.vendor, detail=type(exc).__name__) from exc

        return "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )
