"""
Thin async client for a local Ollama server.

Only the `/api/chat` endpoint is used, either as a single JSON response
or as a newline-delimited stream of partial messages.
"""

import json
import logging
from typing import AsyncIterator, Dict, List, Optional

import httpx

from .config import settings

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """The LLM service failed or returned something we could not use."""


class OllamaClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self.model = model or settings.ollama_model
        self._client = httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.llm_timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _body(self, messages: List[Dict[str, str]], stream: bool, json_format: bool) -> dict:
        body = {"model": self.model, "messages": messages, "stream": stream}
        if json_format:
            body["format"] = "json"
        return body

    async def chat(self, messages: List[Dict[str, str]], json_format: bool = False) -> str:
        """Return the assistant message content of a non-streaming chat call."""
        url = f"{self.base_url}/api/chat"
        logger.debug("POST %s model=%s json=%s", url, self.model, json_format)
        try:
            resp = await self._client.post(url, json=self._body(messages, False, json_format))
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise GenerationError(f"Ollama chat request failed: {exc}") from exc

        try:
            # Non-streaming Ollama chat returns a single 'message'
            return data["message"]["content"]
        except (KeyError, TypeError) as exc:
            raise GenerationError(f"Unexpected Ollama response: {data}") from exc

    async def chat_stream(self, messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        """Yield content fragments as Ollama produces them."""
        url = f"{self.base_url}/api/chat"
        logger.debug("POST %s model=%s stream", url, self.model)
        try:
            async with self._client.stream(
                "POST", url, json=self._body(messages, True, False)
            ) as resp:
                resp.raise_for_status()
                async for line in resp.aiter_lines():
                    if not line.strip():
                        continue
                    try:
                        chunk = json.loads(line)
                    except ValueError as exc:
                        raise GenerationError(f"Malformed stream line: {line!r}") from exc
                    if "error" in chunk:
                        raise GenerationError(f"Ollama stream error: {chunk['error']}")
                    content = (chunk.get("message") or {}).get("content", "")
                    if content:
                        yield content
                    if chunk.get("done"):
                        return
        except httpx.HTTPError as exc:
            raise GenerationError(f"Ollama stream request failed: {exc}") from exc
