"""
LLM Service - Relays a conversation to the Groq chat-completions API
The upstream event stream is handed back to the caller byte for byte
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

import aiohttp

from legalai.models.chat import ChatMessage
from legalai.services.errors import (
    ConfigurationError,
    UpstreamConnectionError,
    UpstreamStatusError,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are LegalAI, an expert AI assistant specializing in Indian law and legal matters. You have comprehensive knowledge of:
- The Constitution of India and Fundamental Rights
- Indian Penal Code (IPC) and Criminal Law
- Code of Civil Procedure and Civil Law
- Indian Contract Act, 1872
- Property Laws and Registration
- Consumer Protection Laws
- Family Law (Hindu Marriage Act, Muslim Personal Law, etc.)
- Labor and Employment Laws
- Intellectual Property Rights in India
- Cyber Laws and IT Act
- Tax Laws (Income Tax, GST)

Provide accurate, helpful, and well-structured responses. When answering:
1. Cite relevant sections, articles, or acts when applicable
2. Explain legal concepts in simple terms
3. Provide practical guidance where possible
4. Always recommend consulting a qualified advocate for specific legal advice
5. Be objective and present multiple perspectives when relevant

Format your responses with clear headings, bullet points, and numbered lists for better readability."""


class UpstreamStream:
    """An open upstream response whose body is relayed unchanged"""

    def __init__(self, session: aiohttp.ClientSession, response: aiohttp.ClientResponse):
        self._session = session
        self._response = response

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yield body bytes as they arrive; always releases the connection"""
        try:
            async for chunk in self._response.content.iter_any():
                yield chunk
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("Groq stream interrupted: %r", e)
            raise
        finally:
            await self.aclose()

    async def aclose(self):
        self._response.release()
        if not self._session.closed:
            await self._session.close()


class LLMService:
    """Builds the upstream request and opens the streamed response"""

    def __init__(self, config: dict[str, Any]):
        self.config = config

    # ========== Config Helpers ==========

    def _get_groq_config(self) -> tuple[str, dict[str, str]]:
        """Get Groq config: (url, headers). Raises if api_key missing."""
        cfg = self.config.get("groq", {})
        api_key = cfg.get("apiKey")
        if not api_key:
            raise ConfigurationError("GROQ_API_KEY is not configured")
        url = cfg.get("url", "https://api.groq.com/openai/v1/chat/completions")
        headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        return url, headers

    def _timeout(self) -> aiohttp.ClientTimeout:
        # No total limit: long answers may legitimately stream for minutes
        cfg = self.config.get("groq", {})
        return aiohttp.ClientTimeout(
            total=None,
            connect=float(cfg.get("connectTimeout", 10)),
            sock_read=float(cfg.get("readTimeout", 60)),
        )

    # ========== Message/Payload Builders ==========

    def build_messages(self, messages: Sequence[ChatMessage]) -> list[dict[str, str]]:
        """Prepend the single system instruction to the caller's turns"""
        return [{"role": "system", "content": SYSTEM_PROMPT}] + [
            m.model_dump() for m in messages
        ]

    def build_payload(self, messages: Sequence[ChatMessage]) -> dict[str, Any]:
        """Build OpenAI-compatible streaming request payload"""
        cfg = self.config.get("groq", {})
        return {
            "model": cfg.get("model", "llama-3.3-70b-versatile"),
            "messages": self.build_messages(messages),
            "stream": True,
            "max_tokens": int(cfg.get("maxTokens", 2048)),
            "temperature": float(cfg.get("temperature", 0.7)),
        }

    # ========== Upstream Call ==========

    async def open_stream(self, messages: Sequence[ChatMessage]) -> UpstreamStream:
        """Call the upstream once and return its open event stream.

        Raises ConfigurationError before any network I/O when the key is
        missing, UpstreamConnectionError when the upstream cannot be reached
        and UpstreamStatusError on a non-success status. The upstream error
        body is logged, never attached to the exception.
        """
        url, headers = self._get_groq_config()
        payload = self.build_payload(messages)

        logger.info("Calling Groq API with messages: %d", len(messages))

        session = aiohttp.ClientSession(timeout=self._timeout())
        try:
            response = await session.post(url, json=payload, headers=headers)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await session.close()
            logger.error("Groq API connection failed: %r", e)
            raise UpstreamConnectionError() from e

        if not 200 <= response.status < 300:
            try:
                error_text = await response.text(errors="replace")
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                error_text = f"<unreadable body: {e!r}>"
            finally:
                response.release()
                await session.close()
            logger.error("Groq API error: %s %s", response.status, error_text)
            raise UpstreamStatusError(response.status)

        return UpstreamStream(session, response)
