"""
OpenAI-compatible completion clients.

Posts chat-completions requests to any endpoint speaking the OpenAI wire
format. Transport failures, timeouts, rate limits and server errors are
reported as CapabilityNetworkError (transient); any other refusal or a
malformed answer as CapabilityError.
"""
import asyncio
import base64
import logging
from typing import Any, Optional

import aiohttp

from core.application.interfaces import ITextCompletion, IVisionCompletion
from core.domain.errors import CapabilityError, CapabilityNetworkError
from core.settings.modules.ai_settings import AISettings


logger = logging.getLogger(__name__)


def build_text_payload(model: str, prompt: str, temperature: float, max_tokens: int) -> dict:
    return {
        "model": model,
        "messages": [{"role": "user", "content": prompt}],
        "temperature": temperature,
        "max_tokens": max_tokens,
    }


def build_vision_payload(
    model: str,
    prompt: str,
    image: bytes,
    temperature: float,
    max_tokens: int,
    mime_type: str = "image/jpeg",
) -> dict:
    """Image part first, instruction second."""
    data_url = f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}"
    return {
        "model": model,
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": data_url}},
                    {"type": "text", "text": prompt},
                ],
            }
        ],
        "temperature": temperature,
        "max_tokens": max_tokens,
    }


def extract_content(body: Any) -> str:
    """
    Return the text of the first choice.

    Raises:
        CapabilityError: If the body is not a chat-completions answer
    """
    try:
        content = body["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise CapabilityError(f"Malformed AI response: {e!r}") from e
    if not isinstance(content, str):
        raise CapabilityError("Malformed AI response: content is not text")
    return content


class OpenAICompatibleClient:
    """
    Shared transport for the text and vision clients.

    A new aiohttp session is opened per request unless one is injected.
    """

    def __init__(
        self,
        settings: AISettings,
        model: str,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize client.

        Args:
            settings: AI endpoint settings (base URL, API key, timeout)
            model: Model name sent with each request
            session: Optional shared aiohttp session (not closed by the client)
        """
        self.base_url = settings.base_url.rstrip("/")
        self.api_key = settings.api_key
        self.request_timeout = settings.request_timeout
        self.model = model
        self._session = session
        logger.info(f"{type(self).__name__} initialized (model={model}, base_url={self.base_url})")

    @property
    def url(self) -> str:
        return f"{self.base_url}/chat/completions"

    async def _complete(self, payload: dict) -> str:
        if not self.api_key:
            raise CapabilityError("AI API key not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        timeout = aiohttp.ClientTimeout(total=self.request_timeout)

        try:
            if self._session is not None:
                return await self._post(self._session, payload, headers, timeout)
            async with aiohttp.ClientSession() as session:
                return await self._post(session, payload, headers, timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"AI request timed out after {self.request_timeout:g}s")
            raise CapabilityNetworkError(
                f"AI request timed out after {self.request_timeout:g}s"
            ) from e
        except aiohttp.ClientError as e:
            logger.error(f"AI request failed: {e}")
            raise CapabilityNetworkError(f"AI request failed: {e}") from e

    async def _post(
        self,
        session: aiohttp.ClientSession,
        payload: dict,
        headers: dict,
        timeout: aiohttp.ClientTimeout,
    ) -> str:
        async with session.post(self.url, json=payload, headers=headers, timeout=timeout) as response:
            if response.status != 200:
                error_text = await response.text()
                logger.error(f"AI API error: {response.status} - {error_text[:500]}")
                if response.status == 429 or response.status >= 500:
                    raise CapabilityNetworkError(f"AI API unavailable: HTTP {response.status}")
                raise CapabilityError(f"AI API rejected request: HTTP {response.status}")

            try:
                body = await response.json(content_type=None)
            except ValueError as e:
                raise CapabilityError(f"AI response is not JSON: {e}") from e

        content = extract_content(body)
        logger.debug(f"AI response received ({len(content)} chars)")
        return content


class OpenAITextCompletion(OpenAICompatibleClient, ITextCompletion):
    """Text completion over an OpenAI-compatible endpoint."""

    async def complete(self, prompt: str, temperature: float, max_tokens: int) -> str:
        return await self._complete(build_text_payload(self.model, prompt, temperature, max_tokens))


class OpenAIVisionCompletion(OpenAICompatibleClient, IVisionCompletion):
    """Multimodal completion over an OpenAI-compatible endpoint."""

    async def complete(
        self, prompt: str, image: bytes, temperature: float, max_tokens: int
    ) -> str:
        return await self._complete(
            build_vision_payload(self.model, prompt, image, temperature, max_tokens)
        )
