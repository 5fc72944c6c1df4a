"""
Gemini client for the structuring and vision collaborators.

Both collaborators are the same HTTP endpoint (generateContent) asked to
answer in JSON; the reply is validated against the pydantic contract the
engine consumes. Any failure surfaces as ExternalCollaboratorError so
the caller knows no engine state was touched and the job can be retried.
"""

from __future__ import annotations

import asyncio
import json
import threading
from typing import Any, Optional, Sequence, Type, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from packcheck.services.ai.prompts import build_structuring_prompt
from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.utils.exceptions import ExternalCollaboratorError
from shared.utils.schemas import StructuredOrder, VisualVerificationResult

logger = get_logger(__name__)

SERVICE_NAME = "gemini"
DEFAULT_IMAGE_MIME = "image/jpeg"

ModelT = TypeVar("ModelT", bound=BaseModel)

_lock_init = threading.Lock()


def image_part(image: str) -> dict[str, Any]:
    """
    Inline image part from a base64 string or a data URL.

        >>> image_part("data:image/png;base64,AAAA")["inline_data"]["mime_type"]
        'image/png'
    """
    mime_type = DEFAULT_IMAGE_MIME
    data = image
    if image.startswith("data:"):
        header, _, data = image.partition(",")
        mime_type = header[len("data:"):].split(";")[0] or DEFAULT_IMAGE_MIME
    return {"inline_data": {"mime_type": mime_type, "data": data}}


class GeminiClient:
    """
    HTTP client for the Gemini generateContent API.

    Keeps one pooled httpx.AsyncClient, created lazily under an
    asyncio.Lock.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.timeout = timeout or settings.collaborator_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._client_lock: Optional[asyncio.Lock] = None

    def _get_lock(self) -> asyncio.Lock:
        if self._client_lock is None:
            with _lock_init:
                if self._client_lock is None:
                    self._client_lock = asyncio.Lock()
        return self._client_lock

    async def _get_client(self) -> httpx.AsyncClient:
        # Fast path: client already initialized
        if self._client is not None and not self._client.is_closed:
            return self._client

        async with self._get_lock():
            if self._client is None or self._client.is_closed:
                self._client = httpx.AsyncClient(
                    timeout=self.timeout,
                    limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
                    transport=self._transport,
                )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client. Called on application shutdown."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def generate_json(
        self,
        model: str,
        parts: list[dict[str, Any]],
        schema: Type[ModelT],
    ) -> ModelT:
        """
        Ask ``model`` for a JSON answer and validate it against ``schema``.

        Raises:
            ExternalCollaboratorError: transport failure, non-2xx reply, or a
                reply that does not match the schema. Timeouts, 429 and 5xx
                are reported as unavailable (503).
        """
        client = await self._get_client()
        url = f"{self.base_url}/models/{model}:generateContent"
        body = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {"responseMimeType": "application/json"},
        }

        try:
            response = await client.post(url, json=body, headers={"x-goog-api-key": self.api_key})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            raise ExternalCollaboratorError(
                SERVICE_NAME,
                is_unavailable=code == 429 or code >= 500,
                model=model,
                upstream_status=code,
            ) from e
        except httpx.RequestError as e:
            raise ExternalCollaboratorError(
                SERVICE_NAME, is_unavailable=True, model=model, error=str(e)
            ) from e

        try:
            text = response.json()["candidates"][0]["content"]["parts"][0]["text"]
            return schema.model_validate(json.loads(text))
        except (KeyError, IndexError, TypeError, ValueError, PydanticValidationError) as e:
            raise ExternalCollaboratorError(
                SERVICE_NAME, model=model, error=f"Unusable reply: {e}"
            ) from e

    async def structure_order(self, raw_text: str) -> StructuredOrder:
        """Extract a StructuredOrder from raw order text."""
        logger.info("Structuring order", model=settings.structuring_model, chars=len(raw_text))
        return await self.generate_json(
            settings.structuring_model,
            [{"text": build_structuring_prompt(raw_text)}],
            StructuredOrder,
        )

    async def verify_images(self, prompt: str, images: Sequence[str]) -> VisualVerificationResult:
        """Compare bag photos against the order described in ``prompt``."""
        logger.info("Requesting visual verification", model=settings.vision_model, images=len(images))
        parts: list[dict[str, Any]] = [{"text": prompt}]
        parts.extend(image_part(image) for image in images)
        return await self.generate_json(settings.vision_model, parts, VisualVerificationResult)


# Global client instance
gemini_client = GeminiClient()


async def close_gemini_client() -> None:
    """Close the global client. Called in application lifespan shutdown."""
    await gemini_client.close()
