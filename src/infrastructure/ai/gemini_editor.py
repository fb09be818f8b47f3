from __future__ import annotations

import logging
import os
from typing import Any

from google import genai
from google.genai import types

from src.domain.entities.snapshot import ImageSnapshot, MaskArtifact
from src.domain.entities.viewport import Rect
from src.domain.errors import EditorError
from src.infrastructure.ai import prompts

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-image-preview"


class GeminiImageEditor:
    """Image editor backed by the Gemini image model (google-genai, async client)."""

    def __init__(self, client: genai.Client | None = None) -> None:
        self.model = os.getenv("GEMINI_IMAGE_MODEL", DEFAULT_MODEL)
        self.api_key = os.getenv("GEMINI_API_KEY")
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def edit_region(self, image: ImageSnapshot, prompt: str, region: Rect) -> bytes:
        logger.info("Starting generative edit in selection %s", region)
        parts = [_image_part(image.data, image.mime_type), prompts.edit_region_prompt(prompt, region)]
        return await self._generate(parts, "edit")

    async def apply_filter(
        self, image: ImageSnapshot, prompt: str, mask: MaskArtifact | None = None
    ) -> bytes:
        logger.info("Starting filter generation (%s)", "masked" if mask else "global")
        parts: list[Any] = [_image_part(image.data, image.mime_type)]
        if mask is not None:
            parts.append(_image_part(mask.data, mask.mime_type))
        parts.append(prompts.filter_prompt(prompt, masked=mask is not None))
        return await self._generate(parts, "filter")

    async def apply_adjustment(
        self, image: ImageSnapshot, prompt: str, mask: MaskArtifact | None = None
    ) -> bytes:
        logger.info("Starting adjustment generation (%s)", "masked" if mask else "global")
        parts: list[Any] = [_image_part(image.data, image.mime_type)]
        if mask is not None:
            parts.append(_image_part(mask.data, mask.mime_type))
        parts.append(prompts.adjustment_prompt(prompt, masked=mask is not None))
        return await self._generate(parts, "adjustment")

    async def expand_canvas(self, padded_png: bytes, width: int, height: int) -> bytes:
        logger.info("Starting generative expansion to %dx%d", width, height)
        parts = [_image_part(padded_png, "image/png"), prompts.expansion_prompt(width, height)]
        return await self._generate(parts, "expansion")

    async def _generate(self, parts: list[Any], context: str) -> bytes:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model, contents=parts
            )
        except Exception as exc:
            logger.error("Image model request for %s failed: %s", context, exc)
            raise EditorError(f"The image model request failed: {exc}") from exc
        return extract_image(response, context)


def extract_image(response: Any, context: str) -> bytes:
    """Pull the first inline image out of a generate_content response."""
    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None) if feedback else None
    if block_reason:
        detail = getattr(feedback, "block_reason_message", None) or ""
        message = f"Request was blocked. Reason: {_enum_name(block_reason)}. {detail}".strip()
        logger.error(message)
        raise EditorError(message)

    candidates = getattr(response, "candidates", None) or []
    candidate = candidates[0] if candidates else None
    content = getattr(candidate, "content", None)
    parts = (getattr(content, "parts", None) or []) if content else []
    for part in parts:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            logger.info("Received image data (%s) for %s", inline.mime_type, context)
            return inline.data

    finish_reason = getattr(candidate, "finish_reason", None)
    if finish_reason and _enum_name(finish_reason) != "STOP":
        message = (
            f"Image generation for {context} stopped unexpectedly. Reason: "
            f"{_enum_name(finish_reason)}. This often relates to safety settings."
        )
        logger.error(message)
        raise EditorError(message)

    text = " ".join(p.text for p in parts if getattr(p, "text", None)).strip()
    message = f"The AI model did not return an image for the {context}. " + (
        f'The model responded with text: "{text}"'
        if text
        else "This can happen due to safety filters or if the request is too complex. "
        "Please try rephrasing your prompt to be more direct."
    )
    logger.error("Model response did not contain an image part for %s", context)
    raise EditorError(message)


class PassthroughImageEditor:
    """Offline stand-in used when GEMINI_DISABLED=1: returns its input unchanged."""

    async def edit_region(self, image: ImageSnapshot, prompt: str, region: Rect) -> bytes:
        return image.data

    async def apply_filter(
        self, image: ImageSnapshot, prompt: str, mask: MaskArtifact | None = None
    ) -> bytes:
        return image.data

    async def apply_adjustment(
        self, image: ImageSnapshot, prompt: str, mask: MaskArtifact | None = None
    ) -> bytes:
        return image.data

    async def expand_canvas(self, padded_png: bytes, width: int, height: int) -> bytes:
        return padded_png


def _image_part(data: bytes, mime_type: str) -> types.Part:
    return types.Part.from_bytes(data=data, mime_type=mime_type)


def _enum_name(value: Any) -> str:
    return getattr(value, "name", None) or str(value)
