"""3D view generation clients.

The render view only depends on the ``GenerationClient`` protocol. The Gemini
client turns a floor plan into a top-down 3D render; the mock client returns
a placeholder render after a simulated delay so the workflow can run without
API keys.
"""

from __future__ import annotations

import asyncio
import io
from typing import Protocol

import structlog
from google import genai
from google.genai import types
from PIL import Image, ImageDraw

from roomify.config import Settings, settings
from roomify.errors import GenerationFailure
from roomify.models.contracts import GenerateViewInput, GenerateViewOutput
from roomify.utils.image import decode_data_uri, image_to_data_uri

logger = structlog.get_logger()

IMAGE_CONFIG = types.GenerateContentConfig(
    response_modalities=["TEXT", "IMAGE"],
)

RENDER_PROMPT = """Convert this 2D architectural floor plan into a photorealistic
top-down 3D rendering of the same space.
- Keep every wall, door, window and room boundary exactly where the plan puts it
- Extrude walls to a realistic height and show them from a high isometric angle
- Furnish each room according to its apparent use, with soft natural lighting
- Do not add rooms, text labels, dimensions or annotations
Return only the rendered image."""

GENERATION_TIMEOUT_SECONDS = 150


class GenerationClient(Protocol):
    async def generate_3d_view(self, input: GenerateViewInput) -> GenerateViewOutput: ...


def extract_image(response: types.GenerateContentResponse) -> Image.Image | None:
    """Return the first image part of a Gemini response, or None."""
    if not response.candidates:
        return None
    content = response.candidates[0].content
    if content is None or content.parts is None:
        return None
    for part in content.parts:
        if part.inline_data is None or part.inline_data.data is None:
            continue
        try:
            return Image.open(io.BytesIO(part.inline_data.data))
        except Exception:
            logger.error(
                "gemini_image_decode_failed",
                image_bytes_len=len(part.inline_data.data),
            )
            raise
    return None


def extract_text(response: types.GenerateContentResponse) -> str:
    """Concatenate text parts of a Gemini response (for diagnostics)."""
    if not response.candidates:
        return ""
    content = response.candidates[0].content
    if content is None or content.parts is None:
        return ""
    return "".join(part.text for part in content.parts if part.text)


class GeminiGenerationClient:
    def __init__(self, client: genai.Client, model: str) -> None:
        self._client = client
        self._model = model

    @classmethod
    def create(cls, config: Settings | None = None) -> GeminiGenerationClient:
        cfg = config or settings
        return cls(genai.Client(api_key=cfg.google_ai_api_key), cfg.gemini_model)

    async def generate_3d_view(self, input: GenerateViewInput) -> GenerateViewOutput:
        media_type, data = decode_data_uri(input.source_image)
        contents: list = [
            types.Part.from_bytes(data=data, mime_type=media_type),
            RENDER_PROMPT,
        ]
        logger.info("gemini_render_start", model=self._model, source_bytes=len(data))

        async with asyncio.timeout(GENERATION_TIMEOUT_SECONDS):
            response = await asyncio.to_thread(
                self._client.models.generate_content,
                model=self._model,
                contents=contents,
                config=IMAGE_CONFIG,
            )

        rendered = extract_image(response)
        if rendered is None:
            raise GenerationFailure(
                f"Gemini returned no image: {extract_text(response)[:200]}"
            )
        logger.info("gemini_render_done", width=rendered.width, height=rendered.height)
        return GenerateViewOutput(rendered_image=image_to_data_uri(rendered))


class MockGenerationClient:
    """Returns a flat placeholder render after ``delay`` seconds."""

    def __init__(self, delay: float | None = None) -> None:
        self.delay = settings.mock_generation_delay if delay is None else delay
        self.calls: list[GenerateViewInput] = []

    async def generate_3d_view(self, input: GenerateViewInput) -> GenerateViewOutput:
        self.calls.append(input)
        await asyncio.sleep(self.delay)
        img = Image.new("RGB", (512, 512), color=(235, 230, 220))
        draw = ImageDraw.Draw(img)
        draw.rectangle([(64, 64), (448, 448)], outline=(90, 80, 70), width=12)
        draw.line([(256, 64), (256, 448)], fill=(90, 80, 70), width=8)
        return GenerateViewOutput(rendered_image=image_to_data_uri(img))
