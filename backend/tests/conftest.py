"""Shared fixtures: fast timing settings and generated floor plan images."""

from __future__ import annotations

import asyncio
import io
from collections.abc import Callable

import pytest
from PIL import Image, ImageDraw

from roomify.config import Settings


def make_plan_bytes(
    fmt: str = "PNG",
    size: tuple[int, int] = (320, 240),
    color: tuple[int, int, int] = (250, 250, 250),
) -> bytes:
    """A simple floor plan drawing: outer walls plus one partition."""
    img = Image.new("RGB", size, color=color)
    draw = ImageDraw.Draw(img)
    w, h = size
    draw.rectangle([(10, 10), (w - 10, h - 10)], outline=(0, 0, 0), width=4)
    draw.line([(w // 2, 10), (w // 2, h - 10)], fill=(0, 0, 0), width=3)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` on the running loop until it holds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.001)


@pytest.fixture
def make_plan() -> Callable[..., bytes]:
    return make_plan_bytes


@pytest.fixture(name="wait_until")
def wait_until_fixture() -> Callable[..., object]:
    return wait_until


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(
        upload_interval_ms=1,
        progress_increment=10,
        redirect_delay_ms=1,
        mock_generation_delay=0.0,
        use_mock_clients=True,
    )


@pytest.fixture
def png_bytes() -> bytes:
    return make_plan_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_plan_bytes("JPEG")
