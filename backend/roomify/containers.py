"""Wiring for one browser session: handoff store, clients, and controllers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from roomify.clients.generation import (
    GeminiGenerationClient,
    GenerationClient,
    MockGenerationClient,
)
from roomify.clients.persistence import (
    HttpPersistenceClient,
    InMemoryPersistenceClient,
    PersistenceClient,
)
from roomify.config import Settings, settings
from roomify.handoff import SessionHandoff
from roomify.home import HomeFlow
from roomify.intake import IntakeController
from roomify.render import RenderSessionController

logger = structlog.get_logger()


@dataclass
class SessionContainer:
    """Everything a single session's views share."""

    settings: Settings
    handoff: SessionHandoff
    persistence: PersistenceClient
    generation: GenerationClient
    home: HomeFlow
    navigate: Callable[[str], None]
    routes: list[str] = field(default_factory=list)

    def intake(self, is_signed_in: Callable[[], bool]) -> IntakeController:
        """Mount an upload card whose completion goes through the home flow."""
        return IntakeController(
            on_complete=self.home.handle_upload_complete,
            is_signed_in=is_signed_in,
            config=self.settings,
        )

    def visualizer(self) -> RenderSessionController:
        return RenderSessionController(self.handoff, self.generation, self.navigate)

    async def close(self) -> None:
        close = getattr(self.persistence, "close", None)
        if close is not None:
            await close()


def _load_clients(cfg: Settings) -> tuple[PersistenceClient, GenerationClient]:
    """Pick mock or real client implementations based on config."""
    if cfg.use_mock_clients:
        return InMemoryPersistenceClient(), MockGenerationClient(cfg.mock_generation_delay)
    if not cfg.google_ai_api_key:
        logger.warning("generation_client_unconfigured", reason="google_ai_api_key is empty")
    return HttpPersistenceClient.create(cfg), GeminiGenerationClient.create(cfg)


def build_session(
    navigate: Callable[[str], None] | None = None,
    config: Settings | None = None,
) -> SessionContainer:
    """Create a session container.

    Without a ``navigate`` callback, routes are recorded on ``routes`` so a
    headless caller can follow them.
    """
    cfg = config or settings
    routes: list[str] = []
    nav = navigate or routes.append
    persistence, generation = _load_clients(cfg)
    handoff = SessionHandoff(key_prefix=cfg.handoff_key_prefix)
    home = HomeFlow(persistence, handoff, nav, config=cfg)
    return SessionContainer(
        settings=cfg,
        handoff=handoff,
        persistence=persistence,
        generation=generation,
        home=home,
        navigate=nav,
        routes=routes,
    )
