"""Render session lifecycle for the visualizer view.

``activate(id)`` runs on first mount and whenever the routed id changes.
It loads the handoff record, adopts an existing render when there is one,
and otherwise issues a single 3D view request for the session. The request
is claimed (``last_generated_id``) before it starts, so redundant
activations for the same id never issue a second one. Results that come back
after the active id has moved on are dropped.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from roomify.clients.generation import GenerationClient
from roomify.errors import GenerationFailure, HandoffNotFound
from roomify.handoff import SessionHandoff
from roomify.models.contracts import (
    GenerateViewInput,
    HandoffRecord,
    RenderPhase,
    RenderView,
)
from roomify.scheduling import ScheduledTask

logger = structlog.get_logger()

HOME_ROUTE = "/"


@dataclass
class RenderSession:
    """Mutable state of the visualizer for the active id."""

    id: str | None = None
    name: str = ""
    source_image: str | None = None
    rendered_image: str | None = None
    is_processing: bool = False
    error: bool = False
    last_generated_id: str | None = None
    cached: bool = False


class RenderSessionController:
    def __init__(
        self,
        handoff: SessionHandoff,
        generation_client: GenerationClient,
        navigate: Callable[[str], None] | None = None,
    ) -> None:
        self._handoff = handoff
        self._generation = generation_client
        self._navigate = navigate
        self.session = RenderSession()
        self._request: ScheduledTask | None = None
        self._in_flight: Counter[str] = Counter()

    @property
    def active_id(self) -> str | None:
        return self.session.id

    @property
    def view(self) -> RenderView:
        s = self.session
        return RenderView(
            session_id=s.id,
            name=s.name,
            source_image=s.source_image,
            rendered_image=s.rendered_image,
            is_processing=s.is_processing,
            error=s.error,
            phase=self._phase(),
        )

    def _phase(self) -> RenderPhase:
        s = self.session
        if s.error:
            return "error"
        if s.rendered_image is not None:
            return "cached" if s.cached else "rendered"
        if s.is_processing:
            return "processing"
        if s.source_image is not None:
            return "loaded"
        return "inactive"

    # ── Activation ──────────────────────────────────────────────────

    def activate(self, session_id: str | None) -> None:
        s = self.session
        s.error = False
        s.id = session_id or None
        s.is_processing = s.id in self._in_flight
        log = logger.bind(session_id=session_id)

        try:
            record = self._load(session_id)
        except HandoffNotFound:
            log.info("render_session_not_found")
            s.error = True
            s.source_image = s.rendered_image = None
            s.cached = False
            s.name = ""
            return

        if s.last_generated_id == session_id:
            # Already claimed; redundant activations must not re-request
            return

        s.source_image = record.initial_image
        s.rendered_image = None
        s.cached = False
        s.name = record.name

        if record.initial_rendered_image:
            s.rendered_image = record.initial_rendered_image
            s.cached = True
            s.last_generated_id = session_id
            log.info("render_session_cached")
            return

        s.last_generated_id = session_id
        self._in_flight[session_id] += 1
        s.is_processing = True
        log.info("render_generation_started")
        self._request = ScheduledTask(
            self._generate(session_id, record.initial_image),
            name=f"render-generate:{session_id}",
        )

    def _load(self, session_id: str | None) -> HandoffRecord:
        if not session_id:
            raise HandoffNotFound(session_id)
        record = self._handoff.read(session_id)
        if record is None or not record.initial_image:
            raise HandoffNotFound(session_id)
        return record

    async def _generate(self, session_id: str, source_image: str) -> None:
        log = logger.bind(session_id=session_id)
        try:
            result = await self._generation.generate_3d_view(
                GenerateViewInput(source_image=source_image)
            )
            if not result.rendered_image:
                raise GenerationFailure("Generation returned no rendered image")
            if self.session.id != session_id:
                log.info("render_result_discarded", active_id=self.session.id)
                return
            self.session.rendered_image = result.rendered_image
            log.info("render_generation_succeeded")
        except Exception as exc:
            # The session stays valid and keeps showing the source image
            log.warning(
                "render_generation_failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
        finally:
            self._in_flight[session_id] -= 1
            if self._in_flight[session_id] <= 0:
                del self._in_flight[session_id]
            if self.session.id == session_id:
                self.session.is_processing = session_id in self._in_flight

    # ── Navigation & lifecycle ──────────────────────────────────────

    def back(self) -> None:
        """Leave the visualizer (Exit Editor / Go back home)."""
        if self._navigate is not None:
            self._navigate(HOME_ROUTE)

    async def wait(self) -> None:
        """Wait for the in-flight generation request, if any."""
        if self._request is not None:
            await self._request.wait()

    def close(self) -> None:
        """Unmount: forget the session.

        An in-flight request is left to finish; its result no longer matches
        the active id and is discarded.
        """
        self.session = RenderSession()
