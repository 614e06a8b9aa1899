"""Home flow: turn a finished upload into a saved project and open it.

The handoff entry is written only after the project is saved, and navigation
happens only after the handoff entry exists.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog

from roomify.clients.persistence import PersistenceClient
from roomify.config import Settings, settings
from roomify.errors import PersistenceFailure
from roomify.handoff import SessionHandoff
from roomify.models.contracts import CreateProjectRequest, HandoffRecord, ProjectRecord

logger = structlog.get_logger()

VISUALIZER_ROUTE = "/visualizer/{id}"


def _now_ms() -> int:
    return int(time.time() * 1000)


def visualizer_route(project_id: str) -> str:
    return VISUALIZER_ROUTE.format(id=project_id)


class HomeFlow:
    def __init__(
        self,
        persistence: PersistenceClient,
        handoff: SessionHandoff,
        navigate: Callable[[str], None],
        config: Settings | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._persistence = persistence
        self._handoff = handoff
        self._navigate = navigate
        self._config = config or settings
        self._clock = clock
        self.projects: list[ProjectRecord] = []

    async def handle_upload_complete(self, encoded_image: str) -> bool:
        """Save the uploaded floor plan as a new project and open it.

        Returns False (and leaves the user on the home view) when the project
        could not be saved.
        """
        now = self._clock()
        project_id = str(now)
        item = ProjectRecord(
            id=project_id,
            name=f"Residence {project_id}",
            source_image=encoded_image,
            rendered_image=None,
            timestamp=now,
        )

        try:
            saved = await self._save(item)
        except PersistenceFailure as exc:
            logger.error("project_create_failed", project_id=project_id, error=str(exc))
            return False

        merged = item.model_copy(update=saved.model_dump(exclude_unset=True))
        self.projects.insert(0, merged)

        self._handoff.write(
            project_id,
            HandoffRecord(
                initial_image=saved.source_image,
                initial_rendered_image=saved.rendered_image or None,
                name=saved.name,
            ),
        )
        logger.info("project_created", project_id=project_id)
        self._navigate(visualizer_route(project_id))
        return True

    async def _save(self, item: ProjectRecord) -> ProjectRecord:
        request = CreateProjectRequest(item=item, visibility=self._config.default_visibility)
        try:
            saved = await self._persistence.create_project(request)
        except Exception as exc:
            raise PersistenceFailure(f"create_project raised {type(exc).__name__}") from exc
        if saved is None:
            raise PersistenceFailure("create_project returned no record")
        return saved

    def open_project(self, project: ProjectRecord) -> None:
        """Open a listed project, carrying its render over if it has one."""
        self._handoff.write(
            project.id,
            HandoffRecord(
                initial_image=project.source_image,
                initial_rendered_image=project.rendered_image or None,
                name=project.name,
            ),
        )
        self._navigate(visualizer_route(project.id))
