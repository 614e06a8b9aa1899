"""Session-scoped handoff store between the home flow and the render view.

Each entry is one JSON-serialized HandoffRecord under ``visualizer:<id>``.
Entries live only as long as the backing mapping (the browser session);
nothing here is durable.
"""

from __future__ import annotations

from collections.abc import MutableMapping

import structlog
from pydantic import ValidationError

from roomify.config import settings
from roomify.models.contracts import HandoffRecord

logger = structlog.get_logger()


class SessionHandoff:
    """Key/value handoff with whole-record writes and absent-or-malformed reads."""

    def __init__(
        self,
        storage: MutableMapping[str, str] | None = None,
        *,
        key_prefix: str | None = None,
    ) -> None:
        self._storage: MutableMapping[str, str] = storage if storage is not None else {}
        self._prefix = key_prefix if key_prefix is not None else settings.handoff_key_prefix

    def key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    def write(self, session_id: str, record: HandoffRecord) -> None:
        """Store ``record`` for ``session_id``, replacing any previous entry."""
        payload = record.model_dump_json(by_alias=True)
        # Single assignment: readers never observe a partial record
        self._storage[self.key(session_id)] = payload
        logger.debug(
            "handoff_written",
            session_id=session_id,
            has_render=record.initial_rendered_image is not None,
        )

    def read(self, session_id: str) -> HandoffRecord | None:
        """Return the record for ``session_id``, or None if missing or unreadable."""
        raw = self._storage.get(self.key(session_id))
        if raw is None:
            return None
        try:
            return HandoffRecord.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning(
                "handoff_record_malformed",
                session_id=session_id,
                error_count=exc.error_count(),
            )
            return None

    def remove(self, session_id: str) -> None:
        self._storage.pop(self.key(session_id), None)

    def clear(self) -> None:
        """Drop every handoff entry, as when the browser session ends."""
        for key in [k for k in self._storage if k.startswith(self._prefix)]:
            del self._storage[key]
