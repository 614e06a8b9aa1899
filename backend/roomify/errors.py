"""Error taxonomy for the intake and render workflows.

Controllers catch these at their own boundary; none of them is allowed to
escape an owned asyncio task.
"""


class RoomifyError(Exception):
    pass


class ImageDecodeError(RoomifyError):
    """A selected file could not be read as an image."""


class HandoffNotFound(RoomifyError):
    """No usable handoff record exists for a session id."""

    def __init__(self, session_id: str | None) -> None:
        super().__init__(f"No floor plan found for session {session_id!r}")
        self.session_id = session_id


class PersistenceFailure(RoomifyError):
    """Project creation did not return a saved record."""


class GenerationFailure(RoomifyError):
    """The 3D view request failed or produced no image."""
