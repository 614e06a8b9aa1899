"""Floor plan intake: file selection, encoding, and simulated analysis progress.

One controller backs one upload card. A submitted file is read into a data
URI, then a repeating timer advances progress in fixed steps. When progress
reaches 100 the controller waits a short redirect delay (so the card can show
its finished state) and hands the encoded image to ``on_complete``, exactly
once per file. A new submission replaces whatever the previous one was doing.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

import structlog

from roomify.config import Settings, settings
from roomify.models.contracts import SelectedFile, UploadStatus, UploadView
from roomify.scheduling import RepeatingTimer, ScheduledTask
from roomify.utils.image import encode_data_uri

logger = structlog.get_logger()

CompletionHandler = Callable[[str], Awaitable[object] | object]
ViewListener = Callable[[UploadView], None]


@dataclass
class UploadTask:
    """Per-file intake state. Replaced, never reused, on a new submission."""

    selected_file: SelectedFile
    progress: int = 0
    status: UploadStatus = UploadStatus.IDLE
    encoded_image: str | None = None
    completed: bool = False


class IntakeController:
    def __init__(
        self,
        on_complete: CompletionHandler,
        is_signed_in: Callable[[], bool],
        config: Settings | None = None,
    ) -> None:
        self._on_complete = on_complete
        self._is_signed_in = is_signed_in
        self._config = config or settings
        self.task: UploadTask | None = None
        self.is_dragging = False
        self._reader: ScheduledTask | None = None
        self._timer: RepeatingTimer | None = None
        self._redirect: ScheduledTask | None = None
        self._handoff: ScheduledTask | None = None
        self._listeners: list[ViewListener] = []

    # ── View state ──────────────────────────────────────────────────

    @property
    def view(self) -> UploadView:
        task = self.task
        return UploadView(
            file_name=task.selected_file.name if task else None,
            progress=task.progress if task else 0,
            status=task.status if task else UploadStatus.IDLE,
            is_dragging=self.is_dragging,
            is_signed_in=self._is_signed_in(),
        )

    def subscribe(self, listener: ViewListener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        view = self.view
        for listener in self._listeners:
            listener(view)

    def accepts(self, file: SelectedFile) -> bool:
        """Whether ``file`` matches the advertised type and size limits.

        Advisory only; ``submit`` does not enforce it.
        """
        return (
            file.extension in self._config.accepted_extensions
            and file.size <= self._config.max_upload_bytes
        )

    # ── Input handlers ──────────────────────────────────────────────

    def select(self, files: Sequence[SelectedFile]) -> None:
        """File input change: process the first selected file."""
        if not self._is_signed_in():
            return
        if files:
            self.submit(files[0])

    def drag_over(self) -> None:
        if not self._is_signed_in():
            return
        self.is_dragging = True
        self._notify()

    def drag_leave(self) -> None:
        self.is_dragging = False
        self._notify()

    def drop(self, files: Sequence[SelectedFile]) -> None:
        self.is_dragging = False
        self._notify()
        if not self._is_signed_in():
            return
        if files:
            self.submit(files[0])

    def submit(self, file: SelectedFile) -> None:
        """Start intake for ``file``, replacing any upload still in flight."""
        if not self._is_signed_in():
            logger.debug("intake_rejected_unauthorized", file_name=file.name)
            return

        self._cancel_pending()
        task = UploadTask(selected_file=file, status=UploadStatus.READING)
        self.task = task
        logger.info("intake_started", file_name=file.name, size_bytes=file.size)
        self._notify()
        self._reader = ScheduledTask(self._read(task), name=f"intake-read:{file.name}")

    # ── Pipeline ────────────────────────────────────────────────────

    async def _read(self, task: UploadTask) -> None:
        file = task.selected_file
        try:
            encoded = await asyncio.to_thread(encode_data_uri, file.data)
        except Exception as exc:
            logger.warning(
                "intake_read_failed",
                file_name=file.name,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            if self.task is task:
                task.status = UploadStatus.IDLE
                self._notify()
            return

        if self.task is not task:
            return
        task.encoded_image = encoded
        task.status = UploadStatus.SIMULATING
        self._notify()
        self._timer = RepeatingTimer(
            self._config.upload_interval_ms / 1000,
            lambda: self._tick(task),
            name=f"intake-progress:{file.name}",
        )

    def _tick(self, task: UploadTask) -> None:
        if self.task is not task or task.status is not UploadStatus.SIMULATING:
            return
        step = self._config.progress_increment
        next_progress = task.progress + step
        if next_progress >= 100:
            task.progress = 100
            task.status = UploadStatus.COMPLETE
            if self._timer is not None:
                self._timer.cancel()
            logger.info("intake_progress_complete", file_name=task.selected_file.name)
            self._notify()
            self._redirect = ScheduledTask.after(
                self._config.redirect_delay_ms / 1000,
                lambda: self._deliver(task),
                name=f"intake-redirect:{task.selected_file.name}",
            )
            return
        task.progress = next_progress
        self._notify()

    async def _deliver(self, task: UploadTask) -> None:
        if self.task is not task or task.completed or task.encoded_image is None:
            return
        task.completed = True
        # Owned separately so a later submission cannot interrupt the handoff
        self._handoff = ScheduledTask(
            self._complete(task.encoded_image, task.selected_file.name),
            name=f"intake-handoff:{task.selected_file.name}",
        )

    async def _complete(self, encoded_image: str, file_name: str) -> None:
        try:
            result = self._on_complete(encoded_image)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("intake_completion_handler_failed", file_name=file_name)

    # ── Lifecycle ───────────────────────────────────────────────────

    def _cancel_pending(self) -> None:
        for handle in (self._reader, self._timer, self._redirect):
            if handle is not None:
                handle.cancel()
        self._reader = self._timer = self._redirect = None

    async def wait(self) -> None:
        """Wait for the current upload to finish, fail, or be cancelled."""
        while True:
            pending = [
                h for h in (self._reader, self._timer, self._redirect, self._handoff)
                if h is not None and not h.done
            ]
            if not pending:
                return
            await pending[0].wait()

    def close(self) -> None:
        """Unmount: cancel pending work and drop the current upload."""
        self._cancel_pending()
        self.task = None
        self.is_dragging = False
