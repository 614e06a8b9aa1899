"""Roomify contract models.

Wire-facing models (handoff records, project records, generation I/O) keep
the camelCase keys the browser session and the persistence API use; Python
code works with the snake_case attribute names.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# === Intake ===


class UploadStatus(StrEnum):
    IDLE = "idle"
    READING = "reading"
    SIMULATING = "simulating"
    COMPLETE = "complete"


class SelectedFile(BaseModel):
    """A file picked or dropped by the user."""

    name: str
    data: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lower()

    @classmethod
    def from_path(cls, path: str | Path) -> SelectedFile:
        p = Path(path)
        return cls(name=p.name, data=p.read_bytes())


class UploadView(BaseModel):
    """What the upload card renders."""

    file_name: str | None = None
    progress: int = Field(ge=0, le=100, default=0)
    status: UploadStatus = UploadStatus.IDLE
    is_dragging: bool = False
    is_signed_in: bool = False

    @property
    def input_enabled(self) -> bool:
        return self.is_signed_in

    @property
    def prompt_text(self) -> str:
        if self.is_signed_in:
            return "Click to upload or just drag and drop"
        return "Sign in or Sign up with puter to upload"

    @property
    def status_text(self) -> str:
        return "Analyzing floor plan ..." if self.progress < 100 else "Redirecting ..."


# === Session handoff ===


class HandoffRecord(_WireModel):
    """Entry passed from the home flow to the render view for one session."""

    initial_image: str = Field(alias="initialImage")
    initial_rendered_image: str | None = Field(default=None, alias="initialRenderedImage")
    name: str = ""

    @field_validator("name", mode="before")
    @classmethod
    def _null_name_is_blank(cls, v: object) -> object:
        return "" if v is None else v


# === Projects ===


class ProjectRecord(_WireModel):
    id: str
    name: str
    source_image: str = Field(alias="sourceImage")
    rendered_image: str | None = Field(default=None, alias="renderedImage")
    timestamp: int  # epoch milliseconds


class CreateProjectRequest(_WireModel):
    item: ProjectRecord
    visibility: Literal["private", "public"] = "private"


# === Generation ===


class GenerateViewInput(_WireModel):
    source_image: str = Field(alias="sourceImage")


class GenerateViewOutput(_WireModel):
    rendered_image: str | None = Field(default=None, alias="renderedImage")


# === Render view ===


RenderPhase = Literal["inactive", "error", "loaded", "processing", "rendered", "cached"]


class RenderView(BaseModel):
    """What the visualizer renders for the active session."""

    session_id: str | None = None
    name: str = ""
    source_image: str | None = None
    rendered_image: str | None = None
    is_processing: bool = False
    error: bool = False
    phase: RenderPhase = "inactive"

    @property
    def display_image(self) -> str | None:
        return self.rendered_image or self.source_image

    @property
    def can_export(self) -> bool:
        return self.rendered_image is not None
