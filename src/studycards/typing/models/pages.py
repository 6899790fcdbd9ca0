"""Page rendering and progress models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RasterImage(BaseModel):
    """One rendered PDF page, ready to be sent to the generation backend."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    page_number: int = Field(ge=1)
    mime_type: str
    data_base64: str

    def as_data_url(self) -> str:
        """Return the image as a `data:` URL."""
        return f"data:{self.mime_type};base64,{self.data_base64}"


class ImageBatch(BaseModel):
    """Rendered pages of one pipeline run, in ascending page order."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    images: list[RasterImage] = Field(default_factory=list)

    @property
    def page_numbers(self) -> list[int]:
        """Return the page numbers covered by the batch."""
        return [image.page_number for image in self.images]

    def __len__(self) -> int:
        return len(self.images)


class ProgressEvent(BaseModel):
    """Progress after one page of a pipeline run has been rendered."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    completed: int = Field(ge=1)
    total: int = Field(ge=1)
    page_number: int = Field(ge=1)
    percent: int = Field(ge=0, le=100)

    @model_validator(mode="after")
    def _check_completed(self) -> ProgressEvent:
        if self.completed > self.total:
            message = f"completed ({self.completed}) exceeds total ({self.total})"
            raise ValueError(message)
        return self
