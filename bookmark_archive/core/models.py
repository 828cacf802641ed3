"""Data models for classification replies.

ClassificationResult is the contract between the classification client and
the reconciler. The service's JSON reply is validated against it before
anything touches the archive; a reply that does not fit is rejected whole.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from bookmark_archive.core.bookmark import DEFAULT_THEME_COLOR, Theme


class ThemeSpec(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    description: str = ""
    color: str = DEFAULT_THEME_COLOR

    @field_validator("description", "color", mode="before")
    @classmethod
    def _null_as_missing(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    def to_theme(self) -> Theme:
        return Theme(name=self.name, description=self.description, color=self.color)


class BookmarkAnnotation(BaseModel):
    """Per-bookmark classification.

    Enrichment fields the service left out (or sent as null) become
    empty/false so they are always applied as a complete group.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(min_length=1)
    theme: str = ""
    insight: str = ""
    action: str = ""
    is_likely_thread: bool = Field(default=False, alias="isLikelyThread")

    @field_validator("theme", "insight", "action", "is_likely_thread", mode="before")
    @classmethod
    def _null_as_missing(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


class ClassificationResult(BaseModel):
    """Validated reply for one batch: new themes plus per-bookmark annotations."""

    model_config = ConfigDict(extra="ignore")

    themes: list[ThemeSpec]
    bookmarks: list[BookmarkAnnotation]

    def annotation_for(self, bookmark_id: str) -> BookmarkAnnotation | None:
        """First annotation with the given id, or None if the service omitted it."""
        for annotation in self.bookmarks:
            if annotation.id == bookmark_id:
                return annotation
        return None
