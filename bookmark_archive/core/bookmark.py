"""Bookmark data model for Bookmark Archive.

This module defines the core data structures used throughout the archive:
- Bookmark: a saved post, optionally enriched by classification
- Theme: a named taxonomy bucket produced by classification
"""

from dataclasses import dataclass, field, replace
from typing import Any, Optional

# Fallback display color for themes the service referenced but never defined
DEFAULT_THEME_COLOR = "#00d9ff"

# Serialized keys owned by the model; anything else is kept in Bookmark.extra
_SOURCE_KEYS = ("id", "text", "author", "url", "date", "engagement")
_ENRICHMENT_KEYS = {
    "theme": "theme",
    "insight": "insight",
    "action": "action",
    "isLikelyThread": "is_likely_thread",
}


@dataclass
class Bookmark:
    """Represents a saved post in the archive.

    Required fields:
        id: Post ID (unique within the archive, the only dedup key)

    Source fields are set at import and never changed by the pipeline.
    Enrichment fields stay None until a classification succeeds, and are
    always written together via with_enrichment(). A bookmark whose insight
    is still empty counts as pending and is offered to the next run.
    """

    # Required identification
    id: str

    # Source fields (set at import)
    text: str = ""
    author: str = ""
    url: str = ""
    date: str = ""
    engagement: dict[str, Any] = field(default_factory=dict)

    # Enrichment (written by the reconciler)
    theme: Optional[str] = None
    insight: Optional[str] = None
    action: Optional[str] = None
    is_likely_thread: Optional[bool] = None

    # Unrecognized keys from the import file, preserved on export
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_pending(self) -> bool:
        """True until classification has produced a non-empty insight."""
        return not self.insight

    @property
    def is_analyzed(self) -> bool:
        return not self.is_pending

    @property
    def replies(self) -> Any:
        """Reply counter from engagement, "0" when unknown."""
        return self.engagement.get("replies") or "0"

    def with_enrichment(
        self,
        *,
        theme: str,
        insight: str,
        action: str,
        is_likely_thread: bool,
    ) -> "Bookmark":
        """Return a copy with all four enrichment fields replaced."""
        return replace(
            self,
            theme=theme,
            insight=insight,
            action=action,
            is_likely_thread=is_likely_thread,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the archive's JSON shape (camelCase enrichment keys)."""
        data: dict[str, Any] = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "text": self.text,
                "author": self.author,
                "url": self.url,
                "date": self.date,
                "engagement": dict(self.engagement),
            }
        )
        for key, attr in _ENRICHMENT_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Bookmark":
        """Build a Bookmark from a JSON object.

        Raises:
            KeyError: If id is missing.
            TypeError: If id is not a string or integer, or engagement
                is not an object.
        """
        raw_id = data["id"]
        if isinstance(raw_id, bool) or not isinstance(raw_id, (str, int)):
            raise TypeError(f"id must be a string, got {type(raw_id).__name__}")
        bookmark_id = str(raw_id)
        if not bookmark_id:
            raise TypeError("id must not be empty")

        engagement = data.get("engagement") or {}
        if not isinstance(engagement, dict):
            raise TypeError("engagement must be an object")

        extra = {
            key: value
            for key, value in data.items()
            if key not in _SOURCE_KEYS and key not in _ENRICHMENT_KEYS
        }

        return cls(
            id=bookmark_id,
            text=str(data.get("text") or ""),
            author=str(data.get("author") or ""),
            url=str(data.get("url") or ""),
            date=str(data.get("date") or ""),
            engagement=dict(engagement),
            theme=data.get("theme"),
            insight=data.get("insight"),
            action=data.get("action"),
            is_likely_thread=data.get("isLikelyThread"),
            extra=extra,
        )


@dataclass
class Theme:
    """A taxonomy bucket, identified by its case-sensitive name."""

    name: str
    description: str = ""
    color: str = DEFAULT_THEME_COLOR

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "description": self.description,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Theme":
        return cls(
            name=str(data["name"]),
            description=str(data.get("description") or ""),
            color=str(data.get("color") or DEFAULT_THEME_COLOR),
        )
