"""Interchange document format (version 3).

::

    {
      "version": 3,
      "data": {
        "api::article.article": [
          {"draft": {"default": {...}}, "published": {"default": {...}, "fr": {...}}}
        ]
      }
    }
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

FORMAT_VERSION = 3
DEFAULT_LOCALE = "default"

LocaleVersions = dict[str, dict[str, Any]]


class EntryVersion(BaseModel):
    """Draft and published variants of one logical record, keyed by locale."""

    model_config = ConfigDict(extra="forbid")

    draft: LocaleVersions | None = None
    published: LocaleVersions | None = None

    def statuses(self) -> list[tuple[Literal["published", "draft"], LocaleVersions]]:
        """Versions in import order: published before draft."""
        ordered: list[tuple[Literal["published", "draft"], LocaleVersions]] = []
        if self.published:
            ordered.append(("published", self.published))
        if self.draft:
            ordered.append(("draft", self.draft))
        return ordered

    def to_json_dict(self) -> dict[str, Any]:
        """Serializable dict; an absent draft or published key is omitted."""
        result: dict[str, Any] = {}
        if self.draft is not None:
            result["draft"] = self.draft
        if self.published is not None:
            result["published"] = self.published
        return result

    def matches(self, field: str, value: Any) -> bool:
        """Whether any locale of any version carries ``field == value``."""
        return any(
            record.get(field) == value
            for _, versions in self.statuses()
            for record in versions.values()
        )


class InterchangeDocument(BaseModel):
    """A complete export document."""

    version: Literal[3] = FORMAT_VERSION
    data: dict[str, list[EntryVersion]] = Field(default_factory=dict)

    def get_entry_count(self) -> int:
        return sum(len(entries) for entries in self.data.values())

    def to_json_dict(self) -> dict[str, Any]:
        """Serializable dict with absent draft/published keys omitted."""
        return {
            "version": self.version,
            "data": {
                uid: [entry.to_json_dict() for entry in entries]
                for uid, entries in self.data.items()
            },
        }
