"""Export and import request options."""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

WHOLE_STORE = "custom:db"
MEDIA_SELECTOR = "media"


class ExistingAction(str, Enum):
    """What to do when an incoming record already exists in the store."""

    WARN = "warn"
    UPDATE = "update"
    SKIP = "skip"


class ExportOptions(BaseModel):
    """Options for an export run.

    Attributes:
        slug: Content type UID, ``"media"``, or ``"custom:db"`` for the whole store
        search: Filter/sort expression (dict or JSON string) with ``filters``/``sort``
        apply_search: Whether ``search`` is applied to the first pass
        document_ids: Allow-list of store document identities
        export_all_locales: Include every locale variant, not only the default
        export_relations: Follow relations breadth-first into other content types
        deep_populate_relations: Keep discovering relations in follow-up passes
        deep_populate_component_relations: Discover relations nested in components
            during follow-up passes
        export_plugins_content_types: Include ``plugin::`` types in whole-store exports
        max_depth: Maximum number of relation passes
    """

    model_config = ConfigDict(populate_by_name=True)

    slug: str = Field(..., alias="contentType")
    search: dict[str, Any] | None = None
    apply_search: bool = Field(False, alias="applySearch")
    document_ids: list[str] | None = Field(None, alias="documentIds")
    export_all_locales: bool = Field(True, alias="exportAllLocales")
    export_relations: bool = Field(False, alias="exportRelations")
    deep_populate_relations: bool = Field(True, alias="deepPopulateRelations")
    deep_populate_component_relations: bool = Field(
        True, alias="deepPopulateComponentRelations"
    )
    export_plugins_content_types: bool = Field(False, alias="exportPluginsContentTypes")
    max_depth: int = Field(20, ge=1, le=20, alias="maxDepth")

    @field_validator("search", mode="before")
    @classmethod
    def _parse_search(cls, value: Any) -> Any:
        if isinstance(value, str):
            return json.loads(value) if value.strip() else None
        return value


class ImportOptions(BaseModel):
    """Options for an import run.

    Attributes:
        slug: Content type UID or ``"custom:db"``; informational for v3 payloads,
            which carry their own content types
        existing_action: Policy for records that already exist in the store
        ignore_missing_relations: Null out unresolvable relations instead of failing
            the record
        allow_locale_updates: On skip, still add locale variants the store lacks
        disallow_new_relations: Resolve relations only through records already
            handled in this run or present in the store
    """

    model_config = ConfigDict(populate_by_name=True)

    slug: str = Field(WHOLE_STORE, alias="contentType")
    existing_action: ExistingAction = Field(ExistingAction.WARN, alias="existingAction")
    ignore_missing_relations: bool = Field(False, alias="ignoreMissingRelations")
    allow_locale_updates: bool = Field(False, alias="allowLocaleUpdates")
    disallow_new_relations: bool = Field(True, alias="disallowNewRelations")
