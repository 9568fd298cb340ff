"""Per-run export state."""

from dataclasses import dataclass, field
from typing import Any

from ..models.export_format import EntryVersion
from ..models.options import ExportOptions


@dataclass
class ExportContext:
    """Mutable state owned by a single export run.

    Attributes:
        options: Options the run was started with
        exported_data: Content type UID -> exported entry versions, in
            discovery order
        processed_relations: Pass number -> frontier processed in that pass
        skip_relations: Do not queue relation targets found on records
        skip_component_relations: Do not queue relation targets found inside
            components and dynamic zones
        document_ids: Allow-list for the content type currently being read
        search_enabled: Whether the search expression applies to the current
            pass (only the first one)
    """

    options: ExportOptions
    exported_data: dict[str, list[EntryVersion]] = field(default_factory=dict)
    processed_relations: dict[int, dict[str, list[str]]] = field(default_factory=dict)
    skip_relations: bool = False
    skip_component_relations: bool = False
    document_ids: list[str] | None = None
    search_enabled: bool = True
    _processed: set[tuple[str, str]] = field(default_factory=set, repr=False)
    _relations: dict[str, list[str]] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if self.document_ids is None and self.options.document_ids:
            self.document_ids = list(self.options.document_ids)

    def record_processed(self, uid: str, document_id: str) -> None:
        self._processed.add((uid, document_id))

    def was_processed(self, uid: str, document_id: str) -> bool:
        return (uid, document_id) in self._processed

    def add_relation(self, uid: str, document_id: str) -> None:
        """Queue a relation target for the next pass unless already seen."""
        if self.was_processed(uid, document_id):
            return
        queued = self._relations.setdefault(uid, [])
        if document_id not in queued:
            queued.append(document_id)

    def get_relations(self) -> dict[str, list[str]]:
        return self._relations

    def take_relations(self) -> dict[str, list[str]]:
        """Return the queued frontier and start a new, empty one."""
        relations, self._relations = self._relations, {}
        return relations

    def add_entry(self, uid: str, entry: EntryVersion) -> None:
        self.exported_data.setdefault(uid, []).append(entry)

    def search_params(self) -> dict[str, Any]:
        """``filters``/``sort`` from the search expression when it applies."""
        if not self.search_enabled or not self.options.apply_search or not self.options.search:
            return {}
        return self.options.search
