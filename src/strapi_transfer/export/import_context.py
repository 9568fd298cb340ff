"""Per-run import state."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from ..models.export_format import EntryVersion, InterchangeDocument
from ..models.options import ImportOptions
from ..models.results import ImportFailure


def _identity_key(uid: str, id_value: Any) -> tuple[str, str | None]:
    """Key of a logical record; a None value stands for the record of a single type."""
    return uid, None if id_value is None else str(id_value)


@dataclass
class ImportContext:
    """Mutable state owned by a single import run.

    Tracks which store documents this run created or updated, a logical
    identity to document identity map used to reuse records handled earlier
    in the run, and the collected failures.
    """

    options: ImportOptions
    document: InterchangeDocument
    failures: list[ImportFailure] = field(default_factory=list)
    _created: set[str] = field(default_factory=set, repr=False)
    _updated: set[str] = field(default_factory=set, repr=False)
    _skipped: set[str] = field(default_factory=set, repr=False)
    _records: dict[tuple[str, str | None], str] = field(default_factory=dict, repr=False)
    _entries_in_progress: set[int] = field(default_factory=set, repr=False)
    _entries_done: set[int] = field(default_factory=set, repr=False)

    @property
    def import_data(self) -> dict[str, list[EntryVersion]]:
        return self.document.data

    def record_created(self, uid: str, id_values: Iterable[Any], document_id: str) -> None:
        self._created.add(document_id)
        self._skipped.discard(document_id)
        for value in id_values:
            self._records[_identity_key(uid, value)] = document_id

    def record_updated(self, uid: str, id_values: Iterable[Any], document_id: str) -> None:
        if document_id not in self._created:
            self._updated.add(document_id)
        self._skipped.discard(document_id)
        for value in id_values:
            self._records[_identity_key(uid, value)] = document_id

    def record_skipped(self, uid: str, id_values: Iterable[Any], document_id: str) -> None:
        """Remember a record left untouched so relations can still resolve to it."""
        if document_id not in self._created and document_id not in self._updated:
            self._skipped.add(document_id)
        for value in id_values:
            self._records.setdefault(_identity_key(uid, value), document_id)

    def find_processed_record(self, uid: str, id_value: Any) -> str | None:
        return self._records.get(_identity_key(uid, id_value))

    def was_written(self, document_id: str) -> bool:
        """Whether this run created or updated the document."""
        return document_id in self._created or document_id in self._updated

    def begin_entry(self, entry: EntryVersion) -> bool:
        """Mark an entry as being imported; False if it already is or was."""
        key = id(entry)
        if key in self._entries_in_progress or key in self._entries_done:
            return False
        self._entries_in_progress.add(key)
        return True

    def end_entry(self, entry: EntryVersion) -> None:
        key = id(entry)
        self._entries_in_progress.discard(key)
        self._entries_done.add(key)

    def is_entry_in_progress(self, entry: EntryVersion) -> bool:
        return id(entry) in self._entries_in_progress

    def add_failure(
        self,
        error: str,
        data: Any,
        details: dict[str, Any] | None = None,
        *,
        warning: bool = False,
    ) -> None:
        self.failures.append(
            ImportFailure(error=error, data=data, details=details, warning=warning)
        )

    @property
    def created_count(self) -> int:
        return len(self._created)

    @property
    def updated_count(self) -> int:
        return len(self._updated)

    @property
    def skipped_count(self) -> int:
        return len(self._skipped)
