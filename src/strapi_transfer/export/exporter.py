"""Export orchestration.

Expands the selector into content types, runs the first pass over them and
then follows discovered relations breadth-first, one pass per depth level,
until nothing new is discovered or ``max_depth`` passes have run.
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path

from ..cache.schema_cache import InMemorySchemaCache
from ..exceptions import ConfigurationError, ImportExportError
from ..models.export_format import InterchangeDocument
from ..models.options import MEDIA_SELECTOR, WHOLE_STORE, ExportOptions
from ..protocols import DocumentStore, SchemaSource
from ..utils.uid import ADMIN_USER_UID, MEDIA_FILE_UID, is_api_content_type, is_plugin_content_type
from .export_context import ExportContext
from .export_processor import ExportProcessor

logger = logging.getLogger(__name__)


class ContentExporter:
    """Export store content to a version 3 interchange document.

    Example:
        >>> async with StrapiRestStore(config) as store:
        ...     host = config.get_public_hostname()
        ...     exporter = ContentExporter(store, store, public_hostname=host)
        ...     document = await exporter.export_data(
        ...         ExportOptions(slug="api::article.article", export_relations=True, max_depth=2)
        ...     )
        ...     ContentExporter.save_to_file(document, "export.json")
    """

    def __init__(
        self,
        store: DocumentStore,
        schema_source: SchemaSource,
        *,
        public_hostname: str = "",
    ) -> None:
        """Initialize exporter.

        Args:
            store: Document store to read from
            schema_source: Schema metadata for content types and components
            public_hostname: Origin prepended to relative media URLs
        """
        self.store = store
        self.schema_source = schema_source
        self.public_hostname = public_hostname

    async def _expand_selector(
        self, options: ExportOptions, schemas: InMemorySchemaCache
    ) -> list[str]:
        if options.slug == WHOLE_STORE:
            uids = await schemas.list_content_types()
            return [
                uid
                for uid in uids
                if is_api_content_type(uid)
                or (options.export_plugins_content_types and is_plugin_content_type(uid))
            ]
        if options.slug == MEDIA_SELECTOR:
            return [MEDIA_FILE_UID]
        return [options.slug]

    async def export_data(
        self,
        options: ExportOptions,
        *,
        progress_callback: Callable[[int, int, str], None] | None = None,
    ) -> InterchangeDocument:
        """Export the selected content types and, optionally, their relations.

        Args:
            options: Export options
            progress_callback: Optional callback(current, total, message)

        Returns:
            Interchange document

        Raises:
            ConfigurationError: If an exported content type has an unusable
                identifier field
            ImportExportError: If the export fails
        """
        try:
            schemas = InMemorySchemaCache(self.schema_source)
            context = ExportContext(options=options)
            processor = ExportProcessor(context, self.store, schemas, self.public_hostname)

            uids = await self._expand_selector(options, schemas)
            logger.info(f"Exporting {len(uids)} content types")

            for idx, uid in enumerate(uids):
                if progress_callback:
                    progress_callback(idx, len(uids), f"Exporting {uid}")
                await processor.process_content_type(uid)

            context.exported_data.pop(ADMIN_USER_UID, None)
            await self._follow_relations(context, processor, progress_callback)

            document = InterchangeDocument(data=context.exported_data)
            if progress_callback:
                progress_callback(len(uids), len(uids), "Export complete")
            logger.info(
                f"Exported {document.get_entry_count()} entries "
                f"across {len(document.data)} content types"
            )
            return document

        except (ConfigurationError, ImportExportError):
            raise
        except Exception as e:
            raise ImportExportError(f"Export failed: {e}") from e

    async def _follow_relations(
        self,
        context: ExportContext,
        processor: ExportProcessor,
        progress_callback: Callable[[int, int, str], None] | None,
    ) -> None:
        options = context.options
        frontier = self._pending(context, context.take_relations())

        context.search_enabled = False
        context.skip_relations = not options.deep_populate_relations
        context.skip_component_relations = not options.deep_populate_component_relations

        passes = 0
        while frontier and options.export_relations and passes < options.max_depth:
            passes += 1
            logger.debug(f"Relation pass {passes}: {frontier}")

            for uid, document_ids in frontier.items():
                if progress_callback:
                    progress_callback(passes, options.max_depth, f"Exporting relations of {uid}")
                context.document_ids = document_ids
                await processor.process_content_type(uid)

            context.processed_relations[passes] = frontier
            frontier = self._pending(context, context.take_relations())

            if passes == options.max_depth and frontier:
                logger.warning(
                    f"Export relations loop limit reached ({options.max_depth} iterations). "
                    f"Some relations may not be fully exported."
                )

    @staticmethod
    def _pending(context: ExportContext, relations: dict[str, list[str]]) -> dict[str, list[str]]:
        """Drop ``admin::user`` and identities exported since they were queued."""
        pending: dict[str, list[str]] = {}
        for uid, document_ids in relations.items():
            if uid == ADMIN_USER_UID:
                continue
            remaining = [
                doc_id for doc_id in document_ids if not context.was_processed(uid, doc_id)
            ]
            if remaining:
                pending[uid] = remaining
        return pending

    async def export_json(self, options: ExportOptions) -> str:
        """Export and serialize to a JSON string."""
        document = await self.export_data(options)
        return json.dumps(document.to_json_dict(), indent=2, ensure_ascii=False)

    @staticmethod
    def save_to_file(document: InterchangeDocument, file_path: str | Path) -> None:
        """Save an interchange document to a JSON file.

        Example:
            >>> ContentExporter.save_to_file(document, "backup.json")
        """
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(document.to_json_dict(), f, indent=2, ensure_ascii=False)

        logger.info(f"Export saved to {path}")

    @staticmethod
    def load_from_file(file_path: str | Path) -> InterchangeDocument:
        """Load an interchange document from a JSON file.

        Raises:
            ImportExportError: If the file cannot be read or is not a version 3 document
        """
        try:
            path = Path(file_path)
            with open(path, encoding="utf-8") as f:
                data = json.load(f)

            return InterchangeDocument.model_validate(data)

        except Exception as e:
            raise ImportExportError(f"Failed to load export file: {e}") from e
