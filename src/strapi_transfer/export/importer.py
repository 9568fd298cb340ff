"""Import orchestration.

An import run goes ``validating -> processing -> completed | error``.
Validation happens before any write; a document with validation errors is
returned with those errors and nothing is imported. Imports are
single-flight per process: starting one, background or synchronous, while
another is active raises ``ImportInProgressError``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from ..cache.schema_cache import InMemorySchemaCache
from ..exceptions import ConfigurationError, FormatError, ImportInProgressError
from ..models.export_format import InterchangeDocument
from ..models.options import ImportOptions
from ..models.results import ImportResult, ImportStarted, ImportValidationError
from ..models.status import ImportPhase
from .import_context import ImportContext
from .import_processor import ImportProcessor, ProgressCallback
from .media_handler import MediaHandler
from .progress import ProgressChannel, ProgressSubscription
from .validation import validate_document

if TYPE_CHECKING:
    from ..models.config import TransferConfig
    from ..protocols import DocumentStore, MediaStore, SchemaSource

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("json",)

_import_in_progress = False


class ImportService:
    """Imports interchange documents into a store.

    Example:
        >>> async with StrapiRestStore(config) as store:
        ...     service = ImportService(store, store, store, config=config)
        ...     result = await service.import_data(
        ...         payload, ImportOptions(existing_action="update")
        ...     )
        ...     print(result.created, result.updated, len(result.failures))
    """

    def __init__(
        self,
        store: DocumentStore,
        schema_source: SchemaSource,
        media_store: MediaStore,
        *,
        config: TransferConfig | None = None,
        media_handler: MediaHandler | None = None,
        channel: ProgressChannel | None = None,
        cancel_on_disconnect: bool = False,
    ) -> None:
        """Initialize the import service.

        Args:
            store: Document store to write to
            schema_source: Schema metadata for the target store
            media_store: Media library of the target store
            config: Supplies media timeout and retry policy when given
            media_handler: Custom media handler (overrides ``config``)
            channel: Progress channel for background runs
            cancel_on_disconnect: Cancel a background run when its subscriber
                disconnects
        """
        self.store = store
        self.schema_source = schema_source
        if media_handler is None:
            media_handler = MediaHandler(
                media_store,
                media_timeout=config.media_timeout if config else 30.0,
                retry=config.retry if config else None,
            )
        self.media_handler = media_handler
        self.channel = channel or ProgressChannel()
        self.cancel_on_disconnect = cancel_on_disconnect
        self.last_result: ImportResult | None = None
        self._active = False
        self._task: asyncio.Task[ImportResult | None] | None = None

    @property
    def is_import_in_progress(self) -> bool:
        """Whether any import runs in this process."""
        return _import_in_progress

    def _acquire(self) -> None:
        global _import_in_progress
        if _import_in_progress:
            raise ImportInProgressError("An import is already in progress")
        _import_in_progress = True
        self._active = True

    def _release(self) -> None:
        global _import_in_progress
        if self._active:
            self._active = False
            _import_in_progress = False

    @staticmethod
    def parse_payload(payload: Any, format: str = "json") -> dict[str, Any]:
        """Turn a payload into a raw document dict.

        Raises:
            FormatError: If the format is unsupported or the payload unreadable
        """
        if isinstance(payload, InterchangeDocument):
            return payload.to_json_dict()
        if format not in SUPPORTED_FORMATS:
            raise FormatError(f"Unsupported import format: {format}", details={"format": format})
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as e:
                raise FormatError(f"Invalid JSON payload: {e}") from e
        if not isinstance(payload, dict):
            raise FormatError(
                f"Unsupported payload type '{type(payload).__name__}'. Expected a JSON object."
            )
        return payload

    async def import_data(
        self,
        payload: Any,
        options: ImportOptions | None = None,
        *,
        format: str = "json",
        progress_callback: ProgressCallback | None = None,
    ) -> ImportResult:
        """Validate and import a document, waiting for the run to finish.

        Args:
            payload: Document as a dict, JSON string or InterchangeDocument
            options: Import options (defaults apply when omitted)
            format: Payload format
            progress_callback: Optional callback(fraction, message)

        Returns:
            Counts and failures, or validation errors when nothing was imported

        Raises:
            ImportInProgressError: If another import is active
            FormatError: If the payload cannot be read
            ConfigurationError: If an identifier field is unusable
        """
        options = options or ImportOptions()
        raw = self.parse_payload(payload, format)
        self._acquire()
        try:
            logger.info(f"Import started (existing action: {options.existing_action.value})")
            processor, errors = await self._prepare(raw, options, progress_callback)
            if processor is None:
                return ImportResult(errors=errors)

            result = await processor.process()
        finally:
            self._release()
        self._log_result(result)
        return result

    async def start_import(
        self,
        payload: Any,
        options: ImportOptions | None = None,
        *,
        format: str = "json",
    ) -> ImportStarted | ImportResult:
        """Validate a document, then import it in a background task.

        Progress, completion and errors are delivered through ``channel``.

        Returns:
            ``ImportStarted`` once processing runs in the background, or the
            validation errors when the document is rejected

        Raises:
            ImportInProgressError: If another import is active
            FormatError: If the payload cannot be read
            ConfigurationError: If an identifier field is unusable
        """
        self._acquire()
        try:
            options = options or ImportOptions()
            raw = self.parse_payload(payload, format)
            self.channel.publish(ImportPhase.VALIDATING, "Validating import data", 0)
            processor, errors = await self._prepare(raw, options, self._publish_progress)
        except (ConfigurationError, FormatError) as e:
            logger.error(f"Import rejected: {e}")
            self.channel.fail(e)
            self._release()
            raise
        except BaseException:
            self.channel.reset()
            self._release()
            raise

        if processor is None:
            result = ImportResult(errors=errors)
            self.last_result = result
            self.channel.complete(result)
            self._release()
            return result

        self.channel.publish(ImportPhase.PROCESSING, "Importing entries", 0)
        self._task = asyncio.create_task(self._run_background(processor))
        return ImportStarted()

    async def _prepare(
        self,
        raw: dict[str, Any],
        options: ImportOptions,
        progress_callback: ProgressCallback | None,
    ) -> tuple[ImportProcessor | None, list[ImportValidationError]]:
        schemas = InMemorySchemaCache(self.schema_source)

        errors = await validate_document(raw, schemas)
        if errors:
            for error in errors:
                logger.error(f"Validation failed: {error.error} at {error.data.get('path')}")
            return None, errors

        try:
            document = InterchangeDocument.model_validate(raw)
        except ValidationError as e:
            raise FormatError(f"Invalid interchange document: {e}") from e

        logger.debug("Validation passed, creating import context")
        context = ImportContext(options=options, document=document)
        processor = ImportProcessor(
            context,
            self.store,
            schemas,
            self.media_handler,
            progress_callback=progress_callback,
        )
        return processor, []

    async def _run_background(self, processor: ImportProcessor) -> ImportResult | None:
        try:
            result = await processor.process()
        except asyncio.CancelledError:
            logger.warning("Import cancelled")
            self.channel.reset()
            raise
        except Exception as e:
            logger.error(f"Import failed: {e}", exc_info=True)
            self.channel.fail(e)
            return None
        else:
            self._log_result(result)
            self.last_result = result
            self.channel.complete(result)
            return result
        finally:
            self._release()

    def _publish_progress(self, fraction: float, message: str) -> None:
        self.channel.publish(ImportPhase.PROCESSING, message, fraction * 100)

    @staticmethod
    def _log_result(result: ImportResult) -> None:
        logger.info(
            f"Import finished: {result.created} created, {result.updated} updated, "
            f"{result.skipped} skipped, {len(result.failures)} failures"
        )

    async def wait(self) -> ImportResult | None:
        """Wait for the background run, if any, and return its result."""
        task = self._task
        if task is None:
            return self.last_result
        try:
            return await task
        except asyncio.CancelledError:
            return None

    async def cancel(self) -> bool:
        """Cancel the background run.

        Returns:
            True if a running import was cancelled
        """
        task = self._task
        if task is None or task.done():
            return False

        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._release()
        self.channel.reset()
        return True

    def subscribe(self, maxsize: int = 100) -> ProgressSubscription:
        return self.channel.subscribe(maxsize=maxsize)

    async def disconnect(
        self, subscription: ProgressSubscription | None = None, *, cancel: bool | None = None
    ) -> None:
        """Detach a progress subscriber, optionally cancelling the run it watched."""
        self.channel.unsubscribe(subscription)
        if self.cancel_on_disconnect if cancel is None else cancel:
            await self.cancel()
