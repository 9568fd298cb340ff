"""Progress channel for background imports.

A single observer (for example a server-sent events connection) subscribes
and receives ``status`` events while an import runs, then ``complete`` or
``error`` followed by ``close``. Publishing never blocks: events go into a
bounded queue and the oldest pending event is dropped when it is full.
"""

import asyncio
import logging
from typing import Any

from ..models.results import ImportResult
from ..models.status import ImportPhase, ImportStatus, ProgressEvent

logger = logging.getLogger(__name__)


class ProgressSubscription:
    """Receiving end of a progress channel.

    Example:
        >>> subscription = channel.subscribe()
        >>> async for event in subscription:
        ...     print(event.event, event.data)
    """

    def __init__(self, maxsize: int = 100) -> None:
        self._queue: asyncio.Queue[ProgressEvent] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def deliver(self, event: ProgressEvent) -> None:
        while True:
            try:
                self._queue.put_nowait(event)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()
                self.dropped += 1

    async def get(self) -> ProgressEvent:
        return await self._queue.get()

    def get_nowait(self) -> ProgressEvent | None:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def pending(self) -> list[ProgressEvent]:
        """Drain and return the queued events."""
        events = []
        while (event := self.get_nowait()) is not None:
            events.append(event)
        return events

    def __aiter__(self) -> "ProgressSubscription":
        return self

    async def __anext__(self) -> ProgressEvent:
        event = await self.get()
        if event.event == "close":
            raise StopAsyncIteration
        return event


class ProgressChannel:
    """Single-subscriber status channel holding the latest status snapshot."""

    def __init__(self) -> None:
        self._subscription: ProgressSubscription | None = None
        self._status = ImportStatus()

    @property
    def status(self) -> ImportStatus:
        return self._status

    @property
    def has_subscriber(self) -> bool:
        return self._subscription is not None

    def subscribe(self, maxsize: int = 100) -> ProgressSubscription:
        """Attach a new subscriber, replacing any previous one.

        A run already under way is reported to the new subscriber right away.
        """
        if self._subscription is not None:
            logger.debug("Replacing progress subscriber")
            self._subscription.deliver(ProgressEvent(event="close"))

        self._subscription = ProgressSubscription(maxsize=maxsize)
        if self._status.status is not ImportPhase.IDLE:
            self._subscription.deliver(
                ProgressEvent(event="status", data=self._status.model_dump(mode="json"))
            )
        return self._subscription

    def unsubscribe(self, subscription: ProgressSubscription | None = None) -> None:
        """Detach the subscriber (only if it is ``subscription``, when given)."""
        if subscription is None or subscription is self._subscription:
            self._subscription = None

    def publish(self, phase: ImportPhase, message: str = "", percent: float = 0) -> None:
        self._status = ImportStatus(
            status=phase, message=message, progress=max(0, min(100, int(percent)))
        )
        self._send("status", self._status.model_dump(mode="json"))

    def complete(self, result: ImportResult) -> None:
        """Report a finished run, then close and reset to idle."""
        self._status = ImportStatus(
            status=ImportPhase.COMPLETED, message="Import completed", progress=100
        )
        self._send("complete", result.model_dump(mode="json"))
        self._finish()

    def fail(self, error: BaseException | str) -> None:
        """Report a failed run, then close and reset to idle."""
        message = str(error) or type(error).__name__
        self._status = ImportStatus(status=ImportPhase.ERROR, message=message)
        data: dict[str, Any] = {"message": message}
        if isinstance(error, BaseException):
            data["type"] = type(error).__name__
        self._send("error", data)
        self._finish()

    def reset(self) -> None:
        self._status = ImportStatus()

    def _finish(self) -> None:
        self._send("close", {})
        self.reset()

    def _send(self, event: str, data: dict[str, Any]) -> None:
        if self._subscription is None:
            return
        self._subscription.deliver(ProgressEvent(event=event, data=data))  # type: ignore[arg-type]
