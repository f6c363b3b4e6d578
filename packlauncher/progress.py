"""Progress reporting channel."""

import asyncio
import logging
from typing import AsyncIterator, Callable, List, NamedTuple, Optional

logger = logging.getLogger(__name__)

INDETERMINATE = -1.0


class ProgressEvent(NamedTuple):
    """A progress label with a fraction in [0, 1], or INDETERMINATE."""
    label: str
    fraction: float

    @property
    def indeterminate(self) -> bool:
        return self.fraction < 0


ProgressListener = Callable[[Optional[ProgressEvent]], None]


class ProgressChannel:
    """Holds only the most recent progress event.

    Emitting overwrites the current value and wakes everyone waiting for a
    change. Consumers that fall behind skip straight to the latest value;
    nothing is queued. ``None`` means idle and ready to launch.
    """

    def __init__(self, initial: Optional[ProgressEvent] = None):
        self._value = initial
        self._version = 0
        self._changed = asyncio.Event()
        self._listeners: List[ProgressListener] = []
        self._closed = False

    @property
    def value(self) -> Optional[ProgressEvent]:
        return self._value

    @property
    def closed(self) -> bool:
        return self._closed

    def emit(self, label_or_event, fraction: Optional[float] = None):
        """Replace the current value.

        Accepts a ProgressEvent, None, or a label and fraction pair.
        """
        if self._closed:
            return
        if isinstance(label_or_event, str):
            event = ProgressEvent(label_or_event, INDETERMINATE if fraction is None else float(fraction))
        else:
            event = label_or_event
        self._value = event
        self._version += 1
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Progress listener %r failed", listener)

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Call ``listener`` with the current value now and on every emit."""
        self._listeners.append(listener)
        listener(self._value)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def updates(self) -> AsyncIterator[Optional[ProgressEvent]]:
        """Yield the current value, then the latest value after each change."""
        seen = -1
        while True:
            changed = self._changed
            if self._version != seen:
                seen = self._version
                yield self._value
                continue
            if self._closed:
                return
            await changed.wait()

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._listeners.clear()
        self._changed.set()
