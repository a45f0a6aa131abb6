"""Single-settlement adapter for chunked byte streams.

The docker SDK hands back plain generators for archive transfers, exec
output and build progress. Their lifecycle shows up in three ways: the
generator is exhausted ("end"), the generator is closed ("close"), or
iteration raises ("error"). ``StreamSettlement`` folds those notifications
into one ``asyncio.Future`` that settles exactly once.

Usage:
    settlement = StreamSettlement("archive.tar")
    await loop.run_in_executor(None, pump_stream, chunks, sink, settlement)
    await settlement.wait()
"""

import asyncio
from typing import BinaryIO, Callable, Iterable, Optional

import structlog

from ..models.errors import StreamError

logger = structlog.get_logger(__name__)

ChunkSink = Callable[[bytes], object]


class StreamSettlement:
    """Settle-once view over a stream's terminal notifications.

    ``end`` and ``close`` both mean success and the first one to arrive
    wins. ``error`` fails the settlement unless it has already settled.
    Notifications may come from any thread.
    """

    def __init__(self, label: str, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.label = label
        self._loop = loop or asyncio.get_event_loop()
        self._future: asyncio.Future = self._loop.create_future()
        self.outcome: Optional[str] = None

    @property
    def settled(self) -> bool:
        return self._future.done()

    def end(self) -> None:
        self._notify("end")

    def close(self) -> None:
        self._notify("close")

    def error(self, exc: BaseException) -> None:
        self._notify("error", exc)

    def _notify(self, event: str, exc: Optional[BaseException] = None) -> None:
        self._loop.call_soon_threadsafe(self._settle, event, exc)

    def _settle(self, event: str, exc: Optional[BaseException]) -> None:
        if self._future.done():
            logger.debug("Ignoring stream event after settlement", stream=self.label, outcome=event)
            return

        self.outcome = event
        if exc is not None:
            logger.debug("Stream error. Rejected", stream=self.label, error=str(exc))
            error = StreamError(
                f"Stream {self.label} failed: {exc}",
                context={"stream": self.label},
            )
            error.__cause__ = exc
            self._future.set_exception(error)
        else:
            logger.debug(f"Stream {event}s. Resolved", stream=self.label)
            self._future.set_result(event)

    async def wait(self) -> str:
        """Wait for the stream to settle; returns the winning event name."""
        return await self._future


def pump_stream(chunks: Iterable[bytes], sink: ChunkSink, settlement: StreamSettlement) -> int:
    """Drain ``chunks`` into ``sink``, reporting lifecycle to ``settlement``.

    Blocking; meant to run in an executor. Returns the number of bytes
    handed to the sink. Errors are reported through the settlement rather
    than raised.
    """
    written = 0
    try:
        for chunk in chunks:
            if not chunk:
                continue
            sink(chunk)
            written += len(chunk)
    except Exception as e:
        settlement.error(e)
        return written
    else:
        settlement.end()
    finally:
        close = getattr(chunks, "close", None)
        if close is not None:
            try:
                close()
            except Exception as e:
                logger.debug("Closing stream failed", stream=settlement.label, error=str(e))
        settlement.close()
    return written


def tee_to(output: Optional[BinaryIO]) -> Callable[[bytes], None]:
    """Return a sink that writes chunks to ``output`` and flushes.

    A ``None`` output discards the chunks.
    """
    if output is None:
        return lambda chunk: None

    def write(chunk: bytes) -> None:
        output.write(chunk)
        output.flush()

    return write
