"""Image builds with progress following.

The daemon reports build progress as line-delimited JSON objects. A
``stream`` key carries console text, ``status`` carries pull progress and
``error`` / ``errorDetail`` signal a failed build. The raw bytes are teed
to the console while ``ProgressFollower`` reduces the events to one
terminal outcome.
"""

import asyncio
import json
import os
import sys
from typing import Any, BinaryIO, Dict, List, Optional

import structlog

from ...config import settings
from ...models.errors import BuildFailure, DockhandError, ErrorDetail
from ...utils.streams import StreamSettlement, pump_stream, tee_to
from .facade import RuntimeFacade


class ProgressFollower:
    """Aggregates line-delimited progress events from a build stream.

    Feed it raw chunks in order; chunk boundaries need not match line
    boundaries. ``finish`` flushes the last partial line and either returns
    every event seen or raises ``BuildFailure``.
    """

    def __init__(self):
        self.events: List[Dict[str, Any]] = []
        self.error: Optional[Any] = None
        self._buffer = b""

    def feed(self, chunk: bytes) -> None:
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split(b"\n")
        for line in lines:
            self._parse_line(line)

    def _parse_line(self, line: bytes) -> None:
        line = line.strip()
        if not line:
            return
        try:
            event = json.loads(line)
        except json.JSONDecodeError:
            # Plain text progress still counts as output, not failure
            event = {"stream": line.decode("utf-8", errors="replace")}
        if not isinstance(event, dict):
            return
        self.events.append(event)
        if self.error is None and ("errorDetail" in event or "error" in event):
            self.error = event.get("errorDetail") or event.get("error")

    def finish(self) -> List[Dict[str, Any]]:
        self._parse_line(self._buffer)
        self._buffer = b""
        if self.error is not None:
            raise to_build_failure(self.error)
        return self.events


def to_build_failure(error: Any) -> BuildFailure:
    """Normalize a structured or string build error into ``BuildFailure``."""
    if isinstance(error, BuildFailure):
        return error
    if isinstance(error, dict):
        message = error.get("message") or json.dumps(error)
        code = error.get("code")
        return BuildFailure(
            message,
            details=[ErrorDetail(message=message, code=str(code) if code is not None else None)],
        )
    if isinstance(error, BaseException):
        return BuildFailure(str(error) or type(error).__name__)
    return BuildFailure(str(error))


def follow_progress(chunks) -> List[Dict[str, Any]]:
    """Blocking helper: reduce a whole progress stream to its events."""
    follower = ProgressFollower()
    for chunk in chunks:
        follower.feed(chunk)
    return follower.finish()


class ImageBuilder:
    """Submits builds and follows their progress to completion."""

    def __init__(
        self,
        facade: RuntimeFacade,
        output: Optional[BinaryIO] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ):
        self.facade = facade
        self._output = output
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def output(self) -> Optional[BinaryIO]:
        if self._output is not None:
            return self._output
        if not settings.echo_build_output:
            return None
        return getattr(sys.stdout, "buffer", None)

    async def build(self, context: Any = None, **options) -> List[Dict[str, Any]]:
        """Build an image and wait for the build to finish.

        Args:
            context: Build context; a directory path (str) or a tar file object
            **options: Passed to the runtime build call (``tag``, ``dockerfile``, ...)

        Returns:
            Every progress event reported by the daemon

        Raises:
            RuntimeAPIError: The build was not accepted
            StreamError: The progress stream broke before finishing
            BuildFailure: The daemon reported a build error
        """
        if isinstance(context, (str, os.PathLike)):
            options.setdefault("path", os.fspath(context))
        elif context is not None:
            options.setdefault("fileobj", context)
            options.setdefault("custom_context", True)

        tag = options.get("tag")
        log = self._logger.bind(tag=tag)

        try:
            stream = await self.facade.build(**options)
        except DockhandError as e:
            log.error("Build submission failed", **e.to_dict())
            raise

        follower = ProgressFollower()
        echo = tee_to(self.output)

        def sink(chunk: bytes) -> None:
            echo(chunk)
            follower.feed(chunk)

        loop = asyncio.get_event_loop()
        settlement = StreamSettlement(f"build:{tag or 'untagged'}", loop=loop)
        await loop.run_in_executor(None, pump_stream, stream, sink, settlement)
        try:
            await settlement.wait()
            events = follower.finish()
        except DockhandError as e:
            log.error("Image build failed", **e.to_dict())
            raise
        log.info("Image build finished", events=len(events))
        return events
