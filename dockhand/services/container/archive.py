"""Copying files out of a running container.

The daemon hands back a tar stream of the requested path. The stream is
written to a temporary archive inside the destination directory, then
extracted there, and the temporary archive is removed on every exit path.
"""

import asyncio
import os
import tarfile
from pathlib import Path
from typing import Any, Optional

import structlog

from ...models.errors import DockhandError, ExtractionError, StreamError
from ...models.resources import ArchiveTransferJob, resolve_ref
from ...utils.id_generator import generate_archive_name
from ...utils.streams import StreamSettlement, pump_stream
from .facade import RuntimeFacade


class ArchiveExtractor:
    """Streams a container path to disk and unpacks it."""

    def __init__(self, facade: RuntimeFacade, logger: Optional[structlog.BoundLogger] = None):
        self.facade = facade
        self._logger = logger or structlog.get_logger(__name__)

    async def copy_from_container(self, container: Any, src_path: str, dst_dir: str | os.PathLike) -> None:
        """Copy ``src_path`` from ``container`` into ``dst_dir``.

        Args:
            container: Container name, id or handle
            src_path: Path inside the container (file or directory)
            dst_dir: Host directory to extract into; created if missing

        Raises:
            RuntimeAPIError: The archive could not be requested
            StreamError: The archive stream failed mid-transfer
            ExtractionError: The archive could not be unpacked or cleaned up
        """
        job = ArchiveTransferJob(
            src_path=src_path,
            dst_dir=Path(dst_dir),
            archive_name=generate_archive_name(),
        )
        log = self._logger.bind(
            container=resolve_ref(container), src=src_path, dst=str(job.dst_dir), archive=job.archive_name
        )

        try:
            chunks, stat = await self.facade.get_archive(container, src_path)
            log.debug("Archive stream opened", size=(stat or {}).get("size"))
            try:
                await self._write_archive(chunks, job)
                await self._extract_archive(job)
            except BaseException:
                self._discard_archive(job, log)
                raise
            await self._remove_archive(job)
            log.debug(f"Docker cp {src_path} to {job.dst_dir}: done")
        except DockhandError as e:
            log.error(f"Docker cp {src_path} to {job.dst_dir} failed", **e.to_dict())
            raise

    async def _write_archive(self, chunks, job: ArchiveTransferJob) -> None:
        """Write the stream to the temporary archive; settles on end/close/error."""
        loop = asyncio.get_event_loop()
        settlement = StreamSettlement(job.archive_name, loop=loop)
        try:
            await loop.run_in_executor(None, lambda: job.dst_dir.mkdir(parents=True, exist_ok=True))
            writable = open(job.archive_path, "wb")
        except OSError as e:
            _close_quietly(chunks)
            raise StreamError(
                f"Cannot open {job.archive_path} for writing: {e}",
                context={"archive": str(job.archive_path)},
            ) from e

        with writable:
            written = await loop.run_in_executor(None, pump_stream, chunks, writable.write, settlement)
            event = await settlement.wait()
        self._logger.debug(f"Stream {job.archive_name} {event}s. Resolved", bytes=written)

    async def _extract_archive(self, job: ArchiveTransferJob) -> None:
        loop = asyncio.get_event_loop()
        try:
            await loop.run_in_executor(None, _extract, job.archive_path, job.dst_dir)
        except (tarfile.TarError, OSError) as e:
            raise ExtractionError(
                f"Extracting {job.archive_name} into {job.dst_dir} failed: {e}",
                context={"archive": str(job.archive_path)},
            ) from e

    async def _remove_archive(self, job: ArchiveTransferJob) -> None:
        """Remove the temporary archive after a successful extraction."""
        loop = asyncio.get_event_loop()
        try:
            await loop.run_in_executor(None, lambda: job.archive_path.unlink(missing_ok=True))
        except OSError as e:
            raise ExtractionError(
                f"Removing temporary archive {job.archive_path} failed: {e}",
                context={"archive": str(job.archive_path)},
            ) from e

    def _discard_archive(self, job: ArchiveTransferJob, log: structlog.BoundLogger) -> None:
        """Best-effort removal on a failure path; the error being raised always wins."""
        try:
            job.archive_path.unlink(missing_ok=True)
        except OSError as e:
            log.warning("Temporary archive left behind", error=str(e))


def _extract(archive_path: Path, dst_dir: Path) -> None:
    with tarfile.open(archive_path, mode="r:*") as tar:
        tar.extractall(path=dst_dir, filter="tar")


def _close_quietly(chunks) -> None:
    close = getattr(chunks, "close", None)
    if close is not None:
        try:
            close()
        except Exception as e:
            structlog.get_logger(__name__).debug("Closing archive stream failed", error=str(e))
