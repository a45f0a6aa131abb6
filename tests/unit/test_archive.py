"""Unit tests for copying files out of a container."""

import io
import tarfile
from unittest.mock import patch

import pytest
from docker.errors import NotFound

from dockhand.models import ExtractionError, NotFoundError, StreamError
from dockhand.services.container import ArchiveExtractor


@pytest.fixture
def extractor(facade):
    return ArchiveExtractor(facade)


def leftover_archives(directory):
    return sorted(p.name for p in directory.glob("*.tar"))


def tar_with_links(*members):
    """Tar archive from ordered ``(name, content)`` files and ``(name, "->", target)`` links."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tar:
        for member in members:
            info = tarfile.TarInfo(name=member[0])
            if len(member) == 3:
                info.type = tarfile.SYMTYPE
                info.linkname = member[2]
                tar.addfile(info)
            else:
                info.size = len(member[1])
                tar.addfile(info, io.BytesIO(member[1]))
    return buffer.getvalue()


class TestCopyFromContainer:
    """Tests for ArchiveExtractor.copy_from_container."""

    @pytest.mark.asyncio
    async def test_extracts_and_removes_archive(
        self, extractor, mock_api, tmp_path, tar_archive, archive_stream
    ):
        """Test the success path leaves only the extracted files."""
        data = tar_archive({"app/config.yml": b"debug: true\n", "app/VERSION": b"1.2.3"})
        mock_api.get_archive.return_value = (archive_stream(data, 100), {"name": "app", "size": len(data)})

        await extractor.copy_from_container("web", "/srv/app", tmp_path)

        assert (tmp_path / "app" / "config.yml").read_bytes() == b"debug: true\n"
        assert (tmp_path / "app" / "VERSION").read_bytes() == b"1.2.3"
        assert leftover_archives(tmp_path) == []
        mock_api.get_archive.assert_called_once_with("web", "/srv/app")

    @pytest.mark.asyncio
    async def test_creates_missing_destination(self, extractor, mock_api, tmp_path, tar_archive):
        """Test that the destination directory is created recursively."""
        data = tar_archive({"report.txt": b"ok"})
        mock_api.get_archive.return_value = (iter([data]), {})
        dst = tmp_path / "out" / "nested"

        await extractor.copy_from_container("web", "/tmp/report.txt", dst)

        assert (dst / "report.txt").read_bytes() == b"ok"
        assert leftover_archives(dst) == []

    @pytest.mark.asyncio
    async def test_stream_error_removes_archive(self, extractor, mock_api, tmp_path, tar_archive):
        """Test that a broken stream fails and leaves no temporary archive."""
        data = tar_archive({"big.bin": b"x" * 4096})

        def broken():
            yield data[:1024]
            raise ConnectionResetError("connection reset by peer")

        mock_api.get_archive.return_value = (broken(), {})

        with pytest.raises(StreamError) as exc_info:
            await extractor.copy_from_container("web", "/data", tmp_path)

        assert isinstance(exc_info.value.__cause__, ConnectionResetError)
        assert leftover_archives(tmp_path) == []
        assert not (tmp_path / "big.bin").exists()

    @pytest.mark.asyncio
    async def test_corrupt_archive_removes_archive(self, extractor, mock_api, tmp_path):
        """Test that unreadable archive bytes fail extraction and are cleaned up."""
        mock_api.get_archive.return_value = (iter([b"definitely not a tarball" * 40]), {})

        with pytest.raises(ExtractionError):
            await extractor.copy_from_container("web", "/data", tmp_path)

        assert leftover_archives(tmp_path) == []

    @pytest.mark.asyncio
    async def test_unsafe_member_rejected(self, extractor, mock_api, tmp_path, tar_archive):
        """Test that members escaping the destination are refused."""
        data = tar_archive({"../escape.txt": b"nope"})
        dst = tmp_path / "dst"
        mock_api.get_archive.return_value = (iter([data]), {})

        with pytest.raises(ExtractionError):
            await extractor.copy_from_container("web", "/data", dst)

        assert not (tmp_path / "escape.txt").exists()
        assert leftover_archives(dst) == []

    @pytest.mark.asyncio
    async def test_request_failure_touches_nothing(self, extractor, mock_api, tmp_path):
        """Test that a failed archive request creates no files."""
        mock_api.get_archive.side_effect = NotFound("Could not find the file /missing in container web")
        dst = tmp_path / "dst"

        with pytest.raises(NotFoundError):
            await extractor.copy_from_container("web", "/missing", dst)

        assert not dst.exists()

    @pytest.mark.asyncio
    async def test_unwritable_destination(self, extractor, mock_api, tmp_path, tar_archive):
        """Test that failing to open the temporary archive is a stream failure."""
        closed = []

        def chunks():
            try:
                yield tar_archive({"a": b"a"})
            finally:
                closed.append(True)

        stream = chunks()
        next(stream, None)
        mock_api.get_archive.return_value = (stream, {})

        with patch(
            "dockhand.services.container.archive.open",
            side_effect=PermissionError("read-only file system"),
            create=True,
        ):
            with pytest.raises(StreamError):
                await extractor.copy_from_container("web", "/data", tmp_path)

        assert closed == [True]

    @pytest.mark.asyncio
    async def test_archive_names_are_unique(self, extractor, mock_api, tmp_path, tar_archive):
        """Test that each copy uses a fresh temporary archive name."""
        seen = []
        original_write = extractor._write_archive

        async def record(chunks, job):
            seen.append(job.archive_name)
            await original_write(chunks, job)

        extractor._write_archive = record
        data = tar_archive({"f": b"1"})
        mock_api.get_archive.side_effect = lambda *args: (iter([data]), {})

        await extractor.copy_from_container("web", "/f", tmp_path)
        await extractor.copy_from_container("web", "/f", tmp_path)

        assert len(set(seen)) == 2
        assert all(name.endswith(".tar") for name in seen)

    @pytest.mark.asyncio
    async def test_absolute_symlink_kept(self, extractor, mock_api, tmp_path):
        """Test that links to absolute container paths are extracted as links."""
        data = tar_with_links(
            ("app/config.yml", b"debug: true\n"),
            ("app/current", "->", "/opt/app/releases/42"),
        )
        mock_api.get_archive.return_value = (iter([data]), {})

        await extractor.copy_from_container("web", "/srv/app", tmp_path)

        link = tmp_path / "app" / "current"
        assert (tmp_path / "app" / "config.yml").read_bytes() == b"debug: true\n"
        assert link.is_symlink()
        assert str(link.readlink()) == "/opt/app/releases/42"
        assert leftover_archives(tmp_path) == []

    @pytest.mark.asyncio
    async def test_write_through_outside_symlink_rejected(self, extractor, mock_api, tmp_path):
        """Test that a member written through a link leaving the destination is refused."""
        outside = tmp_path / "outside"
        outside.mkdir()
        data = tar_with_links(
            ("escape", "->", str(outside)),
            ("escape/owned.txt", b"nope"),
        )
        dst = tmp_path / "dst"
        mock_api.get_archive.return_value = (iter([data]), {})

        with pytest.raises(ExtractionError):
            await extractor.copy_from_container("web", "/data", dst)

        assert not (outside / "owned.txt").exists()
        assert leftover_archives(dst) == []


class TestExtractionFilters:
    def test_interpreter_supports_extraction_filters(self):
        """Test that the running interpreter provides tarfile extraction filters."""
        assert callable(tarfile.tar_filter)
        assert callable(tarfile.data_filter)
