"""Unit tests for the DockerHandler composition."""

from unittest.mock import MagicMock

import pytest
from docker.errors import APIError, NotFound

from dockhand.models import ResourceKind, RuntimeAPIError
from dockhand.services.container import DockerClientFactory, DockerHandler


class TestHandles:
    """Tests for handle constructors."""

    def test_get_container(self, handler, mock_api):
        handle = handler.get_container("web")

        assert handle.kind == ResourceKind.CONTAINER
        assert handle.id == "web"
        mock_api.inspect_container.assert_not_called()

    def test_get_network(self, handler):
        assert handler.get_network("backend").kind == ResourceKind.NETWORK


class TestDelegation:
    """Tests for operations delegated to the workflow components."""

    @pytest.mark.asyncio
    async def test_existence(self, handler, mock_api):
        mock_api.inspect_image.side_effect = NotFound("no such image")

        assert await handler.does_image_exist("ghost") is False
        assert await handler.does_network_exist("backend") is True

    @pytest.mark.asyncio
    async def test_create_overlay_network(self, handler, mock_api):
        mock_api.inspect_network.side_effect = NotFound("no such network")

        await handler.create_overlay_network("backend")

        mock_api.create_network.assert_called_once_with("backend", driver="overlay")

    @pytest.mark.asyncio
    async def test_exec_echoes_to_output(self, handler, mock_api, output):
        mock_api.exec_start.return_value = iter([b"ok\n"])

        outcome = await handler.exec("web", ["echo", "ok"])

        assert outcome.succeeded
        assert output.getvalue() == b"ok\n"

    @pytest.mark.asyncio
    async def test_copy_docker_files(self, handler, mock_api, tmp_path, tar_archive):
        mock_api.get_archive.return_value = (iter([tar_archive({"out.txt": b"done"})]), {})

        await handler.copy_docker_files("web", "/out.txt", tmp_path)

        assert (tmp_path / "out.txt").read_bytes() == b"done"

    @pytest.mark.asyncio
    async def test_run_returns_status(self, handler, mock_api, output):
        mock_api.attach.return_value = iter([b"built\n"])
        mock_api.wait.return_value = {"StatusCode": 0}

        result = await handler.run("alpine", ["echo", "built"])

        assert result.status_code == 0
        assert output.getvalue() == b"built\n"

    @pytest.mark.asyncio
    async def test_inspect_container_status_placeholder(self, handler, mock_api):
        mock_api.inspect_container.side_effect = NotFound("No such container: ghost")

        status = await handler.inspect_container_status("ghost")

        assert status["State"]["Duration"] == "N/A"

    @pytest.mark.asyncio
    async def test_start_container_failure_propagates(self, handler, mock_api):
        mock_api.start.side_effect = APIError("port is already allocated")

        with pytest.raises(RuntimeAPIError):
            await handler.start_container("web")

    @pytest.mark.asyncio
    async def test_list_networks(self, handler, mock_api):
        mock_api.networks.return_value = [{"Id": "n1", "Name": "bridge"}]

        handles = await handler.list_networks()

        assert handles[0].name == "bridge"


class TestAvailability:
    """Tests for client availability and shutdown."""

    def test_available_with_bound_client(self, handler):
        assert handler.is_available() is True

    def test_unavailable_when_factory_fails(self):
        factory = MagicMock(spec=DockerClientFactory)
        factory.get_client.return_value = None
        factory.get_initialization_error.return_value = "no socket"

        handler = DockerHandler(client_factory=factory)

        assert handler.is_available() is False

    def test_close_delegates_to_factory(self):
        factory = MagicMock(spec=DockerClientFactory)

        DockerHandler(client_factory=factory).close()

        factory.close.assert_called_once()
