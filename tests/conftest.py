"""Pytest configuration and shared fixtures."""

import io
import tarfile
from typing import Dict
from unittest.mock import MagicMock

import docker
import pytest

from dockhand.services.container import DockerHandler, RuntimeFacade


def make_tar(files: Dict[str, bytes]) -> bytes:
    """Build an in-memory tar archive from a name -> content mapping."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as tar:
        for name, content in files.items():
            info = tarfile.TarInfo(name=name)
            info.size = len(content)
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


def chunked(data: bytes, size: int = 512):
    """Yield ``data`` in fixed-size pieces, like the SDK's archive stream."""
    for start in range(0, len(data), size):
        yield data[start : start + size]


@pytest.fixture
def mock_api():
    """Mock low-level Docker API client."""
    api = MagicMock(spec=docker.APIClient)

    api.inspect_image.return_value = {"Id": "sha256:img"}
    api.inspect_container.return_value = {"Id": "c0ffee", "State": {"Running": False}}
    api.inspect_network.return_value = {"Id": "net1", "Name": "backend"}
    api.inspect_volume.return_value = {"Name": "data"}
    api.images.return_value = []
    api.networks.return_value = []
    api.containers.return_value = []
    api.volumes.return_value = {"Volumes": []}
    api.create_network.return_value = {"Id": "net-new", "Warning": ""}
    api.create_container.return_value = {"Id": "c0ffee", "Warnings": []}
    api.exec_create.return_value = {"Id": "exec123456789"}
    api.exec_start.return_value = iter([])
    api.exec_inspect.return_value = {"ID": "exec123456789", "Running": False, "ExitCode": 0}
    api.wait.return_value = {"StatusCode": 0}
    api.attach.return_value = iter([])
    api.build.return_value = iter([])

    return api


@pytest.fixture
def output():
    """Captures the bytes that would be echoed to the console."""
    return io.BytesIO()


@pytest.fixture
def facade(mock_api):
    """RuntimeFacade bound to the mock client."""
    return RuntimeFacade(mock_api)


@pytest.fixture
def handler(mock_api, output):
    """DockerHandler bound to the mock client with captured output."""
    return DockerHandler(api=mock_api, output=output)


@pytest.fixture
def tar_archive():
    """Factory for in-memory tar archives."""
    return make_tar


@pytest.fixture
def archive_stream():
    """Factory splitting bytes into a chunk generator."""
    return chunked
