# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Shared fixtures: isolated settings and in-memory Docker clients.
"""
import os
from unittest.mock import MagicMock

import pytest
from docker.models.containers import Container
from docker.models.networks import Network

from tcx.config import reset_settings
from tcx.RUNNERS.container_handle import ContainerHandle
from tcx.RUNNERS.docker_client import reset_docker_client

RESOURCES = os.path.join(os.path.dirname(__file__), "resources")

CONTAINER_ID = "3f2a9c1e7b5d" + "0" * 52


@pytest.fixture(autouse=True)
def tcx_settings(monkeypatch):
    """Settings read from a clean TCX_* environment with fast polling."""
    for name in list(os.environ):
        if name.startswith("TCX_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("TCX_POLL_INTERVAL", "0.01")
    monkeypatch.setenv("TCX_RESOURCE_PATH", RESOURCES)
    reset_settings()
    yield
    reset_settings()
    reset_docker_client()


def make_container(container_id=CONTAINER_ID, ports=None, log_output=b"", status="running"):
    """A Docker container double answering like a started container."""
    container = MagicMock(spec=Container)
    container.id = container_id
    container.short_id = container_id[:12]
    container.status = status
    container.ports = ports or {}
    container.attrs = {"State": {"Status": status}}
    container.put_archive.return_value = True
    container.exec_run.return_value = (0, (b"root\n", None))

    def logs(stream=False, **kwargs):
        return iter([log_output]) if stream else log_output

    container.logs.side_effect = logs
    return container


@pytest.fixture
def container():
    return make_container(ports={
        "5432/tcp": [{"HostIp": "0.0.0.0", "HostPort": "49153"}],
        "80/tcp": [{"HostIp": "0.0.0.0", "HostPort": "49154"}],
    })


@pytest.fixture
def docker_client(container):
    """A Docker client double whose containers.create returns ``container``."""
    client = MagicMock()
    client.api.base_url = "http+docker://localhost"
    client.containers.create.return_value = container
    return client


@pytest.fixture
def handle(docker_client):
    return ContainerHandle("postgres:16", client=docker_client)


@pytest.fixture
def docker_network():
    network = MagicMock(spec=Network)
    network.name = "tcx-test"
    network.attrs = {"Driver": "bridge", "EnableIPv6": False}
    return network
