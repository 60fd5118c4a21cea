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
Lazily created, process-wide Docker client.
"""
import logging
import threading
from typing import Optional
from urllib.parse import urlparse

import docker
from docker.errors import DockerException

from ..config import get_settings
from ..exceptions import EngineUnavailableError

logger = logging.getLogger(__name__)

MANAGED_LABEL = "tcx.managed"

_client: Optional[docker.DockerClient] = None
_lock = threading.Lock()


def get_docker_client() -> docker.DockerClient:
    """
    Returns the shared Docker client, connecting on first use.

    Uses ``TCX_DOCKER_HOST`` when set, otherwise the usual DOCKER_* variables.

    :raises EngineUnavailableError: If the Docker daemon cannot be reached.
    """
    global _client

    if _client is not None:
        return _client

    with _lock:
        if _client is not None:
            return _client

        docker_host = get_settings().docker_host
        try:
            if docker_host:
                client = docker.DockerClient(base_url=docker_host)
            else:
                client = docker.from_env()
            client.ping()
        except (DockerException, OSError) as e:
            raise EngineUnavailableError(
                f"Docker daemon not available: {e}",
                operation="connect",
                details={"host": docker_host or "local"},
            ) from e

        logger.info("Connected to Docker daemon at %s", client.api.base_url)
        _client = client
        return _client


def reset_docker_client() -> None:
    """Drops the shared client; the next call reconnects."""
    global _client
    with _lock:
        if _client is not None:
            _client.close()
        _client = None


def engine_host(client: docker.DockerClient) -> str:
    """
    Host name under which ports published by the engine are reachable.

    ``TCX_HOST_OVERRIDE`` wins; a remote tcp/http daemon URL gives its host;
    a local socket gives ``localhost``.
    """
    override = get_settings().host_override
    if override:
        return override

    url = urlparse(client.api.base_url)
    if url.scheme in ("tcp", "http", "https") and url.hostname:
        return url.hostname
    return "localhost"
