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
Engine-native container handle backed by the Docker SDK.

A handle accumulates the container's settings (ports, environment, command,
network, binds, copies, readiness condition, log consumers) and turns them
into a Docker container on ``start()``. It is mutable and owned by exactly
one configuration record at a time.
"""
import io
import logging
import os
import tarfile
from typing import Dict, Iterable, List, Optional, Tuple, Union

import docker
from docker.errors import APIError, DockerException, ImageNotFound, NotFound
from docker.models.containers import Container
from docker.models.networks import Network

from ..BUILDERS.image_builder import DockerfileImage
from ..config import PullPolicy, get_settings
from ..exceptions import EngineError
from ..MODELS.exec_result import ExecResult
from ..UTILS.mountable_file import MountableFile
from .docker_client import MANAGED_LABEL, engine_host, get_docker_client
from .log_consumers import LogConsumer, LogFollower
from .wait_conditions import WaitCondition

logger = logging.getLogger(__name__)


def _decode(output: Optional[bytes]) -> str:
    if not output:
        return ""
    return output.decode("utf-8", errors="replace")


class ContainerHandle:
    """
    Mutable description of one container plus, once started, the Docker
    container behind it.
    """
    def __init__(self,
                 image: Union[str, DockerfileImage],
                 client: Optional[docker.DockerClient] = None):
        """
        :param image: Image name, or a Dockerfile image built on start.
        :param client: Docker client, defaults to the shared client.
        """
        self.image = image
        self._client = client

        self._exposed_ports: List[int] = []
        self._env: Dict[str, str] = {}
        self._command: Optional[List[str]] = None
        self._network: Optional[Network] = None
        self._network_aliases: List[str] = []
        self._binds: List[str] = []
        self._pending_copies: List[Tuple[MountableFile, str]] = []
        self._wait_condition: Optional[WaitCondition] = None
        self._log_consumers: List[LogConsumer] = []
        self._followers: List[LogFollower] = []

        self._container: Optional[Container] = None

    def __repr__(self) -> str:
        state = self._container.short_id if self._container is not None else "not started"
        return f"ContainerHandle({self.image!r}, {state})"

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            self._client = get_docker_client()
        return self._client

    # Configuration

    def set_exposed_ports(self, ports: Iterable[int]) -> None:
        self._exposed_ports = [int(port) for port in ports]

    def get_exposed_ports(self) -> List[int]:
        return list(self._exposed_ports)

    def add_env(self, key: str, value: str) -> None:
        self._env[str(key)] = str(value)

    def get_env_map(self) -> Dict[str, str]:
        return dict(self._env)

    def set_command(self, command: Iterable[str]) -> None:
        self._command = [str(arg) for arg in command]

    def get_command(self) -> Optional[List[str]]:
        return list(self._command) if self._command is not None else None

    def set_network(self, network: Network) -> None:
        self._network = network

    def get_network(self) -> Optional[Network]:
        return self._network

    def set_network_aliases(self, aliases: Iterable[str]) -> None:
        self._network_aliases = list(aliases)

    def get_network_aliases(self) -> List[str]:
        return list(self._network_aliases)

    def with_file_system_bind(self, host_path: str, container_path: str, mode: str) -> "ContainerHandle":
        """
        Adds a bind mount.

        :param host_path: Absolute host path.
        :param container_path: Mount point in the container.
        :param mode: Docker mount mode, ``ro`` or ``rw``.
        """
        self._binds.append(f"{host_path}:{container_path}:{mode}")
        return self

    def get_binds(self) -> List[str]:
        return list(self._binds)

    def with_copy_file_to_container(self, mountable: MountableFile, container_path: str) -> "ContainerHandle":
        """
        Copies a file into the container: right away when it is running,
        otherwise after it is created and before it starts.
        """
        if self._container is not None:
            self._copy(self._container, mountable, container_path)
        else:
            self._pending_copies.append((mountable, container_path))
        return self

    def waiting_for(self, condition: WaitCondition) -> "ContainerHandle":
        self._wait_condition = condition
        return self

    def get_wait_condition(self) -> Optional[WaitCondition]:
        return self._wait_condition

    def follow_output(self, consumer: LogConsumer) -> "ContainerHandle":
        """
        Feeds the container's output to ``consumer``, from the first line on.
        """
        self._log_consumers.append(consumer)
        if self._container is not None:
            self._followers.append(LogFollower(self._container, consumer).start())
        return self

    # Lifecycle

    def start(self) -> None:
        """
        Creates and starts the container, then blocks until the readiness
        condition holds.

        :raises EngineError: If the image cannot be obtained or the container cannot start.
        :raises ReadinessTimeoutError: If the readiness condition times out.
        """
        if self._container is not None:
            raise EngineError("Container already started", operation="start",
                              details={"container_id": self._container.id})

        image = self._resolve_image()
        try:
            container = self.client.containers.create(
                image,
                command=self._command,
                environment=self._env,
                ports={f"{port}/tcp": None for port in self._exposed_ports},
                volumes=self._binds or None,
                labels={MANAGED_LABEL: "true"},
            )
        except DockerException as e:
            raise EngineError(f"Failed to create container from {image}: {e}", operation="create") from e

        self._container = container
        try:
            if self._network is not None:
                self._network.connect(container, aliases=self._network_aliases or None)
            for mountable, container_path in self._pending_copies:
                self._copy(container, mountable, container_path)
            container.start()
            container.reload()
        except DockerException as e:
            raise EngineError(f"Failed to start container {container.short_id}: {e}", operation="start",
                              details={"container_id": container.id}) from e

        logger.info("Started container %s from %s", container.short_id, image)

        for consumer in self._log_consumers:
            self._followers.append(LogFollower(container, consumer).start())

        if self._wait_condition is not None:
            self._wait_condition.wait_until_ready(self)

    def stop(self) -> None:
        """
        Stops and removes the container. The handle can be started again afterwards.

        :raises EngineError: If the container is not running or already gone.
        """
        container = self._require_container("stop")
        try:
            container.stop(timeout=get_settings().stop_timeout)
            container.remove(v=True, force=True)
        except NotFound as e:
            self._forget_container()
            raise EngineError(f"Container {container.short_id} is already gone", operation="stop",
                              details={"container_id": container.id}) from e
        except APIError as e:
            raise EngineError(f"Failed to stop container {container.short_id}: {e}", operation="stop",
                              details={"container_id": container.id}) from e

        logger.info("Stopped container %s", container.short_id)
        self._forget_container()

    def exec_in_container(self, command: Iterable[str]) -> ExecResult:
        """
        Runs a command in the running container and waits for it to finish.
        """
        container = self._require_container("exec")
        command = [str(arg) for arg in command]
        try:
            exit_code, output = container.exec_run(command, stdout=True, stderr=True, demux=True)
        except APIError as e:
            raise EngineError(f"Failed to exec {command!r}: {e}", operation="exec",
                              details={"container_id": container.id}) from e

        stdout, stderr = output if output else (None, None)
        logger.debug("Exec %r in %s exited with %s", command, container.short_id, exit_code)
        return ExecResult(exit_code=exit_code, stdout=_decode(stdout), stderr=_decode(stderr))

    # Runtime facts

    def get_host(self) -> str:
        return engine_host(self.client)

    def get_container_id(self) -> str:
        return self._require_container("get_container_id").id

    def get_mapped_port(self, port: int) -> int:
        """
        Host port the engine published for an exposed container port.

        :raises EngineError: If the port is not published.
        """
        container = self._require_container("get_mapped_port")
        bindings = container.ports.get(f"{port}/tcp")
        if not bindings:
            container.reload()
            bindings = container.ports.get(f"{port}/tcp")
        if not bindings:
            raise EngineError(f"Port {port} is not mapped", operation="get_mapped_port",
                              details={"container_id": container.id, "port": port})
        return int(bindings[0]["HostPort"])

    def is_created(self) -> bool:
        return self._container is not None

    def is_running(self) -> bool:
        if self._container is None:
            return False
        try:
            self._container.reload()
        except NotFound:
            return False
        return self._container.status == "running"

    def health_status(self) -> Optional[str]:
        container = self._require_container("health_status")
        container.reload()
        return container.attrs.get("State", {}).get("Health", {}).get("Status")

    def get_logs(self) -> str:
        container = self._require_container("logs")
        return _decode(container.logs(stdout=True, stderr=True))

    # Internals

    def _require_container(self, operation: str) -> Container:
        if self._container is None:
            raise EngineError("Container is not running", operation=operation)
        return self._container

    def _forget_container(self) -> None:
        # Consumers belong to a single run.
        self._container = None
        self._log_consumers = []
        for follower in self._followers:
            follower.join()
        self._followers = []

    def _resolve_image(self) -> str:
        if isinstance(self.image, DockerfileImage):
            return self.image.build(self.client)

        if get_settings().pull_policy == PullPolicy.MISSING:
            try:
                self.client.images.get(self.image)
                return self.image
            except ImageNotFound:
                pass
            except DockerException as e:
                raise EngineError(f"Failed to inspect image {self.image}: {e}", operation="pull") from e

        logger.info("Pulling image %s", self.image)
        try:
            self.client.images.pull(self.image)
        except DockerException as e:
            raise EngineError(f"Failed to pull image {self.image}: {e}", operation="pull") from e
        return self.image

    def _copy(self, container: Container, mountable: MountableFile, container_path: str) -> None:
        # Entries are rooted at "/" so the engine creates missing parent directories.
        arcname = container_path.strip("/") or os.path.basename(mountable.host_path)
        stream = io.BytesIO()
        with tarfile.open(fileobj=stream, mode="w") as tar:
            tar.add(mountable.host_path, arcname=arcname)
        stream.seek(0)

        try:
            copied = container.put_archive("/", stream)
        except APIError as e:
            raise EngineError(f"Failed to copy {mountable.description} to {container_path}: {e}",
                              operation="copy", details={"container_id": container.id}) from e
        if not copied:
            raise EngineError(f"Engine refused copy of {mountable.description} to {container_path}",
                              operation="copy", details={"container_id": container.id})
        logger.debug("Copied %s to %s:%s", mountable.description, container.short_id, container_path)
