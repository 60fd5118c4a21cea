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
Building configuration records from declared options. Nothing here starts a container.
"""
import logging
from typing import Any, Mapping, Optional, Union

import docker

from ..BUILDERS.image_builder import DockerfileImage
from ..exceptions import ConfigurationError
from ..MODELS.container_config import ContainerConfig
from ..MODELS.container_options import ContainerOptions
from ..MODELS.fixture import Fixture
from ..MODELS.mount_directives import ClasspathResourceMapping
from ..MODELS.network_info import NetworkInfo
from ..RUNNERS.container_handle import ContainerHandle
from .volume_manager import bind_filesystem, copy_file_to_container, map_classpath_resource
from .wait_strategies import wait

logger = logging.getLogger(__name__)

Options = Union[ContainerOptions, Mapping[str, Any], None]


def init(container: ContainerHandle, options: Options = None) -> ContainerConfig:
    """
    Applies declared options to a container handle and returns its configuration record.

    Exposed ports replace the handle's when declared; environment variables
    are added; a declared command replaces the handle's; a declared network
    (and its aliases) is joined. The readiness strategy is resolved and its
    descriptor kept on the record.

    :param container: Handle to configure. The returned record owns it.
    :param options: Declared options, as a model or mapping.
    :return: The unstarted configuration record.
    :raises ConfigurationError: If the options are invalid.
    """
    options = ContainerOptions.coerce(options)

    if options.exposed_ports:
        container.set_exposed_ports(options.exposed_ports)

    for key, value in options.env_vars.items():
        container.add_env(key, value)

    if options.command is not None:
        container.set_command(options.command)

    if options.network is not None:
        container.set_network(options.network.network)
        if options.network_aliases:
            container.set_network_aliases(options.network_aliases)

    descriptor = wait(options.wait_for, container)

    config = ContainerConfig(
        options=options,
        container=container,
        exposed_ports=container.get_exposed_ports(),
        env_vars=container.get_env_map(),
        host=container.get_host(),
        network=options.network,
        wait=descriptor,
        log_to=options.log_to,
    )
    logger.debug("Configured %r", container)
    return config


def create(options: Options, client: Optional[docker.DockerClient] = None) -> ContainerConfig:
    """
    Creates a configuration record for a container run from ``image_name``.

    :param options: Declared options; ``image_name`` is required.
    :param client: Docker client, defaults to the shared client.
    :raises ConfigurationError: If no image name is declared or options are invalid.
    """
    options = ContainerOptions.coerce(options)
    if not options.image_name:
        raise ConfigurationError("image_name is required to create a container")
    return init(ContainerHandle(options.image_name, client=client), options)


def create_from_docker_file(options: Options, client: Optional[docker.DockerClient] = None) -> ContainerConfig:
    """
    Creates a configuration record for a container whose image is built
    from ``docker_file`` when it first starts.

    :param options: Declared options; ``docker_file`` is required.
    :param client: Docker client, defaults to the shared client.
    :raises ConfigurationError: If the Dockerfile is missing or options are invalid.
    """
    options = ContainerOptions.coerce(options)
    if not options.docker_file:
        raise ConfigurationError("docker_file is required to create a container from a Dockerfile")
    return init(ContainerHandle(DockerfileImage(options.docker_file), client=client), options)


def from_fixture(fixture: Fixture, network: Optional[NetworkInfo] = None,
                 client: Optional[docker.DockerClient] = None) -> ContainerConfig:
    """
    Creates a configuration record from a parsed fixture file, with its
    mounts and copies applied in declaration order.

    :param fixture: Parsed fixture.
    :param network: Network to join, required when the fixture declares one.
    :param client: Docker client, defaults to the shared client.
    """
    if fixture.network is not None and network is None:
        raise ConfigurationError("The fixture declares a network, create it first")

    options = fixture.container_options(network)
    config = create_from_docker_file(options, client) if fixture.docker_file else create(options, client)

    for mount in fixture.mounts:
        if isinstance(mount, ClasspathResourceMapping):
            config = map_classpath_resource(config, mount)
        else:
            config = bind_filesystem(config, mount)
    for copy in fixture.copies:
        config = copy_file_to_container(config, copy)
    return config
