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
Creation of isolated networks that containers join to reach each other by alias.
"""
import logging
import uuid
import warnings
from typing import Any, Mapping, Optional, Union

import docker
from docker.errors import APIError, NotFound
from pydantic import ValidationError

from ..exceptions import ConfigurationError, EngineError
from ..MODELS.network_info import NetworkInfo, NetworkOptions
from ..RUNNERS.docker_client import MANAGED_LABEL, get_docker_client

logger = logging.getLogger(__name__)


def create_network(options: Union[NetworkOptions, Mapping[str, Any], None] = None,
                   client: Optional[docker.DockerClient] = None) -> NetworkInfo:
    """
    Creates a new network.

    :param options: ``ipv6`` (enable dual stack) and ``driver``; engine
                    defaults apply to anything not given.
    :param client: Docker client, defaults to the shared client.
    :return: The network with its name, dual-stack flag and driver as
             reported by the engine.
    :raises ConfigurationError: If the options are invalid.
    :raises EngineError: If the engine refuses to create the network.
    """
    if options is None:
        options = NetworkOptions()
    elif not isinstance(options, NetworkOptions):
        try:
            options = NetworkOptions.model_validate(dict(options))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid network options: {e}") from e

    client = client or get_docker_client()
    name = f"tcx-{uuid.uuid4().hex}"

    kwargs = {"labels": {MANAGED_LABEL: "true"}}
    if options.ipv6:
        kwargs["enable_ipv6"] = True
    if options.driver:
        kwargs["driver"] = options.driver

    try:
        network = client.networks.create(name, **kwargs)
        network.reload()
    except APIError as e:
        raise EngineError(f"Failed to create network {name}: {e}", operation="create_network") from e

    attrs = network.attrs
    info = NetworkInfo(
        network=network,
        name=network.name,
        ipv6=bool(attrs.get("EnableIPv6", False)),
        driver=attrs.get("Driver") or "",
    )
    logger.info("Created network %s (driver=%s, ipv6=%s)", info.name, info.driver, info.ipv6)
    return info


def remove_network(info: NetworkInfo) -> None:
    """
    Removes a network created by ``create_network``. Containers must have
    left it (been stopped) first.

    :raises EngineError: If the engine refuses, or the network is gone.
    """
    try:
        info.network.remove()
    except NotFound as e:
        raise EngineError(f"Network {info.name} is already gone", operation="remove_network") from e
    except APIError as e:
        raise EngineError(f"Failed to remove network {info.name}: {e}", operation="remove_network") from e
    logger.info("Removed network %s", info.name)


def init_network(options: Union[NetworkOptions, Mapping[str, Any], None] = None,
                 client: Optional[docker.DockerClient] = None) -> NetworkInfo:
    """Deprecated alias of create_network."""
    warnings.warn("init_network is deprecated, use create_network", DeprecationWarning, stacklevel=2)
    return create_network(options, client=client)
