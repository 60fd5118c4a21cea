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
Model of a container fixture file, as read by the fixture parser.
"""
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .container_options import ContainerOptions
from .mount_directives import ClasspathResourceMapping, FileCopy, FilesystemBind
from .network_info import NetworkInfo, NetworkOptions
from .strategy_spec import StrategySpec


class Fixture(BaseModel):
    """
    A container declared in a fixture file, with the mounts and copies to
    apply before it starts. A declared ``network`` asks for a fresh network
    to be created for the container.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    image_name: Optional[str] = None
    docker_file: Optional[str] = None
    exposed_ports: List[int] = Field(default_factory=list)
    env_vars: Dict[str, str] = Field(default_factory=dict)
    command: Optional[List[str]] = None
    network: Optional[NetworkOptions] = None
    network_aliases: Optional[List[str]] = None
    wait_for: Optional[StrategySpec] = None
    log_to: Optional[StrategySpec] = None
    mounts: List[Union[ClasspathResourceMapping, FilesystemBind]] = Field(default_factory=list)
    copies: List[FileCopy] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_image_source(self) -> "Fixture":
        if bool(self.image_name) == bool(self.docker_file):
            raise ValueError("exactly one of 'image' or 'docker_file' must be given")
        if self.network_aliases and self.network is None:
            raise ValueError("network_aliases require a network")
        return self

    def container_options(self, network: Optional[NetworkInfo] = None) -> ContainerOptions:
        """
        Returns the declared container options, joined to ``network`` when given.
        """
        return ContainerOptions(
            image_name=self.image_name,
            docker_file=self.docker_file,
            exposed_ports=self.exposed_ports,
            env_vars=self.env_vars,
            command=self.command,
            network=network,
            network_aliases=self.network_aliases if network is not None else None,
            wait_for=self.wait_for,
            log_to=self.log_to,
        )
