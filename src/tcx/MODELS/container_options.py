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
Declared container options, as supplied by the caller.
"""
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..exceptions import ConfigurationError
from .network_info import NetworkInfo
from .strategy_spec import StrategySpec


class ContainerOptions(BaseModel):
    """
    What the caller wants the container to look like. Kept verbatim on every
    configuration record derived from it.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    # Image source
    image_name: Optional[str] = None
    docker_file: Optional[str] = None

    # Execution
    exposed_ports: List[int] = []
    env_vars: Dict[str, str] = {}
    command: Optional[List[str]] = None

    # Networking
    network: Optional[NetworkInfo] = None
    network_aliases: Optional[List[str]] = None

    # Strategies
    wait_for: Optional[StrategySpec] = None
    log_to: Optional[StrategySpec] = None

    @field_validator("exposed_ports")
    @classmethod
    def _non_negative_ports(cls, ports: List[int]) -> List[int]:
        for port in ports:
            if port < 0:
                raise ValueError(f"exposed port {port} must be a non-negative integer")
        return ports

    @field_validator("command", "network_aliases", mode="before")
    @classmethod
    def _single_string_to_list(cls, value):
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("wait_for", "log_to", mode="before")
    @classmethod
    def _coerce_spec(cls, value):
        if value is None or isinstance(value, StrategySpec):
            return value
        return StrategySpec.coerce(value)

    @model_validator(mode="after")
    def _aliases_need_network(self) -> "ContainerOptions":
        if self.network_aliases and self.network is None:
            raise ValueError("network_aliases require a network")
        return self

    @classmethod
    def coerce(cls, options: Union["ContainerOptions", Mapping[str, Any], None]) -> "ContainerOptions":
        """
        Accepts an options model, a plain mapping or ``None``.

        :raises ConfigurationError: If the options fail validation.
        """
        if options is None:
            return cls()
        if isinstance(options, ContainerOptions):
            return options
        try:
            return cls.model_validate(dict(options))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid container options: {e}") from e
