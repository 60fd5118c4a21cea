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
Models for virtual networks shared between containers.
"""
from typing import Optional

from docker.models.networks import Network
from pydantic import BaseModel, ConfigDict


class NetworkOptions(BaseModel):
    """
    Requested properties of a new network.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    ipv6: bool = False
    driver: Optional[str] = None


class NetworkInfo(BaseModel):
    """
    A created network, with its properties as reported by the engine.
    The same instance is shared by every container joining the network.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    network: Network
    name: str
    ipv6: bool
    driver: str
