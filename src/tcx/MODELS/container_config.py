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
Configuration records threaded through every container operation.

Records are immutable; each operation returns a new one. A record that is
not running is a ``ContainerConfig``. Starting it yields a
``RunningContainer``, the only variant carrying runtime facts (container id,
mapped ports, log accessor). Stopping returns a plain ``ContainerConfig`` again.
"""
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict

from ..exceptions import ConfigurationError
from ..RUNNERS.container_handle import ContainerHandle
from .container_options import ContainerOptions
from .mount_directives import ClasspathResourceMapping, FileCopy, FilesystemBind
from .network_info import NetworkInfo
from .strategy_spec import StrategySpec, WaitDescriptor

LogAccessor = Callable[[], str]


class ContainerConfig(BaseModel):
    """
    Declared options plus everything derived from them while configuring the handle.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    # Declared
    options: ContainerOptions

    # Derived
    container: ContainerHandle
    exposed_ports: List[int] = []
    env_vars: Dict[str, str] = {}
    host: str
    network: Optional[NetworkInfo] = None
    wait: WaitDescriptor = WaitDescriptor()
    log_to: Optional[StrategySpec] = None

    # Directives applied before start
    mounts: List[Union[ClasspathResourceMapping, FilesystemBind]] = []
    copies: List[FileCopy] = []

    @property
    def is_running(self) -> bool:
        return False

    def base_fields(self) -> Dict[str, Any]:
        """Fields shared by every record variant, by name."""
        return {name: getattr(self, name) for name in ContainerConfig.model_fields}


class RunningContainer(ContainerConfig):
    """
    A started container: the configuration plus the runtime facts reported by the engine.
    """
    id: str
    mapped_ports: Dict[int, int] = {}
    logs: Optional[LogAccessor] = None

    @property
    def is_running(self) -> bool:
        return True

    def get_logs(self) -> str:
        """
        Returns the output captured so far.

        :raises ConfigurationError: If no log strategy was configured.
        """
        if self.logs is None:
            raise ConfigurationError("No log strategy configured for this container", {"container_id": self.id})
        return self.logs()
