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
Public operations of tcx, in one namespace.

Typical use::

    from tcx import create, start, stop

    config = create({"image_name": "postgres:16",
                     "exposed_ports": [5432],
                     "env_vars": {"POSTGRES_PASSWORD": "secret"},
                     "wait_for": {"strategy": "log", "message": "accept connections"}})
    running = start(config)
    port = running.mapped_ports[5432]
    ...
    stop(running)
"""
from .MANAGERS.container_builder import create, create_from_docker_file, from_fixture, init
from .MANAGERS.container_manager import execute_command, start, stop
from .MANAGERS.log_strategies import log, register_log_strategy
from .MANAGERS.network_manager import create_network, init_network, remove_network
from .MANAGERS.volume_manager import bind_filesystem, copy_file_to_container, map_classpath_resource
from .MANAGERS.wait_strategies import register_wait_strategy, wait

__all__ = [
    "init",
    "create",
    "create_from_docker_file",
    "from_fixture",
    "wait",
    "log",
    "map_classpath_resource",
    "bind_filesystem",
    "copy_file_to_container",
    "execute_command",
    "start",
    "stop",
    "create_network",
    "remove_network",
    "init_network",
    "register_wait_strategy",
    "register_log_strategy",
]
