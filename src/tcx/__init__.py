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
tcx - Throwaway containers for tests

Declares, starts and tears down Docker containers from test code, with
readiness waits, log capture, bind mounts, file copies and shared networks.
"""

__version__ = "0.1.0"
__author__ = "Michael Maillet, Damien Davison, Sacha Davison"
__license__ = "Apache-2.0"

from .core import (  # noqa: F401
    bind_filesystem,
    copy_file_to_container,
    create,
    create_from_docker_file,
    create_network,
    execute_command,
    from_fixture,
    init,
    init_network,
    log,
    map_classpath_resource,
    register_log_strategy,
    register_wait_strategy,
    remove_network,
    start,
    stop,
    wait,
)
