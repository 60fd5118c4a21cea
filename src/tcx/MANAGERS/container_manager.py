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
Lifecycle management for a single container: start, stop and exec.
"""
import logging
from typing import Dict, Iterable

from ..exceptions import ConfigurationError
from ..MODELS.container_config import ContainerConfig, RunningContainer
from ..MODELS.exec_result import ExecResult
from .log_strategies import log

logger = logging.getLogger(__name__)


def start(config: ContainerConfig) -> RunningContainer:
    """
    Starts the container and records the runtime facts reported by the engine.

    Blocks until the configured readiness condition holds. Then the log
    strategy is attached and, for every exposed port, the host port the
    engine assigned is looked up.

    :param config: Unstarted (or stopped) configuration record.
    :return: The running record, with ``id``, ``mapped_ports`` and ``logs``
             set and the pending ``log_to`` spec consumed.
    :raises ConfigurationError: If the record is already running.
    :raises ReadinessTimeoutError: If the readiness condition times out.
    :raises EngineError: If the engine cannot create or start the container.
    """
    if config.is_running:
        raise ConfigurationError("Container is already running", {"container_id": config.id})

    container = config.container
    container.start()

    accessor = log(config.log_to, container)
    mapped_ports: Dict[int, int] = {port: container.get_mapped_port(port) for port in config.exposed_ports}
    container_id = container.get_container_id()

    fields = config.base_fields()
    fields["log_to"] = None
    running = RunningContainer(**fields, id=container_id, mapped_ports=mapped_ports, logs=accessor)

    logger.info("Container %s running, ports %s", container_id[:12], mapped_ports)
    return running


def stop(config: ContainerConfig) -> ContainerConfig:
    """
    Stops the container and drops the runtime facts from the record.

    Declared and derived fields are kept, the log strategy is restored from
    the declared options, so the result can be started again.

    :param config: Running configuration record.
    :return: The stopped record.
    :raises EngineError: If the container is not running or already gone.
    """
    config.container.stop()

    fields = config.base_fields()
    fields["log_to"] = config.options.log_to
    return ContainerConfig(**fields)


def execute_command(config: ContainerConfig, command: Iterable[str]) -> ExecResult:
    """
    Executes a command in the running container.

    :param config: Running configuration record.
    :param command: Program and arguments, e.g. ``["whoami"]``.
    :return: Exit code, stdout and stderr.
    :raises EngineError: If the container is not running or the exec fails.
    """
    return config.container.exec_in_container(command)
