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
Volume handling for containers: bind mounts of bundled resources and host
paths, and one-shot file copies into the container.

Every operator validates its directive and resolves the source path before
touching the container handle, so a rejected directive leaves the caller's
record usable.
"""
import logging
from typing import Any, Mapping, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from ..exceptions import ConfigurationError
from ..MODELS.container_config import ContainerConfig
from ..MODELS.mount_directives import BindMode, ClasspathResourceMapping, CopySourceType, FileCopy, FilesystemBind
from ..UTILS.mountable_file import MountableFile

logger = logging.getLogger(__name__)

DirectiveT = TypeVar("DirectiveT", bound=BaseModel)

_DOCKER_MODES = {
    BindMode.READ_ONLY: "ro",
    BindMode.READ_WRITE: "rw",
}


def resolve_bind_mode(mode: Union[BindMode, str]) -> str:
    """
    Maps an access mode to the Docker mount mode.

    :param mode: ``read-only`` or ``read-write``.
    :return: ``ro`` or ``rw``.
    :raises ConfigurationError: For any other value.
    """
    try:
        return _DOCKER_MODES[BindMode(mode)]
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid bind mode {mode!r}",
            {"valid": [m.value for m in BindMode]},
        ) from e


def _coerce(model: Type[DirectiveT], directive: Union[DirectiveT, Mapping[str, Any]]) -> DirectiveT:
    if isinstance(directive, model):
        return directive
    try:
        return model.model_validate(dict(directive))
    except (TypeError, ValueError, ValidationError) as e:
        raise ConfigurationError(f"Invalid {model.__name__} directive {directive!r}: {e}") from e


def _require_unstarted(config: ContainerConfig, operation: str) -> None:
    if config.is_running:
        raise ConfigurationError(f"{operation} must be called before the container is started")


def map_classpath_resource(config: ContainerConfig,
                           mapping: Union[ClasspathResourceMapping, Mapping[str, Any]]) -> ContainerConfig:
    """
    Binds a bundled resource to a container path. Call before starting the container.

    :param config: Unstarted configuration record.
    :param mapping: ``resource_path``, ``container_path`` and ``mode``.
    :return: A new record owning the updated handle.
    :raises ConfigurationError: On an invalid mode, unknown resource or started container.
    """
    mapping = _coerce(ClasspathResourceMapping, mapping)
    _require_unstarted(config, "map_classpath_resource")
    mode = resolve_bind_mode(mapping.mode)
    mountable = MountableFile.for_classpath_resource(mapping.resource_path)

    container = config.container.with_file_system_bind(mountable.host_path, mapping.container_path, mode)
    logger.debug("Mapped %s to %s (%s)", mountable.description, mapping.container_path, mode)
    return config.model_copy(update={"container": container, "mounts": [*config.mounts, mapping]})


def bind_filesystem(config: ContainerConfig,
                    bind: Union[FilesystemBind, Mapping[str, Any]]) -> ContainerConfig:
    """
    Binds a host path to a container path. Call before starting the container.

    :param config: Unstarted configuration record.
    :param bind: ``host_path``, ``container_path`` and ``mode``.
    :return: A new record owning the updated handle.
    :raises ConfigurationError: On an invalid mode, missing host path or started container.
    """
    bind = _coerce(FilesystemBind, bind)
    _require_unstarted(config, "bind_filesystem")
    mode = resolve_bind_mode(bind.mode)
    mountable = MountableFile.for_host_path(bind.host_path)

    container = config.container.with_file_system_bind(mountable.host_path, bind.container_path, mode)
    logger.debug("Bound %s to %s (%s)", mountable.description, bind.container_path, mode)
    return config.model_copy(update={"container": container, "mounts": [*config.mounts, bind]})


def copy_file_to_container(config: ContainerConfig,
                           copy: Union[FileCopy, Mapping[str, Any]]) -> ContainerConfig:
    """
    Copies a file from a bundled resource or a host path into the container.
    Before start the copy happens when the container is created; on a
    running container it happens immediately.

    :param config: Configuration record, started or not.
    :param copy: ``path``, ``container_path`` and ``type``
                 (``classpath-resource`` or ``host-path``).
    :return: A new record of the same kind owning the updated handle.
    :raises ConfigurationError: On an unknown source type or missing source.
    """
    copy = _coerce(FileCopy, copy)
    try:
        source_type = CopySourceType(copy.type)
    except ValueError as e:
        raise ConfigurationError(
            f"Unknown copy source type {copy.type!r}",
            {"valid": [t.value for t in CopySourceType]},
        ) from e

    if source_type == CopySourceType.CLASSPATH_RESOURCE:
        mountable = MountableFile.for_classpath_resource(copy.path)
    else:
        mountable = MountableFile.for_host_path(copy.path)

    container = config.container.with_copy_file_to_container(mountable, copy.container_path)
    return config.model_copy(update={"container": container, "copies": [*config.copies, copy]})
