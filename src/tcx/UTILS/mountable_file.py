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
Resolution of bundled resources and host paths to files that can be mounted
into, or copied into, a container.
"""
import os
import sys
from typing import Iterable, List, Optional

from ..config import get_settings
from ..exceptions import ConfigurationError


class MountableFile:
    """
    An absolute host path that exists and can be handed to the engine.
    """
    def __init__(self, host_path: str, description: str):
        """
        :param host_path: Absolute path on the host.
        :param description: How the path was requested, used in log and error messages.
        """
        self.host_path = host_path
        self.description = description

    def __repr__(self) -> str:
        return f"MountableFile({self.host_path!r})"

    @classmethod
    def for_host_path(cls, path: str) -> "MountableFile":
        """
        Resolves a host path relative to the current directory.

        :param path: Relative or absolute host path.
        :raises ConfigurationError: If nothing exists at that path.
        """
        host_path = os.path.abspath(os.path.expanduser(path))
        if not os.path.exists(host_path):
            raise ConfigurationError(f"Host path does not exist: {path}", {"path": host_path})
        return cls(host_path, f"host path {path}")

    @classmethod
    def for_classpath_resource(cls, resource_path: str, roots: Optional[Iterable[str]] = None) -> "MountableFile":
        """
        Looks a bundled resource up on the resource path: the directories of
        ``TCX_RESOURCE_PATH`` first, then the directories on ``sys.path``.

        :param resource_path: Path of the resource relative to a resource root.
        :param roots: Directories to search instead of the default resource path.
        :raises ConfigurationError: If no root contains the resource.
        """
        relative = resource_path.lstrip("/")
        search = list(roots) if roots is not None else resource_roots()
        for root in search:
            candidate = os.path.join(root, relative)
            if os.path.exists(candidate):
                return cls(os.path.abspath(candidate), f"resource {resource_path}")
        raise ConfigurationError(
            f"Resource not found on the resource path: {resource_path}",
            {"searched": len(search)},
        )


def resource_roots() -> List[str]:
    """
    Directories searched for bundled resources, in lookup order.
    """
    roots = list(get_settings().resource_path)
    for entry in sys.path:
        root = entry or os.getcwd()
        if os.path.isdir(root) and root not in roots:
            roots.append(root)
    return roots
