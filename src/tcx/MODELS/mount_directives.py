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
Models for mount and copy directives attached to a container before it starts.
"""
from enum import Enum

from pydantic import BaseModel, ConfigDict


class BindMode(str, Enum):
    """
    Access mode of a bind mount inside the container.
    """
    READ_ONLY = "read-only"
    READ_WRITE = "read-write"


class CopySourceType(str, Enum):
    """
    Where the source of a one-shot file copy is looked up.
    """
    CLASSPATH_RESOURCE = "classpath-resource"
    HOST_PATH = "host-path"


class ClasspathResourceMapping(BaseModel):
    """
    Binds a bundled resource (found on the resource path) to a container path.
    """
    model_config = ConfigDict(frozen=True)

    resource_path: str
    container_path: str
    mode: str = BindMode.READ_ONLY.value


class FilesystemBind(BaseModel):
    """
    Binds a host file or directory to a container path.
    """
    model_config = ConfigDict(frozen=True)

    host_path: str
    container_path: str
    mode: str = BindMode.READ_ONLY.value


class FileCopy(BaseModel):
    """
    Copies a single file or directory into the container.
    """
    model_config = ConfigDict(frozen=True)

    path: str
    container_path: str
    type: str = CopySourceType.HOST_PATH.value
