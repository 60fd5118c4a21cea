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
Images built from a Dockerfile by the container engine.
"""
import logging
import os
import uuid
from typing import Dict, Optional

import docker
from docker.errors import APIError, BuildError

from ..exceptions import ConfigurationError, EngineError
from ..RUNNERS.docker_client import MANAGED_LABEL

logger = logging.getLogger(__name__)


class DockerfileImage:
    """
    A Dockerfile whose image is built on first use and reused afterwards.
    The build context is the directory holding the Dockerfile unless given.
    """
    def __init__(self,
                 docker_file: str,
                 context: Optional[str] = None,
                 tag: Optional[str] = None,
                 build_args: Optional[Dict[str, str]] = None):
        """
        Initializes the image source.

        :param docker_file: Path to the Dockerfile, relative to the current directory.
        :param context: Build context directory.
        :param tag: Tag for the built image, generated when omitted.
        :param build_args: Values for ARG instructions.
        :raises ConfigurationError: If the Dockerfile does not exist.
        """
        self.docker_file = os.path.abspath(docker_file)
        if not os.path.isfile(self.docker_file):
            raise ConfigurationError(f"Dockerfile not found: {docker_file}", {"path": self.docker_file})

        self.context = os.path.abspath(context) if context else os.path.dirname(self.docker_file)
        self.tag = tag or f"localhost/tcx/{uuid.uuid4().hex[:12]}:latest"
        self.build_args = build_args or {}
        self.image_id: Optional[str] = None

    def __repr__(self) -> str:
        return f"DockerfileImage({self.docker_file!r})"

    def build(self, client: docker.DockerClient) -> str:
        """
        Builds the image once.

        :param client: Docker client.
        :return: The image id.
        :raises EngineError: If the build fails.
        """
        if self.image_id:
            return self.image_id

        logger.info("Building image %s from %s", self.tag, self.docker_file)
        try:
            image, build_log = client.images.build(
                path=self.context,
                dockerfile=os.path.relpath(self.docker_file, self.context),
                tag=self.tag,
                rm=True,
                labels={MANAGED_LABEL: "true"},
                buildargs=self.build_args or None,
            )
        except (BuildError, APIError) as e:
            raise EngineError(
                f"Failed to build image from {self.docker_file}: {e}",
                operation="build",
            ) from e

        for entry in build_log:
            line = entry.get("stream", "").rstrip()
            if line:
                logger.debug("[build %s] %s", self.tag, line)

        self.image_id = image.id
        return self.image_id
