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
Parser for container fixture files.

A fixture file is YAML describing one container::

    image: postgres:16
    exposed_ports: [5432]
    env_file: [postgres.env]
    env_vars:
      POSTGRES_PASSWORD: ${PGPASSWORD:-secret}
    wait_for:
      strategy: log
      message: accept connections
    log_to:
      strategy: string
    mounts:
      - type: classpath
        resource_path: test.sql
        container_path: /docker-entrypoint-initdb.d/test.sql
    copies:
      - path: seed.csv
        container_path: /tmp/seed.csv
"""
import logging
import os
import shlex
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import dotenv_values
from pydantic import ValidationError

from ..exceptions import ConfigurationError
from ..MODELS.fixture import Fixture
from ..MODELS.mount_directives import ClasspathResourceMapping, CopySourceType, FileCopy, FilesystemBind
from ..UTILS.string_interpolation import interpolate_values

logger = logging.getLogger(__name__)

KNOWN_KEYS = {
    "image", "docker_file", "exposed_ports", "env_vars", "env_file", "command",
    "network", "network_aliases", "wait_for", "log_to", "mounts", "copies",
}

MOUNT_TYPES = {
    "bind": FilesystemBind,
    "classpath": ClasspathResourceMapping,
}


class FixtureParser:
    """
    Parser for container fixture files.
    """
    def __init__(self, context: Optional[Dict[str, str]] = None):
        """
        Initializes the parser with an optional variable context for interpolation.

        :param context: Variables for ${VAR} interpolation, defaults to the environment.
        """
        self.context = context if context is not None else dict(os.environ)

    def parse(self, fixture_path: str) -> Fixture:
        """
        Parses a fixture file. Relative paths in the fixture (env files,
        host paths, Dockerfile) are resolved against the file's directory.

        :param fixture_path: Path to the fixture file.
        :return: Parsed fixture.
        :raises ConfigurationError: If the file cannot be read or is invalid.
        """
        try:
            with open(fixture_path, "r") as f:
                content = f.read()
        except OSError as e:
            raise ConfigurationError(f"Cannot read fixture {fixture_path}: {e}") from e
        return self.parse_from_string(content, base_dir=os.path.dirname(os.path.abspath(fixture_path)))

    def parse_from_string(self, content: str, base_dir: Optional[str] = None) -> Fixture:
        """
        Parses a fixture from a string.

        :param content: YAML content of the fixture.
        :param base_dir: Directory relative paths are resolved against, defaults to the cwd.
        :return: Parsed fixture.
        :raises ConfigurationError: If a variable is unset or the fixture is invalid.
        """
        base_dir = base_dir or os.getcwd()

        try:
            data = yaml.safe_load(content)
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigurationError(f"Invalid fixture YAML: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError("A fixture must be a YAML mapping")
        data = interpolate_values(data, self.context)

        unknown = sorted(str(k) for k in data if k not in KNOWN_KEYS)
        if unknown:
            raise ConfigurationError(f"Unknown fixture keys: {', '.join(unknown)}")

        env_vars: Dict[str, str] = {}
        for env_file in self._to_list(data.get("env_file"), "env_file"):
            env_vars.update(self._read_env_file(env_file, base_dir))
        env_vars.update(self._string_map(data.get("env_vars"), "env_vars"))

        docker_file = data.get("docker_file")
        if isinstance(docker_file, str):
            docker_file = self._resolve(docker_file, base_dir)

        try:
            return Fixture(
                image_name=data.get("image"),
                docker_file=docker_file,
                exposed_ports=data.get("exposed_ports") or [],
                env_vars=env_vars,
                command=self._command(data.get("command")),
                network=data.get("network"),
                network_aliases=self._to_list(data.get("network_aliases"), "network_aliases") or None,
                wait_for=data.get("wait_for"),
                log_to=data.get("log_to"),
                mounts=[self._mount(m, base_dir) for m in self._items(data.get("mounts"), "mounts")],
                copies=[self._copy(c, base_dir) for c in self._items(data.get("copies"), "copies")],
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid fixture: {e}") from e

    def _mount(self, spec: Dict[str, Any], base_dir: str):
        spec = dict(spec)
        kind = spec.pop("type", "bind")
        model = MOUNT_TYPES.get(kind) if isinstance(kind, str) else None
        if model is None:
            raise ConfigurationError(f"Unknown mount type {kind!r}", {"valid": sorted(MOUNT_TYPES)})
        if model is FilesystemBind and isinstance(spec.get("host_path"), str):
            spec["host_path"] = self._resolve(spec["host_path"], base_dir)
        try:
            return model.model_validate(spec)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {kind} mount: {e}") from e

    def _copy(self, spec: Dict[str, Any], base_dir: str) -> FileCopy:
        spec = dict(spec)
        if spec.get("type", CopySourceType.HOST_PATH.value) == CopySourceType.HOST_PATH.value \
                and isinstance(spec.get("path"), str):
            spec["path"] = self._resolve(spec["path"], base_dir)
        try:
            return FileCopy.model_validate(spec)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid copy: {e}") from e

    def _read_env_file(self, env_file: str, base_dir: str) -> Dict[str, str]:
        path = self._resolve(env_file, base_dir)
        if not os.path.isfile(path):
            raise ConfigurationError(f"env_file {env_file} not found", {"path": path})
        logger.debug("Reading environment from %s", path)
        return {key: value or "" for key, value in dotenv_values(path).items()}

    def _command(self, command: Any) -> Optional[List[str]]:
        if command is None:
            return None
        if isinstance(command, str):
            try:
                return shlex.split(command)
            except ValueError as e:
                raise ConfigurationError(f"Invalid command {command!r}: {e}") from e
        return self._to_list(command, "command")

    @staticmethod
    def _resolve(path: str, base_dir: str) -> str:
        return os.path.normpath(os.path.join(base_dir, os.path.expanduser(path)))

    @staticmethod
    def _string_map(value: Any, key: str) -> Dict[str, str]:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise ConfigurationError(f"'{key}' must be a mapping")
        return {str(k): "" if v is None else str(v) for k, v in value.items()}

    @staticmethod
    def _items(value: Any, key: str) -> List[Dict[str, Any]]:
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
            raise ConfigurationError(f"'{key}' must be a list of mappings")
        return value

    @staticmethod
    def _to_list(value: Any, key: str) -> List[str]:
        """
        Helper to ensure a value is a list of strings.
        """
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, list):
            return [str(v) for v in value]
        raise ConfigurationError(f"'{key}' must be a string or a list")
