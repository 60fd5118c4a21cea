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
Runtime settings, read from TCX_* environment variables and an optional .env file.
"""
import os
from enum import Enum
from functools import lru_cache
from typing import Dict, List, Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

ENV_PREFIX = "TCX_"


class PullPolicy(str, Enum):
    """
    When images named by a container configuration are pulled.
    """
    MISSING = "missing"
    ALWAYS = "always"


class Settings(BaseModel):
    """
    Settings shared by every container and network tcx manages.
    """
    docker_host: Optional[str] = None
    host_override: Optional[str] = None

    startup_timeout: float = Field(default=60.0, gt=0)
    poll_interval: float = Field(default=0.1, gt=0)
    stop_timeout: int = Field(default=10, ge=0)

    resource_path: List[str] = []
    pull_policy: PullPolicy = PullPolicy.MISSING

    @field_validator("resource_path", mode="before")
    @classmethod
    def _split_resource_path(cls, value):
        if isinstance(value, str):
            return [p for p in value.split(os.pathsep) if p]
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, env_file: Optional[str] = ".env") -> "Settings":
        """
        Builds settings from the environment.

        :param environ: Variables to read, defaults to os.environ.
        :param env_file: .env file whose values are used when the variable
                         is not set in ``environ``. ``None`` disables it.
        :return: Validated settings.
        :raises ConfigurationError: If a variable has an invalid value.
        """
        merged: Dict[str, Optional[str]] = {}
        if env_file and os.path.exists(env_file):
            merged.update(dotenv_values(env_file))
        merged.update(os.environ if environ is None else environ)

        values = {}
        for name in cls.model_fields:
            raw = merged.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw

        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid tcx settings: {e}") from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Returns the process-wide settings, reading the environment once."""
    return Settings.from_env()


def reset_settings() -> None:
    """Forgets cached settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
