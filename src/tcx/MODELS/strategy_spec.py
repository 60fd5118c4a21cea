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
Models for readiness and log strategy specs, and the descriptors they resolve to.
"""
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import ConfigurationError


class StrategySpec(BaseModel):
    """
    A tagged strategy request, e.g. ``{"strategy": "log", "message": "ready"}``.
    Every key other than ``strategy`` is an option for the strategy.
    """
    model_config = ConfigDict(extra="allow", frozen=True)

    strategy: str

    @classmethod
    def coerce(cls, spec: Union["StrategySpec", Mapping[str, Any]]) -> "StrategySpec":
        """
        Accepts a spec model or a plain mapping.

        :raises ConfigurationError: If the mapping has no ``strategy`` tag.
        """
        if isinstance(spec, StrategySpec):
            return spec
        try:
            return cls.model_validate(dict(spec))
        except (TypeError, ValueError, ValidationError) as e:
            raise ConfigurationError(f"Invalid strategy spec {spec!r}: {e}") from e

    def options(self) -> Dict[str, Any]:
        """Returns the strategy options, without the tag."""
        return dict(self.model_extra or {})


class BasicCredentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    password: str


class HttpWaitOptions(BaseModel):
    """
    Options of the ``http`` readiness strategy.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str
    port: Optional[int] = Field(default=None, ge=0)
    status_codes: List[int] = [200]
    tls: bool = False
    read_timeout: Optional[float] = Field(default=None, gt=0)
    basic_credentials: Optional[BasicCredentials] = None
    startup_timeout: Optional[float] = Field(default=None, gt=0)


class LogWaitOptions(BaseModel):
    """
    Options of the ``log`` readiness strategy.
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    message: str
    times: int = Field(default=1, ge=1)
    startup_timeout: Optional[float] = Field(default=None, gt=0)


class HealthWaitOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    startup_timeout: Optional[float] = Field(default=None, gt=0)


class WaitDescriptor(BaseModel):
    """
    Records which readiness condition was configured on a container.
    Empty when no condition was configured. Strategies registered outside
    tcx may add their own fields.
    """
    model_config = ConfigDict(extra="allow", frozen=True)

    wait_for_http: Optional[HttpWaitOptions] = None
    wait_for_healthcheck: Optional[bool] = None
    wait_for_log_message: Optional[str] = None

    def is_empty(self) -> bool:
        """True when no readiness condition was configured."""
        return not self.model_dump(exclude_none=True)
