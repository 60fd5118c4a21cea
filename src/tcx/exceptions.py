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
Exceptions raised by tcx.

Exception Hierarchy:
    TcxError (base)
    ├── ConfigurationError - Invalid declared configuration or directive
    ├── ReadinessTimeoutError - Wait condition not met before its timeout
    └── EngineError - Container engine operation failed
        └── EngineUnavailableError - Container engine cannot be reached

Errors are always surfaced to the caller; nothing in tcx logs and swallows them.
"""
from typing import Any, Dict, Optional


class TcxError(Exception):
    """
    Base exception for all tcx errors.

    Attributes:
        message: Human-readable error description
        details: Additional context (container id, port, path, ...)
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({detail_str})"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the exception for logging or CLI output."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(TcxError):
    """
    Raised when a declared configuration or directive is invalid.

    Detected synchronously, before any engine state is touched, so the
    caller's existing record stays valid.
    """


class ReadinessTimeoutError(TcxError):
    """
    Raised when a readiness condition is not met within its startup timeout.

    The container may still be running; callers should stop it explicitly.
    """

    def __init__(
        self,
        message: str,
        timeout: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if timeout is not None:
            details["timeout"] = timeout
        super().__init__(message, details)
        self.timeout = timeout


class EngineError(TcxError):
    """
    Raised when a container engine operation (create, start, stop, exec,
    network creation) fails. The underlying SDK error is chained.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if operation:
            details["operation"] = operation
        super().__init__(message, details)
        self.operation = operation


class EngineUnavailableError(EngineError):
    """Raised when the container engine cannot be reached at all."""
