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
Engine-side readiness conditions. A container handle blocks in ``start()``
until its condition reports ready or the startup timeout elapses.
"""
import base64
import http.client
import logging
import re
import ssl
from typing import TYPE_CHECKING, Iterable, Optional, Tuple, Type
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from tenacity import RetryError, Retrying, retry_if_exception_type, retry_if_result, stop_after_delay, wait_fixed

from ..config import get_settings
from ..exceptions import ConfigurationError, EngineError, ReadinessTimeoutError

if TYPE_CHECKING:
    from .container_handle import ContainerHandle

logger = logging.getLogger(__name__)

DEFAULT_READ_TIMEOUT = 5.0


class WaitCondition:
    """
    Base class for readiness conditions.

    Subclasses implement ``is_ready``; exceptions listed in
    ``transient_errors`` count as "not ready yet" instead of failing the wait.
    """
    transient_errors: Tuple[Type[BaseException], ...] = ()

    def __init__(self, startup_timeout: Optional[float] = None):
        """
        :param startup_timeout: Seconds to wait, defaults to TCX_STARTUP_TIMEOUT.
        """
        self.startup_timeout = startup_timeout

    def describe(self) -> str:
        return self.__class__.__name__

    def is_ready(self, target: "ContainerHandle") -> bool:
        raise NotImplementedError

    def wait_until_ready(self, target: "ContainerHandle") -> None:
        """
        Polls the condition until it holds.

        :param target: The started container handle.
        :raises ReadinessTimeoutError: If the timeout elapses first.
        :raises EngineError: If the container stops running while waiting.
        """
        settings = get_settings()
        timeout = self.startup_timeout or settings.startup_timeout
        retrying = Retrying(
            stop=stop_after_delay(timeout),
            wait=wait_fixed(settings.poll_interval),
            retry=retry_if_result(lambda ready: not ready) | retry_if_exception_type(self.transient_errors),
        )

        logger.debug("Waiting up to %ss for %s", timeout, self.describe())
        try:
            retrying(self._check, target)
        except RetryError as e:
            raise ReadinessTimeoutError(
                f"Timed out waiting for {self.describe()}",
                timeout=timeout,
                details={"container_id": target.get_container_id()},
            ) from e
        logger.info("Container %s ready (%s)", target.get_container_id()[:12], self.describe())

    def _check(self, target: "ContainerHandle") -> bool:
        if not target.is_running():
            raise EngineError(
                f"Container exited while waiting for {self.describe()}",
                operation="wait",
                details={"container_id": target.get_container_id()},
            )
        return self.is_ready(target)


class HttpWaitCondition(WaitCondition):
    """
    Ready once an HTTP(S) request to a published port answers with an accepted status.
    """
    transient_errors = (OSError, http.client.HTTPException)

    def __init__(
        self,
        path: str,
        port: Optional[int] = None,
        status_codes: Iterable[int] = (200,),
        tls: bool = False,
        read_timeout: Optional[float] = None,
        basic_credentials: Optional[Tuple[str, str]] = None,
        startup_timeout: Optional[float] = None,
    ):
        """
        :param path: Request path, e.g. ``/health``.
        :param port: Exposed container port to request, defaults to the first exposed port.
        :param status_codes: Status codes that count as ready.
        :param tls: Use https; certificates are not verified.
        :param read_timeout: Per-request timeout in seconds.
        :param basic_credentials: ``(username, password)`` for basic auth.
        :param startup_timeout: Seconds to keep probing.
        """
        super().__init__(startup_timeout)
        self.path = path if path.startswith("/") else "/" + path
        self.port = port
        self.status_codes = frozenset(status_codes)
        self.tls = tls
        self.read_timeout = read_timeout or DEFAULT_READ_TIMEOUT
        self.basic_credentials = basic_credentials

    def describe(self) -> str:
        return f"http {self.path} -> {sorted(self.status_codes)}"

    def url_for(self, target: "ContainerHandle") -> str:
        port = self.port
        if port is None:
            exposed = target.get_exposed_ports()
            if not exposed:
                raise ConfigurationError("http wait strategy needs a port or an exposed port", {"path": self.path})
            port = exposed[0]
        scheme = "https" if self.tls else "http"
        return f"{scheme}://{target.get_host()}:{target.get_mapped_port(port)}{self.path}"

    def is_ready(self, target: "ContainerHandle") -> bool:
        request = Request(self.url_for(target))
        if self.basic_credentials:
            username, password = self.basic_credentials
            token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
            request.add_header("Authorization", f"Basic {token}")

        context = None
        if self.tls:
            context = ssl.create_default_context()
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE

        try:
            with urlopen(request, timeout=self.read_timeout, context=context) as response:
                status = response.status
        except HTTPError as e:
            status = e.code
        except URLError as e:
            logger.debug("%s not reachable yet: %s", request.full_url, e.reason)
            raise

        logger.debug("%s answered %s", request.full_url, status)
        return status in self.status_codes


class HealthcheckWaitCondition(WaitCondition):
    """
    Ready once the engine reports the image's own healthcheck as healthy.
    """
    def describe(self) -> str:
        return "healthcheck"

    def is_ready(self, target: "ContainerHandle") -> bool:
        return target.health_status() == "healthy"


class LogMessageWaitCondition(WaitCondition):
    """
    Ready once ``times`` output lines, each including its trailing newline,
    fully match ``regex``.
    """
    def __init__(self, regex: str, times: int = 1, startup_timeout: Optional[float] = None):
        super().__init__(startup_timeout)
        try:
            self.pattern = re.compile(regex)
        except re.error as e:
            raise ConfigurationError(f"Invalid log message pattern {regex!r}: {e}") from e
        self.regex = regex
        self.times = times

    def describe(self) -> str:
        return f"log message {self.regex!r} x{self.times}"

    def matching_lines(self, text: str) -> int:
        return sum(1 for line in text.splitlines(keepends=True) if self.pattern.fullmatch(line))

    def is_ready(self, target: "ContainerHandle") -> bool:
        return self.matching_lines(target.get_logs()) >= self.times
