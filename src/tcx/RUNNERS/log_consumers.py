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
Capture of container output: consumers that receive decoded log text and the
background follower that feeds them from the engine's log stream.
"""
import codecs
import logging
import threading
from typing import List, Optional

from docker.errors import DockerException
from docker.models.containers import Container

logger = logging.getLogger(__name__)


class LogConsumer:
    """
    Receives container output (stdout and stderr interleaved) as it is produced.
    """
    def accept(self, text: str) -> None:
        raise NotImplementedError


class StringLogConsumer(LogConsumer):
    """
    Accumulates everything it receives in memory.
    """
    def __init__(self):
        self._chunks: List[str] = []
        self._lock = threading.Lock()

    def accept(self, text: str) -> None:
        with self._lock:
            self._chunks.append(text)

    def to_utf8_string(self) -> str:
        """Returns all output received so far."""
        with self._lock:
            return "".join(self._chunks)


class LogFollower:
    """
    Follows a container's log stream on a daemon thread until the stream ends,
    which happens when the container stops.
    """
    def __init__(self, container: Container, consumer: LogConsumer):
        """
        :param container: The started Docker container.
        :param consumer: Consumer fed with decoded output.
        """
        self.container = container
        self.consumer = consumer
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "LogFollower":
        self._thread = threading.Thread(
            target=self._follow,
            name=f"tcx-logs-{self.container.short_id}",
            daemon=True,
        )
        self._thread.start()
        return self

    def join(self, timeout: float = 1.0) -> None:
        if self._thread:
            self._thread.join(timeout=timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _follow(self) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            for chunk in self.container.logs(stream=True, follow=True, stdout=True, stderr=True):
                text = decoder.decode(chunk)
                if text:
                    self.consumer.accept(text)
            tail = decoder.decode(b"", final=True)
            if tail:
                self.consumer.accept(tail)
        except (DockerException, OSError) as e:
            # The stream is cut when the container is removed.
            logger.debug("Log stream of %s closed: %s", self.container.short_id, e)
