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
Unit tests for log strategies and log consumers.
"""
from unittest.mock import MagicMock

from docker.errors import APIError

from tcx.MANAGERS.log_strategies import log, registered_log_strategies
from tcx.RUNNERS.log_consumers import LogFollower, StringLogConsumer


class TestLog:
    """Tests for log."""

    def test_no_spec(self, handle):
        assert log(None, handle) is None

    def test_unknown_strategy(self, handle):
        assert log({"strategy": "file", "path": "/tmp/out.log"}, handle) is None
        assert "string" in registered_log_strategies()

    def test_string_strategy_captures_output(self, handle, container):
        """Test output is captured and blank lines are collapsed."""
        container.logs.side_effect = lambda stream=False, **kwargs: iter([b"first\n\n\nsec", b"ond\n"])
        handle.start()

        accessor = log({"strategy": "string"}, handle)
        handle._followers[0].join()

        assert accessor() == "first\nsecond\n"


class TestStringLogConsumer:
    """Tests for StringLogConsumer."""

    def test_accumulates(self):
        consumer = StringLogConsumer()
        consumer.accept("a")
        consumer.accept("b\n")
        assert consumer.to_utf8_string() == "ab\n"


class TestLogFollower:
    """Tests for LogFollower."""

    def test_decodes_split_characters(self):
        """Test multi-byte characters split across chunks are decoded whole."""
        container = MagicMock()
        container.short_id = "3f2a9c1e7b5d"
        encoded = "café\n".encode("utf-8")
        container.logs.return_value = iter([encoded[:4], encoded[4:]])
        consumer = StringLogConsumer()

        follower = LogFollower(container, consumer).start()
        follower.join()

        assert consumer.to_utf8_string() == "café\n"
        assert not follower.is_alive()
        container.logs.assert_called_once_with(stream=True, follow=True, stdout=True, stderr=True)

    def test_stream_cut(self):
        """Test a cut stream ends the follower quietly."""
        container = MagicMock()
        container.short_id = "3f2a9c1e7b5d"
        container.logs.side_effect = APIError("container removed")
        consumer = StringLogConsumer()

        follower = LogFollower(container, consumer).start()
        follower.join()

        assert consumer.to_utf8_string() == ""
        assert not follower.is_alive()
