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
Unit tests for the fixture parser.
"""
import os

import pytest

from tcx.exceptions import ConfigurationError
from tcx.MODELS.mount_directives import ClasspathResourceMapping, FilesystemBind
from tcx.PARSERS.fixture_parser import FixtureParser
from tcx.UTILS.string_interpolation import interpolate, interpolate_values

POSTGRES_FIXTURE = """
image: postgres:16
exposed_ports: [5432]
env_vars:
  POSTGRES_PASSWORD: ${PGPASSWORD:-secret}
  POSTGRES_DB: app
wait_for:
  strategy: log
  message: accept connections
log_to:
  strategy: string
mounts:
  - type: classpath
    resource_path: test.sql
    container_path: /docker-entrypoint-initdb.d/test.sql
  - type: bind
    host_path: data
    container_path: /data
    mode: read-write
copies:
  - path: seed.csv
    container_path: /tmp/seed.csv
"""


class TestFixtureParser:
    """Tests for FixtureParser."""

    def test_parse_full_fixture(self, tmp_path):
        """Test every section of a fixture is read."""
        parser = FixtureParser(context={})
        fixture = parser.parse_from_string(POSTGRES_FIXTURE, base_dir=str(tmp_path))

        assert fixture.image_name == "postgres:16"
        assert fixture.exposed_ports == [5432]
        assert fixture.env_vars == {"POSTGRES_PASSWORD": "secret", "POSTGRES_DB": "app"}
        assert fixture.wait_for.strategy == "log"
        assert fixture.wait_for.options() == {"message": "accept connections"}
        assert fixture.log_to.strategy == "string"

        classpath, bind = fixture.mounts
        assert isinstance(classpath, ClasspathResourceMapping)
        assert classpath.mode == "read-only"
        assert isinstance(bind, FilesystemBind)
        assert bind.host_path == str(tmp_path / "data")
        assert bind.mode == "read-write"

        assert fixture.copies[0].path == str(tmp_path / "seed.csv")
        assert fixture.copies[0].type == "host-path"

    def test_interpolation_from_context(self):
        parser = FixtureParser(context={"PGPASSWORD": "from-env"})
        fixture = parser.parse_from_string(POSTGRES_FIXTURE)
        assert fixture.env_vars["POSTGRES_PASSWORD"] == "from-env"

    def test_unset_variable(self):
        parser = FixtureParser(context={})
        with pytest.raises(ConfigurationError) as excinfo:
            parser.parse_from_string("image: ${IMAGE}")
        assert excinfo.value.details == {"variable": "IMAGE", "key": "image"}

    def test_unset_variable_in_comment_is_ignored(self):
        fixture = FixtureParser(context={}).parse_from_string(
            "# override with ${IMAGE}\nimage: alpine:3.19  # or ${IMAGE}\n")
        assert fixture.image_name == "alpine:3.19"

    def test_unset_variable_reports_nested_key(self):
        parser = FixtureParser(context={})
        with pytest.raises(ConfigurationError) as excinfo:
            parser.parse_from_string("image: alpine:3.19\nenv_vars:\n  TOKEN: ${TOKEN}\n")
        assert excinfo.value.details == {"variable": "TOKEN", "key": "env_vars.TOKEN"}

    def test_env_file(self, tmp_path):
        """Test env files are read in order and explicit env_vars win."""
        (tmp_path / "base.env").write_text("A=1\nB=base\n")
        (tmp_path / "local.env").write_text("B=local\nC=3\n")
        fixture_file = tmp_path / "fixture.yml"
        fixture_file.write_text(
            "image: alpine:3.19\n"
            "env_file: [base.env, local.env]\n"
            "env_vars:\n"
            "  C: explicit\n"
        )
        fixture = FixtureParser(context={}).parse(str(fixture_file))
        assert fixture.env_vars == {"A": "1", "B": "local", "C": "explicit"}

    def test_missing_env_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            FixtureParser(context={}).parse_from_string(
                "image: alpine:3.19\nenv_file: missing.env\n", base_dir=str(tmp_path))

    def test_command_string_split(self):
        fixture = FixtureParser(context={}).parse_from_string(
            "image: alpine:3.19\ncommand: /bin/sh -c 'sleep 1000'\n")
        assert fixture.command == ["/bin/sh", "-c", "sleep 1000"]

    def test_network_and_aliases(self):
        fixture = FixtureParser(context={}).parse_from_string(
            "image: alpine:3.19\nnetwork:\n  driver: bridge\nnetwork_aliases: foo\n")
        assert fixture.network.driver == "bridge"
        assert fixture.network_aliases == ["foo"]

    def test_docker_file_relative_to_fixture(self, tmp_path):
        fixture = FixtureParser(context={}).parse_from_string(
            "docker_file: build/Dockerfile\n", base_dir=str(tmp_path))
        assert fixture.docker_file == str(tmp_path / "build" / "Dockerfile")

    @pytest.mark.parametrize("content", [
        "",
        "- image: alpine",
        "image: alpine:3.19\ndocker_file: Dockerfile\n",
        "image: alpine:3.19\nports: [80]\n",
        "image: alpine:3.19\nexposed_ports: [http]\n",
        "image: alpine:3.19\nenv_vars: [A=1]\n",
        "image: alpine:3.19\nnetwork_aliases: [foo]\n",
        "image: alpine:3.19\nmounts:\n  - type: tmpfs\n    container_path: /tmp\n",
        "image: alpine:3.19\nmounts: /data\n",
        "image: alpine:3.19\nwait_for: log\n",
        "image: alpine:3.19\ncommand: \"unbalanced\n",
        "image: [unclosed\n",
    ])
    def test_invalid_fixtures(self, content):
        """Test invalid fixtures raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            FixtureParser(context={}).parse_from_string(content)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            FixtureParser().parse(str(tmp_path / "missing.yml"))

    def test_container_options(self, docker_network):
        from tcx.MODELS.network_info import NetworkInfo

        fixture = FixtureParser(context={}).parse_from_string(
            "image: alpine:3.19\nnetwork: {}\nnetwork_aliases: [foo]\n")
        network = NetworkInfo(network=docker_network, name="tcx-test", ipv6=False, driver="bridge")
        options = fixture.container_options(network)
        assert options.image_name == "alpine:3.19"
        assert options.network is network
        assert options.network_aliases == ["foo"]


class TestInterpolation:
    """Tests for variable substitution in parsed values."""

    def test_forms(self):
        variables = {"SET": "value", "EMPTY": ""}
        assert interpolate("${SET}", variables) == "value"
        assert interpolate("${EMPTY:-fallback}", variables) == "fallback"
        assert interpolate("${UNSET:-fallback}", variables) == "fallback"
        assert interpolate("${SET:+alt}", variables) == "alt"
        assert interpolate("${UNSET:+alt}", variables) == ""
        assert interpolate("${SET:?needed}", variables) == "value"
        assert interpolate("plain $SET", variables) == "plain $SET"

    def test_unset(self):
        with pytest.raises(ConfigurationError) as excinfo:
            interpolate("${UNSET}", {}, "image")
        assert excinfo.value.details == {"variable": "UNSET", "key": "image"}

    def test_required_message(self):
        with pytest.raises(ConfigurationError, match="set a password"):
            interpolate("${EMPTY:?set a password}", {"EMPTY": ""})

    def test_only_string_scalars(self):
        """Test keys and non-string scalars pass through untouched."""
        data = {"${KEY}": "${SET}", "ports": [80, "${SET}"], "flag": True, "none": None}
        assert interpolate_values(data, {"SET": "v"}) == {
            "${KEY}": "v", "ports": [80, "v"], "flag": True, "none": None,
        }

    def test_list_index_in_key_path(self):
        with pytest.raises(ConfigurationError) as excinfo:
            interpolate_values({"copies": [{"path": "${SRC}"}]}, {})
        assert excinfo.value.details["key"] == "copies.0.path"
