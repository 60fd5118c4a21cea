import random
import string
import pytest
from tcx.exceptions import TcxError
from tcx.PARSERS.fixture_parser import FixtureParser
from tcx.UTILS.string_interpolation import interpolate

KEYS = ["image", "docker_file", "exposed_ports", "env_vars", "env_file", "command",
        "network", "network_aliases", "wait_for", "log_to", "mounts", "copies"]

VALUES = ["alpine:3.19", "[80, 443]", "{A: 1}", "[]", "{}", "~", "-1", "true",
          "{strategy: log}", "[{type: bind}]", "'${X:-y}'", "[[1]]", "\"\""]


def random_string(length):
    return ''.join(random.choice(string.printable) for _ in range(length))


def random_fixture():
    lines = []
    for key in random.sample(KEYS, random.randint(0, len(KEYS))):
        lines.append(f"{key}: {random.choice(VALUES)}")
    return "\n".join(lines)


def test_fuzz_fixture_parser():
    parser = FixtureParser(context={})
    for _ in range(100):
        content = random_string(random.randint(0, 1000))
        try:
            parser.parse_from_string(content)
        except TcxError:
            # Junk must be rejected as a configuration problem, never crash the parser
            pass


def test_fuzz_fixture_structure():
    parser = FixtureParser(context={})
    for _ in range(200):
        try:
            parser.parse_from_string(random_fixture())
        except TcxError:
            pass


def test_fuzz_interpolator():
    for _ in range(100):
        content = random_string(random.randint(0, 1000))
        try:
            interpolate(content, {"HOME": "/root"})
        except TcxError:
            pass


def test_edge_cases_parsers():
    parser = FixtureParser(context={})

    # Minimal fixture
    assert parser.parse_from_string("image: alpine").image_name == "alpine"

    # Comments and whitespace
    assert parser.parse_from_string("# fixture\n\nimage: alpine  \n").image_name == "alpine"

    # Very long command
    fixture = parser.parse_from_string("image: alpine\ncommand: echo " + "a" * 10000)
    assert fixture.command == ["echo", "a" * 10000]

    # Nothing but whitespace is not a fixture
    with pytest.raises(TcxError):
        parser.parse_from_string("   \n\t  ")
