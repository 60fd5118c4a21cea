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
Variable substitution in parsed fixture values.

Supported forms, applied to string scalars only (mapping keys, numbers and
YAML comments are left alone):

- ``${VAR}``: the value of VAR, which must be set
- ``${VAR:-default}``: ``default`` when VAR is unset or empty
- ``${VAR:+alternative}``: ``alternative`` when VAR is set and non-empty, else empty
- ``${VAR:?message}``: the value of VAR, or a ``ConfigurationError`` carrying ``message``
"""
import re
from typing import Any, Mapping, Tuple

from ..exceptions import ConfigurationError

_PLACEHOLDER = re.compile(r"\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::(?P<op>[-+?])(?P<arg>[^}]*))?\}")


def interpolate(value: str, variables: Mapping[str, str], where: str = "") -> str:
    """
    Substitutes the placeholders in a single string.

    :param value: String that may contain placeholders.
    :param variables: Variables available for substitution.
    :param where: Dotted key path of the value, reported in errors.
    :raises ConfigurationError: If a required variable is not set.
    """
    def replace(match: re.Match) -> str:
        name, op, arg = match.group("name"), match.group("op"), match.group("arg")
        current = variables.get(name)

        if op == "-":
            return current if current else arg
        if op == "+":
            return arg if current else ""
        if op == "?" and not current:
            raise ConfigurationError(arg or f"Variable {name} is required",
                                     {"variable": name, "key": where})
        if current is None:
            raise ConfigurationError(f"Variable {name} is not set", {"variable": name, "key": where})
        return current

    return _PLACEHOLDER.sub(replace, value)


def interpolate_values(data: Any, variables: Mapping[str, str], path: Tuple[str, ...] = ()) -> Any:
    """
    Returns a copy of parsed YAML data with every string scalar interpolated.
    """
    if isinstance(data, str):
        return interpolate(data, variables, ".".join(path))
    if isinstance(data, dict):
        return {key: interpolate_values(item, variables, path + (str(key),)) for key, item in data.items()}
    if isinstance(data, list):
        return [interpolate_values(item, variables, path + (str(index),)) for index, item in enumerate(data)]
    return data
