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
Log strategy resolution, dispatched on the spec's ``strategy`` tag like
readiness strategies. A resolver attaches a log consumer to a started
container and returns an accessor for the captured output, or None.
"""
import logging
import re
from typing import Any, Callable, Dict, Mapping, Optional, Union

from ..MODELS.container_config import LogAccessor
from ..MODELS.strategy_spec import StrategySpec
from ..RUNNERS.container_handle import ContainerHandle
from ..RUNNERS.log_consumers import StringLogConsumer

logger = logging.getLogger(__name__)

LogResolver = Callable[[StrategySpec, ContainerHandle], Optional[LogAccessor]]

_LOG_STRATEGIES: Dict[str, LogResolver] = {}

_NEWLINES = re.compile(r"\n+")


def register_log_strategy(tag: str) -> Callable[[LogResolver], LogResolver]:
    """
    Decorator registering a resolver for a log strategy tag.
    """
    def decorator(resolver: LogResolver) -> LogResolver:
        _LOG_STRATEGIES[tag] = resolver
        return resolver
    return decorator


def registered_log_strategies() -> Dict[str, LogResolver]:
    return dict(_LOG_STRATEGIES)


def log(spec: Union[StrategySpec, Mapping[str, Any], None], container: ContainerHandle) -> Optional[LogAccessor]:
    """
    Attaches the log capture described by ``spec`` to ``container``.

    :return: Zero-argument accessor returning the output captured so far,
             or None when no (known) strategy was requested.
    """
    if spec is None:
        return None

    spec = StrategySpec.coerce(spec)
    resolver = _LOG_STRATEGIES.get(spec.strategy)
    if resolver is None:
        logger.debug("No log strategy registered for %r, output not captured", spec.strategy)
        return None
    return resolver(spec, container)


@register_log_strategy("string")
def _log_to_string(spec: StrategySpec, container: ContainerHandle) -> LogAccessor:
    consumer = StringLogConsumer()
    container.follow_output(consumer)

    def accessor() -> str:
        return _NEWLINES.sub("\n", consumer.to_utf8_string())

    return accessor
