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
Readiness strategy resolution.

A readiness spec is a mapping tagged with ``strategy``. The resolver
registered for the tag configures a wait condition on the container handle
and returns a ``WaitDescriptor`` recording what was configured. Unknown tags
(and no spec at all) configure nothing and return an empty descriptor.

New strategies are added without touching the built-in ones::

    @register_wait_strategy("tcp")
    def wait_for_tcp(spec, container):
        container.waiting_for(TcpWaitCondition(...))
        return WaitDescriptor(wait_for_tcp=True)
"""
import logging
from typing import Any, Callable, Dict, Mapping, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from ..exceptions import ConfigurationError
from ..MODELS.strategy_spec import HealthWaitOptions, HttpWaitOptions, LogWaitOptions, StrategySpec, WaitDescriptor
from ..RUNNERS.container_handle import ContainerHandle
from ..RUNNERS.wait_conditions import HealthcheckWaitCondition, HttpWaitCondition, LogMessageWaitCondition

logger = logging.getLogger(__name__)

WaitResolver = Callable[[StrategySpec, ContainerHandle], WaitDescriptor]
OptionsT = TypeVar("OptionsT", bound=BaseModel)

_WAIT_STRATEGIES: Dict[str, WaitResolver] = {}


def register_wait_strategy(tag: str) -> Callable[[WaitResolver], WaitResolver]:
    """
    Decorator registering a resolver for a readiness strategy tag.
    Registering an existing tag replaces its resolver.
    """
    def decorator(resolver: WaitResolver) -> WaitResolver:
        _WAIT_STRATEGIES[tag] = resolver
        return resolver
    return decorator


def registered_wait_strategies() -> Dict[str, WaitResolver]:
    return dict(_WAIT_STRATEGIES)


def wait(spec: Union[StrategySpec, Mapping[str, Any], None], container: ContainerHandle) -> WaitDescriptor:
    """
    Configures the readiness condition described by ``spec`` on ``container``.

    :param spec: Tagged readiness spec, or None.
    :param container: The handle to configure. Must not be started yet for
                      the condition to take effect.
    :return: Descriptor of the configured condition, empty if none was configured.
    :raises ConfigurationError: If a known strategy is missing required options.
    """
    if spec is None:
        return WaitDescriptor()

    spec = StrategySpec.coerce(spec)
    resolver = _WAIT_STRATEGIES.get(spec.strategy)
    if resolver is None:
        logger.debug("No readiness strategy registered for %r, not waiting", spec.strategy)
        return WaitDescriptor()
    return resolver(spec, container)


def parse_options(spec: StrategySpec, model: Type[OptionsT]) -> OptionsT:
    """
    Validates a spec's options against a strategy's options model.

    :raises ConfigurationError: If options are missing or invalid.
    """
    try:
        return model.model_validate(spec.options())
    except ValidationError as e:
        raise ConfigurationError(f"Invalid options for {spec.strategy!r} strategy: {e}") from e


@register_wait_strategy("http")
def _wait_for_http(spec: StrategySpec, container: ContainerHandle) -> WaitDescriptor:
    options = parse_options(spec, HttpWaitOptions)
    credentials = None
    if options.basic_credentials:
        credentials = (options.basic_credentials.username, options.basic_credentials.password)

    container.waiting_for(HttpWaitCondition(
        path=options.path,
        port=options.port,
        status_codes=options.status_codes,
        tls=options.tls,
        read_timeout=options.read_timeout,
        basic_credentials=credentials,
        startup_timeout=options.startup_timeout,
    ))
    return WaitDescriptor(wait_for_http=options)


@register_wait_strategy("health")
def _wait_for_healthcheck(spec: StrategySpec, container: ContainerHandle) -> WaitDescriptor:
    options = parse_options(spec, HealthWaitOptions)
    container.waiting_for(HealthcheckWaitCondition(startup_timeout=options.startup_timeout))
    return WaitDescriptor(wait_for_healthcheck=True)


@register_wait_strategy("log")
def _wait_for_log_message(spec: StrategySpec, container: ContainerHandle) -> WaitDescriptor:
    options = parse_options(spec, LogWaitOptions)
    log_message = f".*{options.message}.*\\n"
    container.waiting_for(LogMessageWaitCondition(
        log_message,
        times=options.times,
        startup_timeout=options.startup_timeout,
    ))
    return WaitDescriptor(wait_for_log_message=log_message)
