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
Command Line Interface for tcx.
"""
import logging
import time

import click

from ..exceptions import TcxError
from ..MANAGERS.container_builder import from_fixture
from ..MANAGERS.container_manager import start, stop
from ..MANAGERS.network_manager import create_network, remove_network
from ..PARSERS.fixture_parser import FixtureParser

logger = logging.getLogger(__name__)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Log engine operations')
@click.pass_context
def cli(ctx, verbose):
    """
    tcx - throwaway containers for tests.

    Runs the container described by a fixture file until interrupted.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option('--file', '-f', 'fixture_file', required=True, type=click.Path(exists=True, dir_okay=False),
              help='Fixture file path')
@click.option('--logs', is_flag=True, help='Print captured logs on shutdown')
@click.pass_context
def up(ctx, fixture_file, logs):
    """Start the container described by a fixture file."""
    network = None
    config = None
    try:
        fixture = FixtureParser().parse(fixture_file)
        if fixture.network is not None:
            network = create_network(fixture.network)
            click.echo(f"Network {network.name} created.")
        config = from_fixture(fixture, network)
        config = start(config)

        click.echo(f"Container {config.id[:12]} started on {config.host}.")
        for port, host_port in sorted(config.mapped_ports.items()):
            click.echo(f"  {port} -> {config.host}:{host_port}")
        click.echo("Running... Press Ctrl+C to stop.")
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        click.echo("\nStopping container...")
    except TcxError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    finally:
        _shutdown(config, network, logs)


def _shutdown(config, network, print_logs):
    try:
        if config is not None and config.container.is_created():
            if print_logs and config.is_running and config.logs is not None:
                click.echo(config.get_logs())
            stop(config)
            click.echo("Container stopped.")
        if network is not None:
            remove_network(network)
            click.echo(f"Network {network.name} removed.")
    except TcxError as e:
        click.echo(f"Error during shutdown: {e}", err=True)
        raise click.exceptions.Exit(1) from e


@cli.group()
def network():
    """Manage networks."""


@network.command('create')
@click.option('--ipv6', is_flag=True, help='Enable IPv6')
@click.option('--driver', default=None, help='Network driver, defaults to the engine default')
def network_create(ipv6, driver):
    """Create a network for containers to share."""
    try:
        info = create_network({"ipv6": ipv6, "driver": driver})
    except TcxError as e:
        click.echo(f"Error: {e}", err=True)
        raise click.exceptions.Exit(1) from e
    click.echo(f"{'NAME':40} {'DRIVER':10} {'IPV6':5}")
    click.echo(f"{info.name:40} {info.driver:10} {str(info.ipv6).lower():5}")


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
