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
Command Line Interface for DBTK.
"""
import logging
import click
from ..config import load_settings
from ..errors import DBTestkitError
from ..PARSERS.compose_parser import ComposeParser
from ..EXTRACTORS.credentials_extractor import extract_credentials
from ..GENERATORS.registry import GENERATORS
from ..MANAGERS.health_waiter import ContainerHealthWaiter
from ..MANAGERS.schema_verifier import DatabaseVerifier

STATUS_ICONS = {"SUCCESS": "✅", "WARNING": "⚠️ ", "ERROR": "❌"}


def _fail(ctx, error):
    click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def _load_credentials(ctx):
    """
    Parses the compose file and extracts the test-database credentials.
    """
    document = ComposeParser().parse(ctx.obj['file'])
    return extract_credentials(document)


@click.group()
@click.option('--file', '-f', default=None, help='Compose file path (default: docker-compose.yml)')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, file, verbose):
    """
    DBTK - Database Test Kit.

    Reads the test database credentials from docker-compose.yml and generates
    the files other projects use to reach those databases.
    """
    ctx.ensure_object(dict)
    try:
        settings = load_settings()
    except DBTestkitError as e:
        _fail(ctx, e)

    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    ctx.obj['settings'] = settings
    ctx.obj['file'] = file or settings.compose_file


@cli.command()
@click.argument('target', type=click.Choice(['all'] + list(GENERATORS)), default='all')
@click.option('--out', '-o', default=None, help='Output path (single target only)')
@click.pass_context
def generate(ctx, target, out):
    """Generate Taskfile, constants and connection profiles"""
    if out and target == 'all':
        raise click.UsageError("--out can only be used with a single target")

    settings = ctx.obj['settings']
    names = list(GENERATORS) if target == 'all' else [target]
    try:
        credentials = _load_credentials(ctx)
        for name in names:
            path = GENERATORS[name].generate(credentials, out or settings.output_path(name))
            click.echo(f"Generated {name}: {path}")
    except DBTestkitError as e:
        _fail(ctx, e)


@cli.command()
@click.option('--show-password', is_flag=True, help='Print passwords in clear text')
@click.pass_context
def show(ctx, show_password):
    """Print the extracted credentials"""
    try:
        credentials = _load_credentials(ctx)
    except DBTestkitError as e:
        _fail(ctx, e)

    click.echo(f"{'DATABASE':10} {'HOST':12} {'PORT':6} {'USER':15} {'PASSWORD':15} {'NAME':20}")
    click.echo("-" * 80)
    for entity in ('customer', 'internal'):
        password = getattr(credentials, f"{entity}_password")
        if not show_password:
            password = '*' * len(password)
        click.echo(
            f"{entity:10} {getattr(credentials, f'{entity}_host'):12} {getattr(credentials, f'{entity}_port'):6} "
            f"{getattr(credentials, f'{entity}_user'):15} {password:15} {getattr(credentials, f'{entity}_db'):20}"
        )


@cli.command()
@click.argument('container')
@click.argument('timeout', type=int, required=False)
@click.pass_context
def wait(ctx, container, timeout):
    """Wait for a container to become healthy"""
    settings = ctx.obj['settings']
    waiter = ContainerHealthWaiter(
        container,
        timeout=settings.wait_timeout if timeout is None else timeout,
        docker_bin=settings.docker_bin,
    )
    outcome = waiter.wait()
    if outcome.ready:
        click.echo(f"✅ {outcome.message}")
    else:
        click.echo(f"Error: {outcome.message}", err=True)
    ctx.exit(int(outcome.status))


@cli.command()
@click.pass_context
def verify(ctx):
    """Verify test database schemas and tables"""
    try:
        credentials = _load_credentials(ctx)
    except DBTestkitError as e:
        _fail(ctx, e)

    click.echo(f"Customer DB: {credentials.customer_user}@{credentials.customer_host}:"
               f"{credentials.customer_port}/{credentials.customer_db}")
    click.echo(f"Internal DB: {credentials.internal_user}@{credentials.internal_host}:"
               f"{credentials.internal_port}/{credentials.internal_db}")

    report = DatabaseVerifier(credentials, docker_bin=ctx.obj['settings'].docker_bin).run()
    for result in report.results:
        click.echo(f"{STATUS_ICONS[result.status.value]} {result.message}")

    click.echo("")
    if report.passed:
        click.echo("✅ All database health checks passed!")
    else:
        click.echo("❌ Some database health checks failed", err=True)
        ctx.exit(1)


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
