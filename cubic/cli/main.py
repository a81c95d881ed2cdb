"""
Main CLI entry point for Cubic.

Headless access to the launcher backend, driving the same instance store
the desktop front end uses.
"""

import asyncio
import sys
from typing import Awaitable, Callable, Optional, TypeVar

import click
import msgspec

from cubic.controllers.app_controller import AppController
from cubic.controllers.instance_store import InstanceStore
from cubic.models.instance import Instance, Loader
from cubic.models.operation_result import OperationResult
from cubic.models.settings import Settings
from cubic.utils.app_info import AppInfo
from cubic.utils.exception import GatewayError

T = TypeVar("T")


def _controller(backend: Optional[str]) -> AppController:
    app_info = AppInfo()
    settings = Settings.load(app_info)
    if backend:
        settings.backend_command = backend.split()
    return AppController(app_info, settings)


def _run_with_store(
    backend: Optional[str], action: Callable[[InstanceStore], Awaitable[T]]
) -> T:
    controller = _controller(backend)

    async def run() -> T:
        try:
            await controller.connect()
            return await action(controller.store)
        finally:
            await controller.shutdown()

    try:
        return asyncio.run(run())
    except GatewayError as e:
        click.secho(f"✗ {e}", fg="red", err=True)
        sys.exit(1)


def _report_failure(result: OperationResult) -> None:
    click.secho(f"✗ {result.status.value}: {result.describe()}", fg="red", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=AppInfo().app_version, prog_name="Cubic")
@click.option(
    "--backend",
    default=None,
    help="Backend command line, overriding the one in settings.json.",
)
@click.pass_context
def cli(ctx: click.Context, backend: Optional[str]) -> None:
    """Cubic - Minecraft launcher CLI

    Headless tools for listing and creating instances.
    """
    ctx.ensure_object(dict)
    ctx.obj["backend"] = backend


@cli.command("list-instances")
@click.option("--json", "as_json", is_flag=True, help="Print the instances as JSON.")
@click.pass_context
def list_instances(ctx: click.Context, as_json: bool) -> None:
    """List the instances known to the backend."""

    async def action(store: InstanceStore) -> tuple[OperationResult, list[Instance]]:
        result = await store.load_instances()
        return result, list(store.instances)

    result, instances = _run_with_store(ctx.obj["backend"], action)
    if not result.ok:
        _report_failure(result)

    if as_json:
        click.echo(msgspec.json.encode(instances).decode())
        return
    if not instances:
        click.echo("No instances.")
    for instance in instances:
        state = "downloaded" if instance.downloaded else "not downloaded"
        click.echo(
            f"{instance.name}\t{instance.loader.value}\t{instance.version}\t{state}"
        )


@cli.command("add-instance")
@click.argument("name")
@click.option(
    "--loader",
    type=click.Choice([loader.value for loader in Loader]),
    default=Loader.VANILLA.value,
    show_default=True,
)
@click.option("--version", "version", required=True, help="Minecraft version.")
@click.option(
    "--arg",
    "custom_args",
    multiple=True,
    help="Extra launch argument; repeat for several.",
)
@click.pass_context
def add_instance(
    ctx: click.Context,
    name: str,
    loader: str,
    version: str,
    custom_args: tuple[str, ...],
) -> None:
    """Create a new instance called NAME."""
    instance = Instance.create(name, loader, version, list(custom_args))

    async def action(store: InstanceStore) -> OperationResult:
        return await store.add_instance(instance)

    result = _run_with_store(ctx.obj["backend"], action)
    if not result.ok:
        _report_failure(result)
    click.secho(f"✓ Instance '{name}' saved", fg="green")


if __name__ == "__main__":
    cli()
