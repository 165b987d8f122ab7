import logging

import click
from rich.logging import RichHandler
from rich.table import Table

from .errors import OpsError
from .provisioner import FixtureProvisioner, console
from .release import ReleasePipeline
from .services.config_loader import ConfigLoader

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)

logger = logging.getLogger("dumbrouter_ops")


def _load_config():
    try:
        config_loader = ConfigLoader()
        return config_loader, config_loader.load(config_loader.resolve_path())
    except OpsError as exc:
        raise click.ClickException(str(exc)) from exc


def _configure_logging(config_loader, config):
    try:
        verbose = config_loader.verbose(config)
    except OpsError as exc:
        raise click.ClickException(str(exc)) from exc

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    log_file = config.get("log_file")
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)
    return verbose


def _build_provisioner():
    config_loader, config = _load_config()
    _configure_logging(config_loader, config)
    try:
        return FixtureProvisioner(settings=config_loader.fixture_settings(config))
    except OpsError as exc:
        raise click.ClickException(str(exc)) from exc


def _fail(exc: Exception) -> int:
    if isinstance(exc, OpsError):
        console.print(f"[bold red]Error:[/bold red] {exc}")
        logger.error(str(exc))
    else:
        console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
        logger.exception("Unexpected error")
    return 1


@click.command()
@click.argument("instance_id", nargs=-1, required=True)
def make_dummy_server(instance_id):
    """Replace and start the dummy HTTP server fixture INSTANCE_ID."""
    provisioner = _build_provisioner()
    try:
        provisioner.provision("".join(instance_id))
    except KeyboardInterrupt:
        console.print("[bold red]Operation cancelled by user.[/bold red]")
        raise SystemExit(1)
    except Exception as exc:
        raise SystemExit(_fail(exc))
    raise SystemExit(0)


@click.command()
@click.argument("instance_id", nargs=-1, required=True)
def remove_dummy_server(instance_id):
    """Remove the dummy HTTP server fixture INSTANCE_ID if it exists."""
    provisioner = _build_provisioner()
    try:
        if provisioner.teardown("".join(instance_id)):
            console.print("[green]Fixture removed.[/green]")
        else:
            console.print("[dim]No such fixture; nothing to remove.[/dim]")
    except Exception as exc:
        raise SystemExit(_fail(exc))
    raise SystemExit(0)


@click.command()
def list_dummy_servers():
    """List dummy HTTP server fixtures known to the container runtime."""
    provisioner = _build_provisioner()
    try:
        fixtures = provisioner.list_fixtures()
    except Exception as exc:
        raise SystemExit(_fail(exc))

    table = Table("Container", "State", "Ports")
    for fixture in fixtures:
        table.add_row(fixture.container_name, fixture.state, fixture.ports)
    console.print(table)
    raise SystemExit(0)


@click.command()
def build_release():
    """Build the router image for every platform and push it to the registry."""
    config_loader, config = _load_config()
    verbose = _configure_logging(config_loader, config)
    try:
        pipeline = ReleasePipeline(settings=config_loader.release_settings(config), verbose=verbose)
    except OpsError as exc:
        raise click.ClickException(str(exc)) from exc

    try:
        pipeline.build_and_publish()
    except KeyboardInterrupt:
        console.print("[bold red]Operation cancelled by user.[/bold red]")
        raise SystemExit(1)
    except Exception as exc:
        raise SystemExit(_fail(exc))
    raise SystemExit(0)
