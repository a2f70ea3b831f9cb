"""
awsconnect command line.

Commands:
    login    Mint temporary credentials for a profile (optionally open the web console)
    execute  Resolve a running container and open a shell (or run a command) in it
    help     Show this help

Every awsconnect error is printed as ``Error: <message>`` on stderr and mapped to the
error's exit code; after a session ran, the session's own exit status is returned.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from dependency_injector import providers
from rich.console import Console
from rich.markup import escape

from awsconnect import __version__
from awsconnect.any.container import container
from awsconnect.any.log import configure_logging, get_logger
from awsconnect.config.loaders import load_config
from awsconnect.exceptions import AwsConnectError
from awsconnect.models import PartialTarget

LOGGER = get_logger("awsconnect.cli")

app = typer.Typer(
    name="awsconnect",
    help="Open a shell in a running ECS container using aws-vault credentials.",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)

PROFILE_HELP = "aws-vault profile to use (prompted for when omitted)"


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Turn awsconnect errors and interrupts into exit codes."""
    try:
        yield
    except AwsConnectError as e:
        LOGGER.debug(f"{type(e).__name__}: {e}")
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(code=e.exit_code) from e
    except KeyboardInterrupt as e:
        err_console.print("Interrupted", soft_wrap=True)
        raise typer.Exit(code=130) from e


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"awsconnect {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr."),
    config_path: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: $AWSCONNECT_CONFIG, .awsconnect.yaml, ~/.config/awsconnect/config.yaml).",
        dir_okay=False,
    ),
    version: bool | None = typer.Option(
        None,
        "--version",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Open a shell in a running ECS container using aws-vault credentials."""
    configure_logging("DEBUG" if verbose else None)
    if config_path is not None:
        with _handle_errors():
            container.config.override(providers.Object(load_config(config_path)))


@app.command()
def login(
    profile: str | None = typer.Option(None, "--profile", "-p", "--environment", "-e", help=PROFILE_HELP),
    console_login: bool = typer.Option(False, "--console", help="Also open the AWS web console."),
) -> None:
    """Log in to a profile with aws-vault."""
    with _handle_errors():
        credentials = container.workflow().login(profile, console=console_login)

    # Profile and expiry only; the secrets stay in memory
    console.print(
        f"Logged in to [bold]{escape(credentials.profile)}[/bold], "
        f"credentials expire at {credentials.expires_at.isoformat()}",
        soft_wrap=True,
    )


@app.command()
def execute(
    profile: str | None = typer.Option(None, "--profile", "-p", "--environment", "-e", help=PROFILE_HELP),
    region: str | None = typer.Option(None, "--region", "-r", help="AWS region (default: config, then profile)."),
    cluster: str | None = typer.Option(None, "--cluster", "-c", help="Cluster name or ARN."),
    service: str | None = typer.Option(None, "--service", "-s", help="Only consider tasks of this service."),
    choose_service: bool = typer.Option(False, "--choose-service", help="Pick the service from a list."),
    task: str | None = typer.Option(None, "--task", "-t", help="Task id or ARN."),
    container_name: str | None = typer.Option(None, "--container", help="Container name."),
    no_input: bool = typer.Option(False, "--no-input", help="Never prompt; fail when a choice is needed."),
    command: list[str] | None = typer.Argument(None, help="Command to run in the container, after --."),
) -> None:
    """Open a shell (or run COMMAND) in a running container."""
    if service and choose_service:
        raise typer.BadParameter("Use either --service or --choose-service, not both.")

    container.no_input.override(providers.Object(no_input))
    partial = PartialTarget(
        cluster=cluster,
        service="" if choose_service else service,
        task=task,
        container=container_name,
    )

    with _handle_errors():
        status = container.workflow().execute(partial, profile=profile, region=region, command=command or None)

    raise typer.Exit(code=status)


@app.command("help")
def help_command(ctx: typer.Context) -> None:
    """Show this help."""
    typer.echo((ctx.parent or ctx).get_help())


if __name__ == "__main__":
    app()
