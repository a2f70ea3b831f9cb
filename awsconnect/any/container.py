"""
Dependency injection container for awsconnect.

This container wires the vault broker, cloud session factory, operator chooser,
process runner, launcher and workflow from the loaded configuration.
Uses dependency-injector for clean DI; tests override individual providers.
"""

import sys

from dependency_injector import containers, providers

from awsconnect.any.cloud_sessions import Boto3SessionFactory
from awsconnect.config.loaders import load_config
from awsconnect.launcher import SessionLauncher, SubprocessRunner
from awsconnect.prompts import NonInteractiveChooser, QuestionaryChooser
from awsconnect.security.vault import AwsVaultBroker
from awsconnect.workflow import ExecWorkflow


def _is_interactive(no_input: bool) -> bool:
    """Prompts are possible when allowed and stdin is a terminal."""
    return not no_input and sys.stdin.isatty()


def _chooser_selector(interactive: bool) -> str:
    """Return 'interactive' or 'batch' for the chooser Selector provider."""
    return "interactive" if interactive else "batch"


class AwsConnectIoCContainer(containers.DeclarativeContainer):
    """
    Inversion of Control (IoC) container for awsconnect.

    Example:
    -------
        ```python
        from awsconnect.any.container import AwsConnectIoCContainer

        container = AwsConnectIoCContainer()
        container.config.override(providers.Object(load_config(Path("team.yaml"))))

        workflow = container.workflow()
        status = workflow.execute(PartialTarget(cluster="prod"))
        ```

    """

    # Singleton: Configuration (file or defaults); the CLI overrides it with --config
    config = providers.Singleton(load_config)

    # Set from --no-input by the CLI
    no_input = providers.Object(False)

    interactive = providers.Callable(_is_interactive, no_input=no_input)

    # Auto-selects QuestionaryChooser or NonInteractiveChooser
    chooser = providers.Selector(
        providers.Callable(_chooser_selector, interactive=interactive),
        interactive=providers.Factory(QuestionaryChooser),
        batch=providers.Factory(NonInteractiveChooser),
    )

    # Singleton: Credential broker (aws-vault)
    credential_broker = providers.Singleton(AwsVaultBroker.from_config, config=config.provided.vault)

    # Singleton: Cloud session factory (boto3)
    session_factory = providers.Singleton(Boto3SessionFactory)

    process_runner = providers.Factory(SubprocessRunner)

    # Factory: one launcher per session
    launcher = providers.Factory(
        SessionLauncher.from_config,
        runner=process_runner,
        config=config.provided.transport,
    )

    workflow = providers.Factory(
        ExecWorkflow,
        config=config,
        broker=credential_broker,
        session_factory=session_factory,
        chooser=chooser,
        launcher=launcher,
        interactive=interactive,
    )


# Global container instance
container = AwsConnectIoCContainer()


def get_workflow() -> ExecWorkflow:
    """
    Get a workflow wired from the global container.

    Example:
    -------
        ```python
        from awsconnect.any.container import get_workflow

        credentials = get_workflow().login("dev")
        ```

    """
    return container.workflow()


def get_credential_broker() -> AwsVaultBroker:
    """Get the credential broker (singleton)."""
    return container.credential_broker()
