"""
Command workflows.

The sequential orchestration behind ``login`` and ``execute``:
profile -> credentials -> region -> catalog -> resolve -> launch.

Credentials are minted before discovery because the catalog's own read calls
authenticate with them; the same CredentialSet then goes to the launcher.
"""

from collections.abc import Callable, Sequence
from typing import Any

from awsconnect.any.log import get_logger
from awsconnect.any.protocols import ClusterCatalog, CloudSessionFactory, CredentialBroker, UserChooser
from awsconnect.cal.ecs import EcsClusterCatalog
from awsconnect.config.schemas import AwsConnectConfig
from awsconnect.exceptions import AwsConnectConfigurationError
from awsconnect.launcher import SessionLauncher
from awsconnect.models import CredentialSet, InvocationContext, PartialTarget
from awsconnect.resolver import TargetResolver
from awsconnect.security.profiles import profile_region, select_profile

LOGGER = get_logger("awsconnect.workflow")

CatalogFactory = Callable[[CloudSessionFactory, CredentialSet, str], ClusterCatalog]


class ExecWorkflow:
    """Runs the login and execute commands against injected collaborators."""

    def __init__(
        self,
        config: AwsConnectConfig,
        broker: CredentialBroker,
        session_factory: CloudSessionFactory,
        chooser: UserChooser,
        launcher: SessionLauncher,
        catalog_factory: CatalogFactory = EcsClusterCatalog.from_credentials,
        sleep: Callable[[float], None] | None = None,
        interactive: bool = True,
    ):
        self.config = config
        self._broker = broker
        self._session_factory = session_factory
        self._chooser = chooser
        self._launcher = launcher
        self._catalog_factory = catalog_factory
        self._sleep = sleep
        self.interactive = interactive

    def select_profile(self, requested: str | None) -> str:
        return select_profile(requested, self._chooser, default=self.config.default_profile)

    def login(self, profile: str | None = None, console: bool = False) -> CredentialSet:
        """
        Mint credentials for a profile; optionally open the web console too.

        Nothing secret is returned to the terminal; callers print the profile and expiry.
        """
        name = self.select_profile(profile)
        credentials = self._broker.login(name)
        if console:
            self._broker.open_console(name)
        return credentials

    def resolve_region(self, requested: str | None, credentials: CredentialSet) -> str:
        """
        Decide the region: option, config default, vault export, then profile config.

        Raises
        ------
            AwsConnectConfigurationError: If no source provides a region

        """
        region = (
            requested
            or self.config.default_region
            or credentials.region
            or profile_region(credentials.profile)
        )
        if not region:
            raise AwsConnectConfigurationError(
                f"No region configured for profile '{credentials.profile}'. Pass --region or set default_region."
            )
        return region

    def build_context(self, profile: str | None, region: str | None) -> tuple[InvocationContext, CredentialSet]:
        name = self.select_profile(profile)
        credentials = self._broker.login(name)
        context = InvocationContext(
            profile=name,
            region=self.resolve_region(region, credentials),
            interactive=self.interactive,
        )
        return context, credentials

    def execute(
        self,
        partial: PartialTarget,
        profile: str | None = None,
        region: str | None = None,
        command: Sequence[str] | None = None,
    ) -> int:
        """
        Resolve a target and run a session in it.

        Returns
        -------
            The session's exit status

        """
        context, credentials = self.build_context(profile, region)
        LOGGER.debug(f"Invocation context: profile={context.profile} region={context.region}")

        catalog = self._catalog_factory(self._session_factory, credentials, context.region)
        resolver_kwargs: dict[str, Any] = {"retry_policy": self.config.retry}
        if self._sleep is not None:
            resolver_kwargs["sleep"] = self._sleep
        resolver = TargetResolver(catalog, self._chooser, **resolver_kwargs)

        target = resolver.resolve(partial)
        return self._launcher.launch(target, credentials, command=command)
