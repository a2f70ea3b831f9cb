"""Tests for the login and execute workflows."""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from awsconnect.config.schemas import AwsConnectConfig, RetryPolicy
from awsconnect.exceptions import AwsConnectConfigurationError, CredentialsExpiringImminently, NoRunningTasks
from awsconnect.launcher import SessionLauncher
from awsconnect.models import PartialTarget
from awsconnect.types import TaskStatus
from awsconnect.workflow import ExecWorkflow


@pytest.fixture(autouse=True)
def aws_installed():
    """Pretend the AWS CLI is on PATH."""
    with patch("awsconnect.launcher.find_executable", return_value="/usr/local/bin/aws"):
        yield


@pytest.fixture
def build_workflow(make_broker, make_chooser, fake_runner):
    """Build a workflow over fakes; returns (workflow, collaborators)."""

    def build(catalog=None, config=None, broker=None, chooser=None, **kwargs):
        parts = {
            "broker": broker or make_broker(),
            "chooser": chooser or make_chooser(),
            "runner": fake_runner,
            "catalog": catalog,
            "session_factory": MagicMock(),
            "catalog_calls": [],
            "sleeps": [],
        }

        def catalog_factory(session_factory, credentials, region):
            parts["catalog_calls"].append((session_factory, credentials, region))
            return parts["catalog"]

        workflow = ExecWorkflow(
            config=config or AwsConnectConfig(default_region="eu-west-1", retry=RetryPolicy.immediate(3)),
            broker=parts["broker"],
            session_factory=parts["session_factory"],
            chooser=parts["chooser"],
            launcher=SessionLauncher(fake_runner, environ={"PATH": "/usr/bin"}),
            catalog_factory=catalog_factory,
            sleep=parts["sleeps"].append,
            **kwargs,
        )
        return workflow, parts

    return build


class TestLogin:
    """Test the login workflow."""

    def test_login_named_profile(self, build_workflow):
        """Test minting credentials for the requested profile."""
        workflow, parts = build_workflow()

        credentials = workflow.login("dev")

        assert credentials.profile == "dev"
        assert parts["broker"].logins == ["dev"]
        assert parts["broker"].consoles == []

    def test_login_with_console(self, build_workflow):
        """Test that --console also opens the web console."""
        workflow, parts = build_workflow()

        workflow.login("dev", console=True)

        assert parts["broker"].consoles == ["dev"]

    def test_login_default_profile(self, build_workflow):
        """Test that the configured default profile is used."""
        workflow, parts = build_workflow(config=AwsConnectConfig(default_profile="ops"))

        workflow.login()

        assert parts["broker"].logins == ["ops"]


class TestResolveRegion:
    """Test region precedence."""

    def test_option_wins(self, build_workflow, make_credentials):
        """Test that --region beats every other source."""
        workflow, _ = build_workflow()

        assert workflow.resolve_region("us-east-1", make_credentials(region="eu-central-1")) == "us-east-1"

    def test_config_default(self, build_workflow, make_credentials):
        """Test that the configured region beats the exported one."""
        workflow, _ = build_workflow()

        assert workflow.resolve_region(None, make_credentials(region="eu-central-1")) == "eu-west-1"

    def test_exported_region(self, build_workflow, make_credentials):
        """Test the region exported by the vault."""
        workflow, _ = build_workflow(config=AwsConnectConfig())

        assert workflow.resolve_region(None, make_credentials(region="eu-central-1")) == "eu-central-1"

    @patch("awsconnect.workflow.profile_region", return_value="ap-southeast-2")
    def test_profile_region(self, mock_profile_region, build_workflow, make_credentials):
        """Test the profile's region from the shared AWS config."""
        workflow, _ = build_workflow(config=AwsConnectConfig())

        assert workflow.resolve_region(None, make_credentials(profile="dev")) == "ap-southeast-2"
        mock_profile_region.assert_called_once_with("dev")

    @patch("awsconnect.workflow.profile_region", return_value=None)
    def test_no_region(self, mock_profile_region, build_workflow, make_credentials):
        """Test that a missing region is a configuration error."""
        workflow, _ = build_workflow(config=AwsConnectConfig())

        with pytest.raises(AwsConnectConfigurationError, match="No region configured for profile 'dev'"):
            workflow.resolve_region(None, make_credentials())


class TestExecute:
    """Test the execute workflow end to end over fakes."""

    def test_single_target(self, build_workflow, make_catalog, make_task):
        """Test cluster 'prod' with one running task and container 'app'."""
        catalog = make_catalog(listings=[[make_task("t1")]])
        workflow, parts = build_workflow(catalog=catalog)

        status = workflow.execute(PartialTarget(cluster="prod"), profile="dev")

        assert status == 0
        assert parts["broker"].logins == ["dev"]
        argv, env = parts["runner"].started[0]
        assert argv[argv.index("--container") + 1] == "app"
        assert argv[argv.index("--task") + 1].endswith("/t1")
        assert env["AWS_ACCESS_KEY_ID"] == "AKIAEXAMPLEKEY"

    def test_catalog_uses_minted_credentials(self, build_workflow, make_catalog, make_task):
        """Test that discovery authenticates with the same credentials as the session."""
        workflow, parts = build_workflow(catalog=make_catalog(listings=[[make_task("t1")]]))

        workflow.execute(PartialTarget(cluster="prod"), profile="dev", region="eu-central-1")

        ((session_factory, credentials, region),) = parts["catalog_calls"]
        assert session_factory is parts["session_factory"]
        assert credentials.profile == "dev"
        assert region == "eu-central-1"

    def test_prompted_task(self, build_workflow, make_catalog, make_task, make_chooser):
        """Test two running tasks with the operator picking t2."""
        catalog = make_catalog(listings=[[make_task("t1"), make_task("t2")]])
        workflow, parts = build_workflow(catalog=catalog, chooser=make_chooser("(t2)"))

        workflow.execute(PartialTarget(cluster="prod"), profile="dev")

        argv = parts["runner"].started[0][0]
        assert argv[argv.index("--task") + 1].endswith("/t2")

    def test_retry_policy_from_config(self, build_workflow, make_catalog, make_task):
        """Test that the configured budget and sleep drive polling."""
        catalog = make_catalog(listings=[[make_task("t1", status=TaskStatus.PENDING)]])
        config = AwsConnectConfig(
            default_region="eu-west-1",
            retry=RetryPolicy(max_attempts=3, initial_delay=0.5, multiplier=2.0),
        )
        workflow, parts = build_workflow(catalog=catalog, config=config)

        with pytest.raises(NoRunningTasks):
            workflow.execute(PartialTarget(cluster="prod"), profile="dev")

        assert catalog.fetches == 3
        assert parts["sleeps"] == [0.5, 1.0]
        assert parts["runner"].started == []

    def test_custom_command(self, build_workflow, make_catalog, make_task):
        """Test that the command after -- reaches the transport."""
        workflow, parts = build_workflow(catalog=make_catalog(listings=[[make_task("t1")]]))

        workflow.execute(PartialTarget(cluster="prod"), profile="dev", command=["rails", "console"])

        argv = parts["runner"].started[0][0]
        assert argv[argv.index("--command") + 1] == "rails console"

    def test_expiring_credentials(self, build_workflow, make_catalog, make_task, make_broker, make_credentials):
        """Test that nearly expired credentials stop before launch."""
        broker = make_broker(make_credentials(expires_in=timedelta(seconds=10)))
        workflow, parts = build_workflow(catalog=make_catalog(listings=[[make_task("t1")]]), broker=broker)

        with pytest.raises(CredentialsExpiringImminently):
            workflow.execute(PartialTarget(cluster="prod"), profile="dev")

        assert parts["runner"].started == []

    def test_build_context(self, build_workflow):
        """Test the per-run context."""
        workflow, _ = build_workflow(interactive=False)

        context, credentials = workflow.build_context("dev", None)

        assert context.profile == "dev"
        assert context.region == "eu-west-1"
        assert context.interactive is False
        assert credentials.profile == "dev"
