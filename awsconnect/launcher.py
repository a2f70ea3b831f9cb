"""
Session launcher.

Starts the remote-exec transport (``aws ecs execute-command``) as a child process
attached to the controlling terminal and supervises it until it exits.

State machine: IDLE -> LAUNCHING -> ATTACHED -> {COMPLETED, FAILED}.

The credentials reach the child through its environment only; the parent's
environment and the filesystem are never touched. While attached, interrupt and
termination signals are forwarded to the child and the launcher keeps waiting, so
the session can close its remote side cleanly.
"""

import os
import signal
import subprocess
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any

from awsconnect.any.log import get_logger
from awsconnect.any.protocols import ProcessRunner
from awsconnect.any.utils import find_executable
from awsconnect.config.schemas import TransportConfig
from awsconnect.exceptions import CredentialsExpiringImminently, TransportUnavailable
from awsconnect.models import CredentialSet, LaunchSpec, ResolvedTarget, utc_now
from awsconnect.types import LaunchState

LOGGER = get_logger("awsconnect.launcher")

DEFAULT_COMMAND = ("/usr/bin/env", "bash")
DEFAULT_FORWARD_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)


def exit_status(returncode: int) -> int:
    """Map a Popen return code to a shell exit status (killed by signal N -> 128 + N)."""
    if returncode < 0:
        return 128 + (-returncode)
    return returncode


class SubprocessRunner:
    """ProcessRunner backed by subprocess.Popen with the terminal's stdio inherited."""

    def start(self, argv: Sequence[str], env: Mapping[str, str]) -> subprocess.Popen:
        return subprocess.Popen(list(argv), env=dict(env), stdin=None, stdout=None, stderr=None)

    def wait(self, handle: subprocess.Popen) -> int:
        return handle.wait()

    def forward_signal(self, handle: subprocess.Popen, signum: int) -> None:
        if handle.poll() is None:
            handle.send_signal(signum)


class SessionLauncher:
    """
    Launches and supervises one remote-exec session.

    Example:
    -------
        ```python
        launcher = SessionLauncher(SubprocessRunner())
        status = launcher.launch(target, credentials)
        sys.exit(status)
        ```

    """

    def __init__(
        self,
        runner: ProcessRunner,
        transport_binary: str = "aws",
        default_command: Sequence[str] = DEFAULT_COMMAND,
        safety_margin: timedelta = timedelta(seconds=60),
        forward_signals: Iterable[int] = DEFAULT_FORWARD_SIGNALS,
        clock: Callable[[], datetime] = utc_now,
        environ: Mapping[str, str] | None = None,
    ):
        """
        Initialize launcher.

        Args:
        ----
            runner: Child-process capability
            transport_binary: AWS CLI executable name or path
            default_command: Command run in the container when none is given
            safety_margin: Minimum credential lifetime left at launch time
            forward_signals: Signals relayed to the child while attached
            clock: Source of "now" for the expiry check
            environ: Base environment for the child (defaults to os.environ)

        """
        self._runner = runner
        self.transport_binary = transport_binary
        self.default_command = tuple(default_command)
        self.safety_margin = safety_margin
        self.forward_signals = tuple(forward_signals)
        self._clock = clock
        self._environ = environ
        self.state = LaunchState.IDLE

    @classmethod
    def from_config(cls, runner: ProcessRunner, config: TransportConfig, **kwargs: Any) -> "SessionLauncher":
        """Create a launcher from the transport section of the config."""
        return cls(
            runner,
            transport_binary=config.binary,
            default_command=config.command,
            safety_margin=timedelta(seconds=config.safety_margin_seconds),
            forward_signals=config.signal_numbers(),
            **kwargs,
        )

    def _transition(self, state: LaunchState) -> None:
        LOGGER.debug(f"Launcher state: {self.state.value} -> {state.value}")
        self.state = state

    def build_spec(
        self,
        target: ResolvedTarget,
        credentials: CredentialSet,
        command: Sequence[str] | None = None,
        interactive: bool = True,
    ) -> LaunchSpec:
        """Combine target, credentials and transport parameters into a LaunchSpec."""
        return LaunchSpec.build(
            target,
            credentials,
            command=tuple(command) if command else self.default_command,
            interactive=interactive,
            transport_binary=self.transport_binary,
        )

    def launch(
        self,
        target: ResolvedTarget,
        credentials: CredentialSet,
        command: Sequence[str] | None = None,
        interactive: bool = True,
    ) -> int:
        """
        Start the session and block until it ends.

        The target is not re-validated: a task that stopped after resolution surfaces
        as a transport failure, reported through the child's exit status.

        Args:
        ----
            target: Resolved (cluster, task, container) snapshot
            credentials: Credentials exported into the child's environment
            command: Command to run in the container (defaults to the configured shell)
            interactive: Request an interactive session

        Returns:
        -------
            The child's exit status (128 + N if it was killed by signal N)

        Raises:
        ------
            CredentialsExpiringImminently: If credentials expire within the safety margin
            TransportUnavailable: If the transport binary cannot be started

        """
        if self.state is not LaunchState.IDLE:
            raise RuntimeError(f"Launcher already used (state: {self.state.value})")

        now = self._clock()
        if credentials.expires_within(self.safety_margin, now):
            self._transition(LaunchState.FAILED)
            raise CredentialsExpiringImminently(
                f"Credentials for profile '{credentials.profile}' expire at "
                f"{credentials.expires_at.isoformat()}, less than {int(self.safety_margin.total_seconds())}s "
                "from now. Log in again and retry."
            )

        self._transition(LaunchState.LAUNCHING)
        spec = self.build_spec(target, credentials, command=command, interactive=interactive)

        if find_executable(spec.transport_binary) is None:
            self._transition(LaunchState.FAILED)
            raise TransportUnavailable(
                f"Failed to find {spec.transport_binary}. Is the AWS CLI installed and in your PATH?"
            )

        base_env = self._environ if self._environ is not None else os.environ
        LOGGER.info(
            f"Connecting to container '{target.container.name}' in task {target.task.id} "
            f"on cluster {target.cluster.name} ({spec.region})"
        )

        with self._signal_relay() as attach:
            try:
                handle = self._runner.start(spec.argv(), spec.environment(base_env))
            except (FileNotFoundError, PermissionError) as e:
                self._transition(LaunchState.FAILED)
                raise TransportUnavailable(f"Failed to start {spec.transport_binary}: {e}") from e

            attach(handle)
            self._transition(LaunchState.ATTACHED)
            returncode = self._runner.wait(handle)

        status = exit_status(returncode)
        self._transition(LaunchState.COMPLETED if status == 0 else LaunchState.FAILED)
        LOGGER.debug(f"Session ended with exit status {status}")
        return status

    @contextmanager
    def _signal_relay(self) -> Iterator[Callable[[Any], None]]:
        """
        Forward the configured signals to the session while the block runs.

        The handlers go in before the child is started; a signal that arrives
        before the child exists is held and delivered by ``attach(handle)``.
        Previous handlers are restored on exit.
        """
        started: list[Any] = []
        held: list[int] = []

        def relay(signum: int, frame: Any) -> None:
            if not started:
                held.append(signum)
                return
            LOGGER.debug(f"Forwarding signal {signum} to session")
            self._runner.forward_signal(started[0], signum)

        def attach(handle: Any) -> None:
            started.append(handle)
            while held:
                signum = held.pop(0)
                LOGGER.debug(f"Forwarding signal {signum} received while starting")
                self._runner.forward_signal(handle, signum)

        previous: dict[int, Any] = {}
        try:
            for signum in self.forward_signals:
                try:
                    previous[signum] = signal.signal(signum, relay)
                except ValueError:
                    # signal.signal only works in the main thread
                    LOGGER.debug(f"Cannot install handler for signal {signum} outside the main thread")
            yield attach
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)
