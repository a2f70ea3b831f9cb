"""
Credential broker backed by aws-vault.

aws-vault owns credential storage, MFA and SSO; this module only invokes it, parses
what it prints, and tells "not installed" apart from "login rejected".
Credentials are never written to disk and never retried.
"""

import io
import json
import subprocess
from collections.abc import Callable
from datetime import datetime, timedelta

from dotenv import dotenv_values
from pydantic import ValidationError

from awsconnect.any.log import get_logger
from awsconnect.any.utils import find_executable, run_command
from awsconnect.config.schemas import VaultConfig, VaultExportFormat
from awsconnect.exceptions import AuthenticationFailed, CredentialError, VaultUnavailable
from awsconnect.models import CredentialSet, utc_now

LOGGER = get_logger("awsconnect.security.vault")


def _parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp (``2026-10-17T19:00:00Z``)."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


class AwsVaultBroker:
    """
    Exchanges a profile name for temporary credentials via aws-vault.

    Example:
    -------
        ```python
        broker = AwsVaultBroker()
        creds = broker.login("dev")
        print(creds.expires_at)
        ```

    """

    def __init__(
        self,
        binary: str = "aws-vault",
        export_format: VaultExportFormat = VaultExportFormat.JSON,
        timeout_seconds: int = 300,
        default_ttl_seconds: int = 3600,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize broker.

        Args:
        ----
            binary: aws-vault executable name or path
            export_format: Read credentials back as JSON (export) or as an env dump (exec)
            timeout_seconds: Upper bound for a login, including MFA/SSO prompts
            default_ttl_seconds: Assumed lifetime when aws-vault reports no expiry
            clock: Source of "now" for the assumed expiry

        """
        self.binary = binary
        self.export_format = export_format
        self.timeout_seconds = timeout_seconds
        self.default_ttl = timedelta(seconds=default_ttl_seconds)
        self._clock = clock

    @classmethod
    def from_config(cls, config: VaultConfig) -> "AwsVaultBroker":
        """Create a broker from the vault section of the config."""
        return cls(
            binary=config.binary,
            export_format=config.export_format,
            timeout_seconds=config.timeout_seconds,
            default_ttl_seconds=config.default_ttl_seconds,
        )

    def _require_binary(self) -> str:
        path = find_executable(self.binary)
        if path is None:
            raise VaultUnavailable(
                f"Failed to find {self.binary}. Is it installed and in your PATH?\n"
                "See https://github.com/99designs/aws-vault#installing"
            )
        return path

    def _command(self, binary_path: str, profile: str) -> list[str]:
        if self.export_format is VaultExportFormat.ENV:
            return [binary_path, "exec", profile, "--", "env"]
        return [binary_path, "export", "--format=json", profile]

    def login(self, profile: str) -> CredentialSet:
        """
        Mint temporary credentials for a profile.

        aws-vault's stderr stays on the terminal so MFA and SSO prompts reach the operator.

        Args:
        ----
            profile: Profile name from the shared AWS config

        Returns:
        -------
            CredentialSet bound to its expiry

        Raises:
        ------
            VaultUnavailable: If aws-vault is not installed or cannot be executed
            AuthenticationFailed: If aws-vault exits non-zero or times out
            CredentialError: If the output cannot be parsed

        """
        binary_path = self._require_binary()
        LOGGER.info(f"Requesting credentials for profile '{profile}' from {self.binary}")

        try:
            result = run_command(
                self._command(binary_path, profile),
                check=False,
                passthrough_stderr=True,
                timeout=self.timeout_seconds,
            )
        except (FileNotFoundError, PermissionError) as e:
            raise VaultUnavailable(f"Failed to run {self.binary}: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise AuthenticationFailed(
                f"{self.binary} did not finish logging in to profile '{profile}' within {self.timeout_seconds}s"
            ) from e

        if result.returncode != 0:
            raise AuthenticationFailed(
                f"{self.binary} failed to log in to profile '{profile}' (exit status {result.returncode}).\n"
                f"Check the profile exists and re-authenticate, e.g.: {self.binary} exec {profile} -- true"
            )

        if self.export_format is VaultExportFormat.ENV:
            credentials = self.parse_env(result.stdout, profile)
        else:
            credentials = self.parse_json(result.stdout, profile)

        LOGGER.debug(f"Credentials for '{profile}' expire at {credentials.expires_at.isoformat()}")
        return credentials

    def _expiry(self, raw: str | None, profile: str) -> datetime:
        if not raw:
            LOGGER.warning(f"{self.binary} reported no expiry for '{profile}', assuming {self.default_ttl}")
            return self._clock() + self.default_ttl
        try:
            return _parse_timestamp(raw)
        except ValueError as e:
            raise CredentialError(f"Unreadable credential expiry from {self.binary}: {raw!r}") from e

    def parse_json(self, output: str, profile: str) -> CredentialSet:
        """
        Parse ``aws-vault export --format=json`` output.

        Expected keys: AccessKeyId, SecretAccessKey, SessionToken, Expiration.
        """
        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            raise CredentialError(f"{self.binary} returned output that is not JSON for profile '{profile}'") from e

        if not isinstance(data, dict) or not data.get("AccessKeyId") or not data.get("SecretAccessKey"):
            raise CredentialError(
                f"{self.binary} output for profile '{profile}' is missing AccessKeyId/SecretAccessKey"
            )

        try:
            return CredentialSet(
                profile=profile,
                access_key_id=data["AccessKeyId"],
                secret_access_key=data["SecretAccessKey"],
                session_token=data.get("SessionToken") or None,
                expires_at=self._expiry(data.get("Expiration"), profile),
                region=data.get("Region") or None,
            )
        except ValidationError as e:
            raise CredentialError(f"Invalid credentials from {self.binary} for profile '{profile}'") from e

    def parse_env(self, output: str, profile: str) -> CredentialSet:
        """
        Parse ``aws-vault exec <profile> -- env`` output.

        Only ``AWS_*`` variables are read; everything else in the dump is ignored.
        """
        values = {
            key: value
            for key, value in dotenv_values(stream=io.StringIO(output)).items()
            if key.startswith("AWS_") and value
        }

        if "AWS_ACCESS_KEY_ID" not in values or "AWS_SECRET_ACCESS_KEY" not in values:
            raise CredentialError(f"Failed to find AWS credentials in {self.binary} output for profile '{profile}'")

        try:
            return CredentialSet(
                profile=profile,
                access_key_id=values["AWS_ACCESS_KEY_ID"],
                secret_access_key=values["AWS_SECRET_ACCESS_KEY"],
                session_token=values.get("AWS_SESSION_TOKEN"),
                expires_at=self._expiry(
                    values.get("AWS_CREDENTIAL_EXPIRATION") or values.get("AWS_SESSION_EXPIRATION"), profile
                ),
                region=values.get("AWS_REGION") or values.get("AWS_DEFAULT_REGION"),
            )
        except ValidationError as e:
            raise CredentialError(f"Invalid credentials from {self.binary} for profile '{profile}'") from e

    def open_console(self, profile: str) -> None:
        """
        Open the AWS web console for a profile (``aws-vault login``).

        Raises
        ------
            VaultUnavailable: If aws-vault is not installed
            AuthenticationFailed: If aws-vault exits non-zero

        """
        binary_path = self._require_binary()
        try:
            result = run_command([binary_path, "login", profile], check=False, capture=False)
        except (FileNotFoundError, PermissionError) as e:
            raise VaultUnavailable(f"Failed to run {self.binary}: {e}") from e

        if result.returncode != 0:
            raise AuthenticationFailed(
                f"{self.binary} failed to open the console for profile '{profile}' "
                f"(exit status {result.returncode})"
            )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"AwsVaultBroker(binary='{self.binary}', export_format='{self.export_format.value}')"
