"""boto3 sessions bound to vault-minted credentials."""

import boto3

from awsconnect.any.log import get_logger
from awsconnect.models import CredentialSet

LOGGER = get_logger("awsconnect.any.cloud_sessions")


class Boto3SessionFactory:
    """
    Build boto3 sessions from a CredentialSet.

    Discovery calls authenticate with the same temporary keys the exec session
    later receives, so a profile that can list tasks can also reach them.

    Example:
    -------
        ```python
        ecs = Boto3SessionFactory().create_session(credentials, region="eu-west-1").client("ecs")
        ```

    """

    def create_session(self, credentials: CredentialSet, region: str | None = None) -> boto3.Session:
        """
        Return a session for ``credentials``.

        ``region`` wins over the region the vault exported with the credentials.
        """
        token = credentials.session_token
        chosen_region = region or credentials.region
        LOGGER.debug(f"boto3 session for profile '{credentials.profile}' in {chosen_region or 'the default region'}")
        return boto3.Session(
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key.get_secret_value(),
            aws_session_token=token.get_secret_value() if token is not None else None,
            region_name=chosen_region,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
