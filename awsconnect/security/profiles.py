"""
Profile selection.

Picks the vault profile for an invocation: the one asked for, else the configured
default, else the operator's choice among the profiles in the shared AWS config.
"""

from collections.abc import Sequence

from awsconnect.any.log import get_logger
from awsconnect.any.protocols import UserChooser
from awsconnect.exceptions import AmbiguousTarget, AwsConnectConfigurationError

LOGGER = get_logger("awsconnect.security.profiles")


def list_profiles() -> list[str]:
    """
    List profile names from the shared AWS config and credentials files.

    The ``default`` profile is left out; it is rarely the one an operator wants to
    reach a workload with.
    """
    import boto3

    profiles = sorted(p for p in boto3.Session().available_profiles if p != "default")
    LOGGER.debug(f"Loaded {len(profiles)} AWS profiles")
    return profiles


def profile_region(profile: str) -> str | None:
    """Region configured for a profile in the shared AWS config, if any."""
    import boto3
    from botocore.exceptions import ProfileNotFound

    try:
        return boto3.Session(profile_name=profile).region_name
    except ProfileNotFound:
        LOGGER.debug(f"Profile '{profile}' not in the shared AWS config")
        return None


def select_profile(
    requested: str | None,
    chooser: UserChooser,
    default: str | None = None,
    available: Sequence[str] | None = None,
) -> str:
    """
    Decide which profile to use.

    Args:
    ----
        requested: Profile given on the command line
        chooser: Used when neither requested nor default is set
        default: Configured default profile
        available: Profiles to choose from (defaults to ``list_profiles()``)

    Returns:
    -------
        Profile name

    Raises:
    ------
        AwsConnectConfigurationError: If a choice is needed and no profiles exist, or
            several exist but prompting is disabled

    """
    if requested:
        LOGGER.debug(f"Using profile option value: {requested}")
        return requested

    if default:
        LOGGER.debug(f"Using configured default profile: {default}")
        return default

    options = sorted(available) if available is not None else list_profiles()
    if not options:
        raise AwsConnectConfigurationError(
            "No AWS profiles found. Configure one in ~/.aws/config or pass --profile."
        )
    if len(options) == 1:
        return options[0]

    try:
        selection = chooser.choose("Pick your environment", options)
    except AmbiguousTarget as e:
        raise AwsConnectConfigurationError(
            f"No profile given and prompting is disabled; pass --profile (one of: {', '.join(options)})"
        ) from e
    profile = options[selection]
    LOGGER.debug(f"Selected profile option value: {profile}")
    return profile
