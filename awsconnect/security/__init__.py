"""Credential vault and profile handling."""

from awsconnect.security.profiles import list_profiles, profile_region, select_profile
from awsconnect.security.vault import AwsVaultBroker

__all__ = [
    "AwsVaultBroker",
    "list_profiles",
    "profile_region",
    "select_profile",
]
