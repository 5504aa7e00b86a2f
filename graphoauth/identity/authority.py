"""Authorities and cloud instances for Graph OAuth (graphoauth)."""

from dataclasses import dataclass
from enum import Enum

from graphoauth.core.config import (
    AZURE_CHINA_INSTANCE,
    AZURE_GERMANY_INSTANCE,
    AZURE_PUBLIC_INSTANCE,
    AZURE_US_GOVERNMENT_INSTANCE,
)


class AzureCloudInstance(Enum):
    """National and public clouds hosting the Microsoft identity platform."""

    AZURE_PUBLIC = AZURE_PUBLIC_INSTANCE
    AZURE_CHINA = AZURE_CHINA_INSTANCE
    AZURE_GERMANY = AZURE_GERMANY_INSTANCE
    AZURE_US_GOVERNMENT = AZURE_US_GOVERNMENT_INSTANCE

    def auth_uri(self, authority):
        return f"{self.value}/{authority}/oauth2/v2.0/authorize"

    def token_uri(self, authority):
        return f"{self.value}/{authority}/oauth2/v2.0/token"

    def device_code_uri(self, authority):
        return f"{self.value}/{authority}/oauth2/v2.0/devicecode"

    def admin_consent_uri(self, authority):
        return f"{self.value}/{authority}/adminconsent"

    def issuer(self, authority):
        return f"{self.value}/{authority}/v2.0"

    def openid_configuration_uri(self, authority):
        return f"{self.issuer(authority)}/.well-known/openid-configuration"


WELL_KNOWN_AUTHORITIES = ("common", "organizations", "consumers", "adfs")


@dataclass(frozen=True)
class Authority:
    """Which accounts may sign in; rendered as the path segment of every endpoint."""

    name: str = "common"

    def __str__(self):
        return self.name

    @property
    def tenant_id(self):
        """The tenant for tenant authorities, None for the well-known ones."""
        if self.name.lower() in WELL_KNOWN_AUTHORITIES:
            return None
        return self.name

    @classmethod
    def parse(cls, value):
        if isinstance(value, Authority):
            return value
        if not value or not str(value).strip():
            return cls.COMMON
        return cls(str(value).strip())


Authority.COMMON = Authority("common")
Authority.ORGANIZATIONS = Authority("organizations")
Authority.CONSUMERS = Authority("consumers")
Authority.ADFS = Authority("adfs")
