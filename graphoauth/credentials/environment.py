"""Credentials configured from environment variables for Graph OAuth (graphoauth)."""

import os

from graphoauth.core.config import (
    ENV_CLIENT_ID,
    ENV_CLIENT_SECRET,
    ENV_PASSWORD,
    ENV_TENANT_ID,
    ENV_USERNAME,
)
from graphoauth.core.errors import AuthorizationFailure
from graphoauth.credentials.client_credentials import ClientSecretCredential
from graphoauth.credentials.resource_owner import ResourceOwnerPasswordCredential
from graphoauth.identity.app_config import AppConfig


class EnvironmentCredential:
    """Picks a credential from AZURE_* environment variables."""

    @staticmethod
    def missing_variables(environ=None):
        """Names of the variables still needed for the client secret credential."""
        environ = os.environ if environ is None else environ
        required_vars = [ENV_TENANT_ID, ENV_CLIENT_ID, ENV_CLIENT_SECRET]
        return [var for var in required_vars if not environ.get(var)]

    @staticmethod
    def client_secret_credential(environ=None, scope=None, **kwargs):
        environ = os.environ if environ is None else environ
        tenant_id = environ.get(ENV_TENANT_ID)
        client_id = environ.get(ENV_CLIENT_ID)
        client_secret = environ.get(ENV_CLIENT_SECRET)
        if not (tenant_id and client_id and client_secret):
            return None
        app_config = AppConfig(client_id=client_id, tenant_id=tenant_id, scope=scope or [])
        return ClientSecretCredential(app_config, client_secret, **kwargs)

    @staticmethod
    def resource_owner_password_credential(environ=None, scope=None, **kwargs):
        environ = os.environ if environ is None else environ
        client_id = environ.get(ENV_CLIENT_ID)
        username = environ.get(ENV_USERNAME)
        password = environ.get(ENV_PASSWORD)
        if not (client_id and username and password):
            return None
        app_config = AppConfig(
            client_id=client_id,
            tenant_id=environ.get(ENV_TENANT_ID) or None,
            scope=scope or [],
        )
        return ResourceOwnerPasswordCredential(app_config, username, password, **kwargs)

    @classmethod
    def resolve(cls, environ=None, scope=None, **kwargs):
        """Client secret credential first, then username/password."""
        credential = cls.client_secret_credential(environ, scope, **kwargs)
        if credential is None:
            credential = cls.resource_owner_password_credential(environ, scope, **kwargs)
        if credential is None:
            raise AuthorizationFailure(
                "environment",
                f"Set {ENV_TENANT_ID}, {ENV_CLIENT_ID} and {ENV_CLIENT_SECRET}, "
                f"or {ENV_CLIENT_ID}, {ENV_USERNAME} and {ENV_PASSWORD}",
            )
        return credential
