"""Client credentials grant for Graph OAuth (graphoauth)."""

from graphoauth.core.config import DEFAULT_SCOPE
from graphoauth.credentials.base import (
    TokenCredentialExecutor,
    assertion_authentication,
    secret_authentication,
)
from graphoauth.identity.assertion import as_client_assertion
from graphoauth.identity.authorization_urls import ClientCredentialsAuthorizationUrl
from graphoauth.identity.serializer import OAuthParameter


class ClientCredentialsCredential(TokenCredentialExecutor):
    """App-only tokens; there is no user and no refresh token."""

    def scopes(self):
        return self.app_config.scope or [DEFAULT_SCOPE]

    @classmethod
    def authorization_url_builder(cls, app_config, state=None):
        """Admin consent URL for granting the app its application permissions."""
        return ClientCredentialsAuthorizationUrl(app_config, state=state)

    def client_authentication(self, serializer):
        raise NotImplementedError

    def form_urlencode(self):
        serializer = self._serializer()
        serializer.extend_scopes(self.scopes())
        serializer.grant_type("client_credentials")
        authentication = self.client_authentication(serializer)
        return serializer.as_credential_map(
            [],
            [OAuthParameter.CLIENT_ID, OAuthParameter.GRANT_TYPE, OAuthParameter.SCOPE]
            + authentication,
        )


class ClientSecretCredential(ClientCredentialsCredential):
    """Client credentials authenticated with a client secret."""

    def __init__(self, app_config, client_secret, use_basic_auth=False, http_client=None, token_cache=None):
        super().__init__(app_config, http_client=http_client, token_cache=token_cache)
        self.client_secret = client_secret
        self.use_basic_auth = use_basic_auth

    def basic_auth(self):
        return (self.app_config.client_id, self.client_secret)

    def request_auth(self):
        if self.use_basic_auth:
            return self.basic_auth()
        return None

    def client_authentication(self, serializer):
        return secret_authentication(serializer, self.client_secret, self.use_basic_auth)


class ClientCertificateCredential(ClientCredentialsCredential):
    """Client credentials authenticated with a certificate-signed client assertion."""

    def __init__(self, app_config, client_assertion, http_client=None, token_cache=None):
        super().__init__(app_config, http_client=http_client, token_cache=token_cache)
        self.client_assertion = as_client_assertion(client_assertion)

    def client_authentication(self, serializer):
        return assertion_authentication(serializer, self.client_assertion, self.app_config)
