"""On-behalf-of grant for Graph OAuth (graphoauth)."""

from graphoauth.core.errors import AuthorizationFailure
from graphoauth.credentials.base import (
    TokenCredentialExecutor,
    assertion_authentication,
    secret_authentication,
)
from graphoauth.identity.assertion import as_client_assertion
from graphoauth.identity.serializer import OAuthParameter

ON_BEHALF_OF_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"


class OnBehalfOfCredential(TokenCredentialExecutor):
    """Exchanges the token a middle-tier API received for one to call Graph as that user."""

    supports_refresh = True

    def __init__(
        self,
        app_config,
        user_assertion,
        client_secret=None,
        client_assertion=None,
        http_client=None,
        token_cache=None,
    ):
        super().__init__(app_config, http_client=http_client, token_cache=token_cache)
        if client_secret is None and client_assertion is None:
            raise AuthorizationFailure("client_secret", "A client secret or client assertion is required")
        self.user_assertion = user_assertion
        self.client_secret = client_secret
        self.client_assertion = as_client_assertion(client_assertion)

    def client_authentication(self, serializer):
        if self.client_assertion is not None:
            return assertion_authentication(serializer, self.client_assertion, self.app_config)
        return secret_authentication(serializer, self.client_secret)

    def form_urlencode(self):
        serializer = self._serializer()
        serializer.extend_scopes(self.app_config.scope)
        authentication = self.client_authentication(serializer)

        if self.refresh_token:
            serializer.grant_type("refresh_token").refresh_token(self.refresh_token)
            return serializer.as_credential_map(
                [OAuthParameter.SCOPE],
                [OAuthParameter.CLIENT_ID, OAuthParameter.REFRESH_TOKEN, OAuthParameter.GRANT_TYPE]
                + authentication,
            )

        serializer.grant_type(ON_BEHALF_OF_GRANT_TYPE)
        serializer.assertion(self.user_assertion)
        serializer.requested_token_use("on_behalf_of")
        return serializer.as_credential_map(
            [],
            [
                OAuthParameter.CLIENT_ID,
                OAuthParameter.GRANT_TYPE,
                OAuthParameter.ASSERTION,
                OAuthParameter.REQUESTED_TOKEN_USE,
                OAuthParameter.SCOPE,
            ]
            + authentication,
        )
