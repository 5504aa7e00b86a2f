"""Resource owner password credentials grant for Graph OAuth (graphoauth)."""

from graphoauth.core.errors import AuthorizationFailure
from graphoauth.credentials.base import TokenCredentialExecutor
from graphoauth.identity.serializer import OAuthParameter


class ResourceOwnerPasswordCredential(TokenCredentialExecutor):
    """Signs in with a username and password; only for legacy, non-MFA accounts."""

    supports_refresh = True

    def __init__(self, app_config, username, password, http_client=None, token_cache=None):
        super().__init__(app_config, http_client=http_client, token_cache=token_cache)
        self.username = username
        self.password = password

    def form_urlencode(self):
        serializer = self._serializer()
        serializer.extend_scopes(self.app_config.scope)

        if self.refresh_token:
            serializer.grant_type("refresh_token").refresh_token(self.refresh_token)
            return serializer.as_credential_map(
                [OAuthParameter.SCOPE],
                [OAuthParameter.CLIENT_ID, OAuthParameter.REFRESH_TOKEN, OAuthParameter.GRANT_TYPE],
            )

        if not self.username or not self.username.strip():
            raise AuthorizationFailure.required(OAuthParameter.USERNAME.alias)
        if not self.password or not self.password.strip():
            raise AuthorizationFailure.required(OAuthParameter.PASSWORD.alias)

        serializer.grant_type("password").username(self.username).password(self.password)
        return serializer.as_credential_map(
            [OAuthParameter.SCOPE],
            [
                OAuthParameter.CLIENT_ID,
                OAuthParameter.GRANT_TYPE,
                OAuthParameter.USERNAME,
                OAuthParameter.PASSWORD,
            ],
        )

