"""OpenID Connect credential for Graph OAuth (graphoauth)."""

from graphoauth.credentials.authorization_code import AuthorizationCodeCredential
from graphoauth.identity.authorization_urls import OpenIdAuthorizationUrl
from graphoauth.identity.token import IdToken


class OpenIdCredential(AuthorizationCodeCredential):
    """Authorization code exchange that always asks for the openid scope."""

    @classmethod
    def authorization_url_builder(cls, app_config, **kwargs):
        return OpenIdAuthorizationUrl(app_config, **kwargs)

    def scopes(self):
        return ["openid", *self.app_config.scope]

    def get_id_token(self):
        """Redeem the code and return the ID token issued with the access token."""
        token = self.get_token_silent()
        if not token.id_token:
            return None
        return IdToken(
            id_token=token.id_token,
            state=token.state,
            log_pii=self.app_config.log_pii,
        )
