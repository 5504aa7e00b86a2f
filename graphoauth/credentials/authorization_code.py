"""Authorization code grant credentials for Graph OAuth (graphoauth)."""

from graphoauth.core.errors import AuthorizationFailure
from graphoauth.credentials.base import (
    TokenCredentialExecutor,
    assertion_authentication,
    secret_authentication,
)
from graphoauth.identity.assertion import as_client_assertion
from graphoauth.identity.authorization_urls import AuthCodeAuthorizationUrl
from graphoauth.identity.serializer import OAuthParameter


class AuthorizationCodeCredential(TokenCredentialExecutor):
    """Redeems an authorization code, then the refresh tokens it yields.

    A client secret authenticates confidential clients. Public clients
    (single-page or native apps) leave it out and must use PKCE instead.
    """

    supports_refresh = True

    def __init__(
        self,
        app_config,
        authorization_code=None,
        client_secret=None,
        refresh_token=None,
        code_verifier=None,
        http_client=None,
        token_cache=None,
    ):
        super().__init__(app_config, http_client=http_client, token_cache=token_cache)
        if authorization_code and refresh_token:
            raise AuthorizationFailure(
                "authorization_code",
                "Authorization code and refresh token cannot be set at the same time - choose one or the other",
            )
        self.authorization_code = authorization_code
        self.refresh_token = refresh_token
        self.client_secret = client_secret
        self.code_verifier = code_verifier

    @classmethod
    def authorization_url_builder(cls, app_config, **kwargs):
        return AuthCodeAuthorizationUrl(app_config, **kwargs)

    def with_authorization_code(self, authorization_code):
        self.authorization_code = authorization_code
        self.refresh_token = None
        return self

    def with_refresh_token(self, refresh_token):
        self.refresh_token = refresh_token
        self.authorization_code = None
        return self

    def with_pkce(self, pkce):
        self.code_verifier = pkce.code_verifier
        return self

    def scopes(self):
        return self.app_config.scope

    def client_authentication(self, serializer):
        if self.client_secret is None and self.code_verifier:
            return []
        return secret_authentication(serializer, self.client_secret)

    def form_urlencode(self):
        serializer = self._serializer()
        serializer.extend_scopes(self.scopes())

        if self.refresh_token is not None:
            if not self.refresh_token.strip():
                raise AuthorizationFailure(OAuthParameter.REFRESH_TOKEN.alias, "Refresh token is empty")
            authentication = self.client_authentication(serializer)
            serializer.grant_type("refresh_token").refresh_token(self.refresh_token)
            return serializer.as_credential_map(
                [OAuthParameter.SCOPE],
                [OAuthParameter.CLIENT_ID, OAuthParameter.REFRESH_TOKEN, OAuthParameter.GRANT_TYPE]
                + authentication,
            )

        if self.authorization_code is not None:
            if not self.authorization_code.strip():
                raise AuthorizationFailure(
                    OAuthParameter.AUTHORIZATION_CODE.alias, "Authorization code is empty"
                )
            authentication = self.client_authentication(serializer)
            serializer.grant_type("authorization_code")
            serializer.authorization_code(self.authorization_code)
            serializer.redirect_uri(self.app_config.redirect_uri)
            serializer.code_verifier(self.code_verifier)
            return serializer.as_credential_map(
                [OAuthParameter.SCOPE, OAuthParameter.CODE_VERIFIER],
                [
                    OAuthParameter.CLIENT_ID,
                    OAuthParameter.REDIRECT_URI,
                    OAuthParameter.AUTHORIZATION_CODE,
                    OAuthParameter.GRANT_TYPE,
                ]
                + authentication,
            )

        raise AuthorizationFailure(
            "code or refresh_token", "Either authorization code or refresh token is required"
        )


class AuthorizationCodeCertificateCredential(AuthorizationCodeCredential):
    """Authorization code grant authenticated with a signed client assertion."""

    def __init__(
        self,
        app_config,
        authorization_code=None,
        client_assertion=None,
        refresh_token=None,
        code_verifier=None,
        http_client=None,
        token_cache=None,
    ):
        super().__init__(
            app_config,
            authorization_code=authorization_code,
            refresh_token=refresh_token,
            code_verifier=code_verifier,
            http_client=http_client,
            token_cache=token_cache,
        )
        self.client_assertion = as_client_assertion(client_assertion)

    def client_authentication(self, serializer):
        return assertion_authentication(serializer, self.client_assertion, self.app_config)
