"""Authorization URL builders for Graph OAuth (graphoauth).

Each builder renders the sign-in URL a user agent is sent to before a
credential can exchange the result for tokens. Builders validate their
inputs when ``url()`` is called and raise ``AuthorizationFailure`` for
anything missing.
"""

import secrets
from urllib.parse import urlencode

from graphoauth.core.errors import AuthorizationFailure
from graphoauth.identity.pkce import CODE_CHALLENGE_METHOD
from graphoauth.identity.serializer import OAuthParameter, OAuthSerializer

OPTIONAL_SIGN_IN_PARAMETERS = [
    OAuthParameter.RESPONSE_MODE,
    OAuthParameter.STATE,
    OAuthParameter.PROMPT,
    OAuthParameter.LOGIN_HINT,
    OAuthParameter.DOMAIN_HINT,
]

PROMPT_VALUES = ("login", "none", "consent", "select_account", "create")


def _as_set(values):
    if values is None:
        return set()
    if isinstance(values, str):
        return set(values.split())
    return set(values)


def generate_nonce():
    return secrets.token_urlsafe(32)


class AuthorizationUrlBuilder:
    """Common state for the per-grant authorization URL builders."""

    def __init__(self, app_config):
        self.app_config = app_config

    def authorization_endpoint(self):
        return self.app_config.azure_cloud_instance.auth_uri(self.app_config.authority)

    def _serializer(self):
        serializer = OAuthSerializer(log_pii=self.app_config.log_pii)
        serializer.client_id(self.app_config.client_id)
        return serializer

    def _require(self, value, parameter):
        if value is None or not str(value).strip():
            raise AuthorizationFailure.required(parameter.alias)

    def _finish(self, endpoint, query):
        if self.app_config.extra_query_parameters:
            extra = urlencode(list(self.app_config.extra_query_parameters.items()))
            query = f"{query}&{extra}" if query else extra
        return f"{endpoint}?{query}"

    def query(self):
        raise NotImplementedError

    def url(self):
        return self._finish(self.authorization_endpoint(), self.query())


class SignInUrlBuilder(AuthorizationUrlBuilder):
    """Shared optional parameters of the interactive sign-in builders."""

    def __init__(
        self,
        app_config,
        response_type=None,
        response_mode=None,
        state=None,
        nonce=None,
        prompt=None,
        domain_hint=None,
        login_hint=None,
    ):
        super().__init__(app_config)
        self.response_type = _as_set(response_type)
        self.response_mode = response_mode
        self.state = state
        self.nonce = nonce
        self.prompt = _as_set(prompt)
        self.domain_hint = domain_hint
        self.login_hint = login_hint

        unknown = self.prompt.difference(PROMPT_VALUES)
        if unknown:
            raise AuthorizationFailure("prompt", f"Unsupported prompt values: {sorted(unknown)}")

    def _sign_in_serializer(self, scopes):
        serializer = self._serializer()
        serializer.extend_scopes(scopes)
        serializer.response_types(self.response_type)
        serializer.state(self.state)
        serializer.nonce(self.nonce)
        serializer.domain_hint(self.domain_hint)
        serializer.login_hint(self.login_hint)
        if self.prompt:
            serializer.prompt(" ".join(sorted(self.prompt)))

        response_mode = self.response_mode
        if "id_token" in self.response_type and response_mode != "form_post":
            # id_token must never travel in the query string
            response_mode = "fragment"
        serializer.response_mode(response_mode)
        return serializer


class AuthCodeAuthorizationUrl(SignInUrlBuilder):
    """Sign-in URL for the authorization code grant, optionally with PKCE."""

    def __init__(self, app_config, code_challenge=None, code_challenge_method=None, **kwargs):
        kwargs.setdefault("response_type", ["code"])
        super().__init__(app_config, **kwargs)
        if not self.response_type:
            self.response_type = {"code"}
        self.code_challenge = code_challenge
        self.code_challenge_method = code_challenge_method

    def with_pkce(self, pkce):
        self.code_challenge = pkce.code_challenge
        self.code_challenge_method = pkce.code_challenge_method
        return self

    def query(self):
        self._require(self.app_config.redirect_uri, OAuthParameter.REDIRECT_URI)
        if not self.app_config.scope:
            raise AuthorizationFailure.required(OAuthParameter.SCOPE.alias)

        serializer = self._sign_in_serializer(self.app_config.scope)
        serializer.redirect_uri(self.app_config.redirect_uri)
        if self.code_challenge:
            serializer.code_challenge(self.code_challenge)
            serializer.code_challenge_method(self.code_challenge_method or CODE_CHALLENGE_METHOD)

        return serializer.encode_query(
            OPTIONAL_SIGN_IN_PARAMETERS
            + [
                OAuthParameter.NONCE,
                OAuthParameter.CODE_CHALLENGE,
                OAuthParameter.CODE_CHALLENGE_METHOD,
            ],
            [
                OAuthParameter.CLIENT_ID,
                OAuthParameter.RESPONSE_TYPE,
                OAuthParameter.REDIRECT_URI,
                OAuthParameter.SCOPE,
            ],
        )


class OpenIdAuthorizationUrl(SignInUrlBuilder):
    """Sign-in URL for OpenID Connect; always requests the openid scope."""

    response_types_supported = ("code", "id_token", "code id_token", "id_token token")

    def __init__(self, app_config, **kwargs):
        super().__init__(app_config, **kwargs)
        if not self.response_type:
            self.response_type = {"code"}
        if not self.nonce:
            self.nonce = generate_nonce()

    def query(self):
        requested = " ".join(sorted(self.response_type))
        if requested not in self.response_types_supported:
            raise AuthorizationFailure(
                "response_type",
                "response_type is not supported - supported response types are: "
                + ", ".join(f"`{value}`" for value in self.response_types_supported),
            )

        serializer = self._sign_in_serializer(["openid", *self.app_config.scope])
        serializer.redirect_uri(self.app_config.redirect_uri)
        return serializer.encode_query(
            OPTIONAL_SIGN_IN_PARAMETERS + [OAuthParameter.REDIRECT_URI],
            [
                OAuthParameter.CLIENT_ID,
                OAuthParameter.RESPONSE_TYPE,
                OAuthParameter.SCOPE,
                OAuthParameter.NONCE,
            ],
        )


class ImplicitAuthorizationUrl(SignInUrlBuilder):
    """Sign-in URL for the implicit grant; tokens come back in the fragment."""

    response_types_supported = ("token", "id_token", "id_token token")

    def __init__(self, app_config, **kwargs):
        kwargs.setdefault("response_mode", "fragment")
        super().__init__(app_config, **kwargs)
        if not self.response_type:
            self.response_type = {"token"}

    def query(self):
        requested = " ".join(sorted(self.response_type))
        if requested not in self.response_types_supported:
            raise AuthorizationFailure("response_type", f"Unsupported response_type: {requested}")
        if "id_token" in self.response_type:
            self._require(self.nonce, OAuthParameter.NONCE)
        self._require(self.app_config.redirect_uri, OAuthParameter.REDIRECT_URI)
        if not self.app_config.scope:
            raise AuthorizationFailure.required(OAuthParameter.SCOPE.alias)

        serializer = self._sign_in_serializer(self.app_config.scope)
        serializer.redirect_uri(self.app_config.redirect_uri)
        return serializer.encode_query(
            OPTIONAL_SIGN_IN_PARAMETERS + [OAuthParameter.NONCE],
            [
                OAuthParameter.CLIENT_ID,
                OAuthParameter.RESPONSE_TYPE,
                OAuthParameter.REDIRECT_URI,
                OAuthParameter.SCOPE,
            ],
        )


class ClientCredentialsAuthorizationUrl(AuthorizationUrlBuilder):
    """Admin consent URL granting an application its app-only permissions."""

    def __init__(self, app_config, state=None):
        super().__init__(app_config)
        self.state = state

    def authorization_endpoint(self):
        return self.app_config.azure_cloud_instance.admin_consent_uri(self.app_config.authority)

    def query(self):
        self._require(self.app_config.redirect_uri, OAuthParameter.REDIRECT_URI)
        serializer = self._serializer()
        serializer.redirect_uri(self.app_config.redirect_uri)
        serializer.state(self.state)
        return serializer.encode_query(
            [OAuthParameter.STATE],
            [OAuthParameter.CLIENT_ID, OAuthParameter.REDIRECT_URI],
        )
