"""Shared token credential executor for Graph OAuth (graphoauth)."""

import logging

import requests

from graphoauth.core.client import HttpClient
from graphoauth.core.config import TOKEN_REFRESH_BUFFER
from graphoauth.core.errors import AuthExecutionError, AuthorizationFailure, TokenResponseError
from graphoauth.identity.app_config import ForceTokenRefresh
from graphoauth.identity.assertion import CLIENT_ASSERTION_TYPE
from graphoauth.identity.cache import InMemoryTokenCache
from graphoauth.identity.serializer import OAuthParameter, OAuthSerializer
from graphoauth.identity.token import Token

logger = logging.getLogger(__name__)


class TokenCredentialExecutor:
    """Builds a grant's form body, POSTs it to the token endpoint and caches the result.

    Subclasses implement ``form_urlencode``. Grants able to redeem refresh
    tokens set ``supports_refresh`` and keep ``refresh_token`` up to date.
    """

    supports_refresh = False

    def __init__(self, app_config, http_client=None, token_cache=None):
        self.app_config = app_config
        self.http_client = http_client or HttpClient()
        self.token_cache = token_cache if token_cache is not None else InMemoryTokenCache()
        self.refresh_token = None

    def _serializer(self):
        serializer = OAuthSerializer(log_pii=self.app_config.log_pii)
        serializer.client_id(self.app_config.client_id)
        return serializer

    def uri(self):
        return self.app_config.azure_cloud_instance.token_uri(self.app_config.authority)

    def form_urlencode(self):
        raise NotImplementedError

    def basic_auth(self):
        return None

    def request_auth(self):
        """Credentials sent as HTTP auth on the token request, if any."""
        return None

    def with_refresh_token(self, refresh_token):
        if not self.supports_refresh:
            raise AuthorizationFailure("refresh_token", f"{type(self).__name__} cannot redeem refresh tokens")
        self.refresh_token = refresh_token
        return self

    def execute(self) -> requests.Response:
        """POST the grant's form to the token endpoint."""
        form = self.form_urlencode()
        uri = self.uri()
        logger.debug("Requesting token from %s with grant %s", uri, form.get("grant_type"))
        try:
            return self.http_client.post_form(
                uri,
                data=form,
                headers=self.app_config.extra_header_parameters,
                params=self.app_config.extra_query_parameters or None,
                auth=self.request_auth(),
            )
        except requests.exceptions.RequestException as e:
            raise AuthExecutionError(f"Token request to {uri} failed: {e}") from e

    def parse_token(self, response) -> Token:
        if not response.ok:
            error = TokenResponseError.from_response(response)
            logger.debug("Token request failed: %s (correlation_id=%s)", error.error, error.correlation_id)
            raise error
        try:
            body = response.json()
        except ValueError as e:
            raise AuthExecutionError(
                "Token endpoint returned a non-JSON body",
                status_code=response.status_code,
                response=response,
            ) from e
        return Token.from_response(body, log_pii=self.app_config.log_pii)

    def get_token(self) -> Token:
        """Run the grant and cache the resulting token."""
        token = self.parse_token(self.execute())
        self._store(token)
        return token

    def _store(self, token):
        if token.refresh_token and self.supports_refresh:
            self.with_refresh_token(token.refresh_token)
        elif self.refresh_token and not token.refresh_token:
            token.with_refresh_token(self.refresh_token)
        self.token_cache.store(self.app_config.cache_id, token)

    def get_token_silent(self) -> Token:
        """Return a cached token when still valid, otherwise refresh or re-run the grant."""
        force = self.app_config.force_token_refresh
        if force is ForceTokenRefresh.NEVER:
            cached = self.token_cache.get(self.app_config.cache_id)
            if cached is not None and not cached.is_expired_sub(TOKEN_REFRESH_BUFFER):
                logger.debug("Using cached token for %s", self.app_config.cache_id)
                return cached
            if cached is not None and cached.refresh_token and self.supports_refresh:
                logger.debug("Cached token expired, redeeming refresh token")
                self.with_refresh_token(cached.refresh_token)
            return self.get_token()

        if force is ForceTokenRefresh.ONCE:
            self.app_config.force_token_refresh = ForceTokenRefresh.NEVER
        return self.get_token()

    def clear_cache(self):
        self.token_cache.evict(self.app_config.cache_id)

    def __repr__(self):
        client_id = self.app_config.client_id if self.app_config.log_pii else "[REDACTED]"
        return f"{type(self).__name__}(client_id={client_id!r}, authority={str(self.app_config.authority)!r})"


def secret_authentication(serializer, client_secret, use_basic_auth=False):
    """Add the client secret to a form; returns the parameters it makes required."""
    if not client_secret or not client_secret.strip():
        raise AuthorizationFailure.required(OAuthParameter.CLIENT_SECRET.alias)
    if use_basic_auth:
        return []
    serializer.client_secret(client_secret)
    return [OAuthParameter.CLIENT_SECRET]


def assertion_authentication(serializer, client_assertion, app_config):
    """Add a signed client assertion to a form; returns the parameters it makes required."""
    if client_assertion is None:
        raise AuthorizationFailure.required(OAuthParameter.CLIENT_ASSERTION.alias)
    serializer.client_assertion(client_assertion.value(app_config.client_id, app_config.tenant_id))
    serializer.client_assertion_type(CLIENT_ASSERTION_TYPE)
    return [OAuthParameter.CLIENT_ASSERTION, OAuthParameter.CLIENT_ASSERTION_TYPE]
