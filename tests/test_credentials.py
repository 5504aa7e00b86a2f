import pytest
import requests

from conftest import StubResponse, stub_client, token_payload
from graphoauth.core.errors import AuthExecutionError, AuthorizationFailure, TokenResponseError
from graphoauth.credentials.authorization_code import (
    AuthorizationCodeCertificateCredential,
    AuthorizationCodeCredential,
)
from graphoauth.credentials.client_credentials import ClientCertificateCredential, ClientSecretCredential
from graphoauth.credentials.environment import EnvironmentCredential
from graphoauth.credentials.on_behalf_of import OnBehalfOfCredential
from graphoauth.credentials.open_id import OpenIdCredential
from graphoauth.credentials.resource_owner import ResourceOwnerPasswordCredential
from graphoauth.identity.app_config import AppConfig, ForceTokenRefresh
from graphoauth.identity.assertion import CLIENT_ASSERTION_TYPE
from graphoauth.identity.pkce import ProofKeyCodeExchange
from graphoauth.identity.token import Token

TOKEN_URL = "https://login.microsoftonline.com/contoso-tenant/oauth2/v2.0/token"


class TestAuthorizationCodeCredential:
    def test_code_and_refresh_token_are_exclusive(self, app_config):
        with pytest.raises(AuthorizationFailure):
            AuthorizationCodeCredential(app_config, authorization_code="code", refresh_token="refresh")

    def test_code_form(self, app_config):
        credential = AuthorizationCodeCredential(app_config, authorization_code="code", client_secret="secret")

        assert credential.form_urlencode() == {
            "client_id": app_config.client_id,
            "client_secret": "secret",
            "redirect_uri": "http://localhost:8000/redirect",
            "code": "code",
            "grant_type": "authorization_code",
            "scope": "User.Read",
        }

    def test_refresh_form(self, app_config):
        credential = AuthorizationCodeCredential(app_config, refresh_token="refresh", client_secret="secret")

        assert credential.form_urlencode() == {
            "client_id": app_config.client_id,
            "client_secret": "secret",
            "refresh_token": "refresh",
            "grant_type": "refresh_token",
            "scope": "User.Read",
        }

    def test_code_requires_redirect_uri(self):
        config = AppConfig(client_id="client", scope=["User.Read"])
        credential = AuthorizationCodeCredential(config, authorization_code="code", client_secret="secret")

        with pytest.raises(AuthorizationFailure) as exc_info:
            credential.form_urlencode()

        assert exc_info.value.name == "redirect_uri"

    def test_requires_code_or_refresh_token(self, app_config):
        with pytest.raises(AuthorizationFailure):
            AuthorizationCodeCredential(app_config, client_secret="secret").form_urlencode()

    def test_empty_code_is_rejected(self, app_config):
        credential = AuthorizationCodeCredential(app_config, authorization_code="  ", client_secret="secret")

        with pytest.raises(AuthorizationFailure) as exc_info:
            credential.form_urlencode()

        assert exc_info.value.name == "code"

    def test_confidential_client_requires_secret(self, app_config):
        credential = AuthorizationCodeCredential(app_config, authorization_code="code")

        with pytest.raises(AuthorizationFailure) as exc_info:
            credential.form_urlencode()

        assert exc_info.value.name == "client_secret"

    def test_pkce_public_client_sends_verifier_without_secret(self, app_config):
        pkce = ProofKeyCodeExchange.generate()
        credential = AuthorizationCodeCredential(app_config, authorization_code="code").with_pkce(pkce)

        form = credential.form_urlencode()

        assert form["code_verifier"] == pkce.code_verifier
        assert "client_secret" not in form

    def test_get_token_posts_form_and_switches_to_refresh(self, app_config):
        http_client, session = stub_client(StubResponse(token_payload(refresh_token="new-refresh")))
        credential = AuthorizationCodeCredential(
            app_config, authorization_code="code", client_secret="secret", http_client=http_client
        )

        token = credential.get_token()

        call = session.calls[0]
        assert call["method"] == "POST"
        assert call["url"] == TOKEN_URL
        assert call["data"]["grant_type"] == "authorization_code"
        assert call["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
        assert token.access_token == "access-token"
        assert credential.refresh_token == "new-refresh"
        assert credential.authorization_code is None
        assert credential.token_cache.get(app_config.cache_id) is token

    def test_error_response_raises_token_response_error(self, app_config):
        http_client, _ = stub_client(
            StubResponse(
                {
                    "error": "invalid_grant",
                    "error_description": "AADSTS70008: The code has expired.",
                    "error_codes": [70008],
                    "correlation_id": "corr",
                },
                status_code=400,
            )
        )
        credential = AuthorizationCodeCredential(
            app_config, authorization_code="code", client_secret="secret", http_client=http_client
        )

        with pytest.raises(TokenResponseError) as exc_info:
            credential.get_token()

        assert exc_info.value.error == "invalid_grant"
        assert exc_info.value.error_codes == [70008]
        assert exc_info.value.correlation_id == "corr"
        assert exc_info.value.status_code == 400

    def test_transport_error_raises_auth_execution_error(self, app_config):
        http_client, session = stub_client(requests.exceptions.ConnectionError("offline"))
        credential = AuthorizationCodeCredential(
            app_config, authorization_code="code", client_secret="secret", http_client=http_client
        )

        with pytest.raises(AuthExecutionError):
            credential.get_token()
        assert len(session.calls) == 3

    def test_non_json_success_body(self, app_config):
        http_client, _ = stub_client(StubResponse(ValueError("not json"), status_code=200))
        credential = AuthorizationCodeCredential(
            app_config, authorization_code="code", client_secret="secret", http_client=http_client
        )

        with pytest.raises(AuthExecutionError):
            credential.get_token()

    def test_extra_headers_and_query_are_sent(self, app_config):
        app_config.extra_header_parameters = {"x-client-SKU": "graphoauth"}
        app_config.extra_query_parameters = {"dc": "ESTS-PUB"}
        http_client, session = stub_client(StubResponse(token_payload()))
        credential = AuthorizationCodeCredential(
            app_config, authorization_code="code", client_secret="secret", http_client=http_client
        )

        credential.get_token()

        assert session.calls[0]["headers"]["x-client-SKU"] == "graphoauth"
        assert session.calls[0]["params"] == {"dc": "ESTS-PUB"}


class TestSilentTokenAcquisition:
    def test_cached_token_is_reused(self, app_config):
        http_client, session = stub_client(StubResponse(token_payload(refresh_token="refresh")))
        credential = AuthorizationCodeCredential(
            app_config, authorization_code="code", client_secret="secret", http_client=http_client
        )

        first = credential.get_token_silent()
        second = credential.get_token_silent()

        assert first is second
        assert len(session.calls) == 1

    def test_expiring_token_is_refreshed(self, app_config):
        http_client, session = stub_client(
            StubResponse(token_payload(access_token="first", expires_in=60, refresh_token="refresh-1")),
            StubResponse(token_payload(access_token="second", refresh_token="refresh-2")),
        )
        credential = AuthorizationCodeCredential(
            app_config, authorization_code="code", client_secret="secret", http_client=http_client
        )

        credential.get_token_silent()
        token = credential.get_token_silent()

        assert token.access_token == "second"
        assert session.calls[1]["data"]["grant_type"] == "refresh_token"
        assert session.calls[1]["data"]["refresh_token"] == "refresh-1"
        assert credential.refresh_token == "refresh-2"

    def test_refresh_keeps_previous_refresh_token_when_none_returned(self, app_config):
        http_client, _ = stub_client(StubResponse(token_payload(access_token="second")))
        credential = AuthorizationCodeCredential(
            app_config, refresh_token="refresh-1", client_secret="secret", http_client=http_client
        )

        token = credential.get_token_silent()

        assert token.refresh_token == "refresh-1"

    def test_force_refresh_once(self, app_config):
        app_config.force_token_refresh = ForceTokenRefresh.ONCE
        http_client, session = stub_client(StubResponse(token_payload()))
        credential = ClientSecretCredential(app_config, "secret", http_client=http_client)
        credential.token_cache.store(app_config.cache_id, Token.from_response(token_payload(access_token="cached")))

        token = credential.get_token_silent()

        assert token.access_token == "access-token"
        assert app_config.force_token_refresh is ForceTokenRefresh.NEVER
        assert credential.get_token_silent() is token
        assert len(session.calls) == 1

    def test_force_refresh_always(self, app_config):
        app_config.force_token_refresh = ForceTokenRefresh.ALWAYS
        http_client, session = stub_client(StubResponse(token_payload()))
        credential = ClientSecretCredential(app_config, "secret", http_client=http_client)

        credential.get_token_silent()
        credential.get_token_silent()

        assert len(session.calls) == 2

    def test_client_credentials_reexecute_when_expired(self, app_config):
        http_client, session = stub_client(
            StubResponse(token_payload(access_token="first", expires_in=10)),
            StubResponse(token_payload(access_token="second")),
        )
        credential = ClientSecretCredential(app_config, "secret", http_client=http_client)

        credential.get_token_silent()
        token = credential.get_token_silent()

        assert token.access_token == "second"
        assert session.calls[1]["data"]["grant_type"] == "client_credentials"


class TestClientCredentials:
    def test_default_scope(self):
        credential = ClientSecretCredential(AppConfig(client_id="client", tenant_id="tenant"), "secret")

        assert credential.form_urlencode() == {
            "client_id": "client",
            "grant_type": "client_credentials",
            "scope": "https://graph.microsoft.com/.default",
            "client_secret": "secret",
        }

    def test_basic_auth_moves_secret_out_of_form(self, app_config):
        http_client, session = stub_client(StubResponse(token_payload()))
        credential = ClientSecretCredential(app_config, "secret", use_basic_auth=True, http_client=http_client)

        credential.get_token()

        assert "client_secret" not in session.calls[0]["data"]
        assert session.calls[0]["auth"] == (app_config.client_id, "secret")

    def test_basic_auth_pair_without_basic_transport(self, app_config):
        http_client, session = stub_client(StubResponse(token_payload()))
        credential = ClientSecretCredential(app_config, "secret", http_client=http_client)

        credential.get_token()

        assert credential.basic_auth() == (app_config.client_id, "secret")
        assert session.calls[0]["auth"] is None
        assert session.calls[0]["data"]["client_secret"] == "secret"

    @pytest.mark.parametrize("secret", [None, "", "   "])
    def test_basic_auth_still_requires_secret(self, app_config, secret):
        http_client, session = stub_client(StubResponse(token_payload()))
        credential = ClientSecretCredential(app_config, secret, use_basic_auth=True, http_client=http_client)

        with pytest.raises(AuthorizationFailure) as exc_info:
            credential.get_token()

        assert exc_info.value.name == "client_secret"
        assert session.calls == []

    def test_missing_secret(self, app_config):
        with pytest.raises(AuthorizationFailure) as exc_info:
            ClientSecretCredential(app_config, "").form_urlencode()

        assert exc_info.value.name == "client_secret"

    def test_certificate_credential_sends_assertion(self, app_config):
        credential = ClientCertificateCredential(app_config, "signed.jwt.assertion")

        form = credential.form_urlencode()

        assert form["client_assertion"] == "signed.jwt.assertion"
        assert form["client_assertion_type"] == CLIENT_ASSERTION_TYPE
        assert "client_secret" not in form

    def test_client_credentials_cannot_refresh(self, app_config):
        with pytest.raises(AuthorizationFailure):
            ClientSecretCredential(app_config, "secret").with_refresh_token("refresh")

    def test_admin_consent_builder(self, app_config):
        url = ClientSecretCredential.authorization_url_builder(app_config).url()

        assert "/adminconsent?" in url


class TestAuthorizationCodeCertificateCredential:
    def test_assertion_replaces_secret(self, app_config):
        credential = AuthorizationCodeCertificateCredential(
            app_config, authorization_code="code", client_assertion="signed.jwt.assertion"
        )

        form = credential.form_urlencode()

        assert form["client_assertion"] == "signed.jwt.assertion"
        assert form["client_assertion_type"] == CLIENT_ASSERTION_TYPE
        assert form["grant_type"] == "authorization_code"
        assert "client_secret" not in form

    def test_missing_assertion(self, app_config):
        credential = AuthorizationCodeCertificateCredential(app_config, authorization_code="code")

        with pytest.raises(AuthorizationFailure) as exc_info:
            credential.form_urlencode()

        assert exc_info.value.name == "client_assertion"


class TestOnBehalfOfCredential:
    def test_form(self, app_config):
        credential = OnBehalfOfCredential(app_config, "user-token", client_secret="secret")

        assert credential.form_urlencode() == {
            "client_id": app_config.client_id,
            "grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer",
            "assertion": "user-token",
            "requested_token_use": "on_behalf_of",
            "scope": "User.Read",
            "client_secret": "secret",
        }

    def test_requires_user_assertion(self, app_config):
        credential = OnBehalfOfCredential(app_config, "", client_secret="secret")

        with pytest.raises(AuthorizationFailure) as exc_info:
            credential.form_urlencode()

        assert exc_info.value.name == "assertion"

    def test_requires_client_authentication(self, app_config):
        with pytest.raises(AuthorizationFailure):
            OnBehalfOfCredential(app_config, "user-token")


class TestOpenIdCredential:
    def test_openid_scope_is_added(self, app_config):
        credential = OpenIdCredential(app_config, authorization_code="code", client_secret="secret")

        assert credential.form_urlencode()["scope"] == "User.Read openid"

    def test_get_id_token(self, app_config):
        http_client, _ = stub_client(StubResponse(token_payload(id_token="a.b.c")))
        credential = OpenIdCredential(
            app_config, authorization_code="code", client_secret="secret", http_client=http_client
        )

        id_token = credential.get_id_token()

        assert id_token.id_token == "a.b.c"

    def test_authorization_url_builder(self, app_config):
        url = OpenIdCredential.authorization_url_builder(app_config).url()

        assert "nonce=" in url


class TestResourceOwnerPasswordCredential:
    def test_form(self, app_config):
        credential = ResourceOwnerPasswordCredential(app_config, "user@contoso.com", "hunter2")

        assert credential.form_urlencode() == {
            "client_id": app_config.client_id,
            "grant_type": "password",
            "username": "user@contoso.com",
            "password": "hunter2",
            "scope": "User.Read",
        }

    def test_requires_password(self, app_config):
        with pytest.raises(AuthorizationFailure) as exc_info:
            ResourceOwnerPasswordCredential(app_config, "user@contoso.com", "").form_urlencode()

        assert exc_info.value.name == "password"

    def test_repr_hides_client_id(self, app_config):
        assert app_config.client_id not in repr(ResourceOwnerPasswordCredential(app_config, "u", "p"))


class TestEnvironmentCredential:
    def test_client_secret_environment(self):
        credential = EnvironmentCredential.resolve(
            {"AZURE_TENANT_ID": "tenant", "AZURE_CLIENT_ID": "client", "AZURE_CLIENT_SECRET": "secret"}
        )

        assert isinstance(credential, ClientSecretCredential)
        assert credential.app_config.tenant_id == "tenant"
        assert credential.client_secret == "secret"

    def test_username_password_environment(self):
        credential = EnvironmentCredential.resolve(
            {"AZURE_CLIENT_ID": "client", "AZURE_USERNAME": "user", "AZURE_PASSWORD": "pass"}
        )

        assert isinstance(credential, ResourceOwnerPasswordCredential)
        assert credential.app_config.tenant_id is None

    def test_incomplete_environment(self):
        with pytest.raises(AuthorizationFailure):
            EnvironmentCredential.resolve({"AZURE_CLIENT_ID": "client"})

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("AZURE_TENANT_ID", "tenant")
        monkeypatch.setenv("AZURE_CLIENT_ID", "client")
        monkeypatch.setenv("AZURE_CLIENT_SECRET", "secret")

        assert EnvironmentCredential.missing_variables() == []
        assert isinstance(EnvironmentCredential.resolve(), ClientSecretCredential)

    def test_missing_variables(self):
        assert EnvironmentCredential.missing_variables({"AZURE_CLIENT_ID": "client"}) == [
            "AZURE_TENANT_ID",
            "AZURE_CLIENT_SECRET",
        ]
