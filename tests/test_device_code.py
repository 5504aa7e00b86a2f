import pytest

from conftest import StubResponse, stub_client, token_payload
from graphoauth.core.errors import AuthorizationFailure, DeviceCodePollingError, TokenResponseError
from graphoauth.credentials.device_code import DEVICE_CODE_GRANT_TYPE, DeviceCodeCredential
from graphoauth.identity.device_code import DeviceCode, PollDeviceCodeEvent

DEVICE_CODE_RESPONSE = {
    "device_code": "device-code",
    "user_code": "ABCD-EFGH",
    "verification_uri": "https://microsoft.com/devicelogin",
    "expires_in": 900,
    "interval": 5,
    "message": "To sign in, use a web browser to open the page https://microsoft.com/devicelogin",
}


def pending(error="authorization_pending"):
    return StubResponse({"error": error, "error_description": error}, status_code=400)


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds

    def monotonic(self):
        return self.now


def make_credential(app_config, *responses):
    http_client, session = stub_client(*responses)
    clock = FakeClock()
    credential = DeviceCodeCredential(app_config, http_client=http_client, sleep=clock.sleep, clock=clock.monotonic)
    return credential, session, clock


class TestDeviceCode:
    def test_from_response(self):
        device_code = DeviceCode.from_response(DEVICE_CODE_RESPONSE)

        assert device_code.user_code == "ABCD-EFGH"
        assert device_code.interval == 5
        assert "device-code" not in repr(device_code)

    def test_interval_defaults_to_five_seconds(self):
        data = dict(DEVICE_CODE_RESPONSE)
        del data["interval"]

        assert DeviceCode.from_response(data).interval == 5

    def test_incomplete_response(self):
        with pytest.raises(AuthorizationFailure):
            DeviceCode.from_response({"device_code": "x"})

    def test_poll_events(self):
        assert PollDeviceCodeEvent.parse("slow_down") is PollDeviceCodeEvent.SLOW_DOWN
        assert PollDeviceCodeEvent.parse("unknown") is None
        assert PollDeviceCodeEvent.AUTHORIZATION_PENDING.should_continue
        assert PollDeviceCodeEvent.BAD_VERIFICATION_CODE.should_continue
        assert not PollDeviceCodeEvent.EXPIRED_TOKEN.should_continue
        assert not PollDeviceCodeEvent.AUTHORIZATION_DECLINED.should_continue
        assert not PollDeviceCodeEvent.ACCESS_DENIED.should_continue


class TestDeviceCodeCredential:
    def test_request_device_code(self, app_config):
        credential, session, _ = make_credential(app_config, StubResponse(DEVICE_CODE_RESPONSE))

        device_code = credential.request_device_code()

        assert device_code.device_code == "device-code"
        assert credential.device_code == "device-code"
        assert session.calls[0]["url"] == "https://login.microsoftonline.com/contoso-tenant/oauth2/v2.0/devicecode"
        assert session.calls[0]["data"] == {"client_id": app_config.client_id, "scope": "User.Read"}

    def test_request_device_code_error(self, app_config):
        credential, _, _ = make_credential(
            app_config, StubResponse({"error": "invalid_client"}, status_code=401)
        )

        with pytest.raises(TokenResponseError) as exc_info:
            credential.request_device_code()

        assert exc_info.value.error == "invalid_client"

    def test_device_code_form(self, app_config):
        credential = DeviceCodeCredential(app_config, device_code="device-code")

        assert credential.form_urlencode() == {
            "client_id": app_config.client_id,
            "device_code": "device-code",
            "grant_type": DEVICE_CODE_GRANT_TYPE,
            "scope": "User.Read",
        }

    def test_refresh_form(self, app_config):
        credential = DeviceCodeCredential(app_config, device_code="device-code").with_refresh_token("refresh")

        form = credential.form_urlencode()

        assert form["grant_type"] == "refresh_token"
        assert form["refresh_token"] == "refresh"
        assert "device_code" not in form

    def test_requires_device_code_or_refresh_token(self, app_config):
        with pytest.raises(AuthorizationFailure):
            DeviceCodeCredential(app_config).form_urlencode()

    def test_poll_until_success(self, app_config):
        credential, session, clock = make_credential(
            app_config,
            StubResponse(DEVICE_CODE_RESPONSE),
            pending(),
            pending("bad_verification_code"),
            StubResponse(token_payload(refresh_token="refresh")),
        )

        responses = list(credential.poll())

        assert [r.event for r in responses[:2]] == [
            PollDeviceCodeEvent.AUTHORIZATION_PENDING,
            PollDeviceCodeEvent.BAD_VERIFICATION_CODE,
        ]
        assert responses[-1].is_success
        assert responses[-1].token.access_token == "access-token"
        assert clock.sleeps == [5, 5, 5]
        assert session.calls[1]["data"]["grant_type"] == DEVICE_CODE_GRANT_TYPE
        assert credential.refresh_token == "refresh"

    def test_slow_down_adds_five_seconds(self, app_config):
        credential, _, clock = make_credential(
            app_config,
            StubResponse(DEVICE_CODE_RESPONSE),
            pending("slow_down"),
            pending("slow_down"),
            StubResponse(token_payload()),
        )

        list(credential.poll())

        assert clock.sleeps == [5, 10, 15]

    @pytest.mark.parametrize("error", ["authorization_declined", "expired_token", "access_denied"])
    def test_terminal_events_stop_polling(self, app_config, error):
        credential, session, _ = make_credential(
            app_config, StubResponse(DEVICE_CODE_RESPONSE), pending(error), StubResponse(token_payload())
        )

        responses = list(credential.poll())

        assert len(responses) == 1
        assert responses[0].event is PollDeviceCodeEvent(error)
        assert len(session.calls) == 2

    def test_unknown_error_stops_polling(self, app_config):
        credential, _, _ = make_credential(
            app_config, StubResponse(DEVICE_CODE_RESPONSE), pending("invalid_grant"), StubResponse(token_payload())
        )

        responses = list(credential.poll())

        assert len(responses) == 1
        assert responses[0].event is None
        assert responses[0].error == "invalid_grant"

    def test_polling_stops_when_device_code_expires(self, app_config):
        data = dict(DEVICE_CODE_RESPONSE, expires_in=12)
        credential, _, _ = make_credential(app_config, StubResponse(data), pending())

        responses = list(credential.poll())

        assert len(responses) == 3
        assert all(r.event is PollDeviceCodeEvent.AUTHORIZATION_PENDING for r in responses)

    def test_acquire_token_interactive(self, app_config):
        credential, _, _ = make_credential(
            app_config, StubResponse(DEVICE_CODE_RESPONSE), pending(), StubResponse(token_payload())
        )
        shown = []

        token = credential.acquire_token_interactive(on_device_code=shown.append)

        assert token.access_token == "access-token"
        assert shown[0].user_code == "ABCD-EFGH"
        assert credential.token_cache.get(app_config.cache_id) is token

    def test_acquire_token_interactive_declined(self, app_config):
        credential, _, _ = make_credential(
            app_config, StubResponse(DEVICE_CODE_RESPONSE), pending("authorization_declined")
        )

        with pytest.raises(DeviceCodePollingError) as exc_info:
            credential.acquire_token_interactive()

        assert exc_info.value.event is PollDeviceCodeEvent.AUTHORIZATION_DECLINED
        assert exc_info.value.error == "authorization_declined"

    def test_acquire_token_interactive_expired(self, app_config):
        data = dict(DEVICE_CODE_RESPONSE, expires_in=5)
        credential, _, _ = make_credential(app_config, StubResponse(data), pending())

        with pytest.raises(DeviceCodePollingError) as exc_info:
            credential.acquire_token_interactive()

        assert exc_info.value.event is PollDeviceCodeEvent.EXPIRED_TOKEN
