"""Device code grant for Graph OAuth (graphoauth)."""

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import requests

from graphoauth.core.config import DEVICE_CODE_SLOW_DOWN_INCREMENT
from graphoauth.core.errors import (
    AuthExecutionError,
    AuthorizationFailure,
    DeviceCodePollingError,
    TokenResponseError,
)
from graphoauth.credentials.base import TokenCredentialExecutor
from graphoauth.identity.device_code import DeviceCode, PollDeviceCodeEvent
from graphoauth.identity.serializer import OAuthParameter
from graphoauth.identity.token import Token

logger = logging.getLogger(__name__)

DEVICE_CODE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"


@dataclass
class DeviceCodePollResponse:
    """One answer from the token endpoint while polling a device code."""

    status_code: int
    event: Optional[PollDeviceCodeEvent] = None
    error: Optional[str] = None
    error_description: Optional[str] = None
    token: Optional[Token] = None
    response: Any = None

    @property
    def is_success(self):
        return self.token is not None


class DeviceCodeCredential(TokenCredentialExecutor):
    """Signs a user in on another device, then redeems the refresh tokens it yields."""

    supports_refresh = True

    def __init__(
        self,
        app_config,
        device_code=None,
        refresh_token=None,
        http_client=None,
        token_cache=None,
        sleep=time.sleep,
        clock=time.monotonic,
    ):
        super().__init__(app_config, http_client=http_client, token_cache=token_cache)
        self.device_code = device_code
        self.refresh_token = refresh_token
        self.sleep = sleep
        self.clock = clock

    def device_code_uri(self):
        return self.app_config.azure_cloud_instance.device_code_uri(self.app_config.authority)

    def with_device_code(self, device_code):
        self.device_code = device_code
        self.refresh_token = None
        return self

    def with_refresh_token(self, refresh_token):
        self.refresh_token = refresh_token
        self.device_code = None
        return self

    def request_device_code(self) -> DeviceCode:
        """Start the flow: ask for the user code and verification URI."""
        serializer = self._serializer()
        serializer.extend_scopes(self.app_config.scope)
        form = serializer.as_credential_map([], [OAuthParameter.CLIENT_ID, OAuthParameter.SCOPE])
        uri = self.device_code_uri()

        try:
            response = self.http_client.post_form(
                uri,
                data=form,
                headers=self.app_config.extra_header_parameters,
                params=self.app_config.extra_query_parameters or None,
            )
        except requests.exceptions.RequestException as e:
            raise AuthExecutionError(f"Device code request to {uri} failed: {e}") from e

        if not response.ok:
            raise TokenResponseError.from_response(response)

        device_code = DeviceCode.from_response(response.json())
        self.with_device_code(device_code.device_code)
        logger.debug("Device code issued, polling every %ss", device_code.interval)
        return device_code

    def form_urlencode(self):
        serializer = self._serializer()
        serializer.extend_scopes(self.app_config.scope)

        if self.refresh_token is not None:
            if not self.refresh_token.strip():
                raise AuthorizationFailure(OAuthParameter.REFRESH_TOKEN.alias, "Refresh token is empty")
            serializer.grant_type("refresh_token").refresh_token(self.refresh_token)
            return serializer.as_credential_map(
                [OAuthParameter.SCOPE],
                [OAuthParameter.CLIENT_ID, OAuthParameter.REFRESH_TOKEN, OAuthParameter.GRANT_TYPE],
            )

        if self.device_code is not None:
            if not self.device_code.strip():
                raise AuthorizationFailure(OAuthParameter.DEVICE_CODE.alias, "Device code is empty")
            serializer.grant_type(DEVICE_CODE_GRANT_TYPE).device_code(self.device_code)
            return serializer.as_credential_map(
                [OAuthParameter.SCOPE],
                [OAuthParameter.CLIENT_ID, OAuthParameter.DEVICE_CODE, OAuthParameter.GRANT_TYPE],
            )

        raise AuthorizationFailure(
            "device_code or refresh_token", "Either device code or refresh token is required"
        )

    def _poll_response(self, response):
        try:
            body = response.json()
        except ValueError:
            body = {}
        error = body.get("error") if isinstance(body, dict) else None
        return DeviceCodePollResponse(
            status_code=response.status_code,
            event=PollDeviceCodeEvent.parse(error) if error else None,
            error=error,
            error_description=body.get("error_description") if isinstance(body, dict) else None,
            response=response,
        )

    def poll(self, device_code=None):
        """Poll the token endpoint, yielding every response until success or a terminal event.

        authorization_pending and bad_verification_code keep polling, slow_down
        adds five seconds to the interval, anything else stops. Polling also
        stops once the device code's lifetime has elapsed.
        """
        if device_code is None:
            device_code = self.request_device_code()
        else:
            self.with_device_code(device_code.device_code)

        interval = device_code.interval
        deadline = self.clock() + device_code.expires_in

        while True:
            self.sleep(interval)
            response = self.execute()

            if response.ok:
                token = self.parse_token(response)
                self._store(token)
                yield DeviceCodePollResponse(status_code=response.status_code, token=token, response=response)
                return

            poll_response = self._poll_response(response)
            yield poll_response

            event = poll_response.event
            if event is None or not event.should_continue:
                logger.debug("Device code polling stopped on %s", poll_response.error)
                return
            if event is PollDeviceCodeEvent.SLOW_DOWN:
                interval += DEVICE_CODE_SLOW_DOWN_INCREMENT
            if self.clock() >= deadline:
                logger.debug("Device code expired while polling")
                return

    def acquire_token_interactive(self, on_device_code=None) -> Token:
        """Run the whole flow; `on_device_code` receives the DeviceCode to show the user."""
        device_code = self.request_device_code()
        if on_device_code is not None:
            on_device_code(device_code)

        last = None
        for last in self.poll(device_code):
            if last.is_success:
                return last.token

        if last is None or (last.event is not None and last.event.should_continue):
            raise DeviceCodePollingError(
                PollDeviceCodeEvent.EXPIRED_TOKEN, "Device code expired before sign-in completed"
            )
        raise DeviceCodePollingError(
            last.event or last.error or f"http_{last.status_code}",
            last.error_description,
            status_code=last.status_code,
            response=last.response,
        )
