"""Authorization redirect response parsing for Graph OAuth (graphoauth)."""

import hmac
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, urlsplit

from graphoauth.core.errors import AuthorizationFailure, AuthorizationResponseError


class AuthorizationQueryError(Enum):
    """Error codes the authorization endpoint may redirect back with."""

    INVALID_REQUEST = "invalid_request"
    UNAUTHORIZED_CLIENT = "unauthorized_client"
    ACCESS_DENIED = "access_denied"
    UNSUPPORTED_RESPONSE_TYPE = "unsupported_response_type"
    INVALID_SCOPE = "invalid_scope"
    SERVER_ERROR = "server_error"
    TEMPORARILY_UNAVAILABLE = "temporarily_unavailable"
    INVALID_RESOURCE = "invalid_resource"
    LOGIN_REQUIRED = "login_required"
    INTERACTION_REQUIRED = "interaction_required"

    @classmethod
    def parse(cls, value):
        try:
            return cls(value)
        except ValueError:
            return None


KNOWN_FIELDS = (
    "code",
    "id_token",
    "expires_in",
    "access_token",
    "state",
    "session_state",
    "nonce",
    "error",
    "error_description",
    "error_uri",
)


@dataclass
class AuthorizationResponse:
    """Values returned on the redirect URI after sign-in."""

    code: Optional[str] = None
    id_token: Optional[str] = None
    expires_in: Optional[int] = None
    access_token: Optional[str] = None
    state: Optional[str] = None
    session_state: Optional[str] = None
    nonce: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None
    error_uri: Optional[str] = None
    additional_fields: Dict[str, Any] = field(default_factory=dict)
    log_pii: bool = False

    @classmethod
    def from_mapping(cls, values, log_pii=False):
        expires_in = values.get("expires_in")
        try:
            expires_in = int(expires_in) if expires_in is not None else None
        except ValueError:
            expires_in = None

        return cls(
            code=values.get("code"),
            id_token=values.get("id_token"),
            expires_in=expires_in,
            access_token=values.get("access_token"),
            state=values.get("state"),
            session_state=values.get("session_state"),
            nonce=values.get("nonce"),
            error=values.get("error"),
            error_description=values.get("error_description"),
            error_uri=values.get("error_uri"),
            additional_fields={k: v for k, v in values.items() if k not in KNOWN_FIELDS},
            log_pii=log_pii,
        )

    @classmethod
    def from_url(cls, url, log_pii=False):
        """Parse the fragment, or the query when there is no fragment."""
        parts = urlsplit(url)
        raw = parts.fragment or parts.query
        if not raw:
            raise AuthorizationFailure("url", "Redirect URL has no query or fragment")
        return cls.from_mapping(dict(parse_qsl(raw)), log_pii=log_pii)

    @property
    def query_error(self):
        return AuthorizationQueryError.parse(self.error) if self.error else None

    def is_err(self):
        return self.error is not None

    def raise_for_error(self):
        if self.is_err():
            raise AuthorizationResponseError(self.error, self.error_description, self.error_uri)
        return self

    def validate_state(self, expected_state):
        """Raise unless the returned state matches the one sent with the request."""
        if self.state is None or not hmac.compare_digest(self.state, expected_state):
            raise AuthorizationFailure("state", "State does not match the authorization request")
        return self

    def __repr__(self):
        def shown(value):
            if value is None or self.log_pii:
                return value
            return "[REDACTED]"

        return (
            f"AuthorizationResponse(code={shown(self.code)!r}, id_token={shown(self.id_token)!r}, "
            f"access_token={shown(self.access_token)!r}, state={self.state!r}, "
            f"error={self.error!r}, error_description={self.error_description!r})"
        )
