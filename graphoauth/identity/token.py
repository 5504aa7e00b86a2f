"""Access token and ID token models for Graph OAuth (graphoauth)."""

import hmac
import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl

from msal.oauth2cli.oidc import decode_part

from graphoauth.core.config import DEFAULT_TOKEN_LIFETIME, ID_TOKEN_CLOCK_SKEW, TOKEN_REFRESH_BUFFER
from graphoauth.core.errors import AuthorizationFailure

TOKEN_FIELDS = (
    "access_token",
    "token_type",
    "expires_in",
    "ext_expires_in",
    "scope",
    "refresh_token",
    "id_token",
    "state",
    "correlation_id",
    "client_info",
)


def _parse_seconds(value):
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _numeric_claim(claims, name):
    try:
        return int(claims[name])
    except (TypeError, ValueError):
        raise AuthorizationFailure(name, f"ID token {name} claim is not a number")


@dataclass
class Token:
    """An access token response from the token endpoint."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int = DEFAULT_TOKEN_LIFETIME
    ext_expires_in: Optional[int] = None
    scope: List[str] = field(default_factory=list)
    refresh_token: Optional[str] = None
    id_token: Optional[str] = None
    state: Optional[str] = None
    correlation_id: Optional[str] = None
    client_info: Optional[str] = None
    timestamp: Optional[datetime] = None
    expires_on: Optional[datetime] = None
    additional_fields: Dict[str, Any] = field(default_factory=dict)
    log_pii: bool = False

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc)
        if self.expires_on is None:
            self.expires_on = self.timestamp + timedelta(seconds=self.expires_in)

    @classmethod
    def from_response(cls, data: Dict[str, Any], log_pii=False) -> "Token":
        """Create a Token from a token endpoint JSON body."""
        if not data.get("access_token"):
            raise AuthorizationFailure("access_token", "Token response has no access_token")

        scope = data.get("scope") or []
        if isinstance(scope, str):
            scope = scope.split()

        expires_in = _parse_seconds(data.get("expires_in"))
        if expires_in is None:
            expires_in = DEFAULT_TOKEN_LIFETIME

        return cls(
            access_token=data["access_token"],
            token_type=data.get("token_type") or "Bearer",
            expires_in=expires_in,
            ext_expires_in=_parse_seconds(data.get("ext_expires_in")),
            scope=list(scope),
            refresh_token=data.get("refresh_token"),
            id_token=data.get("id_token"),
            state=data.get("state"),
            correlation_id=data.get("correlation_id"),
            client_info=data.get("client_info"),
            additional_fields={k: v for k, v in data.items() if k not in TOKEN_FIELDS},
            log_pii=log_pii,
        )

    def is_expired(self):
        return datetime.now(timezone.utc) >= self.expires_on

    def is_expired_sub(self, buffer: timedelta = TOKEN_REFRESH_BUFFER):
        """True once the token is within `buffer` of expiring."""
        return datetime.now(timezone.utc) >= self.expires_on - buffer

    def elapsed(self) -> Optional[timedelta]:
        """Time left before expiry, None when already expired."""
        remaining = self.expires_on - datetime.now(timezone.utc)
        if remaining <= timedelta(0):
            return None
        return remaining

    def with_refresh_token(self, refresh_token):
        self.refresh_token = refresh_token
        return self

    def bearer_header(self):
        return {"Authorization": f"Bearer {self.access_token}"}

    def to_dict(self):
        data = dict(self.additional_fields)
        data.update(
            {
                "access_token": self.access_token,
                "token_type": self.token_type,
                "expires_in": self.expires_in,
                "scope": " ".join(self.scope),
            }
        )
        for name in ("ext_expires_in", "refresh_token", "id_token", "state", "correlation_id", "client_info"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data

    def __repr__(self):
        def shown(value):
            if value is None or self.log_pii:
                return value
            return "[REDACTED]"

        return (
            f"Token(token_type={self.token_type!r}, expires_in={self.expires_in!r}, "
            f"scope={self.scope!r}, expires_on={self.expires_on.isoformat()!r}, "
            f"access_token={shown(self.access_token)!r}, "
            f"refresh_token={shown(self.refresh_token)!r}, id_token={shown(self.id_token)!r})"
        )


@dataclass
class IdToken:
    """An OpenID Connect ID token plus the values returned alongside it."""

    id_token: str
    code: Optional[str] = None
    state: Optional[str] = None
    session_state: Optional[str] = None
    additional_fields: Dict[str, Any] = field(default_factory=dict)
    log_pii: bool = False

    @classmethod
    def from_response(cls, data: Dict[str, Any], log_pii=False) -> "IdToken":
        if not data.get("id_token"):
            raise AuthorizationFailure.required("id_token")
        known = ("id_token", "code", "state", "session_state")
        return cls(
            id_token=data["id_token"],
            code=data.get("code"),
            state=data.get("state"),
            session_state=data.get("session_state"),
            additional_fields={k: v for k, v in data.items() if k not in known},
            log_pii=log_pii,
        )

    @classmethod
    def from_query(cls, query: str, log_pii=False) -> "IdToken":
        """Parse the form-encoded query or fragment of a redirect."""
        return cls.from_response(dict(parse_qsl(query.lstrip("#?"))), log_pii=log_pii)

    def _part(self, index):
        parts = self.id_token.split(".")
        if len(parts) < 2:
            raise AuthorizationFailure("id_token", "ID token is not a JWT")
        try:
            return json.loads(decode_part(parts[index]))
        except ValueError as e:
            raise AuthorizationFailure("id_token", f"ID token could not be decoded: {e}")

    def decode_header(self):
        return self._part(0)

    def decode_payload(self):
        """Claims of the ID token, without signature verification."""
        return self._part(1)

    def validate(self, client_id=None, issuer=None, nonce=None, now=None, skew=ID_TOKEN_CLOCK_SKEW):
        """Check nbf, iss, aud, exp and nonce claims and return the claims."""
        claims = self.decode_payload()
        now = int(now if now is not None else time.time())

        if "exp" not in claims:
            raise AuthorizationFailure("exp", "ID token has no exp claim")
        if now - skew > _numeric_claim(claims, "exp"):
            raise AuthorizationFailure("exp", "ID token is expired")
        if "nbf" in claims and now + skew < _numeric_claim(claims, "nbf"):
            raise AuthorizationFailure("nbf", "ID token is not yet valid")
        if issuer and claims.get("iss") != issuer:
            raise AuthorizationFailure("iss", f"ID token issuer {claims.get('iss')!r} does not match {issuer!r}")
        if client_id:
            audience = claims.get("aud")
            audiences = audience if isinstance(audience, list) else [audience]
            if client_id not in audiences:
                raise AuthorizationFailure("aud", "ID token was not issued for this client")
        if nonce and not hmac.compare_digest(str(claims.get("nonce", "")), nonce):
            raise AuthorizationFailure("nonce", "ID token nonce does not match the nonce sent")
        return claims

    def __repr__(self):
        shown = self.id_token if self.log_pii else "[REDACTED]"
        code = self.code if self.log_pii or self.code is None else "[REDACTED]"
        return (
            f"IdToken(id_token={shown!r}, code={code!r}, state={self.state!r}, "
            f"session_state={self.session_state!r})"
        )
