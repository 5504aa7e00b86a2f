"""Device authorization response and polling events for Graph OAuth (graphoauth)."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from graphoauth.core.config import DEVICE_CODE_DEFAULT_INTERVAL
from graphoauth.core.errors import AuthorizationFailure


class PollDeviceCodeEvent(Enum):
    """Errors the token endpoint returns while a device code is being polled."""

    AUTHORIZATION_PENDING = "authorization_pending"
    AUTHORIZATION_DECLINED = "authorization_declined"
    BAD_VERIFICATION_CODE = "bad_verification_code"
    EXPIRED_TOKEN = "expired_token"
    ACCESS_DENIED = "access_denied"
    SLOW_DOWN = "slow_down"

    @classmethod
    def parse(cls, value):
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def should_continue(self):
        return self in (
            PollDeviceCodeEvent.AUTHORIZATION_PENDING,
            PollDeviceCodeEvent.BAD_VERIFICATION_CODE,
            PollDeviceCodeEvent.SLOW_DOWN,
        )


@dataclass
class DeviceCode:
    """The device authorization response shown to the user."""

    device_code: str
    user_code: str
    verification_uri: str
    expires_in: int
    interval: int = DEVICE_CODE_DEFAULT_INTERVAL
    message: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None
    additional_fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, data):
        missing = [
            name
            for name in ("device_code", "user_code", "verification_uri", "expires_in")
            if data.get(name) in (None, "")
        ]
        if missing:
            raise AuthorizationFailure(missing[0], "Device authorization response is incomplete")

        known = (
            "device_code",
            "user_code",
            "verification_uri",
            "expires_in",
            "interval",
            "message",
            "error",
            "error_description",
        )
        return cls(
            device_code=data["device_code"],
            user_code=data["user_code"],
            verification_uri=data["verification_uri"],
            expires_in=int(data["expires_in"]),
            interval=int(data.get("interval") or DEVICE_CODE_DEFAULT_INTERVAL),
            message=data.get("message"),
            error=data.get("error"),
            error_description=data.get("error_description"),
            additional_fields={k: v for k, v in data.items() if k not in known},
        )

    def __repr__(self):
        return (
            f"DeviceCode(user_code={self.user_code!r}, verification_uri={self.verification_uri!r}, "
            f"expires_in={self.expires_in!r}, interval={self.interval!r})"
        )
