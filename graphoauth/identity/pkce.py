"""Proof Key for Code Exchange for Graph OAuth (graphoauth)."""

import base64
import hashlib
import secrets

from graphoauth.core.errors import AuthorizationFailure

CODE_CHALLENGE_METHOD = "S256"
CODE_CHALLENGE_LENGTH = 43


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def code_challenge_for(code_verifier: str) -> str:
    """S256 challenge for a verifier."""
    return _b64url(hashlib.sha256(code_verifier.encode("ascii")).digest())


class ProofKeyCodeExchange:
    """A code verifier with its S256 code challenge."""

    def __init__(self, code_verifier, code_challenge, code_challenge_method=CODE_CHALLENGE_METHOD):
        if len(code_challenge) != CODE_CHALLENGE_LENGTH:
            raise AuthorizationFailure(
                "code_challenge",
                f"Code challenge must be {CODE_CHALLENGE_LENGTH} characters",
            )
        self.code_verifier = code_verifier
        self.code_challenge = code_challenge
        self.code_challenge_method = code_challenge_method

    @staticmethod
    def oneshot():
        """Generate a fresh (verifier, challenge) pair."""
        code_verifier = _b64url(secrets.token_bytes(32))
        return code_verifier, code_challenge_for(code_verifier)

    @classmethod
    def generate(cls):
        code_verifier, code_challenge = cls.oneshot()
        return cls(code_verifier, code_challenge)

    def __repr__(self):
        return f"ProofKeyCodeExchange(code_challenge_method={self.code_challenge_method!r})"
