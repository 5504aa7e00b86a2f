"""Client assertion (JWT) signing for Graph OAuth (graphoauth)."""

import base64
import logging
import time
import uuid

import jwt
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12

from graphoauth.core.config import AZURE_PUBLIC_INSTANCE, CLIENT_ASSERTION_LIFETIME
from graphoauth.core.errors import X509Error

logger = logging.getLogger(__name__)

CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"


class X509Certificate:
    """An X.509 certificate and RSA private key used to sign client assertions."""

    def __init__(self, certificate, private_key, claims=None, extend_claims=True):
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise X509Error("Client assertions require an RSA private key")
        self.certificate = certificate
        self.private_key = private_key
        self.claims = dict(claims or {})
        self.extend_claims = extend_claims

    @classmethod
    def from_pem(cls, certificate_pem: bytes, private_key_pem: bytes, password=None):
        """Load a PEM certificate and PEM private key."""
        try:
            certificate = x509.load_pem_x509_certificate(certificate_pem)
            private_key = serialization.load_pem_private_key(private_key_pem, password=password)
        except (ValueError, TypeError) as e:
            raise X509Error(f"Unable to load certificate or private key: {e}") from e
        return cls(certificate, private_key)

    @classmethod
    def from_pkcs12(cls, data: bytes, password=None):
        """Load the key and certificate from a PKCS#12 (.pfx) bundle."""
        try:
            private_key, certificate, _ = pkcs12.load_key_and_certificates(data, password)
        except (ValueError, TypeError) as e:
            raise X509Error(f"Unable to load PKCS#12 bundle: {e}") from e
        if private_key is None or certificate is None:
            raise X509Error("PKCS#12 bundle must contain a certificate and a private key")
        return cls(certificate, private_key)

    def _sha1_digest(self):
        return self.certificate.fingerprint(hashes.SHA1())

    def thumbprint(self):
        """Uppercase hex SHA-1 of the certificate DER encoding."""
        return self._sha1_digest().hex().upper()

    def encoded_thumbprint(self):
        """The x5t header value: unpadded base64url SHA-1 of the certificate."""
        return base64.urlsafe_b64encode(self._sha1_digest()).decode("ascii").rstrip("=")

    def with_claims(self, claims, extend_claims=True):
        self.claims = dict(claims)
        self.extend_claims = extend_claims
        return self

    def default_claims(self, client_id, tenant_id=None, now=None):
        now = int(now if now is not None else time.time())
        return {
            "aud": f"{AZURE_PUBLIC_INSTANCE}/{tenant_id or 'common'}/oauth2/v2.0/token",
            "exp": now + CLIENT_ASSERTION_LIFETIME,
            "nbf": now,
            "jti": str(uuid.uuid4()),
            "sub": client_id,
            "iss": client_id,
        }

    def sign_assertion(self, client_id, tenant_id=None, now=None):
        """Build and RS256-sign the client assertion JWT."""
        if self.claims and not self.extend_claims:
            claims = dict(self.claims)
        else:
            claims = self.default_claims(client_id, tenant_id, now)
            claims.update(self.claims)

        headers = {"typ": "JWT", "x5t": self.encoded_thumbprint()}
        try:
            assertion = jwt.encode(claims, self.private_key, algorithm="RS256", headers=headers)
        except jwt.PyJWTError as e:
            raise X509Error(f"Unable to sign client assertion: {e}") from e
        logger.debug("Signed client assertion for thumbprint %s", self.thumbprint())
        return assertion


class ClientAssertion:
    """A client assertion, either pre-signed or signed on demand from a certificate."""

    def __init__(self, assertion=None, certificate=None):
        if not assertion and certificate is None:
            raise X509Error("A signed assertion or a certificate is required")
        self._assertion = assertion
        self.certificate = certificate

    def value(self, client_id, tenant_id=None):
        if self.certificate is not None:
            return self.certificate.sign_assertion(client_id, tenant_id)
        return self._assertion

    def __repr__(self):
        return "ClientAssertion([REDACTED])"


def as_client_assertion(value):
    """Accept a ClientAssertion, an X509Certificate or a pre-signed JWT string."""
    if value is None or isinstance(value, ClientAssertion):
        return value
    if isinstance(value, X509Certificate):
        return ClientAssertion(certificate=value)
    return ClientAssertion(assertion=str(value))
