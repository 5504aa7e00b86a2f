"""Graph OAuth (graphoauth) - OAuth 2.0 and OpenID Connect credentials for Microsoft Graph."""

from .core.errors import (
    AuthExecutionError,
    AuthorizationFailure,
    AuthorizationResponseError,
    DeviceCodePollingError,
    GraphOAuthError,
    TokenResponseError,
    UploadSessionError,
    X509Error,
)
from .identity.app_config import AppConfig, ForceTokenRefresh
from .identity.assertion import ClientAssertion, X509Certificate
from .identity.authority import Authority, AzureCloudInstance
from .identity.authorization_urls import (
    AuthCodeAuthorizationUrl,
    ClientCredentialsAuthorizationUrl,
    ImplicitAuthorizationUrl,
    OpenIdAuthorizationUrl,
)
from .identity.cache import InMemoryTokenCache
from .identity.pkce import ProofKeyCodeExchange
from .identity.response import AuthorizationResponse
from .identity.token import IdToken, Token
from .credentials.authorization_code import (
    AuthorizationCodeCertificateCredential,
    AuthorizationCodeCredential,
)
from .credentials.client_credentials import ClientCertificateCredential, ClientSecretCredential
from .credentials.device_code import DeviceCodeCredential
from .credentials.environment import EnvironmentCredential
from .credentials.on_behalf_of import OnBehalfOfCredential
from .credentials.open_id import OpenIdCredential
from .credentials.resource_owner import ResourceOwnerPasswordCredential
from .services.upload import GraphUploader, RangeIter, UploadSession, create_upload_session

__version__ = "0.1.0"
__all__ = [
    "AppConfig",
    "AuthCodeAuthorizationUrl",
    "AuthExecutionError",
    "Authority",
    "AuthorizationCodeCertificateCredential",
    "AuthorizationCodeCredential",
    "AuthorizationFailure",
    "AuthorizationResponse",
    "AuthorizationResponseError",
    "AzureCloudInstance",
    "ClientAssertion",
    "ClientCertificateCredential",
    "ClientCredentialsAuthorizationUrl",
    "ClientSecretCredential",
    "DeviceCodeCredential",
    "DeviceCodePollingError",
    "EnvironmentCredential",
    "ForceTokenRefresh",
    "GraphOAuthError",
    "GraphUploader",
    "IdToken",
    "ImplicitAuthorizationUrl",
    "InMemoryTokenCache",
    "OnBehalfOfCredential",
    "OpenIdAuthorizationUrl",
    "OpenIdCredential",
    "ProofKeyCodeExchange",
    "RangeIter",
    "ResourceOwnerPasswordCredential",
    "Token",
    "TokenResponseError",
    "UploadSession",
    "UploadSessionError",
    "X509Certificate",
    "X509Error",
    "create_upload_session",
]
