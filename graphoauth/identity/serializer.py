"""OAuth parameter map and form/query serialization for Graph OAuth (graphoauth)."""

from enum import Enum
from urllib.parse import urlencode

from graphoauth.core.errors import AuthorizationFailure


class OAuthParameter(Enum):
    """Names of the OAuth parameters as they appear on the wire."""

    CLIENT_ID = "client_id"
    CLIENT_SECRET = "client_secret"
    REDIRECT_URI = "redirect_uri"
    AUTHORIZATION_CODE = "code"
    ACCESS_TOKEN = "access_token"
    REFRESH_TOKEN = "refresh_token"
    RESPONSE_MODE = "response_mode"
    RESPONSE_TYPE = "response_type"
    STATE = "state"
    SESSION_STATE = "session_state"
    GRANT_TYPE = "grant_type"
    NONCE = "nonce"
    PROMPT = "prompt"
    ID_TOKEN = "id_token"
    RESOURCE = "resource"
    DOMAIN_HINT = "domain_hint"
    SCOPE = "scope"
    LOGIN_HINT = "login_hint"
    CLIENT_ASSERTION = "client_assertion"
    CLIENT_ASSERTION_TYPE = "client_assertion_type"
    CODE_VERIFIER = "code_verifier"
    CODE_CHALLENGE = "code_challenge"
    CODE_CHALLENGE_METHOD = "code_challenge_method"
    ADMIN_CONSENT = "admin_consent"
    USERNAME = "username"
    PASSWORD = "password"
    DEVICE_CODE = "device_code"
    ASSERTION = "assertion"
    REQUESTED_TOKEN_USE = "requested_token_use"

    @property
    def alias(self):
        return self.value

    @property
    def is_sensitive(self):
        return self in SENSITIVE_PARAMETERS


SENSITIVE_PARAMETERS = frozenset(
    {
        OAuthParameter.CLIENT_ID,
        OAuthParameter.CLIENT_SECRET,
        OAuthParameter.ACCESS_TOKEN,
        OAuthParameter.REFRESH_TOKEN,
        OAuthParameter.ID_TOKEN,
        OAuthParameter.CODE_VERIFIER,
        OAuthParameter.CODE_CHALLENGE,
        OAuthParameter.PASSWORD,
        OAuthParameter.AUTHORIZATION_CODE,
        OAuthParameter.CLIENT_ASSERTION,
        OAuthParameter.ASSERTION,
        OAuthParameter.DEVICE_CODE,
    }
)


class OAuthSerializer:
    """Holds named OAuth parameters and scopes and renders them as a form or query."""

    def __init__(self, log_pii=False):
        self.parameters = {}
        self.scopes = set()
        self.log_pii = log_pii

    def insert(self, parameter: OAuthParameter, value):
        """Set a parameter; empty values are ignored."""
        if value is None:
            return self
        value = str(value)
        if value.strip():
            self.parameters[parameter] = value
        return self

    def get(self, parameter: OAuthParameter):
        if parameter is OAuthParameter.SCOPE:
            return self.join_scopes() or None
        return self.parameters.get(parameter)

    def contains(self, parameter: OAuthParameter):
        return self.get(parameter) is not None

    def remove(self, parameter: OAuthParameter):
        if parameter is OAuthParameter.SCOPE:
            self.scopes.clear()
        else:
            self.parameters.pop(parameter, None)
        return self

    def client_id(self, value):
        return self.insert(OAuthParameter.CLIENT_ID, value)

    def client_secret(self, value):
        return self.insert(OAuthParameter.CLIENT_SECRET, value)

    def redirect_uri(self, value):
        return self.insert(OAuthParameter.REDIRECT_URI, value)

    def authorization_code(self, value):
        return self.insert(OAuthParameter.AUTHORIZATION_CODE, value)

    def access_token(self, value):
        return self.insert(OAuthParameter.ACCESS_TOKEN, value)

    def refresh_token(self, value):
        return self.insert(OAuthParameter.REFRESH_TOKEN, value)

    def response_mode(self, value):
        return self.insert(OAuthParameter.RESPONSE_MODE, value)

    def response_type(self, value):
        return self.insert(OAuthParameter.RESPONSE_TYPE, value)

    def response_types(self, values):
        return self.response_type(" ".join(sorted(set(values))))

    def state(self, value):
        return self.insert(OAuthParameter.STATE, value)

    def session_state(self, value):
        return self.insert(OAuthParameter.SESSION_STATE, value)

    def grant_type(self, value):
        return self.insert(OAuthParameter.GRANT_TYPE, value)

    def nonce(self, value):
        return self.insert(OAuthParameter.NONCE, value)

    def prompt(self, value):
        return self.insert(OAuthParameter.PROMPT, value)

    def id_token(self, value):
        return self.insert(OAuthParameter.ID_TOKEN, value)

    def resource(self, value):
        return self.insert(OAuthParameter.RESOURCE, value)

    def domain_hint(self, value):
        return self.insert(OAuthParameter.DOMAIN_HINT, value)

    def login_hint(self, value):
        return self.insert(OAuthParameter.LOGIN_HINT, value)

    def client_assertion(self, value):
        return self.insert(OAuthParameter.CLIENT_ASSERTION, value)

    def client_assertion_type(self, value):
        return self.insert(OAuthParameter.CLIENT_ASSERTION_TYPE, value)

    def code_verifier(self, value):
        return self.insert(OAuthParameter.CODE_VERIFIER, value)

    def code_challenge(self, value):
        return self.insert(OAuthParameter.CODE_CHALLENGE, value)

    def code_challenge_method(self, value):
        return self.insert(OAuthParameter.CODE_CHALLENGE_METHOD, value)

    def admin_consent(self, value):
        return self.insert(OAuthParameter.ADMIN_CONSENT, value)

    def username(self, value):
        return self.insert(OAuthParameter.USERNAME, value)

    def password(self, value):
        return self.insert(OAuthParameter.PASSWORD, value)

    def device_code(self, value):
        return self.insert(OAuthParameter.DEVICE_CODE, value)

    def assertion(self, value):
        return self.insert(OAuthParameter.ASSERTION, value)

    def requested_token_use(self, value):
        return self.insert(OAuthParameter.REQUESTED_TOKEN_USE, value)

    def add_scope(self, scope):
        if scope and str(scope).strip():
            self.scopes.add(str(scope).strip())
        return self

    def extend_scopes(self, scopes):
        if isinstance(scopes, str):
            scopes = scopes.split()
        for scope in scopes or []:
            self.add_scope(scope)
        return self

    def join_scopes(self, sep=" "):
        return sep.join(sorted(self.scopes))

    def _collect(self, optional, required):
        collected = []
        for parameter in required:
            value = self.get(parameter)
            if value is None:
                raise AuthorizationFailure.required(parameter.alias)
            collected.append((parameter.alias, value))

        for parameter in optional:
            value = self.get(parameter)
            if value is not None:
                collected.append((parameter.alias, value))
        return collected

    def encode_query(self, optional, required):
        """Render the named parameters as an x-www-form-urlencoded query string."""
        return urlencode(self._collect(optional, required))

    def as_credential_map(self, optional, required):
        """Render the named parameters as a dict form body."""
        return dict(self._collect(optional, required))

    def __repr__(self):
        shown = {}
        for parameter, value in self.parameters.items():
            if parameter.is_sensitive and not self.log_pii:
                shown[parameter.alias] = "[REDACTED]"
            else:
                shown[parameter.alias] = value
        return f"OAuthSerializer(parameters={shown!r}, scopes={sorted(self.scopes)!r})"
