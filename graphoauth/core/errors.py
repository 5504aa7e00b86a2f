"""Exception hierarchy for Graph OAuth (graphoauth)."""


class GraphOAuthError(Exception):
    """Base exception for every error raised by graphoauth."""


class AuthorizationFailure(GraphOAuthError):
    """A required value is missing or invalid while building a URL or form."""

    def __init__(self, name, message=None):
        self.name = str(name)
        self.message = message or f"Required value missing: {self.name}"
        super().__init__(f"{self.name}: {self.message}")

    @classmethod
    def required(cls, name):
        return cls(name)


class AuthExecutionError(GraphOAuthError):
    """Token acquisition failed in transport or with an unsuccessful response."""

    def __init__(self, message, status_code=None, response=None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class TokenResponseError(AuthExecutionError):
    """The identity provider answered with an OAuth error body."""

    def __init__(
        self,
        error,
        error_description=None,
        status_code=None,
        response=None,
        error_codes=None,
        trace_id=None,
        correlation_id=None,
    ):
        message = error if not error_description else f"{error}: {error_description}"
        super().__init__(message, status_code=status_code, response=response)
        self.error = error
        self.error_description = error_description
        self.error_codes = list(error_codes or [])
        self.trace_id = trace_id
        self.correlation_id = correlation_id

    @classmethod
    def from_response(cls, response):
        """Build the error from a requests.Response carrying an OAuth error body."""
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return cls(
            body.get("error") or f"http_{response.status_code}",
            body.get("error_description") or getattr(response, "text", None),
            status_code=response.status_code,
            response=response,
            error_codes=body.get("error_codes"),
            trace_id=body.get("trace_id"),
            correlation_id=body.get("correlation_id"),
        )


class DeviceCodePollingError(TokenResponseError):
    """Device code polling stopped on a terminal event."""

    def __init__(self, event, error_description=None, status_code=None, response=None):
        super().__init__(
            getattr(event, "value", event),
            error_description,
            status_code=status_code,
            response=response,
        )
        self.event = event


class AuthorizationResponseError(GraphOAuthError):
    """The authorization redirect carried an error."""

    def __init__(self, error, error_description=None, error_uri=None):
        message = error if not error_description else f"{error}: {error_description}"
        super().__init__(message)
        self.error = error
        self.error_description = error_description
        self.error_uri = error_uri


class X509Error(GraphOAuthError):
    """A certificate or private key could not be used to sign an assertion."""


class UploadSessionError(GraphOAuthError):
    """An upload session request returned an unexpected status."""

    def __init__(self, message, status_code=None, response=None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response
