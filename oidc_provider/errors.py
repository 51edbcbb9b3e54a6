"""
Error taxonomy for the authorization-code flow.
Each error carries an HTTP status, an OAuth2 error code and a short machine-stable description.
"""


class OIDCError(Exception):
    status_code = 400
    error = "invalid_request"
    default_description = "invalid request"

    def __init__(self, description: str | None = None):
        self.description = description or self.default_description
        super().__init__(self.description)


class ValidationError(OIDCError):
    """Client input is malformed or unsupported."""


class MissingParameter(ValidationError):
    def __init__(self, name: str):
        self.parameter = name
        super().__init__(f"{name} is required")


class UnsupportedScope(ValidationError):
    error = "invalid_scope"
    default_description = "unsupported scope"


class UnsupportedResponseType(ValidationError):
    error = "unsupported_response_type"
    default_description = "unsupported response_type"


class UnsupportedGrantType(ValidationError):
    error = "unsupported_grant_type"
    default_description = "unsupported grant type"


class UnknownClient(ValidationError):
    error = "invalid_client"
    default_description = "unknown client_id"


class RedirectURINotAllowed(ValidationError):
    default_description = "redirect_uri not allowed"


class InvalidGrant(OIDCError):
    """Code unknown, expired or already consumed. Deliberately generic."""

    error = "invalid_grant"
    default_description = "invalid code"


class ClientMismatch(OIDCError):
    error = "invalid_grant"
    default_description = "client mismatch"


class RedirectURIMismatch(OIDCError):
    error = "invalid_grant"
    default_description = "redirect_uri mismatch"


class InvalidClient(OIDCError):
    status_code = 401
    error = "invalid_client"
    default_description = "invalid client credentials"


class InternalError(OIDCError):
    status_code = 500
    error = "server_error"
    default_description = "internal error"


class DuplicateCodeError(Exception):
    """A record with the same code is already stored."""

    def __init__(self):
        super().__init__("authorization code already exists")
