"""Exception hierarchy for authmux.

All exceptions inherit from :class:`AuthmuxError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`authmux.exit_codes`.
Library callers catch the specific subclasses; the ``authmux`` CLI catches
``AuthmuxError`` and exits with the matching code.

Subclass hierarchy::

    AuthmuxError (exit 1)
    +-- ConfigError                          (exit 2)
    |   +-- InvalidApplicationCredentialsError
    |   +-- InvalidCallbackError
    |   +-- InvalidOpenIDIdentifierError
    +-- UnknownProviderError                 (exit 5)
    +-- ProviderDisabledError                (exit 5)
    +-- AuthorizationDeniedError             (exit 3)
    +-- InvalidAuthorizationCodeError        (exit 4)
    +-- InvalidAuthorizationStateError       (exit 4)
    +-- InvalidOAuthTokenError               (exit 4)
    +-- InvalidAccessTokenError              (exit 4)
    +-- HttpClientFailureError               (exit 6)
    +-- HttpRequestFailedError               (exit 7)
    +-- UnexpectedApiResponseError           (exit 8)
    +-- NotSupportedError                    (exit 9)
"""

from authmux.exit_codes import (
    EXIT_AUTH_DENIED,
    EXIT_AUTH_INVALID,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_ERROR,
    EXIT_NOT_SUPPORTED,
    EXIT_UNEXPECTED_RESPONSE,
    EXIT_UNKNOWN_PROVIDER,
)


class AuthmuxError(Exception):
    """Base exception for all authmux errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`authmux.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(AuthmuxError):
    """Raised for configuration problems, before any network I/O happens."""

    exit_code = EXIT_CONFIG_ERROR


class InvalidApplicationCredentialsError(ConfigError):
    """Raised when the client id/key or secret is missing for a provider."""


class InvalidCallbackError(ConfigError):
    """Raised when the callback URL is missing or not an absolute http(s) URL."""


class InvalidOpenIDIdentifierError(ConfigError):
    """Raised when an OpenID provider has no ``openid_identifier``."""


class UnknownProviderError(AuthmuxError):
    """Raised when a provider name is not configured or has no implementation."""

    exit_code = EXIT_UNKNOWN_PROVIDER


class ProviderDisabledError(AuthmuxError):
    """Raised when a configured provider has ``enabled: false``."""

    exit_code = EXIT_UNKNOWN_PROVIDER


class AuthorizationDeniedError(AuthmuxError):
    """Raised when the end user declined consent at the provider."""

    exit_code = EXIT_AUTH_DENIED


class InvalidAuthorizationCodeError(AuthmuxError):
    """Raised when the provider redirected back with a non-denial error."""

    exit_code = EXIT_AUTH_INVALID


class InvalidAuthorizationStateError(AuthmuxError):
    """Raised when the callback ``state`` does not match the stored one."""

    exit_code = EXIT_AUTH_INVALID


class InvalidOAuthTokenError(AuthmuxError):
    """Raised when an OAuth1 callback or token response lacks a usable token."""

    exit_code = EXIT_AUTH_INVALID


class InvalidAccessTokenError(AuthmuxError):
    """Raised when a 2xx token response does not contain an ``access_token``."""

    exit_code = EXIT_AUTH_INVALID


class HttpClientFailureError(AuthmuxError):
    """Raised when the transport could not complete a request (DNS, connect, timeout)."""

    exit_code = EXIT_CONNECTION_ERROR


class HttpRequestFailedError(AuthmuxError):
    """Raised when the provider responded with a non-2xx HTTP status."""

    exit_code = EXIT_HTTP_ERROR


class UnexpectedApiResponseError(AuthmuxError):
    """Raised when a provider payload is missing a required field."""

    exit_code = EXIT_UNEXPECTED_RESPONSE


class NotSupportedError(AuthmuxError):
    """Raised when a provider does not implement an optional capability."""

    exit_code = EXIT_NOT_SUPPORTED
