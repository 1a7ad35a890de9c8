"""Numeric process exit codes for the ``authmux`` command-line tool.

Each constant maps to one error category and is referenced by the
corresponding :class:`~authmux.exceptions.AuthmuxError` subclass.
Shell wrappers can inspect the exit code to tell a denied login from a
network failure without parsing stderr.

Example::

    $ authmux callback github "https://app.example.com/cb?error=access_denied"
    $ echo $?
    3   # EXIT_AUTH_DENIED -- the user declined consent
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_CONFIG_ERROR = 2
"""The configuration is missing, invalid, or lacks required credentials."""

EXIT_AUTH_DENIED = 3
"""The user declined the authorization request."""

EXIT_AUTH_INVALID = 4
"""The provider returned an invalid code, token, or state."""

EXIT_UNKNOWN_PROVIDER = 5
"""The requested provider is not configured, not registered, or disabled."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_HTTP_ERROR = 7
"""The provider answered with a non-2xx HTTP status."""

EXIT_UNEXPECTED_RESPONSE = 8
"""The provider answered 2xx but the payload lacked a required field."""

EXIT_NOT_SUPPORTED = 9
"""The provider does not support the requested capability."""
