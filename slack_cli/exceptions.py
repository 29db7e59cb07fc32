"""
slack-cli exception hierarchy.

All custom exceptions live here to avoid circular imports.
"""

API_ERROR_PREFIX = "Slack API error: "


class CliError(Exception):
    """Exit code 1 — validation, not-found, network, parse errors."""

    exit_code = 1


class SetupError(CliError):
    """Exit code 2 — token expired, no config."""

    exit_code = 2


class SlackApiError(CliError):
    """Normalized failure for every remote call, whichever transport made it.

    ``error`` is the server's error code when one came back,
    ``status`` the HTTP status when the failure happened at the HTTP layer.
    """

    def __init__(self, message, error=None, status=None):
        super().__init__(API_ERROR_PREFIX + message)
        self.error = error
        self.status = status

    @classmethod
    def wrap(cls, cause):
        """Normalize *cause*; a SlackApiError is returned as-is."""
        if isinstance(cause, cls):
            return cause
        return cls(
            str(cause) or type(cause).__name__,
            error=getattr(cause, "error", None),
            status=getattr(cause, "code", None),
        )


class HTTPError(Exception):
    """Raised by the browser transport for non-2xx responses."""

    def __init__(self, code, reason, body, headers=None):
        super().__init__(f"HTTP error! status: {code}")
        self.code = code
        self.reason = reason
        self.body = body
        self.headers = headers or {}
