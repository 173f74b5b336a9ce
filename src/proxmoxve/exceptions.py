"""Exceptions raised by the Proxmox API client."""


class ProxmoxError(Exception):
    """Base class for all errors raised by this package."""


class MalformedCredentialsError(ProxmoxError, ValueError):
    """Raised when credentials are missing required fields or are invalid."""


class AuthenticationError(ProxmoxError):
    """Raised when a login attempt does not yield a usable session."""


class SessionRenewalError(AuthenticationError):
    """Raised when an expired session cannot be renewed before a request."""


class InvalidArgumentError(ProxmoxError, ValueError):
    """Raised when a request is issued with bad params or an unsupported verb."""
