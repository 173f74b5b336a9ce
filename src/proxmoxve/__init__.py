"""Proxmox VE API client.

Python client for the Proxmox VE and Proxmox Mail Gateway REST API. Handles
ticket authentication and session renewal, and forwards GET/PUT/POST/DELETE
requests to arbitrary paths of the API resource tree.

Exports:
    ProxmoxClient: HTTP client with login, session renewal and requests.
    Credentials: Validated connection and login data.
    AuthToken: Session ticket and CSRF prevention token.
    ResponseMode: Representations a client can return.
    Exceptions raised by the client.
"""

from .auth import TICKET_LIFETIME, AuthToken
from .client import DEFAULT_TIMEOUT, ProxmoxClient
from .credentials import Credentials
from .exceptions import (
    AuthenticationError,
    InvalidArgumentError,
    MalformedCredentialsError,
    ProxmoxError,
    SessionRenewalError,
)
from .response import ResponseMode, normalize_response
from .session import SessionManager

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_TIMEOUT",
    "TICKET_LIFETIME",
    "AuthToken",
    "AuthenticationError",
    "Credentials",
    "InvalidArgumentError",
    "MalformedCredentialsError",
    "ProxmoxClient",
    "ProxmoxError",
    "ResponseMode",
    "SessionManager",
    "SessionRenewalError",
    "normalize_response",
]
