"""Per-client cache of the authenticated Proxmox session.

Keeps the current AuthToken and replaces it with a fresh login whenever
it has expired, before any resource request is sent.
"""

from collections.abc import Callable

import structlog

from .auth import AuthToken
from .exceptions import AuthenticationError, SessionRenewalError

logger = structlog.get_logger(__name__)

LoginFunc = Callable[[], AuthToken]


class SessionManager:
    """Caches the AuthToken of a single client and renews it on expiry.

    The validity check and the token replacement are not atomic. A client
    shared between threads without external locking may log in more than
    once when the ticket expires; the extra tickets are simply discarded.
    """

    def __init__(self, login: LoginFunc):
        """Initialize the session manager.

        Args:
            login: Function performing a login and returning a new AuthToken.
        """
        self._login = login
        self._token: AuthToken | None = None

    @property
    def token(self) -> AuthToken | None:
        """The cached AuthToken, or None before the first login."""
        return self._token

    @token.setter
    def token(self, token: AuthToken | None) -> None:
        self._token = token

    def renew(self) -> AuthToken:
        """Log in unconditionally and replace the cached token.

        Raises:
            AuthenticationError: If the login fails.
        """
        self._token = self._login()
        logger.info(
            "Session established",
            username=self._token.username,
            expires_at=int(self._token.expires_at),
        )
        return self._token

    def ensure_session(self) -> AuthToken:
        """Return a valid AuthToken, logging in again if the cached one expired.

        This is the only place a resource request can trigger network
        traffic besides the request itself.

        Returns:
            The cached token if still valid, otherwise a freshly issued one.

        Raises:
            SessionRenewalError: If the renewal login fails.
        """
        if self._token is not None and self._token.is_valid():
            return self._token

        if self._token is None:
            logger.info("No session yet, logging in")
        else:
            logger.info(
                "Session ticket expired, logging in again",
                expired_at=int(self._token.expires_at),
            )
        try:
            return self.renew()
        except AuthenticationError as exc:
            msg = f"Could not renew the session: {exc}"
            raise SessionRenewalError(msg) from exc
