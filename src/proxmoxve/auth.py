"""Session ticket issued by a Proxmox server at login time."""

import time
from dataclasses import dataclass, field

# Proxmox tickets live for two hours; renew a little earlier.
TICKET_LIFETIME = 7000


@dataclass(frozen=True)
class AuthToken:
    """Ticket and CSRF prevention token for one authenticated session.

    Tokens are never mutated: an expired token is discarded and replaced
    by the one returned from the next login.
    """

    csrf: str = field(repr=False)
    ticket: str = field(repr=False)
    username: str
    timestamp: float = field(default_factory=time.time)

    @property
    def expires_at(self) -> float:
        """UNIX time after which the ticket is no longer used."""
        return self.timestamp + TICKET_LIFETIME

    def is_valid(self) -> bool:
        """Tell whether the ticket can still be used to request the server."""
        return self.expires_at >= time.time()
