"""Tests for SessionManager caching and renewal.

Login is replaced by a MagicMock so the renewal decision can be checked
without any HTTP traffic.
"""

from unittest.mock import MagicMock

import pytest
from structlog.testing import capture_logs

from proxmoxve import auth, session
from proxmoxve.exceptions import AuthenticationError, SessionRenewalError


def _fresh_token(ticket: str = "T1") -> auth.AuthToken:
    return auth.AuthToken(csrf="C1", ticket=ticket, username="u@pam")


def _expired_token() -> auth.AuthToken:
    return auth.AuthToken(csrf="C0", ticket="T0", username="u@pam", timestamp=0.0)


def test_no_token_before_first_login():
    """A new manager holds no token and does not log in on its own."""
    login = MagicMock(return_value=_fresh_token())
    manager = session.SessionManager(login)
    assert manager.token is None
    login.assert_not_called()


def test_renew_always_logs_in():
    """renew() replaces the token even if the current one is still valid."""
    first, second = _fresh_token("T1"), _fresh_token("T2")
    login = MagicMock(side_effect=[first, second])
    manager = session.SessionManager(login)

    assert manager.renew() is first
    assert manager.renew() is second
    assert manager.token is second


def test_ensure_session_reuses_valid_token():
    """A valid cached token is returned without logging in."""
    token = _fresh_token()
    login = MagicMock()
    manager = session.SessionManager(login)
    manager.token = token

    assert manager.ensure_session() is token
    assert manager.ensure_session() is token
    login.assert_not_called()


def test_ensure_session_logs_in_without_token():
    """The first call logs in when nothing is cached."""
    token = _fresh_token()
    login = MagicMock(return_value=token)
    manager = session.SessionManager(login)

    assert manager.ensure_session() is token
    login.assert_called_once()


def test_ensure_session_replaces_expired_token():
    """An expired token triggers exactly one login and is replaced."""
    fresh = _fresh_token("T2")
    login = MagicMock(return_value=fresh)
    manager = session.SessionManager(login)
    manager.token = _expired_token()

    assert manager.ensure_session() is fresh
    assert manager.ensure_session() is fresh
    login.assert_called_once()


def test_failed_renewal_raises_session_renewal_error():
    """A failing re-login surfaces as SessionRenewalError."""
    login = MagicMock(side_effect=AuthenticationError("bad credentials"))
    manager = session.SessionManager(login)
    manager.token = _expired_token()

    with pytest.raises(SessionRenewalError, match="bad credentials") as exc_info:
        manager.ensure_session()

    assert isinstance(exc_info.value, AuthenticationError)
    assert isinstance(exc_info.value.__cause__, AuthenticationError)


def test_failed_renewal_keeps_expired_token():
    """The cache is not cleared when renewal fails."""
    expired = _expired_token()
    login = MagicMock(side_effect=AuthenticationError("down"))
    manager = session.SessionManager(login)
    manager.token = expired

    with pytest.raises(SessionRenewalError):
        manager.ensure_session()
    assert manager.token is expired


def test_renew_propagates_authentication_error():
    """renew() reports login failures unchanged."""
    login = MagicMock(side_effect=AuthenticationError("nope"))
    manager = session.SessionManager(login)

    with pytest.raises(AuthenticationError) as exc_info:
        manager.renew()
    assert not isinstance(exc_info.value, SessionRenewalError)


def test_managers_are_independent():
    """Each manager owns its own session state."""
    first = session.SessionManager(MagicMock(return_value=_fresh_token("A")))
    second = session.SessionManager(MagicMock(return_value=_fresh_token("B")))

    first.renew()

    assert first.token.ticket == "A"
    assert second.token is None


def test_first_login_is_not_reported_as_expiry():
    """Logging in without any cached token is not logged as an expired ticket."""
    manager = session.SessionManager(MagicMock(return_value=_fresh_token()))

    with capture_logs() as logs:
        manager.ensure_session()

    events = [entry["event"] for entry in logs]
    assert "No session yet, logging in" in events
    assert "Session ticket expired, logging in again" not in events


def test_expiry_is_reported_on_renewal():
    manager = session.SessionManager(MagicMock(return_value=_fresh_token()))
    manager.token = _expired_token()

    with capture_logs() as logs:
        manager.ensure_session()

    expired = [
        entry
        for entry in logs
        if entry["event"] == "Session ticket expired, logging in again"
    ]
    assert len(expired) == 1
    assert expired[0]["expired_at"] == auth.TICKET_LIFETIME
