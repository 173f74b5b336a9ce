"""Proxmox REST API client.

Provides the public client: login with ticket authentication, transparent
session renewal, and GET/PUT/POST/DELETE requests against arbitrary paths
of the Proxmox resource tree.
"""

import time
from collections.abc import Mapping
from typing import Any

import httpx
import pydantic
import structlog

from .auth import AuthToken
from .credentials import Credentials
from .exceptions import AuthenticationError, InvalidArgumentError
from .response import ResponseMode, normalize_response
from .session import SessionManager

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 30.0

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE")

LOGIN_PATH = "/json/access/ticket"

CSRF_HEADER = "CSRFPreventionToken"

_COOKIE_NAMES = {
    "pve": "PVEAuthCookie",
    "pmg": "PMGAuthCookie",
}


class _TicketData(pydantic.BaseModel):
    """The ``data`` payload of a successful login response."""

    ticket: str
    CSRFPreventionToken: str
    username: str


def cookie_name(system: str) -> str:
    """Name of the cookie carrying the ticket for the given target system."""
    return _COOKIE_NAMES.get(system.lower(), _COOKIE_NAMES["pve"])


def _normalize_path(action_path: str) -> str:
    if not action_path.startswith("/"):
        return "/" + action_path
    return action_path


class ProxmoxClient:
    """HTTP client for the Proxmox VE and Proxmox Mail Gateway REST API.

    Logs in at construction time and keeps the session ticket for later
    requests, logging in again whenever the ticket has expired. Every
    request blocks until the server answers. HTTP error statuses are not
    raised; the response is normalized and returned like any other.

    Not thread-safe: share an instance between threads only behind an
    external lock. Can be used as a context manager for automatic cleanup.
    """

    def __init__(
        self,
        credentials: Credentials | Mapping[str, Any] | Any,
        response_type: ResponseMode | str = ResponseMode.ARRAY,
        http_client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the client and log in to the server.

        Args:
            credentials: Credentials object, mapping, or any object exposing
                hostname, username, password (and optionally port, realm,
                system) attributes.
            response_type: Representation returned by requests, one of
                json, html, extjs, text, png, pngb64, array, object.
                Unknown values fall back to array.
            http_client: Pre-configured httpx.Client to send requests with.
                When omitted a client with TLS verification is created.
            timeout: Request timeout in seconds for the created client.

        Raises:
            MalformedCredentialsError: If credentials are missing or invalid.
            AuthenticationError: If the server rejects the credentials.
            ValueError: If timeout is not positive.
        """
        if timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)

        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.Client(verify=True, timeout=timeout)
        self._response_mode = ResponseMode.parse(response_type)
        self._session = SessionManager(self.login)
        try:
            self.credentials = credentials
        except Exception:
            self.close()
            raise

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager and cleanup resources."""
        self.close()

    def close(self):
        """Close the HTTP client if it was created by this instance."""
        if self._owns_http_client and not self._http_client.is_closed:
            self._http_client.close()

    @property
    def http_client(self) -> httpx.Client:
        """The httpx client requests are sent with."""
        return self._http_client

    @property
    def credentials(self) -> Credentials:
        """Credentials of the server this client talks to."""
        return self._credentials

    @credentials.setter
    def credentials(self, credentials: Credentials | Mapping[str, Any] | Any) -> None:
        # Nothing changes unless the new server accepts the login.
        new_credentials = Credentials.from_source(credentials)
        token = self.login(new_credentials)
        self._credentials = new_credentials
        self._session.token = token

    @property
    def auth_token(self) -> AuthToken | None:
        """The session token currently used for requests."""
        return self._session.token

    @auth_token.setter
    def auth_token(self, token: AuthToken | None) -> None:
        self._session.token = token

    @property
    def session(self) -> SessionManager:
        """Session manager owning the cached AuthToken."""
        return self._session

    @property
    def response_type(self) -> str:
        """Name of the representation returned by requests."""
        return self._response_mode.value

    @response_type.setter
    def response_type(self, response_type: ResponseMode | str) -> None:
        self._response_mode = ResponseMode.parse(response_type)

    @property
    def api_url(self) -> str:
        """API URL requests are sent to, e.g. ``https://pve:8006/api2/json``."""
        return f"{self._credentials.api_url}/{self._response_mode.wire_format}"

    def _cookie_header(self, token: AuthToken) -> dict[str, str]:
        # Sent per request rather than via the cookie jar, which refuses
        # to match dotless hostnames.
        name = cookie_name(self._credentials.system)
        return {"Cookie": f"{name}={token.ticket}"}

    def login(self, credentials: Credentials | None = None) -> AuthToken:
        """Log in and return a new AuthToken.

        Args:
            credentials: Credentials to log in with, defaults to the ones
                the client is configured with.

        Returns:
            AuthToken holding the ticket and CSRF prevention token.

        Raises:
            AuthenticationError: If the response carries no session data.
            httpx.HTTPError: If the HTTP request itself fails.
        """
        credentials = credentials or self._credentials
        url = credentials.api_url + LOGIN_PATH
        logger.info(
            "Logging in",
            hostname=credentials.hostname,
            username=credentials.username,
            realm=credentials.realm,
        )
        response = self._http_client.post(
            url,
            data={
                "username": credentials.username,
                "password": credentials.password,
                "realm": credentials.realm,
            },
        )

        msg = "Can not login using the provided credentials."
        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthenticationError(msg) from exc

        data = payload.get("data") if isinstance(payload, dict) else None
        if not data:
            raise AuthenticationError(msg)

        try:
            ticket = _TicketData.model_validate(data)
        except pydantic.ValidationError as exc:
            raise AuthenticationError(msg) from exc

        return AuthToken(
            csrf=ticket.CSRFPreventionToken,
            ticket=ticket.ticket,
            username=ticket.username,
        )

    def request_resource(
        self,
        action_path: str,
        params: Mapping[str, Any] | None = None,
        method: str = "GET",
        json: bool = False,
    ) -> httpx.Response:
        """Send a request to a Proxmox API resource.

        Logs in again first if the cached ticket has expired, so this may
        issue two HTTP requests.

        Args:
            action_path: Resource tree path, e.g. "/nodes/pve1/status".
            params: Query parameters for GET, body parameters otherwise.
            method: One of GET, POST, PUT, DELETE.
            json: Send body parameters JSON-encoded instead of form-encoded.

        Returns:
            The raw httpx.Response, whatever its status code.

        Raises:
            InvalidArgumentError: If method is not supported or params is
                not a mapping.
            SessionRenewalError: If the expired session cannot be renewed.
            httpx.HTTPError: If the HTTP request itself fails.
        """
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            msg = f"HTTP Request method {method} not allowed."
            raise InvalidArgumentError(msg)
        if params is None:
            params = {}
        if not isinstance(params, Mapping):
            msg = f"{method} params should be a mapping."
            raise InvalidArgumentError(msg)

        token = self._session.ensure_session()

        action_path = _normalize_path(action_path)
        url = self.api_url + action_path
        headers = self._cookie_header(token)

        start_time = time.time()
        logger.debug("Making API request", method=method, path=action_path)
        if method == "GET":
            response = self._http_client.get(url, params=dict(params), headers=headers)
        else:
            headers[CSRF_HEADER] = token.csrf
            body = {"json": dict(params)} if json else {"data": dict(params)}
            response = self._http_client.request(method, url, headers=headers, **body)
        duration = time.time() - start_time
        logger.debug(
            "API request completed",
            method=method,
            path=action_path,
            status_code=response.status_code,
            duration_seconds=round(duration, 3),
        )
        return response

    def get(self, action_path: str, params: Mapping[str, Any] | None = None) -> Any:
        """GET a resource of the API tree.

        Raises:
            InvalidArgumentError: If params is not a mapping.
        """
        response = self.request_resource(action_path, params)
        return normalize_response(response, self._response_mode)

    def set(
        self,
        action_path: str,
        params: Mapping[str, Any] | None = None,
        json: bool = False,
    ) -> Any:
        """Update (PUT) a resource of the API tree.

        Raises:
            InvalidArgumentError: If params is not a mapping.
        """
        response = self.request_resource(action_path, params, "PUT", json)
        return normalize_response(response, self._response_mode)

    def create(
        self,
        action_path: str,
        params: Mapping[str, Any] | None = None,
        json: bool = False,
    ) -> Any:
        """Create (POST) a resource of the API tree.

        Raises:
            InvalidArgumentError: If params is not a mapping.
        """
        response = self.request_resource(action_path, params, "POST", json)
        return normalize_response(response, self._response_mode)

    def delete(
        self,
        action_path: str,
        params: Mapping[str, Any] | None = None,
        json: bool = False,
    ) -> Any:
        """DELETE a resource of the API tree.

        Raises:
            InvalidArgumentError: If params is not a mapping.
        """
        response = self.request_resource(action_path, params, "DELETE", json)
        return normalize_response(response, self._response_mode)

    def get_version(self) -> Any:
        """Retrieve the ``/version`` resource."""
        return self.get("/version")
