"""Connection credentials for a Proxmox server.

Holds the target host, port and login data, validated with Pydantic, and
derives the base API URL every request is built from.
"""

from collections.abc import Mapping
from typing import Any

import pydantic

from .exceptions import MalformedCredentialsError

DEFAULT_PORT = 8006
DEFAULT_REALM = "pam"
DEFAULT_SYSTEM = "pve"

_FIELDS = ("hostname", "port", "username", "password", "realm", "system")


class Credentials(pydantic.BaseModel):
    """Immutable login data for one Proxmox VE or Proxmox Mail Gateway host."""

    model_config = pydantic.ConfigDict(frozen=True)

    hostname: str = pydantic.Field(min_length=1, description="Server hostname or IP")
    username: str = pydantic.Field(min_length=1, description="Login user name")
    password: str = pydantic.Field(
        min_length=1,
        description="Login password",
        repr=False,
    )
    port: int = pydantic.Field(DEFAULT_PORT, gt=0, lt=65536, description="API port")
    realm: str = pydantic.Field(
        DEFAULT_REALM,
        min_length=1,
        description="Authentication realm, e.g. pam or pve",
    )
    system: str = pydantic.Field(
        DEFAULT_SYSTEM,
        min_length=1,
        description="Target system, pve or pmg",
    )

    @pydantic.field_validator("hostname", "username", "realm", "system")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        # Rejected, not stripped: the values are sent to the server as given.
        if not value.strip():
            msg = "must not be blank"
            raise ValueError(msg)
        return value

    @property
    def api_url(self) -> str:
        """Base API URL, e.g. ``https://my-proxmox:8006/api2``."""
        return f"https://{self.hostname}:{self.port}/api2"

    @classmethod
    def from_source(cls, source: Any) -> "Credentials":
        """Build credentials from a mapping or any object exposing the fields.

        Args:
            source: A ``Credentials`` instance (returned unchanged), a mapping
                of field names to values, or an object with matching
                attributes.

        Returns:
            Validated Credentials.

        Raises:
            MalformedCredentialsError: If required fields are missing or any
                field fails validation.
        """
        if isinstance(source, cls):
            return source

        if isinstance(source, Mapping):
            data = dict(source)
        elif source is not None:
            data = {
                name: getattr(source, name)
                for name in _FIELDS
                if getattr(source, name, None) is not None
            }
        else:
            data = {}

        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as exc:
            fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
            msg = f"Malformed credentials, check fields: {', '.join(fields)}"
            raise MalformedCredentialsError(msg) from exc
