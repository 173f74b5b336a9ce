"""Conversion of raw API responses into the representation callers asked for.

The Proxmox API can answer in several wire formats (json, html, extjs, text,
png). On top of those the client offers a few client-side representations:
``array`` decodes the JSON body, ``pngb64`` turns a PNG body into a data URI.
``object`` is accepted for compatibility and behaves exactly like ``array``.
"""

import base64
import enum
import json
from typing import Any

import httpx
import structlog

logger = structlog.get_logger(__name__)

PNG_DATA_URI_PREFIX = "data:image/png;base64,"


class ResponseMode(str, enum.Enum):
    """Representation returned by the client for every request."""

    JSON = "json"
    HTML = "html"
    EXTJS = "extjs"
    TEXT = "text"
    PNG = "png"
    PNGB64 = "pngb64"
    ARRAY = "array"
    OBJECT = "object"

    @classmethod
    def parse(cls, value: "ResponseMode | str | None") -> "ResponseMode":
        """Resolve a mode from its name, falling back to ``array`` if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            logger.debug("Unknown response type, using array", response_type=value)
            return cls.ARRAY

    @property
    def wire_format(self) -> str:
        """Format segment requested from the API (``/api2/{format}/...``)."""
        if self is ResponseMode.PNGB64:
            return ResponseMode.PNG.value
        if self in (ResponseMode.ARRAY, ResponseMode.OBJECT):
            return ResponseMode.JSON.value
        return self.value

    @property
    def decodes_json(self) -> bool:
        """True for modes returning the decoded JSON body."""
        # "object" has no dedicated representation yet and decodes like "array".
        return self in (ResponseMode.ARRAY, ResponseMode.OBJECT)


def normalize_response(response: httpx.Response | None, mode: ResponseMode) -> Any:
    """Shape a raw API response according to the response mode.

    The HTTP status is not inspected: error responses are decoded the same
    way as successful ones so callers can read Proxmox's own error payload.

    Args:
        response: Response returned by the transport, or None.
        mode: Representation requested by the caller.

    Returns:
        Decoded JSON (dict/list) for array/object, a PNG data URI for
        pngb64, the body text otherwise, or None when there is no response
        or the body is not valid JSON in a decoding mode.
    """
    if response is None:
        return None

    if mode is ResponseMode.PNGB64:
        return PNG_DATA_URI_PREFIX + base64.b64encode(response.content).decode("ascii")

    if mode.decodes_json:
        try:
            return json.loads(response.content)
        except ValueError:
            logger.debug(
                "Response body is not valid JSON",
                status_code=response.status_code,
            )
            return None

    return response.text
