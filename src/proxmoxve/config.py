"""Configuration and logging setup for the Proxmox API client."""

import json
import logging
import os
import pathlib

import pydantic
import structlog

from . import client, credentials, response

CONFIG_ENV_VAR = "PROXMOXVE_CONFIG_PATH"
DEFAULT_CONFIG_PATH = "proxmoxve.json"
logger = structlog.get_logger(__name__)


class ClientConfig(pydantic.BaseModel):
    """Configuration for a Proxmox API client."""

    hostname: str = pydantic.Field(description="Proxmox server hostname or IP")
    username: str = pydantic.Field(description="Login user name")
    password: str = pydantic.Field(description="Login password", repr=False)
    port: int = pydantic.Field(
        credentials.DEFAULT_PORT,
        description="API port",
        gt=0,
        lt=65536,
    )
    realm: str = pydantic.Field(
        credentials.DEFAULT_REALM,
        description="Authentication realm",
    )
    system: str = pydantic.Field(
        credentials.DEFAULT_SYSTEM,
        description="Target system, pve or pmg",
    )
    response_type: str = pydantic.Field(
        response.ResponseMode.ARRAY.value,
        description="Representation returned by requests",
    )
    timeout: float = pydantic.Field(
        client.DEFAULT_TIMEOUT,
        description="Request timeout in seconds",
        gt=0,
    )
    log_level: str = pydantic.Field("INFO", description="Logging level")

    def build_credentials(self) -> credentials.Credentials:
        """Build validated Credentials from this configuration."""
        fields = {"hostname", "port", "username", "password", "realm", "system"}
        return credentials.Credentials.from_source(self.model_dump(include=fields))


def configure_logging(log_level_name: str) -> None:
    """Configure structlog for logfmt output."""
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            structlog.processors.LogfmtRenderer(
                key_order=("timestamp", "level", "msg"),
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def load_config(config_path: str) -> ClientConfig:
    """Load configuration from JSON file."""
    path = pathlib.Path(config_path)
    if not path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with path.open("r") as f:
        data = json.load(f)

    return ClientConfig(**data)


def create_client(config_path: str | None = None) -> client.ProxmoxClient:
    """Create a logged-in client using a config path or environment default."""
    resolved_path = config_path or os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)
    config = load_config(resolved_path)
    configure_logging(config.log_level)
    logger.info(
        "Loaded client configuration",
        path=resolved_path,
        hostname=config.hostname,
    )
    return client.ProxmoxClient(
        credentials=config.build_credentials(),
        response_type=config.response_type,
        timeout=config.timeout,
    )
