"""Configuration loading for the Dropbox token relay.

The relay holds the confidential client credentials on behalf of the browser
client. They are read once from the process environment at startup and are
never changed afterwards.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .utils.logger import logger

CLIENT_ID_VAR = "DROPBOX_CLIENT_ID"
CLIENT_SECRET_VAR = "DROPBOX_CLIENT_SECRET"
REDIRECT_URI_VAR = "DROPBOX_REDIRECT_URI"

# Checked in this order; the first missing variable is reported
REQUIRED_ENV_VARS = (CLIENT_ID_VAR, CLIENT_SECRET_VAR, REDIRECT_URI_VAR)


class ConfigurationError(ValueError):
    """Raised when a required environment variable is missing or empty."""


@dataclass(frozen=True)
class RelayConfig:
    """Client credentials injected into every upstream token request."""

    client_id: str
    client_secret: str = field(repr=False)
    redirect_uri: str


def check_req_env_vars(
    required_env_vars: tuple[str, ...], environ: Mapping[str, str]
) -> None:
    """Check that all required environment variables are set and non-empty."""
    for var in required_env_vars:
        if not environ.get(var):
            logger.error("Missing required environment variable: %s", var)
            raise ConfigurationError(f"Missing required environment variable: {var}")


def load_config(environ: Mapping[str, str] | None = None) -> RelayConfig:
    """
    Build the relay configuration from environment variables.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        RelayConfig with all three values populated

    Raises:
        ConfigurationError: If any required variable is unset or empty.
    """
    if environ is None:
        environ = os.environ

    check_req_env_vars(REQUIRED_ENV_VARS, environ)

    config = RelayConfig(
        client_id=environ[CLIENT_ID_VAR],
        client_secret=environ[CLIENT_SECRET_VAR],
        redirect_uri=environ[REDIRECT_URI_VAR],
    )
    logger.info(
        "Loaded Dropbox relay configuration for client: %s (redirect_uri=%s)",
        config.client_id,
        config.redirect_uri,
    )
    return config
