"""Configuration module for the Nootverse client."""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from nootverse_client import __version__

# Load environment variables from the project root .env file.
# Anchored to __file__ so it works regardless of the process CWD.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# User-level config, shared by every checkout
_USER_ENV = Path.home() / ".nootverse" / ".env"
load_dotenv(_USER_ENV)


logger = logging.getLogger(__name__)

NETWORKS = ("local", "ic")

# Replica and identity endpoints used by the hosted network
IC_HOST = "https://ic0.app"
IC_IDENTITY_PROVIDER = "https://identity.ic0.app"
LOCAL_HOST = "http://localhost:4943"


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return float(raw)


class NootverseConfig(BaseModel):
    """Configuration for the Nootverse client."""

    # "local" talks to a development replica, "ic" to the hosted network
    network: str = Field(
        default_factory=lambda: os.getenv("NOOTVERSE_NETWORK", "local").lower()
    )
    # Explicit replica host; derived from network when unset
    host: Optional[str] = Field(
        default_factory=lambda: os.getenv("NOOTVERSE_HOST") or None
    )
    backend_canister_id: str = Field(
        default_factory=lambda: os.getenv(
            "NOOTVERSE_BACKEND_CANISTER_ID", "rrkah-fqaaa-aaaaa-aaaaq-cai"
        )
    )
    identity_canister_id: str = Field(
        default_factory=lambda: os.getenv(
            "NOOTVERSE_IDENTITY_CANISTER_ID", "rdmx6-jaaaa-aaaaa-aaadq-cai"
        )
    )
    # Gateway override for the JSON channel (defaults to <host>/api/<canister>)
    gateway_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("NOOTVERSE_GATEWAY_URL") or None
    )
    # Seconds; None leaves latency classification to the transport
    request_timeout: Optional[float] = Field(
        default_factory=lambda: _optional_float("NOOTVERSE_REQUEST_TIMEOUT")
    )
    log_dir: Path = Field(
        default_factory=lambda: Path(
            os.getenv("NOOTVERSE_LOG_DIR", str(Path.home() / ".nootverse" / "logs"))
        )
    )
    log_level: str = Field(
        default_factory=lambda: os.getenv("NOOTVERSE_LOG_LEVEL", "INFO").upper()
    )
    client_version: str = Field(default=__version__)

    @model_validator(mode="after")
    def _validate_network(self) -> "NootverseConfig":
        """Reject unknown networks and non-positive timeouts."""
        if self.network not in NETWORKS:
            raise ValueError(
                f"network must be one of {', '.join(NETWORKS)}, got {self.network!r}"
            )
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0 when set")
        if self.network == "ic" and self.host and self.host.startswith("http://localhost"):
            logger.warning(
                f"Network is 'ic' but host points at {self.host}; "
                "calls will go to the local replica"
            )
        return self

    def get_host(self) -> str:
        """Return the replica host, honouring an explicit override."""
        if self.host:
            return self.host.rstrip("/")
        if self.network == "ic":
            return IC_HOST
        return LOCAL_HOST

    def get_gateway_url(self) -> str:
        """Return the base URL the JSON channel posts actor calls to."""
        if self.gateway_url:
            return self.gateway_url.rstrip("/")
        return f"{self.get_host()}/api/{self.backend_canister_id}"

    def get_identity_provider(self) -> str:
        """Return the identity provider URL for the configured network."""
        if self.network == "ic":
            return IC_IDENTITY_PROVIDER
        return f"http://{self.identity_canister_id}.localhost:4943"


# Create a global config instance
config = NootverseConfig()
