"""Configuration management for the installation controller."""
import logging
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

# Seconds between two polls of the same loop
GENERAL_WAIT_TIMEOUT = 30.0

TRUE_VALUES = ("1", "true", "yes", "on")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in TRUE_VALUES


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


@dataclass(frozen=True)
class ControllerConfig:
    """Settings the controller needs before any loop is launched.

    Required values come from CLUSTER_ID, INVENTORY_URL and PULL_SECRET_TOKEN.
    ``console_timeout`` and ``finalizing_timeout`` default to ``None`` which
    means waiting forever.
    """

    cluster_id: str = ""
    inventory_url: str = ""
    pull_secret_token: str = ""
    skip_cert_verification: bool = False
    ca_cert_path: str = ""
    poll_interval: float = GENERAL_WAIT_TIMEOUT
    console_timeout: Optional[float] = None
    finalizing_timeout: Optional[float] = None
    api_timeout: float = 30.0
    kubeconfig: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ControllerConfig":
        """Build the configuration from the environment and an optional .env file."""
        load_dotenv()
        return cls(
            cluster_id=os.getenv("CLUSTER_ID", ""),
            inventory_url=os.getenv("INVENTORY_URL", ""),
            pull_secret_token=os.getenv("PULL_SECRET_TOKEN", ""),
            skip_cert_verification=_env_bool("SKIP_CERT_VERIFICATION"),
            ca_cert_path=os.getenv("CA_CERT_PATH", ""),
            poll_interval=_env_float("POLL_INTERVAL", GENERAL_WAIT_TIMEOUT),
            console_timeout=_env_float("CONSOLE_TIMEOUT", None),
            finalizing_timeout=_env_float("FINALIZING_TIMEOUT", None),
            api_timeout=_env_float("API_TIMEOUT", 30.0),
            kubeconfig=os.getenv("KUBECONFIG", ""),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def override(self, **overrides: Any) -> "ControllerConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    def validate(self) -> None:
        """Validate required configuration."""
        required = {
            "CLUSTER_ID": self.cluster_id,
            "INVENTORY_URL": self.inventory_url,
            "PULL_SECRET_TOKEN": self.pull_secret_token,
        }
        missing = [k for k, v in required.items() if not v]
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

        problems = []
        parsed = urlparse(self.inventory_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            problems.append(f"INVENTORY_URL is not a valid http(s) URL: {self.inventory_url}")
        if self.poll_interval <= 0:
            problems.append("POLL_INTERVAL must be positive")
        if self.api_timeout <= 0:
            problems.append("API_TIMEOUT must be positive")
        for name, value in (("CONSOLE_TIMEOUT", self.console_timeout),
                            ("FINALIZING_TIMEOUT", self.finalizing_timeout)):
            if value is not None and value <= 0:
                problems.append(f"{name} must be positive when set")
        if not isinstance(logging.getLevelName(self.log_level), int):
            problems.append(f"LOG_LEVEL is not a logging level: {self.log_level}")
        if self.ca_cert_path and not Path(self.ca_cert_path).is_file():
            problems.append(f"CA_CERT_PATH does not exist: {self.ca_cert_path}")
        if problems:
            raise ValueError("Invalid configuration: " + "; ".join(problems))

    @property
    def tls_verify(self):
        """Value for the ``verify`` argument of requests."""
        if self.skip_cert_verification:
            return False
        return self.ca_cert_path or True

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
