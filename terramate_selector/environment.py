"""
Environment Configuration Module

Handles parsing and validation of environment variables.
This is a pure module - no side effects, just data transformation.
"""

from dataclasses import dataclass
from typing import Dict, List
from urllib.parse import urlparse
import logging

from .config import DEFAULT_CLOUD_API_URL
from .utils import parse_log_level

logger = logging.getLogger(__name__)


@dataclass
class EnvironmentConfig:
    """Configuration parsed from environment variables."""

    cloud_api_url: str = DEFAULT_CLOUD_API_URL
    cloud_organization: str = ""
    oidc_request_url: str = ""
    oidc_request_token: str = ""
    oidc_audience: str = ""
    credentials_dir: str = ""
    log_level: str = "warning"

    @classmethod
    def from_env(cls, env: Dict[str, str]) -> "EnvironmentConfig":
        """Create configuration from environment variables.

        Args:
            env: Dictionary of environment variables (typically os.environ)

        Returns:
            EnvironmentConfig instance
        """
        api_url = env.get("TMC_API_URL", "").strip() or DEFAULT_CLOUD_API_URL
        return cls(
            cloud_api_url=api_url.rstrip("/"),
            cloud_organization=env.get("TM_CLOUD_ORGANIZATION", "").strip(),
            oidc_request_url=env.get("ACTIONS_ID_TOKEN_REQUEST_URL", "").strip(),
            oidc_request_token=env.get("ACTIONS_ID_TOKEN_REQUEST_TOKEN", "").strip(),
            oidc_audience=env.get("TM_CLOUD_OIDC_AUDIENCE", "").strip(),
            credentials_dir=env.get("TM_CLOUD_CREDENTIALS_DIR", "").strip(),
            log_level=env.get("TM_LOG_LEVEL", "warning").strip() or "warning",
        )

    def validate(self) -> List[str]:
        """Validate the configuration.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        parsed = urlparse(self.cloud_api_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append(f"TMC_API_URL must be an http(s) URL, got '{self.cloud_api_url}'")

        if self.oidc_request_url and not self.oidc_request_token:
            errors.append(
                "ACTIONS_ID_TOKEN_REQUEST_TOKEN is required when ACTIONS_ID_TOKEN_REQUEST_URL is set"
            )

        try:
            parse_log_level(self.log_level)
        except ValueError:
            errors.append(f"Invalid TM_LOG_LEVEL '{self.log_level}'")

        return errors
