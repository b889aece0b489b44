"""
Cloud Credentials Module

Provides the bearer tokens used to talk to Terramate Cloud.

Classes:
    Credential: Protocol implemented by every credential
    GitHubOIDCCredential: Token minted by the GitHub Actions OIDC provider
    StoredCredential: Token saved by a previous cloud login

Functions:
    load_credential: Picks the first available credential for the environment
"""

import json
import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import jwt
import requests

from .config import OIDC_TIMEOUT
from .environment import EnvironmentConfig
from .exceptions import CredentialError

logger = logging.getLogger(__name__)

GITHUB_OIDC_PROVIDER_NAME = "GitHub Actions OIDC"
STORED_PROVIDER_NAME = "Terramate Cloud login"
CREDENTIALS_FILENAME = "credentials.tmrc.json"


class Credential(Protocol):
    """Protocol for cloud credentials."""

    name: str

    def token(self) -> str:
        """Return a valid bearer token, refreshing it if needed."""
        ...

    def is_expired(self) -> bool:
        """Whether the current token is expired."""
        ...


def token_claims(token: str) -> Dict[str, Any]:
    """Decode the payload of a JWT without verifying its signature.

    Raises:
        CredentialError: If the token is not a valid JWT
    """
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise CredentialError(f"invalid JWT token: {e}") from e


def _expiry(claims: Dict[str, Any]) -> float:
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        raise CredentialError('cached JWT token has no "exp" field')
    return float(exp)


class GitHubOIDCCredential:
    """Bearer token obtained from the GitHub Actions OIDC provider.

    token() refreshes an expired token under a lock. Callers racing on an
    expired token may each refresh it; the lock only serializes the update.
    """

    name = GITHUB_OIDC_PROVIDER_NAME

    def __init__(self, request_url: str, request_token: str, audience: str = "",
                 session: Optional[requests.Session] = None, timeout: float = OIDC_TIMEOUT):
        """Initialize the credential.

        Args:
            request_url: Value of ACTIONS_ID_TOKEN_REQUEST_URL
            request_token: Value of ACTIONS_ID_TOKEN_REQUEST_TOKEN
            audience: Optional OIDC audience added to the request
            session: HTTP session, a new one when omitted
            timeout: Request timeout in seconds
        """
        self.request_url = request_url
        self.request_token = request_token
        self.audience = audience
        self.session = session or requests.Session()
        self.timeout = timeout

        self._lock = threading.Lock()
        self._token = ""
        self._expire_at = 0.0
        self.repo_owner = ""
        self.repo_name = ""

    def is_expired(self) -> bool:
        with self._lock:
            return time.time() >= self._expire_at

    def refresh(self) -> None:
        """Request a new token from the OIDC provider.

        Raises:
            CredentialError: If the request fails or the token lacks required claims
        """
        params = {"audience": self.audience} if self.audience else None
        try:
            response = self.session.get(
                self.request_url,
                params=params,
                headers={"Authorization": f"Bearer {self.request_token}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            value = response.json()["value"]
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            raise CredentialError(f"requesting GitHub OIDC token: {e}") from e

        claims = token_claims(value)
        expire_at = _expiry(claims)
        repo_owner = claims.get("repository_owner")
        if not isinstance(repo_owner, str):
            raise CredentialError('GitHub OIDC JWT with no "repository_owner" payload field.')
        repo_name = claims.get("repository")
        if not isinstance(repo_name, str):
            raise CredentialError('GitHub OIDC JWT with no "repository" payload field.')

        with self._lock:
            self._token = value
            self._expire_at = expire_at
            self.repo_owner = repo_owner
            self.repo_name = repo_name
        logger.debug(f"refreshed {self.name} token for {repo_name}")

    def token(self) -> str:
        if self.is_expired():
            self.refresh()
        with self._lock:
            return self._token


class StoredCredential:
    """Token saved on disk by a previous cloud login. It is never refreshed."""

    name = STORED_PROVIDER_NAME

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._token = ""
        self._expire_at = 0.0

    def load(self) -> bool:
        """Load the token file.

        Returns:
            False if the file does not exist

        Raises:
            CredentialError: If the file exists but holds no usable token
        """
        if not self.path.exists():
            return False
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
            value = data["id_token"]
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise CredentialError(f"reading credentials from {self.path}: {e}") from e

        expire_at = _expiry(token_claims(value))
        with self._lock:
            self._token = value
            self._expire_at = expire_at
        return True

    def is_expired(self) -> bool:
        with self._lock:
            return time.time() >= self._expire_at

    def token(self) -> str:
        if self.is_expired():
            raise CredentialError(
                f"cloud credentials in {self.path} expired, please login again"
            )
        with self._lock:
            return self._token


def load_credential(config: EnvironmentConfig, session: Optional[requests.Session] = None) -> Credential:
    """Pick the credential to use for this invocation.

    GitHub Actions OIDC is preferred when its environment is present,
    otherwise the stored login is used.

    Raises:
        CredentialError: If no credential is available
    """
    if config.oidc_request_url:
        credential = GitHubOIDCCredential(
            config.oidc_request_url,
            config.oidc_request_token,
            audience=config.oidc_audience,
            session=session,
        )
        credential.refresh()
        return credential

    credentials_dir = Path(config.credentials_dir) if config.credentials_dir else Path.home() / ".terramate.d"
    stored = StoredCredential(credentials_dir / CREDENTIALS_FILENAME)
    if stored.load():
        return stored

    raise CredentialError("no cloud credentials found, please login or run in GitHub Actions with OIDC enabled")
