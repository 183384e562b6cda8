"""
Runtime settings read from the environment.

    CONFSEAL_GITHUB_TOKEN    publishing token (falls back to the OS keyring)
    CONFSEAL_GITHUB_OWNER    repository owner
    CONFSEAL_GITHUB_REPO     repository name
    CONFSEAL_GITHUB_BRANCH   branch to commit to (default: main)
    CONFSEAL_GITHUB_PATH     directory inside the repository (default: data)
    CONFSEAL_ITERATIONS      PBKDF2 cost for new envelopes (default: 100000)
    CONFSEAL_PASSWORD        envelope password for non-interactive use
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .exceptions import ConfigurationError, KeystoreError
from .models import DEFAULT_ITERATIONS, MAX_ITERATIONS

logger = logging.getLogger(__name__)

ENV_PREFIX = "CONFSEAL_"


@dataclass(frozen=True)
class GitHubConfig:
    """Explicit credentials and location for the repository uploader."""

    token: str = field(default="", repr=False)
    owner: str = ""
    repo: str = ""
    branch: str = "main"
    path: str = "data"

    @property
    def is_configured(self) -> bool:
        return bool(self.token and self.owner and self.repo)

    def full_path(self, filename: str) -> str:
        return f"{self.path}/{filename}".lstrip("/")


@dataclass(frozen=True)
class Settings:
    iterations: int = DEFAULT_ITERATIONS
    password: Optional[str] = field(default=None, repr=False)
    github: GitHubConfig = field(default_factory=GitHubConfig)


def _get(env: Mapping[str, str], name: str, default: str = "") -> str:
    return env.get(ENV_PREFIX + name, default).strip()


def load_github_config(env: Optional[Mapping[str, str]] = None, use_keyring: bool = True) -> GitHubConfig:
    """Build a :class:`GitHubConfig` from the environment, with keyring fallback for the token."""
    env = os.environ if env is None else env
    token = _get(env, "GITHUB_TOKEN")
    if not token and use_keyring:
        # imported here so that settings load without touching the keystore
        from confseal.security.keystore import load_token

        try:
            token = load_token() or ""
        except KeystoreError as e:
            logger.debug("no token from keyring: %s", e)
            token = ""

    return GitHubConfig(
        token=token,
        owner=_get(env, "GITHUB_OWNER"),
        repo=_get(env, "GITHUB_REPO"),
        branch=_get(env, "GITHUB_BRANCH", "main") or "main",
        path=_get(env, "GITHUB_PATH", "data").strip("/"),
    )


def load_settings(env: Optional[Mapping[str, str]] = None, use_keyring: bool = True) -> Settings:
    env = os.environ if env is None else env
    raw_iterations = _get(env, "ITERATIONS")
    iterations = DEFAULT_ITERATIONS
    if raw_iterations:
        try:
            iterations = int(raw_iterations)
        except ValueError:
            raise ConfigurationError(f"{ENV_PREFIX}ITERATIONS must be an integer, got {raw_iterations!r}") from None
        if not 1 <= iterations <= MAX_ITERATIONS:
            raise ConfigurationError(
                f"{ENV_PREFIX}ITERATIONS must be between 1 and {MAX_ITERATIONS}, got {iterations}"
            )

    return Settings(
        iterations=iterations,
        password=env.get(ENV_PREFIX + "PASSWORD") or None,
        github=load_github_config(env, use_keyring=use_keyring),
    )
