"""
Publishing envelopes to a GitHub repository through the contents API.

The uploader only moves text it is given; it never sees a password or a
payload. Credentials come in as an explicit :class:`GitHubConfig`.
"""

from __future__ import annotations

import base64
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional

import aiohttp

from confseal.core.config import GitHubConfig
from confseal.core.exceptions import ConfigurationError, PublishError

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT = 30.0

_STATUS_MESSAGES = {
    401: "token invalid or expired",
    404: "repository not found or not accessible",
    422: "invalid file path or branch",
}

__all__ = ["GitHubConfig", "GitHubPublisher", "RepoInfo", "UploadResult"]


@dataclass
class RepoInfo:
    full_name: str
    private: bool
    default_branch: str


@dataclass
class UploadResult:
    path: str
    sha: str
    url: str
    download_url: Optional[str]


class GitHubPublisher:
    """
    Upload text files to ``{owner}/{repo}`` under ``config.path``.

    An ``aiohttp.ClientSession`` may be passed in and is then left open;
    otherwise a session is opened per call.
    """

    def __init__(
        self,
        config: GitHubConfig,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = DEFAULT_TIMEOUT,
        api_base: str = GITHUB_API_BASE,
    ):
        self.config = config
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._api_base = api_base.rstrip("/")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require_config(self) -> None:
        if not self.config.is_configured:
            raise ConfigurationError("GitHub publishing is not configured (token, owner and repo are required)")

    @property
    def _repo_url(self) -> str:
        return f"{self._api_base}/repos/{self.config.owner}/{self.config.repo}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.token}",
            "Accept": "application/vnd.github.v3+json",
            "X-GitHub-Api-Version": API_VERSION,
        }

    @asynccontextmanager
    async def _open_session(self) -> AsyncIterator[aiohttp.ClientSession]:
        if self._session is not None:
            yield self._session
            return
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            yield session

    @staticmethod
    async def _error_for(response, action: str) -> PublishError:
        message = _STATUS_MESSAGES.get(response.status)
        if message is None:
            try:
                body = await response.json()
                message = body.get("message") if isinstance(body, dict) else None
            except (aiohttp.ContentTypeError, ValueError):
                message = None
            message = message or f"{action} failed: HTTP {response.status}"
        return PublishError(message, status=response.status)

    # ------------------------------------------------------------------
    # API
    # ------------------------------------------------------------------

    async def test_connection(self) -> RepoInfo:
        """Check the token and repository; returns basic repository info."""
        self._require_config()
        try:
            async with self._open_session() as session:
                async with session.get(self._repo_url, headers=self._headers()) as response:
                    if response.status != 200:
                        raise await self._error_for(response, "connection")
                    repo = await response.json()
        except aiohttp.ClientError as e:
            raise PublishError(f"cannot reach GitHub: {e}") from e

        info = RepoInfo(
            full_name=repo["full_name"],
            private=bool(repo.get("private")),
            default_branch=repo.get("default_branch", ""),
        )
        logger.info("connected to %s", info.full_name)
        return info

    async def get_file_sha(self, filename: str) -> Optional[str]:
        """Return the blob sha of an existing file, or None when it does not exist."""
        self._require_config()
        url = f"{self._repo_url}/contents/{self.config.full_path(filename)}"
        try:
            async with self._open_session() as session:
                async with session.get(
                    url, headers=self._headers(), params={"ref": self.config.branch}
                ) as response:
                    if response.status == 404:
                        return None
                    if response.status != 200:
                        raise await self._error_for(response, "lookup")
                    data = await response.json()
        except aiohttp.ClientError as e:
            raise PublishError(f"cannot reach GitHub: {e}") from e
        return data.get("sha")

    async def upload_file(self, filename: str, content: str, message: Optional[str] = None) -> UploadResult:
        """
        Create or update ``filename`` with ``content`` in one commit.

        Raises:
            ConfigurationError: token, owner or repo missing
            PublishError: the API rejected the upload or was unreachable
        """
        self._require_config()
        full_path = self.config.full_path(filename)
        body: Dict[str, Any] = {
            "message": message or f"chore: update {filename}",
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": self.config.branch,
        }
        existing_sha = await self.get_file_sha(filename)
        if existing_sha:
            body["sha"] = existing_sha

        url = f"{self._repo_url}/contents/{full_path}"
        try:
            async with self._open_session() as session:
                async with session.put(url, headers=self._headers(), json=body) as response:
                    if response.status not in (200, 201):
                        raise await self._error_for(response, "upload")
                    result = await response.json()
        except aiohttp.ClientError as e:
            raise PublishError(f"cannot reach GitHub: {e}") from e

        item = result["content"]
        logger.info("published %s (%s)", item["path"], "updated" if existing_sha else "created")
        return UploadResult(
            path=item["path"],
            sha=item["sha"],
            url=item.get("html_url", ""),
            download_url=item.get("download_url"),
        )

    def pages_url(self, filename: str) -> str:
        """GitHub Pages URL the file will be served from."""
        return f"https://{self.config.owner}.github.io/{self.config.repo}/{self.config.full_path(filename)}"

    def raw_url(self, filename: str) -> str:
        return (
            f"https://raw.githubusercontent.com/{self.config.owner}/{self.config.repo}/"
            f"{self.config.branch}/{self.config.full_path(filename)}"
        )
