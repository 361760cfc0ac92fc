from __future__ import annotations

from typing import Optional

import requests
from loguru import logger

from changelog_manager.errors import ReleaseHostError
from changelog_manager.utils.http_client import post as http_post

GITHUB_API = "https://api.github.com"


def _github_headers(token: str) -> dict:
    return {
        "Accept": "application/vnd.github+json",
        "Authorization": f"Bearer {token}",
        "X-GitHub-Api-Version": "2022-11-28",
    }


class GitHubReleaseHost:
    """Publishes releases through the GitHub REST API.

    Transient failures (429/5xx, connection errors) are retried by the shared
    HTTP session; anything still failing is reported, never raised.
    """

    def __init__(
        self, token: Optional[str], repository: Optional[str], timeout: float = 30.0
    ) -> None:
        self.token = (token or "").strip()
        self.repository = (repository or "").strip().strip("/")
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.token and self.repository)

    def _post_release(self, tag: str, title: str, body: str) -> dict:
        url = f"{GITHUB_API}/repos/{self.repository}/releases"
        try:
            resp = http_post(
                url,
                headers=_github_headers(self.token),
                json={
                    "tag_name": tag,
                    "name": title,
                    "body": body,
                    "draft": False,
                    "prerelease": False,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ReleaseHostError(None, str(e)) from e
        if resp.status_code < 200 or resp.status_code >= 300:
            raise ReleaseHostError(resp.status_code, (resp.text or "")[:300])
        try:
            return resp.json()
        except ValueError:
            return {}

    def create_release(self, tag: str, title: str, body: str) -> bool:
        if not self.configured:
            logger.info("GitHub token or repository not configured, skipping GitHub release")
            return False
        try:
            data = self._post_release(tag, title, body)
        except ReleaseHostError as e:
            logger.warning(f"Could not create GitHub release {tag}: {e}")
            return False
        url = data.get("html_url") if isinstance(data, dict) else None
        logger.success(
            f"GitHub release created successfully: {tag}" + (f" ({url})" if url else "")
        )
        return True
