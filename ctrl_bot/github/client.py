"""Async GitHub REST client.

Covers only the calls the pull request automation needs. Every call is
bounded by a timeout; HTTP errors, transport errors and timeouts all
surface as :class:`GitHubAPIError`.
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

import aiohttp
import structlog

from ..exceptions import GitHubAPIError

logger = structlog.get_logger()

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
CONTRIBUTORS_PAGE_SIZE = 100
MAX_CONTRIBUTOR_PAGES = 10


class GitHubClient:
    """Thin wrapper over the endpoints used for PR automation."""

    def __init__(
        self,
        token: str,
        api_url: str = GITHUB_API_URL,
        timeout_seconds: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._token = token
        self._session = session
        self._owns_session = session is None

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def add_assignees(
        self, repo: str, number: int, assignees: List[str]
    ) -> None:
        await self._request(
            "POST",
            f"/repos/{repo}/issues/{number}/assignees",
            body={"assignees": assignees},
        )

    async def request_reviewers(
        self, repo: str, number: int, reviewers: List[str]
    ) -> None:
        await self._request(
            "POST",
            f"/repos/{repo}/pulls/{number}/requested_reviewers",
            body={"reviewers": reviewers},
        )

    async def create_comment(self, repo: str, number: int, body: str) -> None:
        await self._request(
            "POST",
            f"/repos/{repo}/issues/{number}/comments",
            body={"body": body},
        )

    async def merge_pull_request(
        self,
        repo: str,
        number: int,
        commit_title: Optional[str] = None,
        commit_message: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if commit_title is not None:
            body["commit_title"] = commit_title
        if commit_message is not None:
            body["commit_message"] = commit_message
        result = await self._request(
            "PUT", f"/repos/{repo}/pulls/{number}/merge", body=body
        )
        return result if isinstance(result, dict) else {}

    async def list_contributors(self, repo: str) -> List[str]:
        """Logins of everyone who has contributed to ``repo``."""
        logins: List[str] = []
        for page in range(1, MAX_CONTRIBUTOR_PAGES + 1):
            result = await self._request(
                "GET",
                f"/repos/{repo}/contributors",
                params={"per_page": str(CONTRIBUTORS_PAGE_SIZE), "page": str(page)},
            )
            items = result if isinstance(result, list) else []
            logins.extend(item["login"] for item in items if item.get("login"))
            if len(items) < CONTRIBUTORS_PAGE_SIZE:
                break
        return logins

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "Accept": "application/vnd.github+json",
                    "Authorization": f"Bearer {self._token}",
                    "X-GitHub-Api-Version": GITHUB_API_VERSION,
                },
                timeout=self.timeout,
            )
            self._owns_session = True
        return self._session

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        url = f"{self.api_url}{path}"
        session = self._get_session()
        try:
            async with session.request(
                method, url, json=body, params=params, timeout=self.timeout
            ) as resp:
                data = _decode_body(await resp.text())
                if resp.status >= 400:
                    message = (
                        data.get("message") if isinstance(data, dict) else None
                    ) or resp.reason
                    logger.warning(
                        "GitHub API error",
                        method=method,
                        path=path,
                        status=resp.status,
                        message=message,
                    )
                    raise GitHubAPIError(
                        f"{method} {path} failed: {resp.status} {message}",
                        status=resp.status,
                    )
                return data
        except asyncio.TimeoutError as e:
            raise GitHubAPIError(f"{method} {path} timed out") from e
        except aiohttp.ClientError as e:
            raise GitHubAPIError(f"{method} {path} failed: {e}") from e


def _decode_body(raw: str) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw
