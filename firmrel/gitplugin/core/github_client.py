"""
Minimal GitHub REST client for changelog generation
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ...errors import ExternalToolError, ValidationError


class GitHubClient:
    """Issue, label and pull request lookups for a single repository"""

    def __init__(self, owner: str, repo: str, token: Optional[str] = None,
                 base_url: str = "https://api.github.com", timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.logger = logging.getLogger(__name__)
        self.owner = owner
        self.repo = repo

        headers = {"Accept": "application/vnd.github.v3+json"}
        if token:
            headers["Authorization"] = f"token {token}"

        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip('/'),
            headers=headers,
            timeout=timeout,
            transport=transport
        )

    async def __aenter__(self) -> 'GitHubClient':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def get_label(self, name: str) -> Dict[str, Any]:
        """Fetch a label; unknown labels raise ValidationError"""
        response = await self._request("GET", f"{self.repo_path}/labels/{name}")
        if response.status_code == 404:
            raise ValidationError(f"Unknown issue label: '{name}'")
        self._raise_for_status(response)
        return response.json()

    async def get_issue(self, number: int) -> Dict[str, Any]:
        """Fetch an issue or pull request including its labels"""
        response = await self._request("GET", f"{self.repo_path}/issues/{number}")
        self._raise_for_status(response)
        return response.json()

    async def list_issue_labels(self, number: int) -> List[str]:
        labels = await self._get_paginated(f"{self.repo_path}/issues/{number}/labels")
        return [label["name"] for label in labels]

    async def list_closed_pull_requests(self, per_page: int = 100) -> List[Dict[str, Any]]:
        """All closed pull requests, following Link header pagination"""
        return await self._get_paginated(
            f"{self.repo_path}/pulls",
            params={"state": "closed", "per_page": per_page}
        )

    async def _get_paginated(self, url: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        next_url: Optional[str] = url
        while next_url:
            response = await self._request("GET", next_url, params=params)
            self._raise_for_status(response)
            items.extend(response.json())
            next_url = response.links.get("next", {}).get("url")
            # The next link already carries the query string
            params = None
        return items

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ExternalToolError(f"GitHub request failed: {e}")

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        self.logger.debug(f"GitHub API error {response.status_code}: {response.text}")
        raise ExternalToolError(
            f"GitHub API error: {response.status_code} {response.request.method} {response.request.url}"
        )
