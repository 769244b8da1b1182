"""
GitHub Actions connector

Queues the Lighthouse runner workflow through workflow_dispatch. The
workflow posts its results back to /api/lighthouse/ingest.
"""
from typing import Dict, Optional

import httpx

from webtwin.config import get_settings
from webtwin.connectors.base import BaseConnector
from webtwin.utils.logger import log

settings = get_settings()


class DispatchError(Exception):
    """GitHub rejected or never received the dispatch"""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


class GitHubConnector(BaseConnector):
    """Connector for the GitHub Actions workflow dispatch API"""

    def __init__(
        self,
        token: Optional[str] = None,
        repo_owner: Optional[str] = None,
        repo_name: Optional[str] = None,
        workflow_file: Optional[str] = None,
        ref: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__("GitHub", timeout=15.0, transport=transport)
        self.token = token if token is not None else settings.github_actions_token
        self.repo_owner = repo_owner if repo_owner is not None else settings.github_repo_owner
        self.repo_name = repo_name if repo_name is not None else settings.github_repo_name
        self.workflow_file = workflow_file or settings.github_workflow_file
        self.ref = ref or settings.github_workflow_ref
        self.base_url = "https://api.github.com"

    @property
    def configured(self) -> bool:
        return bool(self.token and self.repo_owner and self.repo_name)

    def default_headers(self) -> Dict[str, str]:
        headers = super().default_headers()
        headers.update({
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.token}",
            "X-GitHub-Api-Version": "2022-11-28",
        })
        return headers

    async def dispatch_workflow(self, inputs: Dict[str, str]) -> None:
        """
        Trigger the configured workflow with `inputs`.

        Raises DispatchError with GitHub's status and body on failure.
        """
        url = (
            f"{self.base_url}/repos/{self.repo_owner}/{self.repo_name}"
            f"/actions/workflows/{self.workflow_file}/dispatches"
        )
        try:
            async with self.client(follow_redirects=False) as client:
                response = await client.post(url, json={"ref": self.ref, "inputs": inputs})
        except httpx.HTTPError as e:
            log.error(f"GitHub dispatch request failed: {str(e)}")
            raise DispatchError(0, str(e))

        if not response.is_success:
            log.error(f"GitHub dispatch failed: {response.status_code}")
            raise DispatchError(response.status_code, response.text)

        log.info(f"Dispatched {self.workflow_file} on {self.repo_owner}/{self.repo_name} with {inputs}")
