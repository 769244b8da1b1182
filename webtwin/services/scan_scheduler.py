"""
Scan Scheduler

Queues Lighthouse scans on the GitHub Actions runner.
"""
from typing import Dict, Optional

from webtwin.connectors.github import GitHubConnector
from webtwin.utils.url_parsing import normalize_site


class InvalidSiteError(ValueError):
    pass


class SchedulerNotConfiguredError(RuntimeError):
    pass


def resolve_strategy(strategy: Optional[str]) -> str:
    """mobile / desktop pass through; anything else scans both"""
    return strategy if strategy in ("mobile", "desktop") else "both"


class ScanScheduler:
    """Validates a scan request and dispatches the runner workflow"""

    def __init__(self, github: Optional[GitHubConnector] = None):
        self.github = github or GitHubConnector()

    async def queue_scan(self, site: Optional[str], strategy: Optional[str] = None) -> Dict:
        """
        Raises InvalidSiteError, SchedulerNotConfiguredError, or
        connectors.github.DispatchError.
        """
        normalized = normalize_site(site)
        if not normalized:
            raise InvalidSiteError("Invalid site")

        strategy = resolve_strategy(strategy)

        if not self.github.configured:
            raise SchedulerNotConfiguredError("Missing GitHub dispatch env vars")

        await self.github.dispatch_workflow({"site": normalized["url"], "strategy": strategy})

        return {"status": "queued", "site": normalized["site"], "strategy": strategy}
