"""Outbound connectors for WebTwin AI"""

from webtwin.connectors.base import BaseConnector
from webtwin.connectors.pagespeed import PageSpeedConnector
from webtwin.connectors.uptime import UptimeConnector
from webtwin.connectors.github import GitHubConnector, DispatchError
from webtwin.connectors.screenshot import ScreenshotConnector

__all__ = [
    "BaseConnector",
    "PageSpeedConnector",
    "UptimeConnector",
    "GitHubConnector",
    "DispatchError",
    "ScreenshotConnector",
]
