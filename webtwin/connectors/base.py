"""
Base Connector Class

Outbound HTTP integrations share one client setup: user agent, timeout,
redirect policy. Tests swap the transport for an httpx.MockTransport.
"""
from typing import Dict, Optional

import httpx

from webtwin.config import get_settings


class BaseConnector:
    """Base class for outbound HTTP connectors"""

    def __init__(
        self,
        name: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.name = name
        self.timeout = timeout
        self.transport = transport
        self.user_agent = get_settings().http_user_agent

    def default_headers(self) -> Dict[str, str]:
        return {"User-Agent": self.user_agent}

    def client(self, follow_redirects: bool = True, timeout: Optional[float] = None) -> httpx.AsyncClient:
        """New AsyncClient; use as `async with self.client() as client:`"""
        return httpx.AsyncClient(
            follow_redirects=follow_redirects,
            timeout=timeout if timeout is not None else self.timeout,
            headers=self.default_headers(),
            transport=self.transport,
        )
