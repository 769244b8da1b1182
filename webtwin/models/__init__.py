"""Database models for WebTwin AI"""

from webtwin.models.rum import RumEvent
from webtwin.models.lighthouse import LighthouseRun

__all__ = [
    "RumEvent",
    "LighthouseRun",
]
