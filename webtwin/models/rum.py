"""
Real User Monitoring Models

One row per beacon sent by the rum.js snippet. Client input is untrusted:
every column except the primary key may be null.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, JSON, Index
from sqlalchemy.sql import func
from webtwin.models.base import Base


class RumEvent(Base):
    """
    Client-side page view beacon.

    vitals shape: {"domContentLoaded": ms, "load": ms}
    viewport shape: {"width": px, "height": px}
    """
    __tablename__ = "rum_events"

    id = Column(Integer, primary_key=True, index=True)

    site = Column(String, index=True, nullable=True)      # hostname, lower-cased
    type = Column(String, nullable=True)                  # pageview
    url = Column(Text, nullable=True)
    referrer = Column(Text, nullable=True)
    user_agent = Column(Text, nullable=True)

    viewport = Column(JSON, nullable=True)
    vitals = Column(JSON, nullable=True)

    # Client timestamp (falls back to ingestion time)
    ts = Column(DateTime, index=True, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("ix_rum_site_ts", "site", "ts"),
    )

    def to_dict(self) -> dict:
        return {
            "site": self.site,
            "url": self.url,
            "vitals": self.vitals,
            "ts": self.ts.isoformat() if self.ts else None,
        }
