"""
Lighthouse run results, posted by the GitHub Actions runner.
"""
from sqlalchemy import Column, Integer, String, Float, DateTime, JSON, Index
from sqlalchemy.sql import func
from webtwin.models.base import Base


class LighthouseRun(Base):
    """One Lighthouse audit of a site for one strategy (mobile / desktop)"""
    __tablename__ = "lighthouse_runs"

    id = Column(Integer, primary_key=True, index=True)

    site = Column(String, index=True, nullable=False)
    strategy = Column(String, nullable=False)             # mobile / desktop

    # Category scores, 0-100
    performance = Column(Integer, nullable=True)
    accessibility = Column(Integer, nullable=True)
    seo = Column(Integer, nullable=True)
    best_practices = Column(Integer, nullable=True)

    homepage_load_sec = Column(Float, nullable=True)      # LCP in seconds
    final_url = Column(String, nullable=True)

    # [{key, title, detail, impact: high|medium|low}]
    perf_recommendations = Column(JSON, nullable=True)
    seo_recommendations = Column(JSON, nullable=True)
    uiux_recommendations = Column(JSON, nullable=True)

    checked_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())

    __table_args__ = (
        Index("ix_lh_site_strategy_checked", "site", "strategy", "checked_at"),
    )

    def scores(self) -> dict:
        return {
            "performance": self.performance,
            "accessibility": self.accessibility,
            "seo": self.seo,
            "bestPractices": self.best_practices,
        }
