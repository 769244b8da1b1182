"""
Configuration management for WebTwin AI
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "WebTwin AI"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_retention_days: int = 30
    error_log_retention_days: int = 90

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 4

    # Database (event store + lighthouse run store)
    database_url: str = "sqlite:///./webtwin.db"

    # Outbound HTTP
    http_user_agent: str = "WebTwinAI/1.0"
    uptime_timeout_seconds: float = 15.0
    page_fetch_timeout_seconds: float = 15.0

    # PageSpeed Insights
    pagespeed_api_key: Optional[str] = None
    pagespeed_timeout_seconds: float = 60.0

    # Lighthouse runner (GitHub Actions workflow)
    lighthouse_ingest_token: str = ""
    github_actions_token: str = ""
    github_repo_owner: str = ""
    github_repo_name: str = ""
    github_workflow_file: str = "lighthouse-runner.yml"
    github_workflow_ref: str = "main"

    # Screenshot capture
    screenshotone_access_key: str = ""
    screenshotone_base_url: str = "https://api.screenshotone.com/take"

    # LLM Configuration
    anthropic_api_key: Optional[str] = None
    llm_model: str = "claude-sonnet-4-20250514"
    enable_llm_insights: bool = True
    llm_max_tokens: int = 800

    # Twin Map / overview windows
    twin_map_event_limit: int = 500
    twin_map_max_nodes: int = 20
    twin_map_max_edges: int = 25
    overview_event_limit: int = 200
    overview_recent_events: int = 8

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
