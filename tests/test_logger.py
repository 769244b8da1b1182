"""
Logger sinks follow LOG_DIR and the retention settings.
"""
from webtwin.config import Settings
from webtwin.utils.logger import setup_logger


def test_sinks_write_under_configured_log_dir(tmp_path):
    log_dir = tmp_path / "nested" / "logs"
    settings = Settings(_env_file=None, log_dir=str(log_dir), log_level="WARNING")
    try:
        logger = setup_logger(settings)
        logger.info("twin map built")
        logger.error("ingest failed")

        general = list(log_dir.glob("webtwin_*.log"))
        errors = list(log_dir.glob("errors_*.log"))
        assert len(general) == 1
        assert len(errors) == 1
        assert "twin map built" in general[0].read_text()
        assert "ingest failed" in errors[0].read_text()
        assert "twin map built" not in errors[0].read_text()
    finally:
        setup_logger()
