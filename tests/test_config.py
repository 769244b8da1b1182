"""
Settings loading from the environment.
"""
from webtwin.config import Settings


def test_defaults_without_env_file(monkeypatch):
    for name in ("TWIN_MAP_EVENT_LIMIT", "TWIN_MAP_MAX_NODES", "TWIN_MAP_MAX_EDGES"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)
    assert settings.twin_map_event_limit == 500
    assert settings.twin_map_max_nodes == 20
    assert settings.twin_map_max_edges == 25


def test_env_names_are_case_insensitive(monkeypatch):
    monkeypatch.setenv("TWIN_MAP_MAX_NODES", "12")
    monkeypatch.setenv("twin_map_max_edges", "7")
    settings = Settings(_env_file=None)
    assert settings.twin_map_max_nodes == 12
    assert settings.twin_map_max_edges == 7


def test_env_file_is_read(tmp_path, monkeypatch):
    monkeypatch.delenv("LLM_MAX_TOKENS", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("LLM_MAX_TOKENS=321\n")
    assert Settings(_env_file=str(env_file)).llm_max_tokens == 321
