# tests/test_config.py

from __future__ import annotations

from taskboard.core.config import Settings


def test_env_file_ignores_unrelated_variables(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("SQL_ECHO", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("SQL_ECHO=true\nSOME_OTHER_SERVICE_TOKEN=abc\n")

    loaded = Settings(_env_file=str(env_file))
    assert loaded.SQL_ECHO is True
    assert not hasattr(loaded, "SOME_OTHER_SERVICE_TOKEN")


def test_cors_origins_are_split_and_trimmed() -> None:
    loaded = Settings(_env_file=None, CORS_ORIGINS=" http://a.test , http://b.test,")
    assert loaded.cors_origins == ["http://a.test", "http://b.test"]
