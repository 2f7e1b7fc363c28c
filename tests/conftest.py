import pytest


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    monkeypatch.setenv("SACCO_SESSION_STORE_PATH", str(tmp_path / "session.json"))
    monkeypatch.delenv("SACCO_API_TIMEOUT", raising=False)
