import os
import tempfile

import pytest
from fastapi.testclient import TestClient

# keep the import-time store out of the working tree
os.environ.setdefault("COURTSIDE_DATA_DIR", tempfile.mkdtemp(prefix="courtside-"))

from courtside import main  # noqa: E402
from courtside.rotation import Store  # noqa: E402


@pytest.fixture(name="client")
def client_fixture(tmp_path, monkeypatch):
    """API client backed by a fresh store per test"""
    monkeypatch.setattr(main, "store", Store(tmp_path / "data"))
    with TestClient(main.app) as client:
        yield client


@pytest.fixture
def make_session(client):
    def _make(players, courts=1, name="Tuesday night"):
        resp = client.post("/sessions", json={"name": name, "players": players, "courts": courts})
        assert resp.status_code == 200, resp.text
        return resp.json()["id"]
    return _make
