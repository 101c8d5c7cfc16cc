"""
Tests for application assembly: error envelopes outside the routes and
startup behaviour.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from config.settings import Settings
from database.repositories import PostRepository
from main import create_app


class TestErrorEnvelopes:
    def test_unknown_route(self, client):
        resp = client.get("/nowhere")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not Found", "message": "Not Found"}

    def test_wrong_method(self, client):
        resp = client.patch("/")
        assert resp.status_code == 405
        assert resp.json() == {
            "error": "Method Not Allowed",
            "message": "Method Not Allowed",
        }

    def test_database_failure_is_500(self, client, monkeypatch):
        async def broken(self):
            raise OperationalError("SELECT posts", {}, Exception("disk I/O error"))

        monkeypatch.setattr(PostRepository, "list_all_with_owner", broken)

        resp = client.get("/posts")
        assert resp.status_code == 500
        assert resp.json() == {
            "error": "Database Error",
            "message": "Database operation failed",
        }
        assert "disk I/O error" not in resp.text


class TestStartup:
    def test_tables_created_on_startup(self, client):
        assert client.get("/posts").json()["data"] == []

    def test_unreachable_database_is_fatal(self, tmp_path):
        settings = Settings(
            database_url=f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'blog.db'}",
            jwt_secret="test-secret",
        )
        with pytest.raises(OperationalError):
            with TestClient(create_app(settings)):
                pass
