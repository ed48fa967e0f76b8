"""
Tests for the app-wide error handling: error payload shape, unexpected
failures, connection release and the startup configuration check.
"""

import pytest
from fastapi import APIRouter, Depends
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.orm import Session

from api.app import check_required_settings, create_app
from api.dependencies import get_preference_service
from shared.config import get_settings
from shared.database import get_db
from shared.exceptions import ConfigurationError, NotFoundError


def _app_with_probe_routes():
    """The real app plus a few routes that fail in controlled ways."""
    app = create_app()
    router = APIRouter()

    @router.get("/probe/ok")
    def probe_ok(db: Session = Depends(get_db)):
        db.execute(text("SELECT 1"))
        return {"ok": True}

    @router.get("/probe/business-error")
    def probe_business_error(db: Session = Depends(get_db)):
        db.execute(text("SELECT 1"))
        raise NotFoundError("Nothing here", code="NOTHING_HERE")

    @router.get("/probe/crash")
    def probe_crash(db: Session = Depends(get_db)):
        db.execute(text("SELECT 1"))
        raise RuntimeError("database password is hunter2")

    @router.get("/probe/service-error")
    async def probe_service_error(service=Depends(get_preference_service)):
        await service.get_preferences("no-such-user")

    app.include_router(router)
    return app


class TestErrorPayloads:

    def test_business_error_shape(self, db_engine):
        client = TestClient(_app_with_probe_routes())
        response = client.get("/probe/business-error")
        assert response.status_code == 404
        assert response.json() == {"error": "Nothing here", "code": "NOTHING_HERE", "details": {}}

    def test_unexpected_error_is_generic_500(self, db_engine):
        """Internal details never reach the client."""
        client = TestClient(_app_with_probe_routes(), raise_server_exceptions=False)
        response = client.get("/probe/crash")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "code": "INTERNAL_ERROR"}
        assert "hunter2" not in response.text

    def test_unknown_route_is_404(self, client):
        assert client.get("/api/nope").status_code == 404


class TestConnectionRelease:
    """Every exit path hands the connection back to the pool."""

    @pytest.mark.parametrize(
        "path,raise_errors",
        [
            ("/probe/ok", True),
            ("/probe/business-error", True),
            ("/probe/service-error", True),
            ("/probe/crash", False),
        ],
    )
    def test_connection_returned(self, db_engine, path, raise_errors):
        client = TestClient(_app_with_probe_routes(), raise_server_exceptions=raise_errors)
        for _ in range(3):
            client.get(path)
        assert db_engine.pool.checkedout() == 0


class TestStartupCheck:

    def test_missing_jwt_secret_is_refused(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "")
        get_settings.cache_clear()
        with pytest.raises(ConfigurationError):
            check_required_settings()

    def test_app_refuses_to_start_without_secret(self, monkeypatch, db_engine):
        monkeypatch.setenv("JWT_SECRET", "")
        get_settings.cache_clear()
        with pytest.raises(ConfigurationError):
            with TestClient(create_app()):
                pass

    def test_app_starts_with_secret(self, db_engine):
        with TestClient(create_app()) as client:
            assert client.get("/api/health").status_code == 200
