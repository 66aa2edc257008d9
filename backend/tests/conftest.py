import asyncio
import os
from typing import List, Optional

from cryptography.fernet import Fernet

# Settings are read at import time; configure before importing the application
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENCRYPTION_KEY", Fernet.generate_key().decode())
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "changeme")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import cleanflow.models  # noqa: F401
from cleanflow.connectors.base import BaseConnector, ExternalRow
from cleanflow.database import Base, SessionLocal, engine
from cleanflow.main import app
from cleanflow.schemas.integration import ConnectionTestResult, IntegrationSettings
from cleanflow.services.exceptions import ExternalConnectionError
from cleanflow.services.integration_config import save_integration_config


class FakeConnector(BaseConnector):
    """Stands in for the external database."""

    def __init__(
        self,
        config: IntegrationSettings,
        rows: Optional[List[ExternalRow]] = None,
        error: Optional[ExternalConnectionError] = None,
        gate: Optional[asyncio.Event] = None,
        started: Optional[asyncio.Event] = None
    ):
        super().__init__(config)
        self.rows = rows or []
        self.error = error
        self.gate = gate
        self.started = started
        self.fetch_calls = 0

    async def test_connection(self) -> ConnectionTestResult:
        if self.error:
            return ConnectionTestResult(success=False, message=self.error.message)
        return ConnectionTestResult(success=True, message="Connection to the external database established successfully!")

    async def fetch_rows(self) -> List[ExternalRow]:
        self.fetch_calls += 1
        if self.started:
            self.started.set()
        if self.gate:
            await self.gate.wait()
        if self.error:
            raise self.error
        return [dict(row) for row in self.rows]


@pytest.fixture
def db() -> Session:
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def connector_factory():
    """Builds connector factories for SyncService; created connectors are collected in ``.created``."""
    created: List[FakeConnector] = []

    def make(**kwargs):
        def build(config: IntegrationSettings) -> FakeConnector:
            connector = FakeConnector(config, **kwargs)
            created.append(connector)
            return connector
        return build

    make.created = created
    return make


@pytest.fixture
def enabled_config(db: Session):
    result = save_integration_config(db, {
        "enabled": True,
        "host": "beds.hospital.local",
        "port": 5432,
        "database": "leitos",
        "username": "reader",
        "password": "s3cret",
        "sync_interval": 5,
    })
    assert result.success
    return result.data


@pytest.fixture
def client(db: Session) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client: TestClient) -> dict:
    response = client.post("/token", data={"username": "admin", "password": "changeme"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
