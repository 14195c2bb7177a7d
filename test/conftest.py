import sqlite3
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from pgrest import ApiConfig, DbClient, EntityConfig, EntityHooks, PgRest, UpsertPolicy
from pgrest.common.types import Email, Guid

SESSIONS = "/api/1.0/sessions"
AUTOPK = "/api/1.0/autopk"
SETTINGS = "/api/1.0/settings"
TENANT_SESSIONS = "/api/1.0/{ip}/sessions"

GUID_RE = r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"

requires_json_ops = pytest.mark.skipif(
    sqlite3.sqlite_version_info < (3, 38, 0), reason="SQLite without ->> operator"
)

SCHEMA = [
    """
    CREATE TABLE sessions (
        session_id TEXT PRIMARY KEY,
        session_data TEXT NOT NULL,
        ip TEXT NOT NULL,
        date_created TEXT NOT NULL,
        date_updated TEXT,
        email TEXT
    )
    """,
    "CREATE TABLE autopk_test (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT)",
    'CREATE TABLE settings ("key" TEXT PRIMARY KEY, value TEXT)',
]

SESSION_FIELDS = {
    "session_id": Guid,
    "session_data": (str, ...),
    "ip": (str, ...),
    "date_created": str,
    "date_updated": Optional[str],
    "email": Email,
}


class SessionHooks(EntityHooks):
    def post_select(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [{**row, "added_field": f"ROW-{i}"} for i, row in enumerate(rows)]


class TenantHooks(EntityHooks):
    def pre_query(self, command, request):
        command.filter = {**command.filter, "ip": request.path_params["ip"]}
        return command


def sessions_config(**overrides: Any) -> EntityConfig:
    options = dict(
        table="sessions",
        endpoint=SESSIONS,
        primary_key="session_id",
        fields=SESSION_FIELDS,
        on_create_timestamp="date_created",
        on_update_timestamp="date_updated",
        hooks=SessionHooks(),
    )
    options.update(overrides)
    return EntityConfig(**options)


@pytest.fixture
def db() -> DbClient:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.begin() as conn:
        for statement in SCHEMA:
            conn.execute(text(statement))
    client = DbClient.from_engine(engine)
    yield client
    client.close()


@pytest.fixture
def api(db: DbClient) -> PgRest:
    api = PgRest(ApiConfig(project_name="Test API"))
    api.register(sessions_config(), db)
    api.register(
        EntityConfig(
            table="autopk_test",
            endpoint=AUTOPK,
            primary_key="id",
            primary_key_auto=True,
            fields={"id": int, "name": str},
        ),
        db,
    )
    api.register(
        EntityConfig(
            table="settings",
            endpoint=SETTINGS,
            primary_key="key",
            primary_key_guid=False,
            fields={"key": (str, ...), "value": str},
            upsert=UpsertPolicy(conflict_fields=["key"], update_fields=["value"]),
        ),
        db,
    )
    api.register(
        sessions_config(endpoint=TENANT_SESSIONS, name="ip_sessions", hooks=TenantHooks()),
        db,
    )
    return api


@pytest.fixture
def client(api: PgRest) -> TestClient:
    return TestClient(api.app)


@pytest.fixture
def create_session(client: TestClient):
    """Create a session through the API and return its data."""

    def create(**fields: Any) -> Dict[str, Any]:
        body = {"ip": "127.0.0.1", "session_data": '{"username": "bob"}', **fields}
        response = client.post(SESSIONS, json=body)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return create
