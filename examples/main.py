# examples/main.py
"""
Sessions API served by pgrest.

Run with ``uvicorn examples.main:app`` against a PostgreSQL database that has::

    CREATE TABLE sessions (
        session_id   uuid PRIMARY KEY,
        session_data jsonb NOT NULL,
        ip           text NOT NULL,
        date_created timestamp NOT NULL,
        date_updated timestamp,
        email        text
    );
"""

import os
from typing import Any, Dict, List, Optional

from pgrest import ApiConfig, DbClient, DbConfig, EntityConfig, EntityHooks, PgRest, log
from pgrest.common.types import Email, Guid
from pgrest.core.request import Command, RawRequest

SESSION_FIELDS = {
    "session_id": Guid,
    "session_data": (str, ...),
    "ip": (str, ...),
    "date_created": str,
    "date_updated": Optional[str],
    "email": Email,
}


class SessionHooks(EntityHooks):
    """Tags every selected row with its position in the result."""

    def post_select(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [{**row, "added_field": f"ROW-{i}"} for i, row in enumerate(rows)]


class TenantHooks(EntityHooks):
    """Scopes every query to the ip given in the route."""

    def pre_query(self, command: Command, request: RawRequest) -> Command:
        command.filter = {**command.filter, "ip": request.path_params["ip"]}
        return command


db = DbClient(
    DbConfig(
        url=os.getenv("DATABASE_URL"),
        user=os.getenv("DB_USER", "postgres"),
        password=os.getenv("DB_PASSWORD"),
        host=os.getenv("DB_HOST", "localhost"),
        database=os.getenv("DB_NAME", "postgres"),
    )
)

api = PgRest(ApiConfig(project_name="Sessions API", version="1.0.0", debug_mode=True))
app = api.app

api.register_all(
    [
        EntityConfig(
            table="sessions",
            endpoint="/api/1.0/sessions",
            primary_key="session_id",
            fields=SESSION_FIELDS,
            on_create_timestamp="date_created",
            on_update_timestamp="date_updated",
            hooks=SessionHooks(),
            show_sql=True,
        ),
        EntityConfig(
            table="sessions",
            endpoint="/api/1.0/{ip}/sessions",
            name="ip_sessions",
            primary_key="session_id",
            fields=SESSION_FIELDS,
            on_create_timestamp="date_created",
            on_update_timestamp="date_updated",
            hooks=TenantHooks(),
        ),
    ],
    db,
    verbose=True,
)


if __name__ == "__main__":
    import uvicorn

    if not db.test_connection():
        log.warn("Database is not reachable, requests will fail with DBError")
    api.print_welcome(port=8000)
    uvicorn.run(app, host="0.0.0.0", port=8000)
