import pytest

from pgrest.core.config import Pagination, UpsertPolicy
from pgrest.core.errors import ConfigError, ValidationError
from pgrest.core.query import QueryBuilder


def builder(**kwargs) -> QueryBuilder:
    return QueryBuilder("sessions", **kwargs)


class TestSelect:
    def test_plain_select(self):
        query = builder().select().build()
        assert query.sql == 'SELECT * FROM "sessions"'
        assert query.params == []

    def test_full_select(self):
        query = (
            builder()
            .select()
            .set_filter({"ip": ["a", "b"], "date_updated": None})
            .set_sort({"date_created": -1, "ip": 1})
            .set_pagination(Pagination(page=3, per_page=10))
            .set_columns(["session_id", "ip"])
            .build()
        )
        assert query.sql == (
            'SELECT "session_id", "ip" FROM "sessions"'
            ' WHERE "ip" IN ($1, $2) AND "date_updated" IS NULL'
            ' ORDER BY "date_created" DESC, "ip" ASC'
            " LIMIT 10 OFFSET 20"
        )
        assert query.params == ["a", "b"]

    def test_sort_on_json_path(self):
        query = builder().select().set_sort({"session_data->>username": 1}).build()
        assert query.sql.endswith(" ORDER BY \"session_data\"->>'username' ASC")

    def test_row_count_ignores_sort_and_pagination(self):
        query = (
            builder()
            .select_row_count()
            .set_filter({"ip": "a"})
            .set_sort({"ip": 1})
            .set_pagination(Pagination(page=2))
            .build()
        )
        assert query.sql == 'SELECT COUNT(*) AS totalrowcount FROM "sessions" WHERE "ip" = $1'
        assert query.params == ["a"]


class TestInsert:
    def test_single_row(self):
        query = builder().insert().set_data({"ip": "a", "session_data": "{}"}).build()
        assert query.sql == (
            'INSERT INTO "sessions" ("ip", "session_data") VALUES ($1, $2) RETURNING *'
        )
        assert query.params == ["a", "{}"]

    def test_multi_row(self):
        query = (
            builder()
            .insert()
            .set_data([{"ip": "a", "email": "x"}, {"ip": "b", "email": "y"}])
            .set_columns(["ip"])
            .build()
        )
        assert query.sql == (
            'INSERT INTO "sessions" ("ip", "email") VALUES ($1, $2), ($3, $4) RETURNING "ip"'
        )
        assert query.params == ["a", "x", "b", "y"]

    def test_default_values(self):
        query = QueryBuilder("autopk_test").insert().set_data({}).build()
        assert query.sql == 'INSERT INTO "autopk_test" DEFAULT VALUES RETURNING *'

    def test_upsert(self):
        upsert = UpsertPolicy(conflict_fields=["key"], update_fields=["value", "note"])
        query = QueryBuilder("settings", upsert=upsert).insert().set_data({"key": "k", "value": "v"}).build()
        assert query.sql == (
            'INSERT INTO "settings" ("key", "value") VALUES ($1, $2)'
            ' ON CONFLICT ("key") DO UPDATE SET "value"=EXCLUDED."value", "note"=EXCLUDED."note"'
            " RETURNING *"
        )

    def test_empty_row_list_rejected(self):
        with pytest.raises(ValidationError):
            builder().insert().set_data([]).build()


class TestUpdate:
    def test_filter_params_come_first(self):
        query = (
            builder()
            .update()
            .set_filter({"session_id": "abc"})
            .set_data({"ip": "b", "date_updated": "now"})
            .build()
        )
        assert query.sql == (
            'UPDATE "sessions" SET "ip"=$2, "date_updated"=$3 WHERE "session_id" = $1 RETURNING *'
        )
        assert query.params == ["abc", "b", "now"]

    def test_update_without_data_rejected(self):
        with pytest.raises(ValidationError):
            builder().update().set_filter({"ip": "a"}).set_data({}).build()


def test_delete():
    query = builder().delete().set_filter({"ip": {"$in": ["a", "b"]}}).build()
    assert query.sql == 'DELETE FROM "sessions" WHERE "ip" IN ($1, $2)'
    assert query.params == ["a", "b"]


def test_build_without_mode():
    with pytest.raises(ConfigError, match="Invalid SQL query mode"):
        builder().build()


def test_columns_are_quoted():
    with pytest.raises(ValidationError):
        builder().select().set_columns(["ip, password"]).build()
