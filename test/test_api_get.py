import json
import re
import uuid

from conftest import AUTOPK, GUID_RE, SESSIONS, requires_json_ops


def get(client, url=SESSIONS, **query):
    params = {k: v if isinstance(v, str) else json.dumps(v) for k, v in query.items()}
    return client.get(url, params=params)


def test_get_one(client, create_session):
    session = create_session()
    response = client.get(f"{SESSIONS}/{session['session_id']}")
    assert response.status_code == 200
    body = response.json()
    assert body["error"] is None
    assert body["data"]["session_id"] == session["session_id"]
    assert body["data"]["added_field"] == "ROW-0"


def test_round_trip(client, create_session):
    session = create_session(email="a@b.co")
    data = client.get(f"{SESSIONS}/{session['session_id']}").json()["data"]
    assert re.match(GUID_RE, data["session_id"])
    assert data["date_created"]
    assert data["ip"] == "127.0.0.1"
    assert data["session_data"] == '{"username": "bob"}'
    assert data["email"] == "a@b.co"
    assert data["date_updated"] is None


def test_get_one_not_found(client):
    response = client.get(f"{SESSIONS}/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.json()["error"]["name"] == "NotFoundError"


def test_get_one_invalid_id(client):
    response = client.get(f"{SESSIONS}/not-a-guid")
    assert response.status_code == 400
    assert response.json()["error"]["name"] == "ValidationError"


def test_get_one_columns(client, create_session):
    session = create_session()
    data = client.get(f"{SESSIONS}/{session['session_id']}", params={"columns": "ip"}).json()["data"]
    assert data == {"ip": "127.0.0.1", "added_field": "ROW-0"}


def test_get_many(client, create_session):
    create_session()
    create_session(ip="10.0.0.1")
    body = client.get(SESSIONS).json()
    assert [row["added_field"] for row in body["data"]] == ["ROW-0", "ROW-1"]
    assert body["pagination"] == {"page": 1, "perPage": None, "totalRows": 2, "pageCount": 1}


def test_array_filter(client, create_session):
    session = create_session()
    create_session()
    body = get(client, filter={"session_id": [session["session_id"]]}).json()
    assert len(body["data"]) == 1
    assert body["data"][0]["session_id"] == session["session_id"]


def test_empty_array_filter_matches_nothing(client, create_session):
    create_session()
    assert get(client, filter={"ip": []}).json()["data"] == []


def test_operator_filters(client, create_session):
    create_session(ip="a")
    create_session(ip="b", email="x@y.io")
    create_session(ip="c")
    assert [r["ip"] for r in get(client, filter={"ip": {"$or": ["a", "c"]}}, sort={"ip": 1}).json()["data"]] == ["a", "c"]
    assert [r["ip"] for r in get(client, filter={"ip": {"$gt": "a"}}, sort={"ip": 1}).json()["data"]] == ["b", "c"]
    assert [r["ip"] for r in get(client, filter={"email": None}, sort={"ip": 1}).json()["data"]] == ["a", "c"]
    assert [r["ip"] for r in get(client, filter={"email": {"$like": "%@y.io"}}).json()["data"]] == ["b"]
    assert [r["ip"] for r in get(client, filter={"$or": [{"ip": "a"}, {"email": {"$notNull": True}}]}, sort={"ip": 1}).json()["data"]] == ["a", "b"]


@requires_json_ops
def test_json_path_filter(client, create_session):
    create_session(session_data='{"username": "alice"}')
    create_session()
    data = get(client, filter={"session_data->>username": "alice"}).json()["data"]
    assert len(data) == 1


def test_descending_sort(client, create_session):
    for _ in range(4):
        create_session()
    ids = [row["session_id"] for row in get(client, sort={"session_id": -1}).json()["data"]]
    assert ids == sorted(ids, reverse=True)


def test_unknown_sort_field(client):
    response = get(client, sort={"password": 1})
    assert response.status_code == 400
    assert "password" in response.json()["error"]["message"]


def test_invalid_filter_value(client):
    response = get(client, filter={"ip": {"$in": [1]}})
    assert response.status_code == 400


def test_malformed_filter_json(client):
    response = client.get(SESSIONS, params={"filter": "{oops"})
    assert response.status_code == 400
    assert response.json()["error"] == {"name": "ValidationError", "message": "Filter must be valid JSON"}


def test_pagination(client, create_session):
    for i in range(5):
        create_session(ip=f"10.0.0.{i}")
    body = get(client, sort={"ip": 1}, pagination={"page": 2, "perPage": 2}).json()
    assert [row["ip"] for row in body["data"]] == ["10.0.0.2", "10.0.0.3"]
    assert body["pagination"] == {"page": 2, "perPage": 2, "totalRows": 5, "pageCount": 3}

    beyond = get(client, pagination={"page": 4, "perPage": 2})
    assert beyond.status_code == 200
    assert beyond.json()["data"] == []


def test_bad_pagination(client):
    response = get(client, pagination={"page": 0, "perPage": 2})
    assert response.status_code == 400


def test_autopk_get(client):
    created = client.post(AUTOPK, json={"name": "first"}).json()["data"]
    response = client.get(f"{AUTOPK}/{created['id']}")
    assert response.json()["data"] == {"id": created["id"], "name": "first"}


def test_pre_query_scopes_by_path(client, create_session):
    create_session(ip="10.0.0.1")
    create_session(ip="10.0.0.2")
    data = client.get("/api/1.0/10.0.0.1/sessions").json()["data"]
    assert [row["ip"] for row in data] == ["10.0.0.1"]
