"""FastAPI endpoint tests for /api/scripts."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from api.services.rate_limiter import RateLimiter
from scriptsnip.db import ScriptStore

from conftest import TITLES, make_script_data


@pytest.fixture
def seeded_client(seeded_store):
    app = create_app(store=seeded_store, create_limiter=RateLimiter(max_requests=100, window_seconds=3600))
    with TestClient(app) as test_client:
        yield test_client


def create(client, **kwargs):
    response = client.post("/api/scripts", json=make_script_data(**kwargs))
    assert response.status_code == 201
    return response.json()


class TestGeneralRoutes:
    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.text == "Basic Server Root OK"
        assert response.headers["content-type"].startswith("text/plain")

    def test_test_route(self, client):
        response = client.get("/test")

        assert response.status_code == 200
        assert response.text == "Test route OK"

    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "ok"}


class TestListScripts:
    def test_returns_data_and_pagination(self, seeded_client):
        response = seeded_client.get("/api/scripts")

        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 5
        assert body["pagination"] == {
            "totalItems": 5,
            "currentPage": 1,
            "totalPages": 1,
            "pageSize": 10,
            "sortBy": "createdAt",
            "sortOrder": "desc",
        }

    def test_pagination(self, seeded_client):
        body = seeded_client.get("/api/scripts", params={"page": 2, "limit": 3}).json()

        assert len(body["data"]) == 2
        assert body["pagination"]["currentPage"] == 2
        assert body["pagination"]["pageSize"] == 3
        assert body["pagination"]["totalPages"] == 2

    def test_page_beyond_integer_range_is_empty(self, seeded_client):
        response = seeded_client.get("/api/scripts", params={"page": str(10**19)})

        assert response.status_code == 200
        body = response.json()
        assert body["data"] == []
        assert body["pagination"]["currentPage"] == 10**19
        assert body["pagination"]["totalItems"] == 5

    def test_limit_beyond_integer_range_returns_everything(self, seeded_client):
        response = seeded_client.get("/api/scripts", params={"limit": str(10**19)})

        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 5
        assert body["pagination"]["totalPages"] == 1

    @pytest.mark.parametrize("page", ["1_0", " 2", "\u0663", "+"])
    def test_non_decimal_page_returns_400(self, seeded_client, page):
        response = seeded_client.get("/api/scripts", params={"page": page})

        assert response.status_code == 400

    def test_sort_by_title_ascending(self, seeded_client):
        body = seeded_client.get("/api/scripts", params={"sortBy": "title", "sortOrder": "asc"}).json()

        assert [s["title"] for s in body["data"]] == ["Alpha", "Beta", "Delta", "Epsilon", "Gamma"]

    def test_default_sort_is_newest_first(self, seeded_client):
        body = seeded_client.get("/api/scripts").json()

        stamps = [s["createdAt"] for s in body["data"]]
        assert stamps == sorted(stamps, reverse=True)

    def test_invalid_sort_falls_back(self, seeded_client):
        body = seeded_client.get(
            "/api/scripts", params={"sortBy": "invalidField", "sortOrder": "asc"}
        ).json()

        assert body["pagination"]["sortBy"] == "createdAt"
        assert body["pagination"]["sortOrder"] == "asc"
        stamps = [s["createdAt"] for s in body["data"]]
        assert stamps == sorted(stamps)

    def test_invalid_sort_order_falls_back_to_desc(self, seeded_client):
        body = seeded_client.get("/api/scripts", params={"sortOrder": "random"}).json()

        assert body["pagination"]["sortOrder"] == "desc"

    def test_search(self, client):
        for title in TITLES:
            create(client, title=f"{title} Script")
        create(client, title="Something else")

        body = client.get("/api/scripts", params={"search": "Script"}).json()

        assert len(body["data"]) == 5
        for script in body["data"]:
            assert "script" in script["title"].lower()

    @pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"page": "abc"}, {"limit": "-5"}])
    def test_invalid_pagination_returns_400(self, client, params):
        response = client.get("/api/scripts", params=params)

        assert response.status_code == 400
        assert response.json() == {
            "error": "Invalid pagination parameters. Page and limit must be positive integers."
        }

    def test_store_failure_returns_500(self, tmp_path):
        store = ScriptStore(tmp_path / "scripts.sqlite")
        app = create_app(store=store)
        # No lifespan, so the table is never created
        client = TestClient(app)

        response = client.get("/api/scripts")

        assert response.status_code == 500
        assert "no such table" in response.json()["error"]


class TestRandomScript:
    def test_returns_single_script(self, seeded_client):
        response = seeded_client.get("/api/scripts/random")

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"id", "title", "characters", "lines", "createdAt"}
        assert body["title"] in TITLES

    def test_empty_collection_returns_404(self, client):
        response = client.get("/api/scripts/random")

        assert response.status_code == 404
        assert response.json() == {"error": "No scripts available to choose from."}


class TestRandomMultiple:
    def test_default_count(self, seeded_client):
        response = seeded_client.get("/api/scripts/random-multiple")

        assert response.status_code == 200
        assert len(response.json()) == 3

    def test_count(self, seeded_client):
        body = seeded_client.get("/api/scripts/random-multiple", params={"count": 2}).json()

        assert len(body) == 2

    def test_count_zero_returns_empty_list(self, client):
        response = client.get("/api/scripts/random-multiple", params={"count": 0})

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.parametrize("count", ["abc", "-1"])
    def test_invalid_count_returns_400(self, client, count):
        response = client.get("/api/scripts/random-multiple", params={"count": count})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid count parameter. Must be a positive integer."}

    def test_empty_collection_returns_message_body(self, client):
        response = client.get("/api/scripts/random-multiple", params={"count": 2})

        assert response.status_code == 404
        assert response.json() == {"message": "No scripts available in the database."}

    def test_exclude_ids(self, client):
        ids = [create(client, title=f"Random {i}")["id"] for i in range(3)]

        for _ in range(10):
            response = client.get(
                "/api/scripts/random-multiple",
                params={"count": 2, "excludeIds": ids[0]},
            )
            assert response.status_code == 200
            returned = [s["id"] for s in response.json()]
            assert 0 < len(returned) <= 2
            assert ids[0] not in returned

    def test_excluding_all_ids_returns_empty_list(self, client):
        ids = [create(client, title=f"Random {i}")["id"] for i in range(3)]

        response = client.get(
            "/api/scripts/random-multiple",
            params={"count": 3, "excludeIds": ",".join(ids)},
        )

        assert response.status_code == 200
        assert response.json() == []


class TestBatch:
    def test_fetches_requested_scripts(self, client):
        ids = [create(client, title=f"Batch {i}")["id"] for i in range(3)]

        response = client.post("/api/scripts/batch", json={"ids": ids[:2]})

        assert response.status_code == 200
        assert sorted(s["id"] for s in response.json()) == sorted(ids[:2])

    def test_mix_of_existing_and_missing(self, client):
        existing = create(client)["id"]

        response = client.post("/api/scripts/batch", json={"ids": [existing, "nonexistent-id"]})

        assert response.status_code == 200
        body = response.json()
        assert len(body) == 1
        assert body[0]["id"] == existing

    def test_no_matches_returns_empty_list(self, client):
        response = client.post("/api/scripts/batch", json={"ids": ["nope-1", "nope-2"]})

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.parametrize(
        "payload",
        [{}, {"ids": "not-an-array"}, {"ids": []}, {"ids": [1, 2]}, {"ids": ["ok", None]}, None],
    )
    def test_invalid_ids_return_400(self, client, payload):
        response = client.post("/api/scripts/batch", json=payload)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid input: 'ids' must be a non-empty array of strings."}


class TestCreateScript:
    def test_creates_script(self, client):
        data = make_script_data(title="New Integration Script")

        response = client.post("/api/scripts", json=data)

        assert response.status_code == 201
        body = response.json()
        assert body["id"]
        assert body["title"] == data["title"]
        assert body["characters"] == data["characters"]
        assert body["lines"] == data["lines"]
        assert body["createdAt"]

    @pytest.mark.parametrize("title", [None, ""])
    def test_missing_title_defaults_to_untitled(self, client, title):
        data = make_script_data()
        data["title"] = title

        body = client.post("/api/scripts", json=data).json()

        assert body["title"] == "Untitled"

    def test_omitted_title_defaults_to_untitled(self, client):
        data = make_script_data()
        del data["title"]

        assert client.post("/api/scripts", json=data).json()["title"] == "Untitled"

    def test_missing_fields_return_400_with_details(self, client):
        response = client.post("/api/scripts", json={"title": "Invalid"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid input data"
        paths = {detail["path"] for detail in body["details"]}
        assert {"characters", "lines"} <= paths

    def test_empty_lists_return_400(self, client):
        response = client.post("/api/scripts", json={"title": "x", "characters": [], "lines": []})

        assert response.status_code == 400

    def test_empty_dialogue_returns_400_with_nested_path(self, client):
        data = make_script_data()
        data["lines"][0]["dialogue"] = ""

        response = client.post("/api/scripts", json=data)

        assert response.status_code == 400
        assert response.json()["details"][0]["path"] == "lines.0.dialogue"

    def test_empty_character_name_returns_400(self, client):
        data = make_script_data()
        data["characters"] = ["Hero", ""]

        response = client.post("/api/scripts", json=data)

        assert response.status_code == 400
        assert response.json()["details"][0]["path"] == "characters.1"

    def test_malformed_json_returns_400(self, client):
        response = client.post(
            "/api/scripts",
            content=b'{"title": "broken",',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON payload received"
        assert "details" in response.json()


class TestGetScript:
    def test_found(self, client):
        created = create(client, title="Test Script Title")

        response = client.get(f"/api/scripts/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created

    def test_not_found(self, client):
        response = client.get("/api/scripts/nonexistent-id")

        assert response.status_code == 404
        assert response.json() == {"error": "Script not found"}


class TestUpdateScript:
    def test_full_update(self, client):
        created = create(client)
        update = {
            "title": "Updated Title",
            "characters": ["Char1", "Char2"],
            "lines": [{"character": "Char1", "dialogue": "Updated line"}],
        }

        response = client.put(f"/api/scripts/{created['id']}", json=update)

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == created["id"]
        assert body["title"] == update["title"]
        assert body["characters"] == update["characters"]
        assert body["lines"] == update["lines"]
        assert body["createdAt"] == created["createdAt"]

    def test_partial_update_keeps_other_fields(self, client):
        created = create(client, title="Before")

        body = client.put(f"/api/scripts/{created['id']}", json={"characters": ["Solo"]}).json()

        assert body["characters"] == ["Solo"]
        assert body["title"] == "Before"
        assert body["lines"] == created["lines"]

    def test_update_may_empty_lists(self, client):
        created = create(client)

        body = client.put(f"/api/scripts/{created['id']}", json={"lines": []}).json()

        assert body["lines"] == []

    def test_empty_body_returns_400(self, client):
        created = create(client)

        response = client.put(f"/api/scripts/{created['id']}", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid input data"

    def test_invalid_type_returns_400(self, client):
        created = create(client)

        response = client.put(f"/api/scripts/{created['id']}", json={"title": 123})

        assert response.status_code == 400
        assert {"path": "title"}.items() <= response.json()["details"][0].items()

    @pytest.mark.parametrize("field", ["title", "characters", "lines"])
    def test_null_field_returns_400_and_leaves_record(self, client, field):
        created = create(client, title="Keep")

        response = client.put(f"/api/scripts/{created['id']}", json={field: None})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid input data"
        assert body["details"][0]["path"] == field
        assert client.get(f"/api/scripts/{created['id']}").json() == created

    def test_not_found(self, client):
        response = client.put("/api/scripts/nonexistent-id", json={"title": "x"})

        assert response.status_code == 404
        assert response.json() == {"error": "Resource not found"}


class TestDeleteScript:
    def test_deletes(self, client):
        created = create(client)

        response = client.delete(f"/api/scripts/{created['id']}")

        assert response.status_code == 204
        assert response.content == b""
        assert client.get(f"/api/scripts/{created['id']}").status_code == 404

    def test_not_found(self, client):
        response = client.delete("/api/scripts/nonexistent-id")

        assert response.status_code == 404
        assert response.json() == {"error": "Resource not found"}


class TestCreateRateLimit:
    def test_returns_429_after_limit(self, store):
        app = create_app(store=store, create_limiter=RateLimiter(max_requests=3, window_seconds=3600))

        with TestClient(app) as client:
            for _ in range(3):
                assert client.post("/api/scripts", json=make_script_data()).status_code == 201

            response = client.post("/api/scripts", json=make_script_data())

        assert response.status_code == 429
        assert response.text == "Too many scripts created from this IP, please try again after an hour"
        assert int(response.headers["retry-after"]) > 0
        assert store.count() == 3

    def test_other_routes_are_not_limited(self, store):
        app = create_app(store=store, create_limiter=RateLimiter(max_requests=1, window_seconds=3600))

        with TestClient(app) as client:
            for _ in range(5):
                assert client.get("/api/scripts").status_code == 200
