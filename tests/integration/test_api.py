"""Integration tests for the index and mock API endpoints."""

from collections.abc import Callable

from fastapi.testclient import TestClient
from httpx import AsyncClient
import pytest

from hello_server.core import Settings
from hello_server.core.errors import SAFE_ERROR_MESSAGES
from hello_server.factory import create_app


class TestIndexEndpoints:
    def test_hello_world(self, client: TestClient) -> None:
        response = client.get("/")
        assert response.status_code == 200
        assert response.text == "Hello, World!\n"
        assert response.headers["content-type"].startswith("text/plain")

    def test_status(self, client: TestClient) -> None:
        response = client.get("/status")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "operational"
        assert data["environment"] == "test"
        assert data["uptime"] >= 0
        assert "timestamp" in data
        assert "message" in data

    def test_wrong_method_is_405(self, client: TestClient) -> None:
        response = client.post("/")
        assert response.status_code == 405
        assert "GET" in response.headers["allow"]
        assert response.json()["status"] == 405

    def test_unknown_route(self, client: TestClient) -> None:
        response = client.get("/nowhere")
        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "ROUTE_NOT_FOUND"
        assert body["message"] == "Bad Request - Route GET /nowhere not found"


class TestApiInfo:
    def test_api_root(self, client: TestClient) -> None:
        response = client.get("/api")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["version"] == "1.0.0"
        assert body["data"]["endpoints"]["users"] == "/api/users"
        assert set(body["data"]) >= {"name", "description", "timestamp", "uptime"}

    def test_api_status(self, client: TestClient) -> None:
        data = client.get("/api/status").json()["data"]
        assert data["status"] == "operational"
        assert data["memory"]["unit"] == "MB"
        assert data["memory"]["used"] > 0
        assert data["environment"] == "test"
        assert data["python"]


class TestUsers:
    def test_list(self, client: TestClient) -> None:
        body = client.get("/api/users").json()
        assert body["success"] is True
        assert len(body["data"]) == 5
        assert body["pagination"] == {"page": 1, "limit": 10, "total": 5, "pages": 1}

    def test_pagination(self, client: TestClient) -> None:
        body = client.get("/api/users", params={"page": 2, "limit": 2}).json()
        assert [user["id"] for user in body["data"]] == [3, 4]
        assert body["pagination"]["pages"] == 3

    def test_bad_pagination_falls_back(self, client: TestClient) -> None:
        body = client.get("/api/users", params={"page": "abc", "limit": "-3"}).json()
        assert body["pagination"]["page"] == 1
        assert body["pagination"]["limit"] == 10

    def test_filter(self, client: TestClient) -> None:
        body = client.get("/api/users", params={"filter": "alice"}).json()
        assert [user["name"] for user in body["data"]] == ["Alice Brown"]
        assert body["filter"] == "alice"

    def test_get_user(self, client: TestClient) -> None:
        response = client.get("/api/users/5")
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == 5
        assert data["email"] == "user5@example.com"
        assert "createdAt" in data
        assert "lastLogin" in data

    @pytest.mark.parametrize("user_id", ["abc", "0", "-4", "1.5"])
    def test_invalid_user_id(self, client: TestClient, user_id: str) -> None:
        response = client.get(f"/api/users/{user_id}")
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_PARAMETER"
        assert body["message"] == "Bad Request - Invalid user ID provided"
        assert "errorId" not in body

    def test_user_not_found(self, client: TestClient) -> None:
        response = client.get("/api/users/101")
        assert response.status_code == 404
        body = response.json()
        assert body["error"] is True
        assert body["code"] == "USER_NOT_FOUND"
        assert body["details"] == "No user exists with ID: 101"
        assert body["correlationId"] == response.headers["x-correlation-id"]

    def test_create_user(self, client: TestClient) -> None:
        response = client.post("/api/users", json={"name": "Jane", "email": "jane@example.com"})
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "User created successfully"
        assert body["data"]["name"] == "Jane"
        assert body["data"]["role"] == "user"

    def test_create_user_with_role(self, client: TestClient) -> None:
        response = client.post(
            "/api/users", json={"name": "Ann", "email": "ann@example.com", "role": "moderator"}
        )
        assert response.json()["data"]["role"] == "moderator"

    @pytest.mark.parametrize(
        "payload",
        [{"name": "Jane"}, {"email": "jane@example.com"}, {}, {"name": "", "email": "jane@example.com"}],
    )
    def test_create_user_missing_fields(self, client: TestClient, payload: dict) -> None:
        response = client.post("/api/users", json=payload)
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["message"] == "Bad Request - Missing required fields"

    def test_create_user_bad_email(self, client: TestClient) -> None:
        response = client.post("/api/users", json={"name": "Jane", "email": "not-an-email"})
        assert response.status_code == 400
        assert response.json()["message"] == "Bad Request - Invalid email format"

    def test_update_user(self, client: TestClient) -> None:
        response = client.put("/api/users/3", json={"name": "Bob", "email": "bob@example.com"})
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "User updated successfully"
        assert body["data"]["id"] == 3
        assert "updatedAt" in body["data"]

    def test_update_missing_user(self, client: TestClient) -> None:
        response = client.put("/api/users/101", json={"name": "Bob", "email": "bob@example.com"})
        assert response.status_code == 404
        assert response.json()["code"] == "USER_NOT_FOUND"

    def test_update_validates_id_before_body(self, client: TestClient) -> None:
        response = client.put("/api/users/abc", json={})
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PARAMETER"

    def test_update_missing_fields(self, client: TestClient) -> None:
        response = client.put("/api/users/3", json={"name": "Bob"})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_delete_user(self, client: TestClient) -> None:
        response = client.delete("/api/users/2")
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "User deleted successfully"
        assert body["data"]["id"] == 2
        assert "deletedAt" in body["data"]

    def test_delete_admin_is_forbidden(self, client: TestClient) -> None:
        response = client.delete("/api/users/1")
        assert response.status_code == 403
        body = response.json()
        assert body["code"] == "FORBIDDEN_OPERATION"
        assert body["message"] == "Bad Request - Cannot delete admin user"

    def test_delete_missing_user(self, client: TestClient) -> None:
        assert client.delete("/api/users/500").status_code == 404


class TestData:
    def test_get_data(self, client: TestClient) -> None:
        body = client.get("/api/data").json()
        assert body["success"] is True
        assert set(body["data"]) == {"metrics", "events", "system"}
        assert len(body["data"]["events"]) == 20
        assert body["meta"]["format"] == "json"
        assert body["meta"]["type"] == "all"
        assert body["meta"]["limit"] == 50

    def test_limit(self, client: TestClient) -> None:
        body = client.get("/api/data", params={"limit": 3}).json()
        assert len(body["data"]["events"]) == 3

    def test_type_narrows_to_one_section(self, client: TestClient) -> None:
        body = client.get("/api/data", params={"type": "metrics"}).json()
        assert list(body["data"]) == ["metrics"]

    def test_unknown_type_is_empty(self, client: TestClient) -> None:
        assert client.get("/api/data", params={"type": "bogus"}).json()["data"] == {}

    def test_xml_format(self, client: TestClient) -> None:
        response = client.get("/api/data", params={"format": "xml"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert response.text.startswith('<?xml version="1.0"')
        assert "<success>true</success>" in response.text

    def test_submit_data(self, client: TestClient) -> None:
        response = client.post("/api/data", json={"data": {"a": 1}, "type": "reading"})
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Data processed successfully"
        assert body["data"]["originalData"] == {"a": 1}
        assert body["data"]["type"] == "reading"
        assert body["data"]["size"] == len('{"a":1}')

    def test_submit_without_data(self, client: TestClient) -> None:
        response = client.post("/api/data", json={"type": "reading"})
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["message"] == "Bad Request - Missing data payload"


class TestBodyParsing:
    def test_malformed_json(self, client: TestClient) -> None:
        response = client.post(
            "/api/users", content=b'{"name": "Jane",', headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_JSON"

    def test_unsupported_content_type(self, client: TestClient) -> None:
        response = client.post(
            "/api/users", content=b"<user><name>Jane</name></user>", headers={"Content-Type": "application/xml"}
        )
        assert response.status_code == 415
        assert response.json()["status"] == 415

    def test_form_body_creates_user(self, client: TestClient) -> None:
        response = client.post("/api/users", data={"name": "Ann", "email": "ann@example.com"})
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name"] == "Ann"
        assert data["email"] == "ann@example.com"

    def test_form_body_updates_user(self, client: TestClient) -> None:
        response = client.put("/api/users/4", data={"name": "Ann", "email": "ann@example.com", "role": "admin"})
        assert response.status_code == 200
        assert response.json()["data"]["role"] == "admin"

    def test_form_body_missing_fields(self, client: TestClient) -> None:
        response = client.post("/api/users", data={"name": "Ann"})
        assert response.status_code == 400
        assert response.json()["message"] == "Bad Request - Missing required fields"

    def test_text_body_is_accepted_without_fields(self, client: TestClient) -> None:
        response = client.post("/api/data", content=b"temperature=21", headers={"Content-Type": "text/plain"})
        assert response.status_code == 400
        assert response.json()["message"] == "Bad Request - Missing data payload"

    def test_text_body_over_its_own_limit(self, settings_factory: Callable[..., Settings]) -> None:
        with TestClient(create_app(settings_factory(text_limit=100))) as client:
            text = client.post("/api/data", content=b"x" * 200, headers={"Content-Type": "text/plain"})
            json_ok = client.post("/api/data", json={"data": "x" * 200})
        assert text.status_code == 413
        assert text.json()["maxSize"] == "100B"
        assert json_ok.status_code == 201

    def test_form_body_over_its_own_limit(self, settings_factory: Callable[..., Settings]) -> None:
        with TestClient(create_app(settings_factory(urlencoded_limit="1kb"))) as client:
            response = client.post("/api/users", data={"name": "A" * 2048, "email": "a@example.com"})
        assert response.status_code == 413
        assert response.json()["maxSize"] == "1KB"

    def test_empty_body_is_empty_object(self, client: TestClient) -> None:
        response = client.post("/api/users")
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_json_array_is_not_an_object(self, client: TestClient) -> None:
        response = client.post("/api/data", json=[1, 2, 3])
        assert response.status_code == 400

    def test_vendor_json_content_type(self, client: TestClient) -> None:
        response = client.post(
            "/api/data",
            content=b'{"data": [1]}',
            headers={"Content-Type": "application/vnd.api+json; charset=utf-8"},
        )
        assert response.status_code == 201


class TestErrorSimulation:
    def test_validation(self, client: TestClient) -> None:
        response = client.get("/api/error", params={"type": "validation"})
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["message"] == "Bad Request - Validation error simulation"

    def test_not_found(self, client: TestClient) -> None:
        response = client.get("/api/error", params={"type": "notfound"})
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_server(self, client: TestClient) -> None:
        response = client.get("/api/error", params={"type": "server"})
        assert response.status_code == 500
        body = response.json()
        assert body["message"] == SAFE_ERROR_MESSAGES[500]
        assert body["errorId"].startswith("err_")
        assert "Simulated" not in response.text
        assert "code" not in body

    def test_async(self, client: TestClient) -> None:
        response = client.get("/api/error", params={"type": "async"})
        assert response.status_code == 500
        assert "errorId" in response.json()

    @pytest.mark.parametrize("params", [{}, {"type": "meltdown"}])
    def test_unknown_type(self, client: TestClient, params: dict) -> None:
        response = client.get("/api/error", params=params)
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_PARAMETER"
        assert "validation, notfound, server, async" in body["details"]


class TestUnknownApiEndpoints:
    @pytest.mark.parametrize(
        ("method", "path"),
        [("GET", "/api/nope"), ("POST", "/api/things/1"), ("PATCH", "/api/users"), ("GET", "/api/")],
    )
    def test_endpoint_not_found(self, client: TestClient, method: str, path: str) -> None:
        response = client.request(method, path)
        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "ENDPOINT_NOT_FOUND"
        assert "GET /api/users" in body["details"]["availableEndpoints"]
        assert body["details"]["path"] == path


async def test_user_over_async_client(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/users/1")
    assert response.status_code == 200
    assert response.headers["x-correlation-id"]
