"""Tests for mock data generation."""

import base64
import json
import re

import pytest

from hello_server.services import mock_data


class TestUsers:
    def test_first_page(self) -> None:
        result = mock_data.list_users(page=1, limit=2)
        assert [user["id"] for user in result["data"]] == [1, 2]
        assert result["pagination"] == {"page": 1, "limit": 2, "total": 5, "pages": 3}
        assert result["filter"] is None

    def test_page_past_the_end_is_empty(self) -> None:
        result = mock_data.list_users(page=4, limit=2)
        assert result["data"] == []
        assert result["pagination"]["total"] == 5

    @pytest.mark.parametrize(
        ("needle", "expected_ids"),
        [("jane", [2]), ("JOHN", [1, 3]), ("example.com", [1, 2, 3, 4, 5]), ("nobody", [])],
    )
    def test_filter_matches_name_or_email(self, needle: str, expected_ids: list[int]) -> None:
        result = mock_data.list_users(page=1, limit=10, name_filter=needle)
        assert [user["id"] for user in result["data"]] == expected_ids
        assert result["filter"] == needle

    def test_listing_does_not_share_state(self) -> None:
        mock_data.list_users(1, 10)["data"][0]["name"] = "changed"
        assert mock_data.MOCK_USERS[0]["name"] == "John Doe"

    def test_user_by_id(self) -> None:
        user = mock_data.user_by_id(42)
        assert user["name"] == "User 42"
        assert user["email"] == "user42@example.com"
        assert user["role"] == "user"
        assert "createdAt" in user
        assert "lastLogin" in user

    def test_new_user_defaults_role(self) -> None:
        user = mock_data.new_user("Jane", "jane@x.io", None)
        assert user["role"] == "user"
        assert user["lastLogin"] is None
        assert 1 <= user["id"] <= 1000

    def test_updated_user(self) -> None:
        user = mock_data.updated_user(7, "Jane", "jane@x.io", "admin")
        assert user["id"] == 7
        assert user["role"] == "admin"
        assert "updatedAt" in user

    @pytest.mark.parametrize(
        ("email", "valid"),
        [("a@b.co", True), ("jane.doe@example.com", True), ("not-an-email", False), ("a@b", False), ("a b@c.d", False)],
    )
    def test_email_validation(self, email: str, valid: bool) -> None:
        assert mock_data.is_valid_email(email) is valid


class TestMetrics:
    def test_snapshot_sections(self) -> None:
        snapshot = mock_data.metrics_snapshot(5)
        assert set(snapshot) == {"metrics", "events", "system"}
        assert len(snapshot["events"]) == 5
        assert re.fullmatch(r"\d+\.\d{2}%", snapshot["metrics"]["errorRate"])
        assert snapshot["metrics"]["responseTime"].endswith("ms")
        assert {"rss", "vms"} <= set(snapshot["system"]["memory"])
        assert snapshot["system"]["uptime"] >= 0

    def test_events_are_capped(self) -> None:
        assert len(mock_data.metrics_snapshot(500)["events"]) == mock_data.MAX_EVENTS

    def test_event_shape(self) -> None:
        event = mock_data.metrics_snapshot(1)["events"][0]
        assert event["id"] == 1
        assert event["type"] in mock_data.EVENT_TYPES
        assert event["message"] == "Event 1 occurred"

    @pytest.mark.parametrize(
        ("section", "expected_keys"),
        [("all", {"metrics", "events", "system"}), ("metrics", {"metrics"}), ("unknown", set())],
    )
    def test_select_section(self, section: str, expected_keys: set[str]) -> None:
        snapshot = mock_data.metrics_snapshot(1)
        assert set(mock_data.select_section(snapshot, section)) == expected_keys

    def test_memory_summary_in_megabytes(self) -> None:
        summary = mock_data.memory_summary()
        assert summary["unit"] == "MB"
        assert summary["used"] > 0


def test_process_submission() -> None:
    data = {"temperature": 21.5, "unit": "C"}
    record = mock_data.process_submission(data, None, None)
    encoded = json.dumps(data, separators=(",", ":"))
    assert re.fullmatch(r"data_\d+_[0-9a-f]{9}", record["id"])
    assert record["originalData"] == data
    assert record["type"] == "unknown"
    assert record["metadata"] == {}
    assert record["size"] == len(encoded)
    assert record["checksum"] == base64.b64encode(encoded.encode()).decode()[:16]
