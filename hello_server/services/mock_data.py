"""Fabricated users, metrics and events served by the mock API."""

import base64
from datetime import datetime, timedelta, timezone
import json
import math
import os
import platform
import random
import re
import time
from typing import Any
import uuid

import psutil

MOCK_USERS: tuple[dict[str, Any], ...] = (
    {"id": 1, "name": "John Doe", "email": "john@example.com", "role": "admin"},
    {"id": 2, "name": "Jane Smith", "email": "jane@example.com", "role": "user"},
    {"id": 3, "name": "Bob Johnson", "email": "bob@example.com", "role": "user"},
    {"id": 4, "name": "Alice Brown", "email": "alice@example.com", "role": "moderator"},
    {"id": 5, "name": "Charlie Wilson", "email": "charlie@example.com", "role": "user"},
)

# Highest ID the mock store pretends to hold.
MAX_USER_ID = 100
# Users that may never be deleted.
PROTECTED_USER_IDS = frozenset({1})

EVENT_TYPES = ("login", "logout", "error", "warning")
MAX_EVENTS = 20

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_MB = 1024 * 1024


def _iso(moment: datetime) -> str:
    return moment.isoformat()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _random_past(max_age: timedelta) -> str:
    return _iso(_now() - max_age * random.random())


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def list_users(page: int, limit: int, name_filter: str = "") -> dict[str, Any]:
    """Filter the fixed user list by name/email substring and return one page."""
    needle = name_filter.lower()
    users = [
        dict(user)
        for user in MOCK_USERS
        if not needle or needle in user["name"].lower() or needle in user["email"].lower()
    ]
    start = (page - 1) * limit
    return {
        "data": users[start : start + limit],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": len(users),
            "pages": math.ceil(len(users) / limit),
        },
        "filter": name_filter or None,
    }


def user_by_id(user_id: int) -> dict[str, Any]:
    return {
        "id": user_id,
        "name": f"User {user_id}",
        "email": f"user{user_id}@example.com",
        "role": "user",
        "createdAt": _iso(_now()),
        "lastLogin": _random_past(timedelta(days=30)),
    }


def new_user(name: str, email: str, role: str | None) -> dict[str, Any]:
    return {
        "id": random.randint(1, 1000),
        "name": name,
        "email": email,
        "role": role or "user",
        "createdAt": _iso(_now()),
        "lastLogin": None,
    }


def updated_user(user_id: int, name: str, email: str, role: str | None) -> dict[str, Any]:
    return {
        "id": user_id,
        "name": name,
        "email": email,
        "role": role or "user",
        "createdAt": _random_past(timedelta(days=365)),
        "updatedAt": _iso(_now()),
        "lastLogin": _random_past(timedelta(days=7)),
    }


def memory_usage() -> dict[str, int]:
    memory = psutil.Process().memory_info()
    return {"rss": memory.rss, "vms": memory.vms}


def memory_summary() -> dict[str, Any]:
    """Resident and virtual memory of this process in MB."""
    memory = psutil.Process().memory_info()
    return {"used": round(memory.rss / _MB), "total": round(memory.vms / _MB), "unit": "MB"}


def process_uptime() -> float:
    return round(time.time() - psutil.Process().create_time(), 3)


def metrics_snapshot(limit: int) -> dict[str, Any]:
    """Random metrics, a few recent events and real process information."""
    return {
        "metrics": {
            "totalRequests": random.randint(0, 9999),
            "activeUsers": random.randint(0, 999),
            "errorRate": f"{random.random() * 5:.2f}%",
            "responseTime": f"{random.randint(0, 199)}ms",
        },
        "events": [
            {
                "id": index + 1,
                "type": random.choice(EVENT_TYPES),
                "timestamp": _random_past(timedelta(days=1)),
                "message": f"Event {index + 1} occurred",
            }
            for index in range(max(0, min(limit, MAX_EVENTS)))
        ],
        "system": {
            "uptime": process_uptime(),
            "memory": memory_usage(),
            "pid": os.getpid(),
            "platform": platform.system().lower(),
        },
    }


def select_section(snapshot: dict[str, Any], section: str) -> dict[str, Any]:
    """The whole snapshot for ``all``, one section by name, or nothing."""
    if section == "all":
        return snapshot
    if section in snapshot:
        return {section: snapshot[section]}
    return {}


def process_submission(data: Any, data_type: str | None, metadata: Any) -> dict[str, Any]:
    encoded = json.dumps(data, separators=(",", ":"))
    return {
        "id": f"data_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}",
        "originalData": data,
        "type": data_type or "unknown",
        "metadata": metadata or {},
        "processedAt": _iso(_now()),
        "size": len(encoded),
        "checksum": base64.b64encode(encoded.encode("utf-8")).decode("ascii")[:16],
    }


XML_PLACEHOLDER = """<?xml version="1.0" encoding="UTF-8"?>
<response>
  <success>true</success>
  <message>XML format not fully implemented. Use format=json for complete data.</message>
</response>"""
