"""
In-memory registry of live call sessions, keyed by a backend-generated session id.
Observability only (health endpoint); sessions never read each other's state.
"""
from __future__ import annotations

import uuid
from typing import Any

_session_store: dict[str, Any] = {}


def generate_session_id() -> str:
    """Generate a new session_id (UUID hex, 12 chars)."""
    return uuid.uuid4().hex[:12]


def register_session(session_id: str, session: Any) -> None:
    _session_store[session_id] = session


def unregister_session(session_id: str) -> bool:
    """Remove session from registry. Return True if it existed."""
    return _session_store.pop(session_id, None) is not None


def get_session(session_id: str) -> Any | None:
    return _session_store.get(session_id)


def active_session_count() -> int:
    return len(_session_store)
