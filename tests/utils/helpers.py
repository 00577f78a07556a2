"""Test helper functions."""

import json
import time
from typing import Any, Dict, Optional
from unittest.mock import MagicMock

from pennyekart.models.admin_session import AdminSession, AdminToken
from pennyekart.services.admin_auth import issue_admin_token

QUERY_METHODS = ("select", "eq", "or_", "order", "limit", "insert", "update", "delete")


def make_query_mock(data=None) -> MagicMock:
    """Chainable Supabase query whose execute() returns data."""
    query = MagicMock()
    for name in QUERY_METHODS:
        getattr(query, name).return_value = query
    query.execute.return_value = MagicMock(data=[] if data is None else data)
    return query


def make_client_mock(query: MagicMock) -> MagicMock:
    client = MagicMock()
    client.table.return_value = query
    return client


def make_admin_token(
    secret: str = "test-admin-secret",
    admin_id: str = "admin-1",
    user_id: Optional[str] = None,
    expires_in_ms: int = 60 * 60 * 1000,
) -> str:
    """Signed admin token valid for expires_in_ms from now."""
    token = AdminToken(
        admin_id=admin_id,
        user_id=user_id,
        division_id="division-1",
        full_name="Division Admin",
        exp=int(time.time() * 1000) + expires_in_ms,
    )
    return issue_admin_token(token, secret)


def make_admin_session(admin_id: str = "admin-1", is_super_admin: bool = False) -> AdminSession:
    token = AdminToken(
        admin_id=admin_id,
        division_id="division-1",
        full_name="Division Admin",
        exp=int(time.time() * 1000) + 60 * 60 * 1000,
    )
    return AdminSession(token=token, is_super_admin=is_super_admin)


def create_vercel_request(
    method: str = "GET",
    body: Any = None,
    query: Optional[Dict[str, str]] = None,
    token: Optional[str] = "token",
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Create a Vercel request object for testing."""
    request_headers = {"content-type": "application/json"}
    if token:
        request_headers["x-admin-token"] = token
    request_headers.update(headers or {})

    return {
        "method": method,
        "path": "/api/pennyekart_agents",
        "headers": request_headers,
        "body": json.dumps(body) if isinstance(body, (dict, list)) else body,
        "query": query or {},
    }
