"""Environment-backed settings, read at call time so tests can override them."""

import os

from pennyekart.utils.errors import ConfigurationError

DEFAULT_HIERARCHY_MAX_DEPTH = 16


def _flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes")


def get_admin_secret() -> str:
    """Secret shared with the admin login function for token signatures."""
    secret = os.environ.get("ADMIN_SECRET", "").strip()
    if not secret:
        raise ConfigurationError("ADMIN_SECRET not set")
    return secret


def allow_unsigned_admin_tokens() -> bool:
    """Legacy mode: accept tokens whose signature does not match."""
    return _flag("ADMIN_TOKEN_ALLOW_UNSIGNED", "false")


def enforce_parent_chain() -> bool:
    """Re-check parent role, panchayath and ward server-side on writes."""
    return _flag("AGENT_ENFORCE_PARENT_CHAIN", "true")


def get_cors_allow_origin() -> str:
    return os.environ.get("CORS_ALLOW_ORIGIN", "*")


def get_hierarchy_max_depth() -> int:
    raw = os.environ.get("HIERARCHY_MAX_DEPTH", "")
    try:
        depth = int(raw)
    except ValueError:
        return DEFAULT_HIERARCHY_MAX_DEPTH
    return depth if depth > 0 else DEFAULT_HIERARCHY_MAX_DEPTH
