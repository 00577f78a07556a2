"""Supabase client wrapper and pennyekart_agents table operations."""

import os
from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions

from pennyekart.models.agent import AgentRole
from pennyekart.models.filters import AgentFilters
from pennyekart.services.agent_filters import apply_filters_to_query
from pennyekart.services.role_chain import parent_role
from pennyekart.utils.errors import DuplicateMobileError, SupabaseError
from pennyekart.utils.logging import get_structured_logger, log_timing, mask_sensitive_data

logger = get_structured_logger(__name__)

AGENTS_TABLE = "pennyekart_agents"
AGENT_LIST_COLUMNS = "*, panchayath:panchayaths(name)"
UNIQUE_VIOLATION_CODE = "23505"

# Global client instance (singleton pattern)
_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        # Service role key, no user session to keep
        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", supabase_url=url)

    return _client


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                error=mask_sensitive_data(str(exc_val)),
                error_type=exc_type.__name__
            )
        return False


def is_unique_violation(error: Exception) -> bool:
    """Postgres unique_violation surfaced through PostgREST."""
    if getattr(error, "code", None) == UNIQUE_VIOLATION_CODE:
        return True
    message = str(error).lower()
    return UNIQUE_VIOLATION_CODE in message or "duplicate key" in message


# Agent table operations
async def fetch_agents(filters: Optional[AgentFilters] = None) -> list[dict]:
    """List agents ordered by role then name, optionally filtered."""
    async with SupabaseClient() as client:
        try:
            query = (
                client.table(AGENTS_TABLE)
                .select(AGENT_LIST_COLUMNS)
                .order("role")
                .order("name")
            )
            query = apply_filters_to_query(query, filters)
            with log_timing("fetch_agents", logger=logger):
                result = query.execute()
        except Exception as e:
            raise SupabaseError(f"Failed to fetch agents: {e}")
    return result.data if result.data else []


async def fetch_agent(agent_id: str) -> Optional[dict]:
    """Get a single agent by ID."""
    async with SupabaseClient() as client:
        try:
            result = client.table(AGENTS_TABLE).select("*").eq("id", agent_id).limit(1).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to fetch agent: {e}")
    return result.data[0] if result.data else None


async def fetch_parent_candidates(role: AgentRole, panchayath_id: str) -> list[dict]:
    """Active agents one level up in the same literal panchayath."""
    wanted = parent_role(role)
    if wanted is None or not panchayath_id:
        return []

    async with SupabaseClient() as client:
        try:
            result = (
                client.table(AGENTS_TABLE)
                .select("*")
                .eq("panchayath_id", panchayath_id)
                .eq("role", wanted.value)
                .eq("is_active", True)
                .order("name")
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to fetch parent candidates: {e}")
    return result.data if result.data else []


async def insert_agent(row: dict) -> dict:
    """Insert one agent row."""
    async with SupabaseClient() as client:
        try:
            result = client.table(AGENTS_TABLE).insert(row).execute()
        except Exception as e:
            if is_unique_violation(e):
                raise DuplicateMobileError("Mobile number already exists")
            raise SupabaseError(f"Failed to create agent: {e}")
    if not result.data:
        raise SupabaseError("Failed to create agent: no data returned")
    return result.data[0]


async def insert_agents(rows: list[dict]) -> list[dict]:
    """Insert many agent rows in one batched request."""
    async with SupabaseClient() as client:
        try:
            with log_timing("insert_agents", logger=logger, batch_size=len(rows)):
                result = client.table(AGENTS_TABLE).insert(rows).execute()
        except Exception as e:
            if is_unique_violation(e):
                raise DuplicateMobileError("One or more mobile numbers already exist")
            raise SupabaseError(f"Failed to create agents: {e}")
    return result.data if result.data else []


async def update_agent_row(agent_id: str, updates: dict) -> Optional[dict]:
    """Update an agent; None when no row matched."""
    async with SupabaseClient() as client:
        try:
            result = client.table(AGENTS_TABLE).update(updates).eq("id", agent_id).execute()
        except Exception as e:
            if is_unique_violation(e):
                raise DuplicateMobileError("Mobile number already exists")
            raise SupabaseError(f"Failed to update agent: {e}")
    return result.data[0] if result.data else None


async def delete_agent_row(agent_id: str) -> bool:
    """Hard delete; children are left pointing at the removed id."""
    async with SupabaseClient() as client:
        try:
            result = client.table(AGENTS_TABLE).delete().eq("id", agent_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete agent: {e}")
    return bool(result.data)


# Lookup tables
async def fetch_panchayath(panchayath_id: str) -> Optional[dict]:
    """Get a panchayath with its configured ward count."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("panchayaths")
                .select("id, name, ward, is_active")
                .eq("id", panchayath_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to fetch panchayath: {e}")
    return result.data[0] if result.data else None


async def fetch_active_admin(admin_id: str) -> Optional[dict]:
    """Get an active admin by ID."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("admins")
                .select("id, division_id, full_name")
                .eq("id", admin_id)
                .eq("is_active", True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to fetch admin: {e}")
    return result.data[0] if result.data else None


async def has_super_admin_role(user_id: str) -> bool:
    """Whether the auth user holds the super_admin role."""
    async with SupabaseClient() as client:
        try:
            result = (
                client.table("user_roles")
                .select("role")
                .eq("user_id", user_id)
                .eq("role", "super_admin")
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to fetch user roles: {e}")
    return bool(result.data)
