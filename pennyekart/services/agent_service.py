"""Agent mutation layer - validate, default and persist agents for an admin session."""

from typing import Any, Optional

from pydantic import ValidationError

from pennyekart.models.admin_session import AdminSession
from pennyekart.models.agent import Agent, AgentPayload, AgentRole, AgentUpdate
from pennyekart.models.filters import AgentFilters
from pennyekart.models.panchayath import Panchayath
from pennyekart.services import supabase_client as store
from pennyekart.services.agent_defaults import (
    TEAM_LEADER_WARD,
    apply_role_defaults,
    strip_read_only_fields,
)
from pennyekart.services.agent_filters import parent_candidates
from pennyekart.services.hierarchy import (
    build_hierarchy,
    find_chain_violations,
    sort_agents,
    sort_forest,
    summarize_agents,
)
from pennyekart.services.role_chain import parent_role
from pennyekart.utils.errors import (
    AgentNotFoundError,
    AgentValidationError,
    DuplicateMobileError,
)
from pennyekart.utils.logging import get_structured_logger, mask_mobile
from pennyekart.utils.settings import enforce_parent_chain

logger = get_structured_logger(__name__)


def _validation_message(error: ValidationError, prefix: str = "") -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    label = f"{prefix}{field}" if field else prefix.rstrip(".") or "agent"
    return f"Invalid {label}: {first.get('msg', 'invalid value')}"


def _require_ward(row: dict, prefix: str = "") -> None:
    # "N/A" is reserved for team leaders
    if row["role"] == AgentRole.TEAM_LEADER.value:
        return
    ward = (row.get("ward") or "").strip()
    if not ward or ward == TEAM_LEADER_WARD:
        raise AgentValidationError(f"Invalid {prefix}ward: Ward is required")


def prepare_new_agent(values: Any, prefix: str = "") -> dict:
    """Validate a create payload and apply the role defaults."""
    if not isinstance(values, dict):
        raise AgentValidationError("Agent data must be an object")
    try:
        payload = AgentPayload.model_validate(strip_read_only_fields(values))
    except ValidationError as e:
        raise AgentValidationError(_validation_message(e, prefix))

    row = apply_role_defaults(payload.model_dump(mode="json"))
    _require_ward(row, prefix)
    return row


def parse_agents(rows: list[dict]) -> list[Agent]:
    return [Agent.model_validate(row) for row in rows]


async def check_placement(row: dict, agent_id: Optional[str] = None) -> None:
    """
    Check the parent and ward of a defaulted row against the stored data.

    Parent must be active, one role level up, and share the panchayath
    (or, for a team leader parent, have it in its responsibility scope).
    """
    if not enforce_parent_chain():
        return

    role = AgentRole(row["role"])
    parent_id = row.get("parent_agent_id")

    if parent_id:
        if agent_id and parent_id == agent_id:
            raise AgentValidationError("An agent cannot be its own parent")

        parent_data = await store.fetch_agent(parent_id)
        if parent_data is None:
            raise AgentValidationError("Parent agent not found")
        parent = Agent.model_validate(parent_data)

        expected = parent_role(role)
        if parent.role != expected:
            raise AgentValidationError(
                f"Parent of a {role.value} must be a {expected.value if expected else 'none'}"
            )
        if not parent.is_active:
            raise AgentValidationError("Parent agent is inactive")

        same_area = parent.panchayath_id == row["panchayath_id"] or (
            parent.role == AgentRole.TEAM_LEADER
            and row["panchayath_id"] in parent.responsible_panchayath_ids
        )
        if not same_area:
            raise AgentValidationError("Parent agent belongs to a different panchayath")
    elif role != AgentRole.TEAM_LEADER:
        logger.warning("Agent saved without a parent", role=role.value, agent_id=agent_id)

    panchayath_data = await store.fetch_panchayath(row["panchayath_id"])
    if panchayath_data is None:
        return
    options = Panchayath.model_validate(panchayath_data).ward_options()
    if not options:
        return

    exempt = role == AgentRole.TEAM_LEADER and row["ward"] == TEAM_LEADER_WARD
    if not exempt and row["ward"] not in options:
        raise AgentValidationError(f"Ward {row['ward']} does not exist in this panchayath")
    unknown = [ward for ward in row.get("responsible_wards", []) if ward not in options]
    if unknown:
        raise AgentValidationError(f"Unknown responsible wards: {', '.join(unknown)}")


async def list_agents(filters: Optional[AgentFilters] = None) -> list[Agent]:
    """Flat agent list ordered by role then name."""
    return sort_agents(parse_agents(await store.fetch_agents(filters)))


async def get_hierarchy(filters: Optional[AgentFilters] = None) -> dict:
    """Flat list, forest and summary built from one fetch."""
    agents = await list_agents(filters)
    violations = find_chain_violations(agents)
    if violations:
        logger.warning(
            "Stored agents break the role chain",
            agent_ids=[agent.id for agent in violations]
        )
    tree = sort_forest(build_hierarchy(agents))
    return {
        "agents": agents,
        "tree": tree,
        "stats": summarize_agents(agents),
    }


async def list_parent_candidates(role: AgentRole, panchayath_id: Optional[str]) -> list[Agent]:
    if not panchayath_id:
        return []
    rows = await store.fetch_parent_candidates(role, panchayath_id)
    return parent_candidates(parse_agents(rows), role, panchayath_id)


async def create_agent(session: AdminSession, values: Any) -> dict:
    """Create one agent on behalf of the admin."""
    row = prepare_new_agent(values)
    await check_placement(row)

    row["created_by"] = session.admin_id
    created = await store.insert_agent(row)
    logger.info(
        "Agent created",
        agent_id=created.get("id"),
        role=row["role"],
        mobile=mask_mobile(row["mobile"]),
        admin_id=session.admin_id,
        division_id=session.division_id
    )
    return created


async def bulk_create_agents(session: AdminSession, values: Any) -> tuple[list[dict], int]:
    """Create many agents in a single batched insert."""
    if not isinstance(values, list) or not values:
        raise AgentValidationError("No agents to create")

    rows = [prepare_new_agent(item, prefix=f"agents.{index}.") for index, item in enumerate(values)]

    seen: set[str] = set()
    repeated: list[str] = []
    for row in rows:
        if row["mobile"] in seen:
            repeated.append(row["mobile"])
        seen.add(row["mobile"])
    if repeated:
        logger.warning(
            "Bulk create rejected",
            mobiles=[mask_mobile(mobile) for mobile in repeated],
            admin_id=session.admin_id
        )
        raise DuplicateMobileError("Duplicate mobile numbers in batch")

    for index, row in enumerate(rows):
        try:
            await check_placement(row)
        except AgentValidationError as e:
            raise AgentValidationError(f"agents.{index}: {e.message}") from e
        row["created_by"] = session.admin_id

    created = await store.insert_agents(rows)
    logger.info(
        "Agents bulk created",
        requested=len(rows),
        created_count=len(created),
        admin_id=session.admin_id,
        division_id=session.division_id
    )
    return created, len(created)


async def update_agent(session: AdminSession, agent_id: Optional[str], values: Any) -> dict:
    """Apply a partial update, re-running the role defaults on the merged row."""
    if not agent_id or not values or not isinstance(values, dict):
        raise AgentValidationError("Missing id or agent data")

    try:
        changes = AgentUpdate.model_validate(strip_read_only_fields(values))
    except ValidationError as e:
        raise AgentValidationError(_validation_message(e))
    updates = changes.model_dump(mode="json", exclude_unset=True)

    current = await store.fetch_agent(agent_id)
    if current is None:
        raise AgentNotFoundError("Agent not found")

    merged = apply_role_defaults({**strip_read_only_fields(current), **updates})
    _require_ward(merged)

    written = {
        key: merged[key]
        for key in (
            *updates.keys(),
            "parent_agent_id",
            "ward",
            "customer_count",
            "responsible_panchayath_ids",
            "responsible_wards",
        )
    }
    if any(key in updates for key in ("role", "parent_agent_id", "panchayath_id", "ward", "responsible_wards")):
        await check_placement(merged, agent_id=agent_id)

    updated = await store.update_agent_row(agent_id, written)
    if updated is None:
        raise AgentNotFoundError("Agent not found")

    logger.info(
        "Agent updated",
        agent_id=agent_id,
        fields=sorted(written.keys()),
        admin_id=session.admin_id
    )
    return updated


async def delete_agent(session: AdminSession, agent_id: Optional[str]) -> None:
    """Hard delete; direct reports become roots in later hierarchy views."""
    if not agent_id:
        raise AgentValidationError("Missing id")

    if not await store.delete_agent_row(agent_id):
        raise AgentNotFoundError("Agent not found")
    logger.info("Agent deleted", agent_id=agent_id, admin_id=session.admin_id)
