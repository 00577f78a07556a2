"""Role-dependent field defaulting applied before an agent is written."""

from pennyekart.models.agent import AgentRole

TEAM_LEADER_WARD = "N/A"

READ_ONLY_FIELDS = frozenset({
    "id",
    "created_at",
    "created_by",
    "updated_at",
    "panchayath",
    "parent_agent",
    "children",
})


def strip_read_only_fields(values: dict) -> dict:
    """Drop keys the client may send back but must never overwrite."""
    return {key: value for key, value in values.items() if key not in READ_ONLY_FIELDS}


def apply_role_defaults(values: dict) -> dict:
    """
    Return a copy of values with the role table applied.

    team_leader: no parent, ward defaults to "N/A", no responsible wards.
    coordinator: the only role keeping responsible wards.
    pro: the only role keeping a customer count.
    Every role except team_leader loses responsible panchayaths.
    """
    result = dict(values)
    role = AgentRole(result["role"])

    if role == AgentRole.TEAM_LEADER:
        result["parent_agent_id"] = None
        if not (result.get("ward") or "").strip():
            result["ward"] = TEAM_LEADER_WARD
        result["responsible_panchayath_ids"] = list(result.get("responsible_panchayath_ids") or [])
    else:
        result["parent_agent_id"] = result.get("parent_agent_id") or None
        result["responsible_panchayath_ids"] = []

    if role == AgentRole.COORDINATOR:
        result["responsible_wards"] = list(result.get("responsible_wards") or [])
    else:
        result["responsible_wards"] = []

    if role == AgentRole.PRO:
        result["customer_count"] = int(result.get("customer_count") or 0)
    else:
        result["customer_count"] = 0

    return result
