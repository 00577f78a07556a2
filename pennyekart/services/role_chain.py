"""Role chain helpers over the fixed four-level agent hierarchy."""

from typing import Optional

from pennyekart.models.agent import AgentRole, ROLE_HIERARCHY


def role_rank(role: AgentRole) -> int:
    """Position in the chain, 0 for team leaders."""
    return ROLE_HIERARCHY.index(AgentRole(role))


def parent_role(role: AgentRole) -> Optional[AgentRole]:
    """Role one level up, None for the top of the chain."""
    index = role_rank(role)
    return ROLE_HIERARCHY[index - 1] if index > 0 else None


def child_role(role: AgentRole) -> Optional[AgentRole]:
    """Role one level down, None for the bottom of the chain."""
    index = role_rank(role)
    return ROLE_HIERARCHY[index + 1] if index < len(ROLE_HIERARCHY) - 1 else None
