"""Filter layer - narrow the agent set before building the hierarchy."""

from typing import Iterable, Optional

from pennyekart.models.agent import Agent, AgentRole
from pennyekart.models.filters import AgentFilters
from pennyekart.services.role_chain import parent_role


def matches_filters(agent: Agent, filters: Optional[AgentFilters]) -> bool:
    """True when the agent satisfies every active predicate."""
    if filters is None:
        return True

    if filters.panchayath_id:
        in_scope = (
            agent.panchayath_id == filters.panchayath_id
            or filters.panchayath_id in agent.responsible_panchayath_ids
        )
        if not in_scope:
            return False

    if filters.ward and agent.ward != filters.ward:
        return False

    if filters.role and agent.role != filters.role:
        return False

    if filters.search:
        needle = filters.search.lower()
        if needle not in agent.name.lower() and needle not in agent.mobile.lower():
            return False

    return True


def filter_agents(agents: Iterable[Agent], filters: Optional[AgentFilters]) -> list[Agent]:
    return [agent for agent in agents if matches_filters(agent, filters)]


def _escape_postgrest(value: str) -> str:
    # Commas and parentheses split or_() clauses
    return value.replace(",", " ").replace("(", " ").replace(")", " ").strip()


def _escape_like(value: str) -> str:
    """Make % and _ literal in an ilike pattern; PostgREST reads * as %, so it is dropped."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped.replace("*", " ").strip()


def apply_filters_to_query(query, filters: Optional[AgentFilters]):
    """Express the same predicates as PostgREST filters on a Supabase query."""
    if filters is None or filters.is_empty():
        return query

    if filters.panchayath_id:
        panchayath_id = _escape_postgrest(filters.panchayath_id)
        query = query.or_(
            f"panchayath_id.eq.{panchayath_id},"
            f"responsible_panchayath_ids.cs.{{{panchayath_id}}}"
        )
    if filters.ward:
        query = query.eq("ward", filters.ward)
    if filters.role:
        query = query.eq("role", AgentRole(filters.role).value)
    if filters.search:
        search = _escape_like(_escape_postgrest(filters.search))
        query = query.or_(f"name.ilike.%{search}%,mobile.ilike.%{search}%")

    return query


def is_parent_candidate(agent: Agent, role: AgentRole, panchayath_id: Optional[str]) -> bool:
    """
    Whether agent may supervise a new agent of the given role.

    Stricter than the list filter: the literal home panchayath must match,
    responsibility scope does not widen it.
    """
    wanted = parent_role(role)
    if wanted is None or not panchayath_id:
        return False
    return (
        agent.role == wanted
        and agent.panchayath_id == panchayath_id
        and agent.is_active
    )


def parent_candidates(
    agents: Iterable[Agent],
    role: AgentRole,
    panchayath_id: Optional[str],
) -> list[Agent]:
    candidates = [agent for agent in agents if is_parent_candidate(agent, role, panchayath_id)]
    return sorted(candidates, key=lambda agent: agent.name.lower())
