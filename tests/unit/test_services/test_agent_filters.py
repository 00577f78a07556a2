"""Tests for the agent filter layer."""

import pytest
from unittest.mock import MagicMock

from pennyekart.models.agent import AgentRole
from pennyekart.models.filters import AgentFilters
from pennyekart.services.agent_filters import (
    apply_filters_to_query,
    filter_agents,
    is_parent_candidate,
    matches_filters,
    parent_candidates,
)
from tests.utils.factories import create_agent
from tests.utils.helpers import make_query_mock


@pytest.mark.unit
def test_no_filters_match_everything(team):
    assert filter_agents(team, None) == team
    assert filter_agents(team, AgentFilters()) == team


@pytest.mark.unit
def test_panchayath_filter_includes_responsible_team_leader():
    leader = create_agent(
        AgentRole.TEAM_LEADER,
        panchayath_id="home",
        responsible_panchayath_ids=["home", "p2"],
    )
    local = create_agent(AgentRole.COORDINATOR, panchayath_id="p2")
    elsewhere = create_agent(AgentRole.COORDINATOR, panchayath_id="p3")

    result = filter_agents([leader, local, elsewhere], AgentFilters(panchayath_id="p2"))

    assert result == [leader, local]


@pytest.mark.unit
def test_filters_combine_with_and():
    match = create_agent(AgentRole.PRO, ward="4", name="Ravi Kumar")
    wrong_ward = create_agent(AgentRole.PRO, ward="5", name="Ravi Menon")
    wrong_role = create_agent(AgentRole.GROUP_LEADER, ward="4", name="Ravi Das")

    filters = AgentFilters(ward="4", role="pro", search="ravi")

    assert filter_agents([match, wrong_ward, wrong_role], filters) == [match]


@pytest.mark.unit
def test_search_matches_name_or_mobile_case_insensitive():
    agent = create_agent(name="Lakshmi Nair", mobile="9876543210")

    assert matches_filters(agent, AgentFilters(search="NAIR"))
    assert matches_filters(agent, AgentFilters(search="6543"))
    assert not matches_filters(agent, AgentFilters(search="menon"))


@pytest.mark.unit
def test_parent_candidates_are_strict():
    """Responsibility scope does not widen parent candidates."""
    local_leader = create_agent(AgentRole.TEAM_LEADER, panchayath_id="p1", name="B")
    scoped_leader = create_agent(
        AgentRole.TEAM_LEADER, panchayath_id="p9", responsible_panchayath_ids=["p1"]
    )
    inactive_leader = create_agent(AgentRole.TEAM_LEADER, panchayath_id="p1", is_active=False)
    other_leader = create_agent(AgentRole.TEAM_LEADER, panchayath_id="p1", name="A")
    coordinator = create_agent(AgentRole.COORDINATOR, panchayath_id="p1")

    agents = [local_leader, scoped_leader, inactive_leader, other_leader, coordinator]
    result = parent_candidates(agents, AgentRole.COORDINATOR, "p1")

    assert result == [other_leader, local_leader]


@pytest.mark.unit
def test_no_parent_candidates_for_team_leader_or_missing_panchayath():
    leader = create_agent(AgentRole.TEAM_LEADER, panchayath_id="p1")

    assert not is_parent_candidate(leader, AgentRole.TEAM_LEADER, "p1")
    assert not is_parent_candidate(leader, AgentRole.COORDINATOR, None)


@pytest.mark.unit
def test_apply_filters_to_query():
    query = make_query_mock()
    filters = AgentFilters(panchayath_id="p1", ward="3", role="coordinator", search="ravi")

    assert apply_filters_to_query(query, filters) is query

    query.or_.assert_any_call("panchayath_id.eq.p1,responsible_panchayath_ids.cs.{p1}")
    query.or_.assert_any_call("name.ilike.%ravi%,mobile.ilike.%ravi%")
    query.eq.assert_any_call("ward", "3")
    query.eq.assert_any_call("role", "coordinator")


@pytest.mark.unit
def test_apply_filters_strips_clause_separators():
    query = make_query_mock()

    apply_filters_to_query(query, AgentFilters(search="a,b(c)"))

    query.or_.assert_called_once_with("name.ilike.%a b c%,mobile.ilike.%a b c%")


@pytest.mark.unit
def test_apply_filters_search_wildcards_are_literal():
    query = make_query_mock()

    apply_filters_to_query(query, AgentFilters(search="50%_off*"))

    query.or_.assert_called_once_with(r"name.ilike.%50\%\_off%,mobile.ilike.%50\%\_off%")


@pytest.mark.unit
def test_apply_no_filters_leaves_query_untouched():
    query = MagicMock()

    apply_filters_to_query(query, None)

    query.or_.assert_not_called()
    query.eq.assert_not_called()
