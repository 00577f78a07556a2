"""Tests for the XLSX agent export."""

import io
from datetime import date

import pytest
from openpyxl import load_workbook

from pennyekart.models.agent import AgentRole
from pennyekart.services.agent_export import (
    HEADERS,
    SHEET_NAME,
    agent_rows,
    export_agents_to_xlsx,
    export_filename,
)
from tests.utils.factories import create_agent


@pytest.mark.unit
def test_export_filename():
    assert export_filename(today=date(2026, 1, 27)) == "pennyekart_agents_2026-01-27.xlsx"
    assert export_filename("ward 3/agents", today=date(2026, 1, 27)) == "ward_3_agents_2026-01-27.xlsx"


@pytest.mark.unit
def test_agent_rows_resolve_parent_names():
    leader = create_agent(AgentRole.TEAM_LEADER, id="tl", name="Sreeja", panchayath={"name": "Kodur"})
    coordinator = create_agent(
        AgentRole.COORDINATOR, id="co", name="Anil", parent_agent_id="tl", responsible_wards=["2", "4"]
    )
    orphan = create_agent(AgentRole.PRO, id="pro", parent_agent_id="gone", is_active=False, customer_count=7)

    rows = agent_rows([leader, coordinator, orphan])

    assert rows[0][:7] == [1, "Sreeja", leader.mobile, "Team Leader", "Kodur", "N/A", ""]
    assert rows[1][6] == "Sreeja"
    assert rows[1][8] == "2, 4"
    assert rows[2][6] == ""
    assert rows[2][7] == 7
    assert rows[2][9] == "No"
    assert rows[2][10] == "2026-01-27"


@pytest.mark.unit
def test_export_agents_to_xlsx(team):
    content = export_agents_to_xlsx(team)

    workbook = load_workbook(io.BytesIO(content))
    sheet = workbook[SHEET_NAME]
    values = list(sheet.iter_rows(values_only=True))

    assert list(values[0]) == HEADERS
    assert len(values) == len(team) + 1
    assert values[1][1] == team[0].name
    assert values[2][6] == team[0].name


@pytest.mark.unit
def test_export_empty_list():
    workbook = load_workbook(io.BytesIO(export_agents_to_xlsx([])))

    assert workbook[SHEET_NAME].max_row == 1
