"""XLSX export of the agent list."""

import io
import re
from datetime import date
from typing import Iterable, Optional

from openpyxl import Workbook
from openpyxl.utils import get_column_letter

from pennyekart.models.agent import Agent, ROLE_LABELS

SHEET_NAME = "Agents"
MIN_COLUMN_WIDTH = 15

HEADERS = [
    "#",
    "Name",
    "Mobile",
    "Role",
    "Panchayath",
    "Ward",
    "Parent",
    "Customers",
    "Responsible Wards",
    "Active",
    "Created",
]


def export_filename(prefix: str = "pennyekart_agents", today: Optional[date] = None) -> str:
    safe_prefix = re.sub(r"[^a-zA-Z0-9]", "_", prefix)[:50]
    stamp = (today or date.today()).isoformat()
    return f"{safe_prefix}_{stamp}.xlsx"


def agent_rows(agents: Iterable[Agent]) -> list[list]:
    agent_list = list(agents)
    names = {agent.id: agent.name for agent in agent_list}

    rows = []
    for index, agent in enumerate(agent_list, start=1):
        rows.append([
            index,
            agent.name,
            agent.mobile,
            ROLE_LABELS[agent.role],
            agent.panchayath.name if agent.panchayath else "",
            agent.ward,
            names.get(agent.parent_agent_id, "") if agent.parent_agent_id else "",
            agent.customer_count,
            ", ".join(agent.responsible_wards),
            "Yes" if agent.is_active else "No",
            (agent.created_at or "")[:10],
        ])
    return rows


def export_agents_to_xlsx(agents: Iterable[Agent]) -> bytes:
    """Write agents to a single-sheet workbook and return its bytes."""
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME

    ws.append(HEADERS)
    for row in agent_rows(agents):
        ws.append(row)

    for column, header in enumerate(HEADERS, start=1):
        ws.column_dimensions[get_column_letter(column)].width = max(len(header), MIN_COLUMN_WIDTH)

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()
