"""Agent models - the four-level Pennyekart field agent hierarchy."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class AgentRole(str, Enum):
    """Agent roles, wire-stable values."""
    TEAM_LEADER = "team_leader"
    COORDINATOR = "coordinator"
    GROUP_LEADER = "group_leader"
    PRO = "pro"


# Top of the chain first
ROLE_HIERARCHY: list[AgentRole] = [
    AgentRole.TEAM_LEADER,
    AgentRole.COORDINATOR,
    AgentRole.GROUP_LEADER,
    AgentRole.PRO,
]

ROLE_LABELS: dict[AgentRole, str] = {
    AgentRole.TEAM_LEADER: "Team Leader",
    AgentRole.COORDINATOR: "Coordinator",
    AgentRole.GROUP_LEADER: "Group Leader",
    AgentRole.PRO: "PRO",
}

MOBILE_PATTERN = r"^[0-9]{10}$"


class PanchayathRef(BaseModel):
    """Joined panchayath name returned by list queries."""
    name: str


class Agent(BaseModel):
    """A row of the pennyekart_agents table."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Agent ID (uuid)")
    name: str = Field(..., description="Full name")
    mobile: str = Field(..., description="10 digit mobile number, unique")
    role: AgentRole
    panchayath_id: str = Field(..., description="Home panchayath")
    ward: str = Field(..., description="Own ward, 'N/A' for team leaders")
    parent_agent_id: Optional[str] = Field(None, description="Supervising agent, null for team leaders")
    customer_count: int = Field(default=0, ge=0, description="Customers, PRO only")
    responsible_panchayath_ids: list[str] = Field(
        default_factory=list,
        description="Panchayaths overseen, team leaders only"
    )
    responsible_wards: list[str] = Field(
        default_factory=list,
        description="Wards overseen, coordinators only"
    )
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    created_by: Optional[str] = None
    panchayath: Optional[PanchayathRef] = None


class AgentNode(Agent):
    """Agent copy carrying its direct reports."""
    children: list["AgentNode"] = Field(default_factory=list)


class AgentPayload(BaseModel):
    """Agent data submitted for creation."""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str = Field(..., min_length=2, max_length=100)
    mobile: str = Field(..., pattern=MOBILE_PATTERN)
    role: AgentRole
    panchayath_id: str = Field(..., min_length=1)
    ward: str = Field(default="", max_length=50)
    parent_agent_id: Optional[str] = None
    customer_count: int = Field(default=0, ge=0)
    responsible_panchayath_ids: list[str] = Field(default_factory=list)
    responsible_wards: list[str] = Field(default_factory=list)
    is_active: bool = True


class AgentUpdate(BaseModel):
    """Partial agent update; only the provided fields are written."""
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    mobile: Optional[str] = Field(None, pattern=MOBILE_PATTERN)
    role: Optional[AgentRole] = None
    panchayath_id: Optional[str] = Field(None, min_length=1)
    ward: Optional[str] = Field(None, max_length=50)
    parent_agent_id: Optional[str] = None
    customer_count: Optional[int] = Field(None, ge=0)
    responsible_panchayath_ids: Optional[list[str]] = None
    responsible_wards: Optional[list[str]] = None
    is_active: Optional[bool] = None
