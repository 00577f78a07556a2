"""Agent list filters."""

from typing import Optional
from pydantic import BaseModel, field_validator

from pennyekart.models.agent import AgentRole


class AgentFilters(BaseModel):
    """Predicates combined with AND before the hierarchy is built."""
    panchayath_id: Optional[str] = None
    ward: Optional[str] = None
    role: Optional[AgentRole] = None
    search: Optional[str] = None

    @field_validator("panchayath_id", "ward", "role", "search", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if not value or value == "all":
                return None
        return value

    def is_empty(self) -> bool:
        return not any((self.panchayath_id, self.ward, self.role, self.search))
