"""Panchayath model - local administrative unit agents belong to."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Panchayath(BaseModel):
    """A row of the panchayaths table."""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    ward: Optional[str] = Field(None, description="Configured ward count, stored as text")
    is_active: bool = True

    def ward_options(self) -> list[str]:
        """Ward identifiers '1'..'N', empty when the count is not configured."""
        try:
            count = int(self.ward or "")
        except ValueError:
            return []
        if count <= 0:
            return []
        return [str(i) for i in range(1, count + 1)]
