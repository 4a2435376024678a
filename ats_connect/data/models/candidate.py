"""
Mirrored candidate model.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from ats_connect.utils.constants import Availability

from .base import BaseDocument, PyObjectId


class Candidate(BaseDocument):
    """A candidate as known to the provider, in canonical form."""

    connection_id: PyObjectId
    external_candidate_id: str = Field(..., min_length=1)

    # Contact
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    linkedin_url: Optional[str] = None
    portfolio_url: Optional[str] = None

    # Background
    skills: list[Any] = Field(default_factory=list)
    education: list[Any] = Field(default_factory=list)
    experience: list[Any] = Field(default_factory=list)
    current_title: Optional[str] = None
    current_company: Optional[str] = None

    # Preferences
    desired_salary: Optional[float] = None
    availability: Availability = Availability.IMMEDIATE
    open_to_remote: bool = False

    custom_fields: dict[str, Any] = Field(default_factory=dict)
    last_updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        parts = [p for p in [self.first_name, self.last_name] if p]
        return " ".join(parts) if parts else f"Candidate {self.external_candidate_id}"

    class Settings:
        """MongoDB collection settings."""

        name = "ats_candidates"
        indexes = [("connection_id", "external_candidate_id"), "email"]
