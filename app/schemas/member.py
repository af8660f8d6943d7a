# app/schemas/member.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MemberCreate(BaseModel):
    """
    Schema for adding a family member.
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name of the family member.",
        examples=["Anna"],
    )
    color: str = Field(
        default="#3b82f6",
        pattern=r"^#[0-9a-fA-F]{6}$",
        description="Hex color used to render the member's events.",
        examples=["#f97316"],
    )


class MemberRead(MemberCreate):
    """
    Response schema for a family member.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Generated member id.")
    created_at: datetime | None = Field(
        None,
        description="Timestamp when the member record was created (if available).",
    )
