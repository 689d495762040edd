"""
insights.py — Response models for GET /api/v1/insights.
"""

from pydantic import BaseModel, Field


class RankedItem(BaseModel):
    name: str
    count: int


class InsightsResponse(BaseModel):
    """Where the viewer's classmates are heading."""

    total_classmates: int = 0
    cities: list[RankedItem] = Field(default_factory=list)     # "City, ST"
    companies: list[RankedItem] = Field(default_factory=list)  # employed / internship
    grad_schools: list[RankedItem] = Field(default_factory=list)
