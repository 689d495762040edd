"""
classmates.py — Models for GET /api/v1/classmates.

  ClassmateFilters   — search box, status checkboxes, grad-year range,
                       roommate flag and the place picked on the map
  ClassmateCard      — one visible profile as the directory shows it
  ClassmatesResponse — wire shape of the route
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class ClassmateStatus(str, Enum):
    EMPLOYED = "employed"
    INTERNSHIP = "internship"
    GRAD_SCHOOL = "grad_school"
    LOOKING = "looking"


class ClassmateFilters(BaseModel):
    """
    Every filter is optional. Text filters are case-insensitive substring
    matches; statuses are OR-ed; everything else is AND-ed.

    `selected_city` / `selected_region` are the (city, region) pair the map
    hands to its location-select callback. The region is a US state
    (abbreviation or name) or a country name.
    """

    name: Optional[str] = None
    city: Optional[str] = None
    job_title: Optional[str] = None
    company: Optional[str] = None
    statuses: list[ClassmateStatus] = Field(default_factory=list)
    min_grad_year: Optional[int] = None
    max_grad_year: Optional[int] = None
    roommates_only: bool = False
    selected_city: Optional[str] = None
    selected_region: Optional[str] = None

    @model_validator(mode="after")
    def _year_range_is_ordered(self):
        if (
            self.min_grad_year is not None
            and self.max_grad_year is not None
            and self.min_grad_year > self.max_grad_year
        ):
            raise ValueError("min_grad_year must not exceed max_grad_year")
        return self


class ClassmateCard(BaseModel):
    user_id: str
    full_name: Optional[str] = None
    institution_id: Optional[str] = None
    grad_year: Optional[int] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: str = "United States"
    status: Optional[str] = None
    job_title: Optional[str] = None
    employer: Optional[str] = None     # hidden when show_employer is false
    grad_school: Optional[str] = None  # hidden when show_school is false
    looking_for_roommate: bool = False


class ClassmatesResponse(BaseModel):
    total: int = 0  # matches before the page cap
    classmates: list[ClassmateCard] = Field(default_factory=list)
