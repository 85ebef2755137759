"""
Pydantic schemas for the ref-stats API action.
"""

from typing import List

from pydantic import BaseModel


class RefStatsRow(BaseModel):
    """One r_param group and its click count."""
    r_param: str
    clicks: int


class Pagination(BaseModel):
    current_page: int
    per_page: int
    total: int
    total_pages: int


class RefStatsResponse(BaseModel):
    """Successful ref-stats result."""
    status: str = "success"
    statusCode: int = 200
    data: List[RefStatsRow]
    pagination: Pagination


class ErrorResponse(BaseModel):
    """Validation failure, e.g. a missing shorturl."""
    statusCode: int
    message: str
