"""
Request models for the frontend endpoints.
"""

from pydantic import BaseModel, Field


class LoginForm(BaseModel):
    """Login form body."""

    student_id: str = Field(..., min_length=1, description="Student number, e.g. e19217")
    password: str = Field(..., min_length=1)


class ViewEndRequest(BaseModel):
    """Body of the page-exit beacon."""

    scroll_depth: float = Field(0, description="Maximum scroll depth seen by the browser, in percent")
