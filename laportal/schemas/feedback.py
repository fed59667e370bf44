"""
Feedback schemas. text is required (after trimming); rating is 1-5 or omitted.
"""
from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class FeedbackCreateRequest(BaseModel):
    course: str | None = Field(default=None, max_length=120)
    type: str = Field(default="general", max_length=40)
    rating: int | None = Field(default=None, ge=1, le=5)
    text: str
    submitter: str | None = Field(default=None, max_length=120)
    year: int | None = None

    @field_validator("text")
    @classmethod
    def text_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("text is required")
        return v

    @field_validator("type", mode="before")
    @classmethod
    def default_type(cls, v):
        return v or "general"


class FeedbackResponse(BaseModel):
    id: int
    course: str | None = None
    type: str
    rating: int | None = None
    text: str
    submitter: str | None = None
    year: int | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class FeedbackCreatedResponse(BaseModel):
    ok: bool = True
    item: FeedbackResponse
