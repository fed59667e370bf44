"""
Schedule entry, generated session and office-hours listing schemas.
day_of_week is 0 = Sunday ... 6 = Saturday; day names ("Wednesday", "wed") are accepted on input.
"""
from datetime import date, datetime, time

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from laportal.models.types import ScheduleKind

DAY_NAMES = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")


def parse_day_of_week(v):
    if isinstance(v, str):
        s = v.strip().lower()
        if s.isdigit():
            return int(s)
        for i, name in enumerate(DAY_NAMES):
            if len(s) >= 3 and name.startswith(s):
                return i
        raise ValueError("day_of_week must be 0-6 or a day name")
    return v


class ScheduleEntryRequest(BaseModel):
    kind: ScheduleKind = Field(default=ScheduleKind.OFFICE_HOUR, validation_alias=AliasChoices("kind", "type"))
    day_of_week: int = Field(ge=0, le=6, validation_alias=AliasChoices("day_of_week", "day"))
    start_time: time = Field(validation_alias=AliasChoices("start_time", "start"))
    end_time: time = Field(validation_alias=AliasChoices("end_time", "end"))
    location: str | None = Field(default=None, max_length=200)
    course: str | None = Field(default=None, max_length=120)
    # only honoured for senior-leads creating an entry on someone else's behalf
    staff_nuid: str | None = None

    @field_validator("day_of_week", mode="before")
    @classmethod
    def day_name(cls, v):
        return parse_day_of_week(v)

    @model_validator(mode="after")
    def start_before_end(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class ScheduleEntryUpdate(BaseModel):
    kind: ScheduleKind | None = Field(default=None, validation_alias=AliasChoices("kind", "type"))
    day_of_week: int | None = Field(default=None, ge=0, le=6, validation_alias=AliasChoices("day_of_week", "day"))
    start_time: time | None = Field(default=None, validation_alias=AliasChoices("start_time", "start"))
    end_time: time | None = Field(default=None, validation_alias=AliasChoices("end_time", "end"))
    location: str | None = Field(default=None, max_length=200)
    course: str | None = Field(default=None, max_length=120)

    @field_validator("day_of_week", mode="before")
    @classmethod
    def day_name(cls, v):
        return parse_day_of_week(v) if v is not None else None


class ScheduleEntryResponse(BaseModel):
    id: int
    staff_nuid: str
    kind: str
    day_of_week: int
    start_time: time
    end_time: time
    location: str | None = None
    course: str | None = None

    class Config:
        from_attributes = True


class GenerateSessionsRequest(BaseModel):
    schedule_id: int
    date_from: date = Field(validation_alias=AliasChoices("from", "date_from"))
    date_to: date = Field(validation_alias=AliasChoices("to", "date_to"))
    tz: str | None = None


class SessionResponse(BaseModel):
    id: int
    schedule_id: int
    session_start: datetime
    session_end: datetime

    class Config:
        from_attributes = True


class GenerateSessionsResponse(BaseModel):
    count: int
    items: list[SessionResponse]


class StaffRef(BaseModel):
    nuid: str
    name: str | None = None
    role: str | None = None


class OfficeHourResponse(BaseModel):
    id: int
    course: str | None = None
    day_of_week: int
    start_time: time
    end_time: time
    location: str | None = None
    staff: StaffRef


class OfficeHourSessionResponse(BaseModel):
    id: int
    schedule_id: int
    session_start: datetime
    session_end: datetime
    course: str | None = None
    location: str | None = None
    staff: StaffRef


class QueueEntryResponse(BaseModel):
    id: int
    session_id: int
    user_id: str
    joined_at: datetime | None = None

    class Config:
        from_attributes = True
