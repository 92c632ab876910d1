from __future__ import annotations

from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

STUDENT_FIELDS = ("fullName", "dob", "gender", "email", "phone", "program", "major")

Scalar = Union[str, int, float, bool]


def _stringify(value: Optional[Scalar]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class StudentCreate(BaseModel):
    """Create payload. Presence is checked by the service so a gap is a 400, not a 422."""

    model_config = ConfigDict(extra="ignore")

    studentId: Optional[str] = None
    fullName: Optional[str] = None
    dob: Optional[str] = None
    gender: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    program: Optional[str] = None
    major: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, value: Optional[Scalar]) -> Optional[str]:
        return _stringify(value)


class StudentUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    fullName: Optional[str] = None
    dob: Optional[str] = None
    gender: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    program: Optional[str] = None
    major: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, value: Optional[Scalar]) -> Optional[str]:
        return _stringify(value)


class Student(BaseModel):
    studentId: str
    fullName: str = ""
    dob: str = ""
    gender: str = ""
    email: str = ""
    phone: str = ""
    program: str = ""
    major: str = ""


class MessageResponse(BaseModel):
    message: str


class ImportResponse(BaseModel):
    message: str
    imported: int
    skipped: int


class HealthResponse(BaseModel):
    status: str
    store_backend: str
    store_state: str


StatsResponse = Dict[str, int]
