"""Typed views over Apptics responses."""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CrashRecord(BaseModel):
    """One row of the crash list.

    Unknown fields are kept so newer API versions pass through untouched.
    """

    model_config = ConfigDict(extra="allow")

    AppVersion: Optional[str] = None
    Status: Optional[int] = None
    UniqueMessageID: Optional[str] = None
    AppVersionID: Optional[int] = None
    PID: Optional[int] = None
    ExceptionType: Optional[str] = None
    OS: Optional[str] = None
    CrashCount: Optional[Union[str, int]] = None
    UsersCount: Optional[Union[str, int]] = None
    DevicesCount: Optional[Union[str, int]] = None
    Exception: Optional[str] = None


class CrashList(BaseModel):
    """Structured projection of a crash list response."""

    data: List[CrashRecord] = Field(default_factory=list)

    @classmethod
    def from_response(cls, payload: Any) -> "CrashList":
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            return cls()
        return cls.model_validate({"data": payload["data"]})
