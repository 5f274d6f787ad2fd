"""Response envelope of the Graphite explorer API."""

from typing import Any, Optional
from pydantic import BaseModel, Field, validator


class ApiEnvelope(BaseModel):
    """Uniform ``{status, message, result}`` wrapper around every payload."""

    status: Any = Field(..., description='The string "1" on success, "0" otherwise')
    message: str = Field(default="", description="Human readable status message")
    result: Optional[Any] = Field(default=None, description="Operation payload")

    class Config:
        extra = "ignore"

    @validator('message', pre=True)
    def coerce_message(cls, v):
        if v is None:
            return ""
        return str(v)

    @property
    def ok(self) -> bool:
        """Only the string ``"1"`` counts as success; a numeric 1 does not."""
        return self.status == "1"
