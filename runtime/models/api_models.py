"""
HTTP request/response models for the inquiry relay API.
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InquiryRequest(BaseModel):
    """Body of POST /sse/start/{session_id}.

    Both fields are required and must not be blank. The body is forwarded
    as-is (camelCase keys) to the external start operation.
    """

    model_config = ConfigDict(populate_by_name=True)

    tracking_id: str = Field(alias="trackingId")
    user_id: str = Field(alias="userId")

    @field_validator("tracking_id", "user_id")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        if not value.strip():
            raise ValueError(f"{info.field_name} is required")
        return value

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class StartResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "ACK Received"
    session_id: str = Field(alias="sessionId")
    tracking_id: str = Field(alias="trackingId")


class HealthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = "ok"
    sessions: int
    active_chains: int = Field(alias="activeChains")
