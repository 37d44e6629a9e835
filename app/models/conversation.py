"""Chat request and response models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """Request model for the chat endpoints."""

    message: str = Field(..., min_length=1)


class ChatStartResponse(BaseModel):
    """Response for a newly started conversation."""

    model_config = ConfigDict(populate_by_name=True)

    thread_id: str = Field(..., alias="threadId")
    response: str


class ChatResponse(BaseModel):
    """Response for a message on an existing conversation."""

    response: str


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str
