from __future__ import annotations

from pydantic import BaseModel, Field


class AddressModel(BaseModel):
    host: str
    port: int = Field(..., ge=0, le=65535)


class MasterResponse(BaseModel):
    master_name: str
    address: AddressModel
    source: str | None = Field(None, description="initial|poll|event")
    applied_at: str | None = None
    updates_applied: int = 0


class ProducerModel(BaseModel):
    name: str
    alive: bool
    restarts: int
    last_error: str | None = None


class HealthResponse(BaseModel):
    status: str = Field(..., description="healthy|degraded")
    master_known: bool
    queued: int = 0
    dropped: int = 0
    producers: list[ProducerModel] = []


class EventModel(BaseModel):
    id: int
    ts: str
    level: str
    master: str | None = None
    message: str
