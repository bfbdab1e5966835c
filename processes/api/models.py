from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class RunAlgorithmRequest(BaseModel):
    algorithm: str
    # field-level checks belong to the encoder so they surface in the envelope
    params: dict[str, Any]


class RunAlgorithmResponse(BaseModel):
    success: bool
    data: Any | None = None
    error: str | None = None


class AlgorithmInfo(BaseModel):
    algorithm: str
    item_fields: list[str]
    extras: list[str]


class AlgorithmsResponse(BaseModel):
    algorithms: list[AlgorithmInfo]


class HealthResponse(BaseModel):
    ok: bool
    version: str
    time: str
