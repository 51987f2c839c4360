from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class RoomRead(BaseModel):
    id: int
    name: str
    capacity: int
    features: List[str] = []
    image: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("features", mode="before")
    @classmethod
    def split_features(cls, value: List[str] | str | None) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [f.strip() for f in value.split(",") if f.strip()]
        return value


class RoomMutationResponse(BaseModel):
    success: bool = True
    message: str
    room: RoomRead
